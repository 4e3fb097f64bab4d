"""
Runtime Configuration Tests
Tests for core/config/runtime.py
"""
import json

import pytest
import yaml

from core.config import RuntimeConfig, load_runtime_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep BRIDGE_* variables from the developer shell out of these tests."""
    for name in (
        "BRIDGE_TREE_DEPTH",
        "BRIDGE_MAX_AMOUNT_PER_TX",
        "BRIDGE_POLL_INTERVAL",
        "BRIDGE_BATCH_SIZE",
        "BRIDGE_MAX_WORKERS",
        "BRIDGE_PROOF_TIMEOUT",
        "BRIDGE_SUBMIT_TIMEOUT",
        "BRIDGE_CHECKPOINT_PATH",
        "BRIDGE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:

    def test_defaults(self):
        config = RuntimeConfig()
        assert config.tree.depth == 32
        assert config.ledger.max_amount_per_tx is None
        assert config.ledger.max_total_credited == 2**64 - 1
        assert config.relayer.batch_size == 10
        assert config.relayer.checkpoint_path is None

    def test_from_dict_is_partial(self):
        config = RuntimeConfig.from_dict({"tree": {"depth": 16}, "log_level": "debug"})
        assert config.tree.depth == 16
        assert config.relayer.max_workers == 4
        assert config.log_level == "DEBUG"

    def test_to_dict_roundtrip(self):
        config = RuntimeConfig.from_dict({"relayer": {"poll_interval_s": 0.5}})
        assert RuntimeConfig.from_dict(config.to_dict()) == config

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            RuntimeConfig.from_dict({"tree": {"width": 3}})


class TestEnvOverrides:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BRIDGE_TREE_DEPTH", "20")
        monkeypatch.setenv("BRIDGE_MAX_AMOUNT_PER_TX", "500")
        monkeypatch.setenv("BRIDGE_POLL_INTERVAL", "0.25")
        monkeypatch.setenv("BRIDGE_LOG_LEVEL", "warning")

        config = RuntimeConfig.from_env()

        assert config.tree.depth == 20
        assert config.ledger.max_amount_per_tx == 500
        assert config.relayer.poll_interval_s == 0.25
        assert config.log_level == "WARNING"

    def test_env_overlays_file_values(self, monkeypatch):
        base = RuntimeConfig.from_dict({"relayer": {"batch_size": 3, "max_workers": 2}})
        monkeypatch.setenv("BRIDGE_BATCH_SIZE", "50")

        config = base.with_env_overrides()

        assert config.relayer.batch_size == 50
        assert config.relayer.max_workers == 2
        assert base.relayer.batch_size == 3

    def test_no_overrides_returns_same_object(self):
        config = RuntimeConfig()
        assert config.with_env_overrides() is config


class TestLoadRuntimeConfig:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "bridge.yaml"
        path.write_text(yaml.safe_dump({"tree": {"depth": 12}}))
        assert load_runtime_config(path).tree.depth == 12

    def test_json_file(self, tmp_path):
        path = tmp_path / "bridge.json"
        path.write_text(json.dumps({"ledger": {"max_amount_per_tx": 9}}))
        assert load_runtime_config(path).ledger.max_amount_per_tx == 9

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_runtime_config(tmp_path / "missing.yaml")
        with pytest.raises(FileNotFoundError):
            load_runtime_config(tmp_path / "missing.json")

    def test_search_path_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "bridge.yaml").write_text(yaml.safe_dump({"relayer": {"batch_size": 7}}))
        assert load_runtime_config().relayer.batch_size == 7

    def test_env_applied_after_file(self, tmp_path, monkeypatch):
        path = tmp_path / "bridge.yaml"
        path.write_text(yaml.safe_dump({"tree": {"depth": 12}}))
        monkeypatch.setenv("BRIDGE_TREE_DEPTH", "6")
        assert load_runtime_config(path).tree.depth == 6
