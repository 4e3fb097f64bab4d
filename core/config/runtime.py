"""
Runtime Configuration

Central configuration for the commitment tree, the destination ledger,
the relayer service and logging.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


# Largest credited total the destination ledger can represent (u64).
MAX_U64: int = 2**64 - 1

ZERO_ROOT_HEX: str = "0x" + "00" * 32


@dataclass
class TreeConfig:
    """Configuration for the commitment accumulator."""
    depth: int = 32


@dataclass
class LedgerConfig:
    """Configuration for the destination processing ledger."""
    max_amount_per_tx: Optional[int] = None
    max_total_credited: int = MAX_U64
    initial_root: str = ZERO_ROOT_HEX


@dataclass
class RelayerConfig:
    """Configuration for the watcher/orchestrator loop."""
    poll_interval_s: float = 5.0
    batch_size: int = 10
    max_workers: int = 4
    proof_timeout_s: float = 30.0
    submit_timeout_s: float = 30.0
    default_amount: int = 1_000_000
    checkpoint_path: Optional[str] = None
    status_interval_s: float = 30.0


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the bridge.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    tree: TreeConfig = field(default_factory=TreeConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    relayer: RelayerConfig = field(default_factory=RelayerConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - BRIDGE_TREE_DEPTH: Commitment tree depth
        - BRIDGE_MAX_AMOUNT_PER_TX: Per-credit safety limit
        - BRIDGE_POLL_INTERVAL: Seconds between source polls
        - BRIDGE_BATCH_SIZE: Events fetched per poll
        - BRIDGE_MAX_WORKERS: Parallel proof workers
        - BRIDGE_PROOF_TIMEOUT: Proof generation timeout (seconds)
        - BRIDGE_SUBMIT_TIMEOUT: Ledger submission timeout (seconds)
        - BRIDGE_CHECKPOINT_PATH: Relay checkpoint file
        - BRIDGE_LOG_LEVEL: Logging level name
        """
        overrides: dict[str, Any] = {}

        depth = _env_int("BRIDGE_TREE_DEPTH")
        if depth is not None:
            overrides.setdefault("tree", {})["depth"] = depth

        max_amount = _env_int("BRIDGE_MAX_AMOUNT_PER_TX")
        if max_amount is not None:
            overrides.setdefault("ledger", {})["max_amount_per_tx"] = max_amount

        relayer_env = {
            "poll_interval_s": _env_float("BRIDGE_POLL_INTERVAL"),
            "batch_size": _env_int("BRIDGE_BATCH_SIZE"),
            "max_workers": _env_int("BRIDGE_MAX_WORKERS"),
            "proof_timeout_s": _env_float("BRIDGE_PROOF_TIMEOUT"),
            "submit_timeout_s": _env_float("BRIDGE_SUBMIT_TIMEOUT"),
        }
        for key, value in relayer_env.items():
            if value is not None:
                overrides.setdefault("relayer", {})[key] = value
        if os.getenv("BRIDGE_CHECKPOINT_PATH"):
            overrides.setdefault("relayer", {})["checkpoint_path"] = os.getenv(
                "BRIDGE_CHECKPOINT_PATH"
            )

        if os.getenv("BRIDGE_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("BRIDGE_LOG_LEVEL", "INFO").upper()

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        tree_data = data.get("tree") or {}
        ledger_data = data.get("ledger") or {}
        relayer_data = data.get("relayer") or {}

        return cls(
            tree=TreeConfig(**tree_data),
            ledger=LedgerConfig(**ledger_data),
            relayer=RelayerConfig(**relayer_data),
            log_level=str(data.get("log_level", "INFO")).upper(),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        for section in ("tree", "ledger", "relayer"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "tree": {
                "depth": self.tree.depth,
            },
            "ledger": {
                "max_amount_per_tx": self.ledger.max_amount_per_tx,
                "max_total_credited": self.ledger.max_total_credited,
                "initial_root": self.ledger.initial_root,
            },
            "relayer": {
                "poll_interval_s": self.relayer.poll_interval_s,
                "batch_size": self.relayer.batch_size,
                "max_workers": self.relayer.max_workers,
                "proof_timeout_s": self.relayer.proof_timeout_s,
                "submit_timeout_s": self.relayer.submit_timeout_s,
                "default_amount": self.relayer.default_amount,
                "checkpoint_path": self.relayer.checkpoint_path,
                "status_interval_s": self.relayer.status_interval_s,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


def config_search_paths() -> list[Path]:
    """Default config file locations, in lookup order."""
    return [
        Path.cwd() / "bridge.yaml",
        Path.cwd() / "bridge.json",
        Path.home() / ".config" / "bridge" / "config.yaml",
    ]


def load_runtime_config(path: str | Path | None = None) -> RuntimeConfig:
    """
    Load configuration from a file, then overlay environment variables.

    Args:
        path: Explicit config file (YAML or JSON). When omitted, the first
            existing file from config_search_paths() is used, if any.

    Raises:
        FileNotFoundError: If an explicit path does not exist
    """
    candidates = [Path(path)] if path is not None else config_search_paths()

    config: Optional[RuntimeConfig] = None
    for candidate in candidates:
        if path is None and not candidate.exists():
            continue
        if candidate.suffix == ".json":
            if not candidate.exists():
                raise FileNotFoundError(f"Config file not found: {candidate}")
            with open(candidate) as f:
                config = RuntimeConfig.from_dict(json.load(f))
        else:
            config = RuntimeConfig.from_yaml(candidate)
        logger.info(f"Loaded config from {candidate}")
        break

    if config is None:
        config = RuntimeConfig()
    return config.with_env_overrides()


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
