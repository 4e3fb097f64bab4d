"""
CLI Configuration

Configuration file template and loading for the bridge CLI. The CLI shares
RuntimeConfig with the API; this module only adds the file template.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from core.config.runtime import RuntimeConfig, load_runtime_config


# Environment variable prefix
ENV_PREFIX = "BRIDGE_"


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to config file (YAML or JSON)

    Returns:
        RuntimeConfig instance
    """
    return load_runtime_config(config_path)


def get_default_config_template() -> str:
    """Get a template YAML configuration file."""
    header = (
        "# Commitment bridge configuration.\n"
        f"# Environment variables ({ENV_PREFIX}* prefix) override these values.\n"
    )
    return header + yaml.safe_dump(RuntimeConfig().to_dict(), sort_keys=False)
