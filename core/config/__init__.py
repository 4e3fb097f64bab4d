"""
Runtime Configuration Module

Provides configuration loading and management for the bridge.
"""

from .runtime import (
    MAX_U64,
    ZERO_ROOT_HEX,
    LedgerConfig,
    RelayerConfig,
    RuntimeConfig,
    TreeConfig,
    config_search_paths,
    get_default_config,
    load_runtime_config,
    set_default_config,
)

__all__ = [
    "MAX_U64",
    "ZERO_ROOT_HEX",
    "LedgerConfig",
    "RelayerConfig",
    "RuntimeConfig",
    "TreeConfig",
    "config_search_paths",
    "get_default_config",
    "load_runtime_config",
    "set_default_config",
]
