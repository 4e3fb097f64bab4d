"""
Module 09D - API Dependencies

Dependency injection for the API.
Provides the process-wide in-process bridge node.
"""

from __future__ import annotations

import threading
from typing import Optional

from core.config.runtime import load_runtime_config
from relayer.relayer import BridgeNode, create_node

_node: Optional[BridgeNode] = None
_node_lock = threading.Lock()


def get_node() -> BridgeNode:
    """
    Get (creating on first use) the node served by the API.

    The node is built from ./bridge.yaml, ./bridge.json or
    ~/.config/bridge/config.yaml when present; environment variables
    always override file values.
    """
    global _node
    with _node_lock:
        if _node is None:
            _node = create_node(load_runtime_config())
            _node.relayer.restore()
        return _node


def set_node(node: Optional[BridgeNode]) -> None:
    """Replace the served node (tests and the CLI's serve command)."""
    global _node
    with _node_lock:
        _node = node
