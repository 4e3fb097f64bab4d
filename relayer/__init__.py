"""
Relayer

Watches the source chain, drives commitments through proving and
submission, and persists progress.

Usage:
    from relayer import create_node

    node = create_node()
    node.source.deposit("0x" + "11" * 32)
    node.relayer.run_once()
    print(node.relayer.get_stats())
"""

from relayer.orchestrator import InclusionSource, RelayOrchestrator
from relayer.relayer import BridgeNode, BridgeRelayer, create_node
from relayer.state_store import (
    CheckpointIOError,
    RelayCheckpoint,
    load_checkpoint,
    save_checkpoint,
)
from relayer.steps import (
    FunctionStep,
    RelayState,
    RelayStep,
    StepExecutor,
    call_with_timeout,
    make_step,
)
from relayer.watcher import EventFeed, SourceWatcher

__all__ = [
    # Orchestrator
    "InclusionSource",
    "RelayOrchestrator",
    # Service
    "BridgeNode",
    "BridgeRelayer",
    "create_node",
    # Checkpoints
    "CheckpointIOError",
    "RelayCheckpoint",
    "load_checkpoint",
    "save_checkpoint",
    # Steps
    "FunctionStep",
    "RelayState",
    "RelayStep",
    "StepExecutor",
    "call_with_timeout",
    "make_step",
    # Watcher
    "EventFeed",
    "SourceWatcher",
]
