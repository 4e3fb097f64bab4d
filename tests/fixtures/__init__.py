"""
Test fixtures package for bridge tests.

This package provides factory functions for creating test objects:
- bridge_fixtures.py: commitments, clocks, nodes and instrumented collaborators

Usage:
    from fixtures import make_commitment, make_node

    def test_something():
        node = make_node(depth=4)
        node.source.deposit(make_commitment(0))
"""

from .bridge_fixtures import (
    CountingLedger,
    FlakyFeed,
    ManualClock,
    SlowBackend,
    SlowVerifyBackend,
    make_commitment,
    make_config,
    make_leaves,
    make_node,
    make_source_with_deposits,
)

__all__ = [
    "CountingLedger",
    "FlakyFeed",
    "ManualClock",
    "SlowBackend",
    "SlowVerifyBackend",
    "make_commitment",
    "make_config",
    "make_leaves",
    "make_node",
    "make_source_with_deposits",
]
