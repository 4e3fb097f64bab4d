"""
Pytest configuration and shared fixtures for bridge tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_bridge = importlib.import_module("fixtures.bridge_fixtures")

make_commitment = _bridge.make_commitment
make_leaves = _bridge.make_leaves
make_node = _bridge.make_node
ManualClock = _bridge.ManualClock

from core.ledger.processing_ledger import ProcessingLedger
from core.ledger.source_ledger import SourceLedger
from core.merkle import CommitmentAccumulator
from core.proving.backend import MerklePathProofBackend


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def leaves():
    """Eight deterministic commitments."""
    return make_leaves(8)


@pytest.fixture
def accumulator():
    """Empty depth-4 accumulator."""
    return CommitmentAccumulator(depth=4)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def source(clock):
    """Depth-8 source ledger driven by a manual clock."""
    return SourceLedger(depth=8, clock=clock)


@pytest.fixture
def backend():
    return MerklePathProofBackend()


@pytest.fixture
def ledger(backend):
    return ProcessingLedger(backend)


@pytest.fixture
def node():
    """In-process node; worker pools are released after the test."""
    bridge_node = make_node(depth=8)
    yield bridge_node
    bridge_node.shutdown()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
