"""
Module 03 - Merkle Tree and Commitment Accumulator
Fixed-depth Merkle tree construction + proof generation/verification.

Owner: Protocol/Crypto Engineer
Module ID: M03

This module provides:
- InclusionProof: Dataclass representing a Merkle inclusion proof
- CommitmentAccumulator: Incremental append-only tree with cached levels
- build_merkle_root: Reference root computation from a raw leaf list
- verify_merkle_proof: Verify a proof against its claimed root

Commitment Tree Rules:
1. zero_hashes[0] = sha256(32 zero bytes)
2. Parent hashing: sha256(left + right)
3. Padding: odd trailing node at height h pairs with zero_hashes[h]
4. Empty tree of depth D: zero_hashes[D]

Usage:
    from core.merkle import CommitmentAccumulator, verify_merkle_proof

    acc = CommitmentAccumulator(depth=32)
    index = acc.insert(commitment)
    proof = acc.get_proof(index)
    assert verify_merkle_proof(proof)
"""
from .merkle_tree import (
    MIN_TREE_DEPTH,
    MAX_TREE_DEPTH,
    DEFAULT_TREE_DEPTH,
    InclusionProof,
    validate_depth,
    compute_zero_hashes,
    merkle_parent,
    build_merkle_root,
    build_merkle_proof,
    compute_root_from_path,
    verify_merkle_proof,
)

from .accumulator import CommitmentAccumulator


__all__ = [
    # Constants
    "MIN_TREE_DEPTH",
    "MAX_TREE_DEPTH",
    "DEFAULT_TREE_DEPTH",
    # Core types
    "InclusionProof",
    "CommitmentAccumulator",
    # Core functions
    "validate_depth",
    "compute_zero_hashes",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_path",
    "verify_merkle_proof",
]
