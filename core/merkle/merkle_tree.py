"""
Module 03 - Merkle Tree Implementation
Fixed-depth Merkle tree construction, proof generation, and verification.

Owner: Protocol/Crypto Engineer
Module ID: M03

This module provides:
- Zero-hash ladder for a tree of depth D
- Pure fixed-depth Merkle root computation from a leaf list
- Inclusion proof generation for any leaf index
- Instance-independent proof verification

Commitment Tree Rules (Hard Contracts):
1. zero_hashes[0] = sha256(32 zero bytes)
2. zero_hashes[i] = sha256(zero_hashes[i-1] + zero_hashes[i-1])
3. Parent hashing: parent = sha256(left + right)
4. Padding rule: an odd trailing node at height h pairs with zero_hashes[h]
5. Empty tree of depth D: root = zero_hashes[D]
6. Every proof path has exactly D siblings, bottom to top

Determinism Notes:
- The root is a pure function of (leaf sequence, depth)
- This module never sorts leaves - insertion order is the index
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from core.crypto.hashing import HASH_SIZE, ZERO_BYTES32, from_hex, hash_pair, sha256, to_hex


# Supported tree depths. 32 matches the source chain's commitment tree.
MIN_TREE_DEPTH: int = 1
MAX_TREE_DEPTH: int = 64
DEFAULT_TREE_DEPTH: int = 32


def validate_depth(depth: int) -> int:
    """
    Check that a tree depth is within the supported range.

    Raises:
        ValueError: If depth is not an int in [MIN_TREE_DEPTH, MAX_TREE_DEPTH]
    """
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise ValueError(f"Tree depth must be an integer, got {type(depth).__name__}")
    if depth < MIN_TREE_DEPTH or depth > MAX_TREE_DEPTH:
        raise ValueError(
            f"Tree depth must be between {MIN_TREE_DEPTH} and {MAX_TREE_DEPTH}, got {depth}"
        )
    return depth


def compute_zero_hashes(depth: int) -> tuple[bytes, ...]:
    """
    Compute the zero-hash ladder zero_hashes[0..depth].

    zero_hashes[h] is the root of an all-empty subtree of height h.

    Args:
        depth: Tree depth D

    Returns:
        Tuple of D + 1 hashes
    """
    validate_depth(depth)
    ladder = [sha256(ZERO_BYTES32)]
    for _ in range(depth):
        ladder.append(hash_pair(ladder[-1], ladder[-1]))
    return tuple(ladder)


@dataclass(frozen=True)
class InclusionProof:
    """
    A Merkle inclusion proof for a single leaf of a fixed-depth tree.

    The proof only attests membership under `root`, i.e. under the exact
    leaf sequence that produced that root.

    Attributes:
        leaf: The leaf hash being proven (32 bytes)
        index: The 0-based insertion index of the leaf
        path: Sibling hashes from bottom to top (one per tree level)
        root: The Merkle root this proof is against
    """
    leaf: bytes
    index: int
    path: tuple[bytes, ...] = field(default_factory=tuple)
    root: bytes = ZERO_BYTES32

    def __post_init__(self) -> None:
        """Validate proof structure."""
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")
        if not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path))

    @property
    def depth(self) -> int:
        return len(self.path)

    def to_dict(self) -> dict[str, Any]:
        """Wire form: hashes as 0x-hex."""
        return {
            "leaf": to_hex(self.leaf),
            "index": self.index,
            "path": [to_hex(sibling) for sibling in self.path],
            "root": to_hex(self.root),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InclusionProof":
        """Parse the wire form produced by to_dict()."""
        return cls(
            leaf=from_hex(data["leaf"]),
            index=int(data["index"]),
            path=tuple(from_hex(sibling) for sibling in data["path"]),
            root=from_hex(data["root"]),
        )


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    Parent hash is deterministic: sha256(left + right)
    """
    return hash_pair(left, right)


def build_merkle_root(leaves: Sequence[bytes], depth: int = DEFAULT_TREE_DEPTH) -> bytes:
    """
    Build a fixed-depth Merkle root from a sequence of leaf hashes.

    Algorithm:
    1. Level 0 is the leaf list
    2. At each height h < depth, pair adjacent nodes left to right;
       an odd trailing node pairs with zero_hashes[h]
    3. A single remaining node below height depth keeps climbing,
       paired with zero_hashes[h] at every level
    4. An empty leaf list yields zero_hashes[depth]

    This is the non-incremental reference; CommitmentAccumulator
    maintains the same root incrementally.

    Args:
        leaves: Sequence of 32-byte leaf hashes. Order matters.
        depth: Tree depth D

    Returns:
        32-byte Merkle root

    Raises:
        ValueError: If there are more than 2^depth leaves
    """
    zero_hashes = compute_zero_hashes(depth)
    if len(leaves) > 1 << depth:
        raise ValueError(f"{len(leaves)} leaves exceed capacity of depth {depth}")
    if len(leaves) == 0:
        return zero_hashes[depth]

    current_level: list[bytes] = list(leaves)
    for height in range(depth):
        if len(current_level) % 2 == 1:
            current_level.append(zero_hashes[height])
        current_level = [
            merkle_parent(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level), 2)
        ]

    return current_level[0]


def build_merkle_proof(
    leaves: Sequence[bytes],
    index: int,
    depth: int = DEFAULT_TREE_DEPTH,
) -> InclusionProof:
    """
    Generate an inclusion proof for the leaf at `index` from a raw leaf list.

    Rebuilds every level, so it is O(n); use CommitmentAccumulator.get_proof
    for live trees.

    Raises:
        IndexError: If index is out of range
    """
    zero_hashes = compute_zero_hashes(depth)
    if index < 0 or index >= len(leaves):
        raise IndexError(f"Leaf index {index} out of range for {len(leaves)} leaves")

    path: list[bytes] = []
    current_level: list[bytes] = list(leaves)
    current_index = index
    for height in range(depth):
        if len(current_level) % 2 == 1:
            current_level.append(zero_hashes[height])
        path.append(current_level[current_index ^ 1])
        current_level = [
            merkle_parent(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level), 2)
        ]
        current_index //= 2

    return InclusionProof(
        leaf=leaves[index],
        index=index,
        path=tuple(path),
        root=current_level[0],
    )


def compute_root_from_path(leaf: bytes, index: int, path: Sequence[bytes]) -> bytes:
    """
    Fold a sibling path against a leaf.

    Bit h of index selects the side at height h:
    0 -> leaf side is left, H(current, sibling); 1 -> H(sibling, current).
    """
    current_hash = leaf
    for height, sibling in enumerate(path):
        if (index >> height) & 1 == 0:
            current_hash = merkle_parent(current_hash, sibling)
        else:
            current_hash = merkle_parent(sibling, current_hash)
    return current_hash


def verify_merkle_proof(proof: InclusionProof) -> bool:
    """
    Verify an inclusion proof.

    Depends only on (leaf, index, path, root), never on the tree that
    produced it. An index that does not fit in len(path) bits, or a
    malformed hash width, is rejected.

    Returns:
        True if the folded path equals proof.root, False otherwise
    """
    if proof.index >= 1 << len(proof.path):
        return False
    if len(proof.leaf) != HASH_SIZE or len(proof.root) != HASH_SIZE:
        return False
    if any(len(sibling) != HASH_SIZE for sibling in proof.path):
        return False
    return compute_root_from_path(proof.leaf, proof.index, proof.path) == proof.root


__all__ = [
    "MIN_TREE_DEPTH",
    "MAX_TREE_DEPTH",
    "DEFAULT_TREE_DEPTH",
    "InclusionProof",
    "validate_depth",
    "compute_zero_hashes",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_path",
    "verify_merkle_proof",
]
