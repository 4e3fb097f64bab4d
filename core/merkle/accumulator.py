"""
Module 03 - Commitment Accumulator
Append-only, fixed-depth incremental Merkle tree over commitments.

Owner: Protocol/Crypto Engineer
Module ID: M03

The accumulator caches one node array per level. levels[h] holds the
ceil(n / 2^h) real nodes at height h; positions beyond the array are
implicitly zero_hashes[h]. An insert rewrites exactly one node per level
(the path of the new leaf), so:

- insert:    O(D)
- get_root:  O(1)
- get_proof: O(D)

Thread safety: a single lock covers writes and reads. Reads are O(D), so
holding the lock keeps every read on a consistent prefix of the leaf
sequence that includes all completed inserts.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from core.crypto.hashing import HASH_SIZE
from core.schemas.errors import CapacityExceededException, LeafNotFoundException

from .merkle_tree import (
    DEFAULT_TREE_DEPTH,
    InclusionProof,
    compute_zero_hashes,
    merkle_parent,
    validate_depth,
    verify_merkle_proof,
)

logger = logging.getLogger(__name__)


class CommitmentAccumulator:
    """
    Incremental Merkle accumulator of fixed depth.

    Example:
        >>> acc = CommitmentAccumulator(depth=4)
        >>> acc.insert(sha256(b"a"))
        0
        >>> proof = acc.get_proof(0)
        >>> CommitmentAccumulator.verify_proof(proof)
        True
    """

    def __init__(self, depth: int = DEFAULT_TREE_DEPTH) -> None:
        self._depth = validate_depth(depth)
        self._zero_hashes = compute_zero_hashes(depth)
        self._levels: list[list[bytes]] = [[] for _ in range(depth + 1)]
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def capacity(self) -> int:
        return 1 << self._depth

    @property
    def zero_hashes(self) -> tuple[bytes, ...]:
        return self._zero_hashes

    @property
    def leaf_count(self) -> int:
        with self._lock:
            return len(self._levels[0])

    def __len__(self) -> int:
        return self.leaf_count

    def leaves(self) -> list[bytes]:
        """Copy of the leaf sequence in insertion order."""
        with self._lock:
            return list(self._levels[0])

    def get_leaf(self, index: int) -> Optional[bytes]:
        with self._lock:
            if 0 <= index < len(self._levels[0]):
                return self._levels[0][index]
            return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, leaf: bytes) -> int:
        """
        Append a leaf at the next sequential index.

        Args:
            leaf: 32-byte commitment

        Returns:
            The index assigned to the leaf

        Raises:
            ValueError: If leaf is not a 32-byte value
            CapacityExceededException: If the tree already holds 2^depth leaves
        """
        if not isinstance(leaf, (bytes, bytearray)) or len(leaf) != HASH_SIZE:
            raise ValueError(f"Leaf must be {HASH_SIZE} bytes")
        leaf = bytes(leaf)

        with self._lock:
            index = len(self._levels[0])
            if index >= self.capacity:
                raise CapacityExceededException(self._depth, index)

            self._levels[0].append(leaf)
            node = leaf
            position = index
            for height in range(self._depth):
                level = self._levels[height]
                sibling_position = position ^ 1
                if sibling_position < len(level):
                    sibling = level[sibling_position]
                else:
                    sibling = self._zero_hashes[height]

                if position & 1 == 0:
                    node = merkle_parent(node, sibling)
                else:
                    node = merkle_parent(sibling, node)

                position >>= 1
                parent_level = self._levels[height + 1]
                if position < len(parent_level):
                    parent_level[position] = node
                else:
                    parent_level.append(node)

        logger.debug(f"Inserted leaf {index} (depth={self._depth})")
        return index

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_root(self) -> bytes:
        """
        Current fixed-depth root; zero_hashes[depth] for an empty tree.
        """
        with self._lock:
            top = self._levels[self._depth]
            return top[0] if top else self._zero_hashes[self._depth]

    def get_proof(self, index: int) -> InclusionProof:
        """
        Build the inclusion proof for the leaf at `index`.

        The proof's root equals get_root() over the same snapshot.

        Raises:
            LeafNotFoundException: If index is outside [0, leaf_count)
        """
        with self._lock:
            leaf_count = len(self._levels[0])
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < leaf_count:
                raise LeafNotFoundException(
                    f"No leaf at index {index} (leaf count {leaf_count})",
                    index=index if isinstance(index, int) else None,
                )

            path: list[bytes] = []
            position = index
            for height in range(self._depth):
                level = self._levels[height]
                sibling_position = position ^ 1
                if sibling_position < len(level):
                    path.append(level[sibling_position])
                else:
                    path.append(self._zero_hashes[height])
                position >>= 1

            return InclusionProof(
                leaf=self._levels[0][index],
                index=index,
                path=tuple(path),
                root=self._levels[self._depth][0],
            )

    @staticmethod
    def verify_proof(proof: InclusionProof) -> bool:
        """Instance-independent proof check; see verify_merkle_proof."""
        return verify_merkle_proof(proof)


__all__ = ["CommitmentAccumulator"]
