"""
Source Ledger Simulator

In-process stand-in for the source chain's shielded pool: deposits append
commitments to a CommitmentAccumulator and emit deposit events that the
relayer polls with a timestamp cursor.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from core.crypto.hashing import coerce_hash, to_hex
from core.merkle import DEFAULT_TREE_DEPTH, CommitmentAccumulator, InclusionProof
from core.schemas.bridge import SourceEvent
from core.schemas.errors import DuplicateCommitmentException, LeafNotFoundException

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class DepositRecord:
    """Metadata kept for every deposited commitment."""
    commitment: bytes
    index: int
    timestamp: int
    amount: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "commitment": to_hex(self.commitment),
            "index": self.index,
            "timestamp": self.timestamp,
            "amount": self.amount,
        }


class SourceLedger:
    """
    Simulated source chain.

    Implements the event feed consumed by SourceWatcher
    (events_since) and the inclusion-proof lookup used by the relay.
    """

    def __init__(
        self,
        depth: int = DEFAULT_TREE_DEPTH,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._depth = depth
        self._clock = clock or _now_ms
        self._lock = threading.RLock()
        self._reset_state()

    def _reset_state(self) -> None:
        self._tree = CommitmentAccumulator(self._depth)
        self._deposits: dict[bytes, DepositRecord] = {}
        self._events: list[SourceEvent] = []
        # root -> number of leaves when that root was current
        self._root_heights: dict[bytes, int] = {self._tree.get_root(): 0}

    @property
    def tree(self) -> CommitmentAccumulator:
        return self._tree

    def deposit(
        self,
        commitment: Union[str, bytes],
        amount: Optional[int] = None,
    ) -> SourceEvent:
        """
        Add a commitment to the pool.

        Args:
            commitment: 32-byte value or hex string (0x prefix optional)
            amount: Value attached to the deposit, if any

        Returns:
            The emitted deposit event

        Raises:
            ValueError: If the commitment is not 32 bytes of hex
            DuplicateCommitmentException: If the commitment is already in the pool
            CapacityExceededException: If the tree is full
        """
        value = coerce_hash(commitment)
        if amount is not None and amount < 0:
            raise ValueError(f"Amount must be non-negative, got {amount}")

        with self._lock:
            if value in self._deposits:
                raise DuplicateCommitmentException(to_hex(value))

            index = self._tree.insert(value)
            root = self._tree.get_root()
            timestamp = self._clock()

            self._deposits[value] = DepositRecord(value, index, timestamp, amount)
            self._root_heights[root] = index + 1
            event = SourceEvent(
                commitment=value,
                index=index,
                root=root,
                timestamp=timestamp,
                amount=amount,
            )
            self._events.append(event)

        logger.info(f"Deposit received: {to_hex(value)[:12]}... at index {index}")
        return event

    def events_since(self, cursor: int, limit: Optional[int] = None) -> list[SourceEvent]:
        """
        Events with timestamp >= cursor, oldest first.

        Inclusive on the cursor so events sharing the last-seen millisecond
        are redelivered rather than lost; consumers deduplicate.
        """
        with self._lock:
            selected = [event for event in self._events if event.timestamp >= cursor]
        if limit is not None:
            selected = selected[:limit]
        return selected

    def get_inclusion_proof(self, commitment: Union[str, bytes]) -> InclusionProof:
        """
        Inclusion proof for a deposited commitment against the current root.

        Raises:
            LeafNotFoundException: If the commitment is not in the pool
        """
        value = coerce_hash(commitment)
        with self._lock:
            record = self._deposits.get(value)
            if record is None:
                raise LeafNotFoundException(
                    "Commitment not found in pool",
                    details={"commitment": to_hex(value)},
                )
            return self._tree.get_proof(record.index)

    def get_root(self) -> bytes:
        return self._tree.get_root()

    def root_height(self, root: Union[str, bytes]) -> Optional[int]:
        """Leaf count at which `root` was the tree root, or None if never seen."""
        with self._lock:
            return self._root_heights.get(coerce_hash(root))

    def get_info(self) -> dict[str, Any]:
        with self._lock:
            return {
                "depth": self._tree.depth,
                "capacity": self._tree.capacity,
                "leaf_count": self._tree.leaf_count,
                "root": to_hex(self._tree.get_root()),
                "commitment_count": len(self._deposits),
                "event_count": len(self._events),
            }

    def list_commitments(self) -> list[DepositRecord]:
        with self._lock:
            return sorted(self._deposits.values(), key=lambda record: record.index)

    def reset(self) -> None:
        """Drop every deposit and event (test and simulation helper)."""
        with self._lock:
            self._reset_state()
        logger.info("Source ledger reset")


__all__ = ["DepositRecord", "SourceLedger"]
