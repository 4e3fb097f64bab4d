"""
Processing Ledger

Destination-side state machine: trusted root adoption, proof admission
and exactly-once crediting per commitment.

All state lives in one ProcessingLedger instance; its public methods are
the only legal entry points. Mutations run inside a single lock, so
trusted_root and total_credited observe a total order of updates.

Replay protection is a spent-set keyed by commitment. last_accepted_marker
only records the most recently credited commitment and is not consulted
for replay decisions.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Union

from core.config.runtime import LedgerConfig
from core.crypto.hashing import ZERO_BYTES32, coerce_hash, hash_canonical, to_hex
from core.proving.backend import ProofBackend, ProofObject
from core.schemas.bridge import CreditReceipt, LedgerState
from core.schemas.errors import (
    AmountLimitExceededException,
    CommitmentAlreadySpentException,
    InvalidProofException,
    LedgerHaltedException,
    OverflowInvariantViolation,
    RootMismatchException,
    RootUnchangedException,
)

logger = logging.getLogger(__name__)

HashLike = Union[bytes, str]


class ProcessingLedger:
    """
    Destination ledger.

    Example:
        >>> ledger = ProcessingLedger(MerklePathProofBackend())
        >>> ledger.update_trusted_root(acc.get_root(), height=1)
        >>> receipt = ledger.verify_and_credit(proof, commitment, 1_000_000)
    """

    def __init__(
        self,
        backend: ProofBackend,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        self._backend = backend
        self._config = config or LedgerConfig()
        self._lock = threading.RLock()

        self._trusted_root: bytes = coerce_hash(self._config.initial_root)
        self._total_credited: int = 0
        self._last_update_height: int = 0
        self._last_accepted_marker: bytes = ZERO_BYTES32
        self._spent: set[bytes] = set()
        self._halted: bool = False

    @property
    def backend(self) -> ProofBackend:
        return self._backend

    @property
    def halted(self) -> bool:
        with self._lock:
            return self._halted

    def _ensure_running(self) -> None:
        if self._halted:
            raise LedgerHaltedException()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_trusted_root(self, new_root: HashLike, height: int) -> LedgerState:
        """
        Adopt a new trusted source root.

        Raises:
            LedgerHaltedException: If the ledger has halted
            RootUnchangedException: If new_root equals the current trusted root
        """
        root = coerce_hash(new_root)
        if height < 0:
            raise ValueError(f"Height must be non-negative, got {height}")

        with self._lock:
            self._ensure_running()
            if root == self._trusted_root:
                raise RootUnchangedException(to_hex(root), height)

            previous = self._trusted_root
            self._trusted_root = root
            self._last_update_height = height
            logger.info(
                f"Trusted root updated {to_hex(previous)[:18]} -> {to_hex(root)[:18]} "
                f"at height {height}"
            )
            return self._snapshot()

    def verify_and_credit(
        self,
        proof: ProofObject,
        commitment: HashLike,
        amount: int,
    ) -> CreditReceipt:
        """
        Admit a proof and credit `amount` for `commitment` exactly once.

        Checks, in order: halted, amount limit, root match, proof validity,
        replay, overflow. Any failure leaves the ledger state unchanged,
        except overflow which halts the ledger.

        Raises:
            LedgerHaltedException: If the ledger has halted
            AmountLimitExceededException: If amount is negative or over the per-tx limit
            RootMismatchException: If the proof's root is not the trusted root
            InvalidProofException: If the backend rejects the proof
            CommitmentAlreadySpentException: If the commitment was already credited
            OverflowInvariantViolation: If the credited total would overflow
        """
        commitment_bytes = coerce_hash(commitment)
        # Verification is pure; the decision below is taken under the lock.
        verification = self._backend.verify_proof(proof)

        with self._lock:
            self._ensure_running()

            limit = self._config.max_amount_per_tx
            if amount < 0 or (limit is not None and amount > limit):
                raise AmountLimitExceededException(amount, limit if limit is not None else 0)

            if verification.public_root != self._trusted_root:
                raise RootMismatchException(
                    to_hex(verification.public_root), to_hex(self._trusted_root)
                )

            if not verification.public_valid:
                raise InvalidProofException(details={"proof_id": proof.proof_id})
            if (
                verification.public_commitment is not None
                and verification.public_commitment != commitment_bytes
            ):
                raise InvalidProofException(
                    "Proof attests a different commitment",
                    details={"proof_id": proof.proof_id, "commitment": to_hex(commitment_bytes)},
                )

            if commitment_bytes in self._spent:
                raise CommitmentAlreadySpentException(to_hex(commitment_bytes))

            maximum = self._config.max_total_credited
            if self._total_credited + amount > maximum:
                self._halted = True
                logger.critical(
                    f"Credited total overflow ({self._total_credited} + {amount} > {maximum}); "
                    "ledger halted"
                )
                raise OverflowInvariantViolation(self._total_credited, amount, maximum)

            self._spent.add(commitment_bytes)
            self._last_accepted_marker = commitment_bytes
            self._total_credited += amount

            tx_ref = to_hex(hash_canonical({
                "commitment": commitment_bytes,
                "root": self._trusted_root,
                "amount": amount,
                "sequence": len(self._spent),
            }))
            logger.info(
                f"Credited {amount} for {to_hex(commitment_bytes)[:18]} "
                f"(total {self._total_credited})"
            )
            return CreditReceipt(
                commitment=to_hex(commitment_bytes),
                amount=amount,
                destination_tx_ref=tx_ref,
                trusted_root=to_hex(self._trusted_root),
                total_credited=self._total_credited,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_spent(self, commitment: HashLike) -> bool:
        key = coerce_hash(commitment)
        with self._lock:
            return key in self._spent

    def get_state(self) -> LedgerState:
        """Read-only snapshot of the ledger."""
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> LedgerState:
        return LedgerState(
            trusted_root=to_hex(self._trusted_root),
            total_credited=self._total_credited,
            last_update_height=self._last_update_height,
            last_accepted_marker=to_hex(self._last_accepted_marker),
            credited_count=len(self._spent),
            halted=self._halted,
        )


__all__ = ["ProcessingLedger"]
