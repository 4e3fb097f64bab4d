"""
Module 01 - Schemas & Canonicalization
File: bridge.py

Purpose: Records exchanged between the source chain, the relay and the
destination ledger.

All hashes are carried as lowercase 0x-prefixed 32-byte hex strings.
Validators accept raw bytes or hex with/without the prefix and normalize.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidStatusTransitionException


HASH_HEX_LENGTH = 64


def normalize_hash_hex(value: Any) -> str:
    """
    Normalize a hash given as bytes or hex into 0x-prefixed lowercase hex.

    Raises:
        ValueError: If the value is not exactly 32 bytes of hex
    """
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).hex()
    if not isinstance(value, str):
        raise ValueError(f"Expected bytes or hex string, got {type(value).__name__}")
    text = value[2:] if value.startswith("0x") else value
    if len(text) != HASH_HEX_LENGTH:
        raise ValueError(f"Expected a 32-byte hash, got {len(text)} hex characters")
    try:
        decoded = bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in hash: {e}") from e
    if len(decoded) != HASH_HEX_LENGTH // 2:
        raise ValueError("Hash contains non-hex characters")
    return "0x" + text.lower()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Commitment processing state machine
# =============================================================================

class CommitmentStatus(str, Enum):
    """Lifecycle of a commitment on its way to the destination ledger."""
    PENDING = "pending"
    PROVING = "proving"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CommitmentStatus.CONFIRMED, CommitmentStatus.FAILED)


# Normal forward edges. FAILED -> PENDING is the operator re-drive; the
# non-terminal -> CONFIRMED edges are used only when reconciling a restart
# against a ledger that already spent the commitment.
ALLOWED_TRANSITIONS: dict[CommitmentStatus, frozenset[CommitmentStatus]] = {
    CommitmentStatus.PENDING: frozenset({
        CommitmentStatus.PROVING,
        CommitmentStatus.FAILED,
        CommitmentStatus.CONFIRMED,
    }),
    CommitmentStatus.PROVING: frozenset({
        CommitmentStatus.SUBMITTED,
        CommitmentStatus.FAILED,
        CommitmentStatus.CONFIRMED,
    }),
    CommitmentStatus.SUBMITTED: frozenset({
        CommitmentStatus.CONFIRMED,
        CommitmentStatus.FAILED,
    }),
    CommitmentStatus.CONFIRMED: frozenset(),
    CommitmentStatus.FAILED: frozenset({CommitmentStatus.PENDING}),
}


class ProcessedCommitment(BaseModel):
    """
    Destination-side record of one commitment.

    Created exactly once per distinct commitment value and never deleted.
    Mutate only through transition().
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    commitment: str = Field(..., description="Commitment (Merkle leaf) hash")
    source_index: int = Field(..., ge=0, description="Leaf index on the source tree")
    claimed_root: str = Field(..., description="Source root reported with the event")
    amount: int = Field(default=0, ge=0, description="Value to credit")
    status: CommitmentStatus = Field(default=CommitmentStatus.PENDING)
    proof_ref: Optional[str] = Field(default=None, description="Reference to the generated proof")
    destination_tx_ref: Optional[str] = Field(default=None, description="Ledger credit reference")
    error_code: Optional[str] = Field(default=None)
    error_reason: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("commitment", "claimed_root", mode="before")
    @classmethod
    def _normalize_hashes(cls, v: Any) -> str:
        return normalize_hash_hex(v)

    def can_transition(self, target: CommitmentStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition(self, target: CommitmentStatus, **fields: Any) -> "ProcessedCommitment":
        """
        Move the record to target, setting any extra fields.

        Raises:
            InvalidStatusTransitionException: If target is not reachable
        """
        if not self.can_transition(target):
            raise InvalidStatusTransitionException(
                self.commitment, self.status.value, target.value
            )
        for key, value in fields.items():
            setattr(self, key, value)
        self.status = target
        self.updated_at = utc_now()
        return self


# =============================================================================
# Ledger state
# =============================================================================

class LedgerState(BaseModel):
    """Read-only snapshot of the destination ledger."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    trusted_root: str
    total_credited: int = Field(default=0, ge=0)
    last_update_height: int = Field(default=0, ge=0)
    # Last credited commitment. Replay protection is the ledger's spent-set.
    last_accepted_marker: str
    credited_count: int = Field(default=0, ge=0)
    halted: bool = False


class CreditReceipt(BaseModel):
    """Result of a successful verify_and_credit call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    commitment: str
    amount: int
    destination_tx_ref: str
    trusted_root: str
    total_credited: int


# =============================================================================
# Source events
# =============================================================================

class SourceEvent(BaseModel):
    """One entry of the source chain's event feed."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["deposit"] = "deposit"
    commitment: str
    index: int = Field(..., ge=0)
    root: str
    timestamp: int = Field(..., ge=0, description="Milliseconds since epoch")
    amount: Optional[int] = Field(default=None, ge=0)

    @field_validator("commitment", "root", mode="before")
    @classmethod
    def _normalize_hashes(cls, v: Any) -> str:
        return normalize_hash_hex(v)


# =============================================================================
# Relay observability
# =============================================================================

class RelayerStats(BaseModel):
    """Counters exposed by the relay orchestrator."""

    model_config = ConfigDict(extra="forbid")

    processed: int = 0
    submitted: int = 0
    failed: int = 0
    queue_depth: int = 0
    cursor: int = 0
    uptime_s: float = 0.0


__all__ = [
    "ALLOWED_TRANSITIONS",
    "CommitmentStatus",
    "CreditReceipt",
    "LedgerState",
    "ProcessedCommitment",
    "RelayerStats",
    "SourceEvent",
    "normalize_hash_hex",
    "utc_now",
]
