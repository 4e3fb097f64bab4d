"""
Module 09D - API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field

from core.schemas.bridge import (
    CreditReceipt,
    LedgerState,
    ProcessedCommitment,
    RelayerStats,
    SourceEvent,
)


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "bridge-api"
    version: str = "v1"
    ledger_halted: bool = False


class LedgerStateResponse(BaseModel):
    """Response for ledger state queries and root updates."""

    ok: bool = True
    state: LedgerState


class CreditResponse(BaseModel):
    """Response for POST /ledger/credit."""

    ok: bool = True
    receipt: CreditReceipt


class StatsResponse(BaseModel):
    """Response for GET /relayer/stats."""

    ok: bool = True
    stats: RelayerStats
    watcher: dict[str, Any] = Field(default_factory=dict)


class CommitmentsResponse(BaseModel):
    """Audit listing of relay records."""

    count: int
    commitments: list[ProcessedCommitment] = Field(default_factory=list)


class RecordResponse(BaseModel):
    """A single relay record."""

    ok: bool
    record: ProcessedCommitment


class DepositResponse(BaseModel):
    """Response for POST /source/deposit."""

    ok: bool = True
    commitment: str
    index: int
    root: str
    timestamp: int


class EventsResponse(BaseModel):
    """Response for GET /source/events."""

    count: int
    events: list[SourceEvent] = Field(default_factory=list)


class InclusionProofResponse(BaseModel):
    """Response for GET /source/proof/{commitment}."""

    ok: bool = True
    proof: dict[str, Any] = Field(..., description="Inclusion proof with 0x-hex hashes")
    valid: bool = Field(..., description="Result of verifying the proof locally")


class TreeInfoResponse(BaseModel):
    """Response for GET /source/tree."""

    depth: int
    capacity: int
    leaf_count: int
    root: str
    commitment_count: int
    event_count: int


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
