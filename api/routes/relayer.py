"""
Module 09D - Relayer Routes

Observability surface and operator actions for the relay.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from api.deps import get_node
from api.errors import InvalidRequestError, NotFoundError
from api.models.responses import CommitmentsResponse, RecordResponse, StatsResponse
from core.schemas.bridge import CommitmentStatus, normalize_hash_hex


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/relayer", tags=["relayer"])


@router.get("/stats", response_model=StatsResponse)
def get_stats() -> StatsResponse:
    relayer = get_node().relayer
    return StatsResponse(stats=relayer.get_stats(), watcher=relayer.watcher.get_status())


@router.get("/commitments", response_model=CommitmentsResponse)
def list_commitments(status: CommitmentStatus | None = None) -> CommitmentsResponse:
    """All relay records ordered by source index, optionally filtered by status."""
    records = get_node().relayer.orchestrator.get_processed_commitments()
    if status is not None:
        records = [record for record in records if record.status == status]
    return CommitmentsResponse(count=len(records), commitments=records)


@router.get("/commitments/{commitment}", response_model=RecordResponse)
def get_commitment(commitment: str) -> RecordResponse:
    try:
        key = normalize_hash_hex(commitment)
    except ValueError as e:
        raise InvalidRequestError(str(e))
    record = get_node().relayer.orchestrator.get_record(key)
    if record is None:
        raise NotFoundError("Commitment is not tracked by the relay", details={"commitment": key})
    return RecordResponse(ok=record.status != CommitmentStatus.FAILED, record=record)


@router.post("/poll", response_model=CommitmentsResponse)
def poll() -> CommitmentsResponse:
    """Run one watcher cycle now and return the records it drove."""
    records = get_node().relayer.run_once()
    return CommitmentsResponse(count=len(records), commitments=records)


@router.post("/redrive/{commitment}", response_model=RecordResponse)
def redrive(commitment: str) -> RecordResponse:
    """Re-run a failed commitment (the only exit from failed)."""
    try:
        key = normalize_hash_hex(commitment)
    except ValueError as e:
        raise InvalidRequestError(str(e))
    relayer = get_node().relayer
    record = relayer.orchestrator.redrive(key)
    relayer.save()
    return RecordResponse(ok=record.status == CommitmentStatus.CONFIRMED, record=record)
