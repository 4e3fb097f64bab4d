"""
Module 09D - Source Routes

Simulated source chain: deposits, the polled event feed, inclusion proofs
and tree info.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from api.deps import get_node
from api.errors import InvalidRequestError
from api.models.requests import DepositRequest
from api.models.responses import (
    DepositResponse,
    EventsResponse,
    InclusionProofResponse,
    TreeInfoResponse,
)
from core.crypto.hashing import coerce_hash
from core.merkle import verify_merkle_proof


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/source", tags=["source"])


@router.post("/deposit", response_model=DepositResponse, status_code=201)
def deposit(request: DepositRequest) -> DepositResponse:
    """Add a commitment to the pool. Duplicates are a 409."""
    try:
        commitment = coerce_hash(request.commitment)
    except ValueError as e:
        raise InvalidRequestError(
            "Invalid commitment format. Expected 32-byte hex string.",
            details={"error": str(e)},
        )

    event = get_node().source.deposit(commitment, request.amount)
    return DepositResponse(
        commitment=event.commitment,
        index=event.index,
        root=event.root,
        timestamp=event.timestamp,
    )


@router.get("/events", response_model=EventsResponse)
def events(
    since: int = Query(default=0, ge=0, description="Cursor: timestamp in ms (inclusive)"),
    limit: int | None = Query(default=None, ge=1),
) -> EventsResponse:
    found = get_node().source.events_since(since, limit)
    return EventsResponse(count=len(found), events=found)


@router.get("/proof/{commitment}", response_model=InclusionProofResponse)
def inclusion_proof(commitment: str) -> InclusionProofResponse:
    """Inclusion proof for a deposited commitment against the current root."""
    try:
        value = coerce_hash(commitment)
    except ValueError as e:
        raise InvalidRequestError(str(e))

    proof = get_node().source.get_inclusion_proof(value)
    return InclusionProofResponse(proof=proof.to_dict(), valid=verify_merkle_proof(proof))


@router.get("/tree", response_model=TreeInfoResponse)
def tree_info() -> TreeInfoResponse:
    return TreeInfoResponse(**get_node().source.get_info())
