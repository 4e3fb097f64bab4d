"""
Module 09D - Ledger Routes

Destination ledger submission API: state snapshot, root adoption and
proof-backed crediting.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from api.deps import get_node
from api.errors import InvalidRequestError
from api.models.requests import CreditRequest, RootUpdateRequest
from api.models.responses import CreditResponse, LedgerStateResponse
from core.crypto.hashing import coerce_hash
from core.proving.backend import ProofObject


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("/state", response_model=LedgerStateResponse)
def get_state() -> LedgerStateResponse:
    """Read-only snapshot of the destination ledger."""
    return LedgerStateResponse(state=get_node().ledger.get_state())


@router.post("/root", response_model=LedgerStateResponse)
def update_root(request: RootUpdateRequest) -> LedgerStateResponse:
    """Adopt a new trusted root. Re-submitting the current root is a 409."""
    try:
        root = coerce_hash(request.root)
    except ValueError as e:
        raise InvalidRequestError(str(e), details={"field": "root"})

    state = get_node().ledger.update_trusted_root(root, request.height)
    return LedgerStateResponse(state=state)


@router.post("/credit", response_model=CreditResponse)
def credit(request: CreditRequest) -> CreditResponse:
    """Verify a proof against the trusted root and credit once."""
    try:
        proof = ProofObject.from_dict(request.proof)
        commitment = coerce_hash(request.commitment)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidRequestError(f"Malformed credit request: {e}")

    receipt = get_node().ledger.verify_and_credit(proof, commitment, request.amount)
    return CreditResponse(receipt=receipt)
