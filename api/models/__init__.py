"""API request and response models."""

from api.models.requests import CreditRequest, DepositRequest, RootUpdateRequest
from api.models.responses import (
    CommitmentsResponse,
    CreditResponse,
    DepositResponse,
    ErrorDetail,
    ErrorResponse,
    EventsResponse,
    HealthResponse,
    InclusionProofResponse,
    LedgerStateResponse,
    RecordResponse,
    StatsResponse,
    TreeInfoResponse,
)

__all__ = [
    "CreditRequest",
    "DepositRequest",
    "RootUpdateRequest",
    "CommitmentsResponse",
    "CreditResponse",
    "DepositResponse",
    "ErrorDetail",
    "ErrorResponse",
    "EventsResponse",
    "HealthResponse",
    "InclusionProofResponse",
    "LedgerStateResponse",
    "RecordResponse",
    "StatsResponse",
    "TreeInfoResponse",
]
