"""
Module 09D - API Error Handling

Standardized error handling for the API.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse, ErrorDetail
from core.schemas.errors import BridgeException, ErrorCodes


logger = logging.getLogger(__name__)


# HTTP status for each bridge error code; anything unlisted is a 400
BRIDGE_STATUS_CODES: dict[str, int] = {
    ErrorCodes.LEAF_NOT_FOUND: 404,
    ErrorCodes.DUPLICATE_COMMITMENT: 409,
    ErrorCodes.ROOT_UNCHANGED: 409,
    ErrorCodes.COMMITMENT_ALREADY_SPENT: 409,
    ErrorCodes.INVALID_STATUS_TRANSITION: 409,
    ErrorCodes.ROOT_MISMATCH: 422,
    ErrorCodes.INVALID_PROOF: 422,
    ErrorCodes.AMOUNT_LIMIT_EXCEEDED: 422,
    ErrorCodes.CAPACITY_EXCEEDED: 422,
    ErrorCodes.LEDGER_HALTED: 503,
    ErrorCodes.OVERFLOW_INVARIANT_VIOLATION: 503,
    ErrorCodes.TRANSIENT_IO_FAILURE: 503,
    ErrorCodes.STEP_TIMEOUT: 504,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="INVALID_REQUEST",
            message=message,
            status_code=400,
            details=details,
        )


class NotFoundError(APIError):
    """Requested resource does not exist."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
            details=details,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def bridge_error_handler(request: Request, exc: BridgeException) -> JSONResponse:
    """Handle BridgeException subclasses raised by ledgers and the relay."""
    status_code = BRIDGE_STATUS_CODES.get(exc.code, 400)
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} -> {status_code} [{exc.code}] {exc.message}")
    model = exc.to_error_model()
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=model.code,
                message=model.message,
                details=model.details,
                retryable=model.retryable,
            ),
        ).model_dump(),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
