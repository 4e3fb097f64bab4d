"""
Module 09D - Health Check Route

Simple health check endpoint for liveness probes.
"""

from fastapi import APIRouter

from api.deps import get_node
from api.models.responses import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Reports ok=false once the destination ledger has halted.
    """
    halted = get_node().ledger.halted
    return HealthResponse(ok=not halted, ledger_halted=halted)


@router.get("/", response_model=HealthResponse)
def root() -> HealthResponse:
    """
    Root endpoint - same as health check.
    """
    return health_check()
