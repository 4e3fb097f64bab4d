"""
Module 09D - FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, ledger, relayer, source
from api.errors import (
    APIError,
    api_error_handler,
    bridge_error_handler,
    generic_error_handler,
)
from core.schemas.errors import BridgeException


# Configure logging - respects BRIDGE_LOG_LEVEL
logging.basicConfig(
    level=getattr(logging, os.getenv("BRIDGE_LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Commitment Bridge API",
        description="""
HTTP API for the commitment bridge: a simulated source chain, the relay
and the destination processing ledger, all in one process.

## Endpoints

- **POST /source/deposit** - Add a commitment to the source pool
- **GET /source/events** - Poll deposit events with a timestamp cursor
- **GET /source/proof/{commitment}** - Inclusion proof for a commitment
- **GET /ledger/state** - Destination ledger snapshot
- **POST /ledger/root** - Adopt a new trusted root
- **POST /ledger/credit** - Verify a proof and credit once
- **GET /relayer/stats** - Relay counters
- **POST /relayer/poll** - Run one relay cycle now
- **POST /relayer/redrive/{commitment}** - Re-run a failed commitment
- **GET /health** - Health check
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(BridgeException, bridge_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(ledger.router)
    app.include_router(relayer.router)
    app.include_router(source.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
