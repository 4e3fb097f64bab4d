"""
Module 09D - Minimal API (FastAPI)

HTTP API for the commitment bridge:
- /source/* - Simulated source chain
- /ledger/* - Destination ledger submission API
- /relayer/* - Relay observability and operator actions
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
