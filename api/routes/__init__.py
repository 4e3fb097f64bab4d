"""API route handlers."""

from api.routes import health, ledger, relayer, source

__all__ = ["health", "ledger", "relayer", "source"]
