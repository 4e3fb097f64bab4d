"""
Module 09D - API Request Models

Pydantic models for API request validation.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class DepositRequest(BaseModel):
    """Request body for POST /source/deposit."""

    commitment: str = Field(
        ...,
        min_length=64,
        max_length=66,
        description="32-byte commitment as hex (0x prefix optional)",
    )
    amount: Optional[int] = Field(
        default=None,
        ge=0,
        description="Value attached to the deposit (relay default if omitted)",
    )


class RootUpdateRequest(BaseModel):
    """Request body for POST /ledger/root."""

    root: str = Field(..., description="New trusted root as 0x-hex")
    height: int = Field(..., ge=0, description="Source height of the root")


class CreditRequest(BaseModel):
    """Request body for POST /ledger/credit."""

    proof: dict[str, Any] = Field(..., description="Serialized proof object")
    commitment: str = Field(..., description="Commitment to credit")
    amount: int = Field(..., ge=0, description="Value to credit")
