"""
Module 01 - Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy across the bridge.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the bridge."""

    # Schema & Validation Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"

    # Accumulator Errors
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    LEAF_NOT_FOUND = "LEAF_NOT_FOUND"
    DUPLICATE_COMMITMENT = "DUPLICATE_COMMITMENT"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Ledger Errors
    ROOT_UNCHANGED = "ROOT_UNCHANGED"
    ROOT_MISMATCH = "ROOT_MISMATCH"
    INVALID_PROOF = "INVALID_PROOF"
    COMMITMENT_ALREADY_SPENT = "COMMITMENT_ALREADY_SPENT"
    AMOUNT_LIMIT_EXCEEDED = "AMOUNT_LIMIT_EXCEEDED"
    OVERFLOW_INVARIANT_VIOLATION = "OVERFLOW_INVARIANT_VIOLATION"
    LEDGER_HALTED = "LEDGER_HALTED"

    # Relay & IO Errors
    TRANSIENT_IO_FAILURE = "TRANSIENT_IO_FAILURE"
    STEP_TIMEOUT = "STEP_TIMEOUT"
    RELAY_STEP_ERROR = "RELAY_STEP_ERROR"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class BridgeError(BaseModel):
    """
    Base error model for structured error communication.

    Used for passing errors between modules without exceptions,
    e.g. in API responses and persisted commitment records.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.ROOT_MISMATCH],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "BridgeException":
        """Convert this error model to a raised exception."""
        return BridgeException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class BridgeException(Exception):
    """
    Base exception for all bridge errors.

    Carries structured error information and can be converted
    to/from BridgeError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "BRIDGE_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> BridgeError:
        """Convert this exception to a BridgeError model."""
        return BridgeError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CanonicalizationException(BridgeException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )


class CapacityExceededException(BridgeException):
    """Raised when an insert would exceed 2^depth leaves."""

    def __init__(self, depth: int, leaf_count: int) -> None:
        super().__init__(
            message=f"Accumulator of depth {depth} is full ({leaf_count} leaves)",
            code=ErrorCodes.CAPACITY_EXCEEDED,
            details={"depth": depth, "leaf_count": leaf_count},
        )


class LeafNotFoundException(BridgeException):
    """Raised when a proof is requested for an unknown leaf."""

    def __init__(
        self,
        message: str,
        index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if index is not None:
            full_details["index"] = index
        super().__init__(
            message=message,
            code=ErrorCodes.LEAF_NOT_FOUND,
            details=full_details,
        )


class DuplicateCommitmentException(BridgeException):
    """Raised by the source chain when a commitment is deposited twice."""

    def __init__(self, commitment: str) -> None:
        super().__init__(
            message="Commitment already exists in pool",
            code=ErrorCodes.DUPLICATE_COMMITMENT,
            details={"commitment": commitment},
        )


class InvalidStatusTransitionException(BridgeException):
    """Raised when a commitment record is moved along an illegal edge."""

    def __init__(self, commitment: str, current: str, target: str) -> None:
        super().__init__(
            message=f"Illegal status transition {current} -> {target}",
            code=ErrorCodes.INVALID_STATUS_TRANSITION,
            details={"commitment": commitment, "from": current, "to": target},
        )


class RootUnchangedException(BridgeException):
    """Raised when a root update would not change the trusted root."""

    def __init__(self, root: str, height: int) -> None:
        super().__init__(
            message="Root must change",
            code=ErrorCodes.ROOT_UNCHANGED,
            details={"root": root, "height": height},
        )


class RootMismatchException(BridgeException):
    """Raised when a proof was produced against a root the ledger does not trust."""

    def __init__(self, proof_root: str, trusted_root: str) -> None:
        super().__init__(
            message="Proof root must match stored root",
            code=ErrorCodes.ROOT_MISMATCH,
            details={"proof_root": proof_root, "trusted_root": trusted_root},
        )


class InvalidProofException(BridgeException):
    """Raised when the proof backend rejects a proof."""

    def __init__(
        self,
        message: str = "Proof verification failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_PROOF,
            details=details,
        )


class CommitmentAlreadySpentException(BridgeException):
    """Raised when a commitment has already been credited on the ledger."""

    def __init__(self, commitment: str) -> None:
        super().__init__(
            message="Commitment has already been credited",
            code=ErrorCodes.COMMITMENT_ALREADY_SPENT,
            details={"commitment": commitment},
        )


class AmountLimitExceededException(BridgeException):
    """Raised when a single credit exceeds the configured per-transaction cap."""

    def __init__(self, amount: int, limit: int) -> None:
        super().__init__(
            message=f"Amount {amount} exceeds per-transaction limit {limit}",
            code=ErrorCodes.AMOUNT_LIMIT_EXCEEDED,
            details={"amount": amount, "limit": limit},
        )


class OverflowInvariantViolation(BridgeException):
    """
    Raised when crediting would overflow the credited total.

    Fatal: the ledger halts instead of wrapping or clamping the total.
    """

    def __init__(self, total: int, amount: int, maximum: int) -> None:
        super().__init__(
            message="Credited total overflow; ledger halted",
            code=ErrorCodes.OVERFLOW_INVARIANT_VIOLATION,
            details={"total": total, "amount": amount, "maximum": maximum},
        )


class LedgerHaltedException(BridgeException):
    """Raised for any mutation attempted after the ledger halted."""

    def __init__(self) -> None:
        super().__init__(
            message="Ledger is halted after an invariant violation",
            code=ErrorCodes.LEDGER_HALTED,
        )


class TransientIOException(BridgeException):
    """Network/RPC failure; retried by the next poll cycle."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.TRANSIENT_IO_FAILURE,
            details=details,
            retryable=True,
        )


class StepTimeoutException(BridgeException):
    """Raised when a collaborator call exceeds its caller-supplied timeout."""

    def __init__(self, step: str, timeout_s: float) -> None:
        super().__init__(
            message=f"Step '{step}' timed out after {timeout_s}s",
            code=ErrorCodes.STEP_TIMEOUT,
            details={"stage": step, "timeout_s": timeout_s},
        )


class RelayStepException(BridgeException):
    """Exception raised when a relay step fails without a more specific cause."""

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if stage:
            full_details["stage"] = stage
        super().__init__(
            message=message,
            code=ErrorCodes.RELAY_STEP_ERROR,
            details=full_details,
        )
