"""
Module 01 - Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)

# Error models and exceptions
from .errors import (
    AmountLimitExceededException,
    BridgeError,
    BridgeException,
    CanonicalizationException,
    CapacityExceededException,
    CommitmentAlreadySpentException,
    DuplicateCommitmentException,
    ErrorCodes,
    InvalidProofException,
    InvalidStatusTransitionException,
    LeafNotFoundException,
    LedgerHaltedException,
    OverflowInvariantViolation,
    RelayStepException,
    RootMismatchException,
    RootUnchangedException,
    StepTimeoutException,
    TransientIOException,
)

# Bridge records
from .bridge import (
    ALLOWED_TRANSITIONS,
    CommitmentStatus,
    CreditReceipt,
    LedgerState,
    ProcessedCommitment,
    RelayerStats,
    SourceEvent,
    normalize_hash_hex,
    utc_now,
)

__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "AmountLimitExceededException",
    "BridgeError",
    "BridgeException",
    "CanonicalizationException",
    "CapacityExceededException",
    "CommitmentAlreadySpentException",
    "DuplicateCommitmentException",
    "ErrorCodes",
    "InvalidProofException",
    "InvalidStatusTransitionException",
    "LeafNotFoundException",
    "LedgerHaltedException",
    "OverflowInvariantViolation",
    "RelayStepException",
    "RootMismatchException",
    "RootUnchangedException",
    "StepTimeoutException",
    "TransientIOException",
    # Bridge records
    "ALLOWED_TRANSITIONS",
    "CommitmentStatus",
    "CreditReceipt",
    "LedgerState",
    "ProcessedCommitment",
    "RelayerStats",
    "SourceEvent",
    "normalize_hash_hex",
    "utc_now",
]
