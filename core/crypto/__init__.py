"""
Core cryptographic utilities.

Module 02 provides the fixed-width hashing used by the accumulator.
"""
from .hashing import (
    HASH_SIZE,
    ZERO_BYTES32,
    sha256,
    hash_pair,
    hash_canonical,
    to_hex,
    from_hex,
    coerce_hash,
)

__all__ = [
    "HASH_SIZE",
    "ZERO_BYTES32",
    "sha256",
    "hash_pair",
    "hash_canonical",
    "to_hex",
    "from_hex",
    "coerce_hash",
]
