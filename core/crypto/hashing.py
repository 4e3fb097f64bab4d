"""
Module 02 - Hashing Utilities
Fixed-width hashing primitives for the commitment accumulator.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- SHA-256 hashing for raw bytes
- Pair hashing for Merkle parents: H(a, b) = sha256(a ++ b)
- Canonical hashing for objects (via dumps_canonical)
- Hex encoding/decoding with 0x prefix
- Coercion of wire values (hex strings or bytes) into 32-byte hashes

Security/Determinism Notes:
- Always hash raw bytes exactly as specified
- Pair hashing concatenates the raw digests, never their hex form
- All operations are deterministic
"""
from __future__ import annotations

import hashlib
from typing import Any, Union

from core.schemas.canonical import dumps_canonical


# Width of every leaf, node and root in the accumulator
HASH_SIZE: int = 32

# The all-zero 32-byte value (empty leaf preimage)
ZERO_BYTES32: bytes = bytes(HASH_SIZE)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hash_pair(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two node hashes.

    This is the pairing function of the accumulator:
    parent = sha256(left ++ right)

    Args:
        left: Left child hash (32 bytes)
        right: Right child hash (32 bytes)

    Returns:
        32-byte SHA-256 digest of concatenation
    """
    return sha256(left + right)


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: digest = sha256(dumps_canonical(obj).encode("utf-8"))

    Args:
        obj: Any object that can be canonically serialized
             (Pydantic model, dict, list, primitives)

    Returns:
        32-byte SHA-256 digest of the canonical JSON

    Raises:
        CanonicalizationException: If object cannot be canonically serialized
    """
    canonical_json = dumps_canonical(obj)
    return sha256(canonical_json.encode("utf-8"))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Args:
        hex_string: Hex string with 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def coerce_hash(value: Union[str, bytes]) -> bytes:
    """
    Normalize a wire value into a 32-byte hash.

    Accepts raw bytes or a hex string with or without the 0x prefix
    (the source chain accepts both spellings for deposits).

    Raises:
        ValueError: If the value does not decode to exactly 32 bytes
    """
    if isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    elif isinstance(value, str):
        text = value if value.startswith("0x") else "0x" + value
        data = from_hex(text)
    else:
        raise ValueError(f"Expected bytes or hex string, got {type(value).__name__}")

    if len(data) != HASH_SIZE:
        raise ValueError(f"Expected a {HASH_SIZE}-byte hash, got {len(data)} bytes")
    return data


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
