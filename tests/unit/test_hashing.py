"""
Module 02 - Hashing Unit Tests
Tests for core/crypto/hashing.py

Tests:
- sha256 / hash_pair against hashlib
- hash_canonical stability for dict key ordering differences
- to_hex/from_hex and coerce_hash input handling
"""
import hashlib
import pytest

from core.crypto.hashing import (
    HASH_SIZE,
    ZERO_BYTES32,
    coerce_hash,
    from_hex,
    hash_canonical,
    hash_pair,
    sha256,
    to_hex,
)


class TestSha256:
    """Tests for sha256() function."""

    def test_sha256_known_value(self):
        """Test sha256 produces correct hash for known input."""
        expected = hashlib.sha256(b"hello").digest()
        result = sha256(b"hello")

        assert result == expected
        assert len(result) == HASH_SIZE

    def test_sha256_of_zero_leaf(self):
        """The empty-leaf hash is sha256 of 32 zero bytes."""
        assert ZERO_BYTES32 == b"\x00" * 32
        assert sha256(ZERO_BYTES32) == hashlib.sha256(bytes(32)).digest()


class TestHashPair:
    """Tests for hash_pair() function."""

    def test_hash_pair_is_sha256_of_concatenation(self):
        left = sha256(b"left")
        right = sha256(b"right")

        assert hash_pair(left, right) == hashlib.sha256(left + right).digest()

    def test_hash_pair_order_matters(self):
        a = sha256(b"a")
        b = sha256(b"b")

        assert hash_pair(a, b) != hash_pair(b, a)


class TestHashCanonical:
    """Tests for hash_canonical() function."""

    def test_hash_canonical_stable_for_key_order(self):
        """Test that dict key insertion order doesn't affect hash."""
        dict1 = {"zebra": 1, "apple": 2, "mango": 3}
        dict2 = {"apple": 2, "mango": 3, "zebra": 1}

        assert hash_canonical(dict1) == hash_canonical(dict2)

    def test_hash_canonical_list_preserves_order(self):
        """Test that list order is preserved (not sorted)."""
        assert hash_canonical({"items": [3, 1, 2]}) != hash_canonical({"items": [1, 2, 3]})

    def test_hash_canonical_bytes_hash_as_hex(self):
        """Bytes values hash the same as their 0x-hex spelling."""
        digest = sha256(b"x")
        assert hash_canonical({"root": digest}) == hash_canonical({"root": to_hex(digest)})

    def test_hash_canonical_matches_manual_digest(self):
        expected = hashlib.sha256(b'{"a":1,"b":"c"}').digest()
        assert hash_canonical({"b": "c", "a": 1}) == expected


class TestHexConversion:
    """Tests for to_hex() and from_hex() functions."""

    def test_to_hex_format(self):
        assert to_hex(bytes.fromhex("deadbeef")) == "0xdeadbeef"

    def test_from_hex_valid(self):
        assert from_hex("0xdeadbeef") == bytes.fromhex("deadbeef")

    def test_from_hex_missing_prefix(self):
        with pytest.raises(ValueError, match="must start with '0x'"):
            from_hex("deadbeef")

    def test_from_hex_odd_length(self):
        with pytest.raises(ValueError, match="even length"):
            from_hex("0xabc")

    def test_from_hex_invalid_chars(self):
        with pytest.raises(ValueError, match="Invalid hex"):
            from_hex("0xgg")


class TestCoerceHash:
    """Tests for coerce_hash() wire normalization."""

    def test_accepts_prefixed_and_bare_hex(self):
        digest = sha256(b"deposit")
        assert coerce_hash(to_hex(digest)) == digest
        assert coerce_hash(digest.hex()) == digest

    def test_accepts_bytes(self):
        digest = sha256(b"deposit")
        assert coerce_hash(digest) == digest
        assert coerce_hash(bytearray(digest)) == digest

    @pytest.mark.parametrize("value", ["0x1234", "ab" * 33, b"\x01" * 31, "0x" + "zz" * 32])
    def test_rejects_wrong_width_or_bad_hex(self, value):
        with pytest.raises(ValueError):
            coerce_hash(value)

    def test_rejects_other_types(self):
        with pytest.raises(ValueError, match="Expected bytes or hex string"):
            coerce_hash(12345)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
