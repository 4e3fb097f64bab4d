"""
Module 01 - Schemas & Canonicalization
File: tests/unit/test_canonical_json.py

Purpose: Unit tests for canonical JSON serialization.
These tests ensure deterministic serialization across runs, which the
proof statement hash and destination transaction references rely on.
"""

import json
from datetime import datetime, timezone, timedelta
from enum import Enum
from typing import Optional

import pytest
from pydantic import BaseModel

from core.schemas import (
    CanonicalizationException,
    CommitmentStatus,
    ProcessedCommitment,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)


# =============================================================================
# Test Fixtures
# =============================================================================

class SampleEnum(str, Enum):
    ALPHA = "alpha"
    BETA = "beta"


class SampleModel(BaseModel):
    zeta: int
    alpha: str
    note: Optional[str] = None
    kind: SampleEnum = SampleEnum.ALPHA


@pytest.fixture
def sample_datetime_naive():
    return datetime(2026, 1, 27, 21, 35, 0)


@pytest.fixture
def sample_datetime_utc():
    return datetime(2026, 1, 27, 21, 35, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_datetime_offset():
    return datetime(2026, 1, 27, 23, 35, 0, tzinfo=timezone(timedelta(hours=2)))


@pytest.fixture
def sample_record():
    return ProcessedCommitment(
        commitment="0x" + "ab" * 32,
        source_index=3,
        claimed_root="0x" + "cd" * 32,
        amount=10,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


# =============================================================================
# Tests
# =============================================================================

class TestDeterministicOrdering:
    """Key order never depends on insertion order."""

    def test_dict_keys_sorted(self):
        assert dumps_canonical({"b": 1, "a": 2, "c": 3}) == '{"a":2,"b":1,"c":3}'

    def test_nested_dict_keys_sorted(self):
        result = dumps_canonical({"outer": {"z": 1, "a": 2}})
        assert result == '{"outer":{"a":2,"z":1}}'

    def test_model_fields_sorted(self):
        result = dumps_canonical(SampleModel(zeta=1, alpha="x"))
        assert result == '{"alpha":"x","kind":"alpha","zeta":1}'

    def test_repeated_serialization_identical(self, sample_record):
        assert dumps_canonical(sample_record) == dumps_canonical(sample_record)

    def test_list_order_preserved(self):
        assert dumps_canonical({"items": [3, 1, 2]}) == '{"items":[3,1,2]}'


class TestDatetimeNormalization:

    def test_ensure_utc_naive(self, sample_datetime_naive):
        result = ensure_utc(sample_datetime_naive)
        assert result.tzinfo == timezone.utc
        assert result.hour == 21

    def test_ensure_utc_converts_offset(self, sample_datetime_offset):
        result = ensure_utc(sample_datetime_offset)
        assert result.tzinfo == timezone.utc
        assert result.hour == 21

    def test_datetime_format_with_z_suffix(self, sample_datetime_utc):
        assert format_datetime_canonical(sample_datetime_utc) == "2026-01-27T21:35:00Z"

    def test_datetime_with_microseconds(self):
        dt = datetime(2026, 1, 27, 21, 35, 0, 123456, tzinfo=timezone.utc)
        assert format_datetime_canonical(dt) == "2026-01-27T21:35:00.123456Z"

    def test_naive_and_aware_serialize_same(
        self, sample_datetime_naive, sample_datetime_utc, sample_datetime_offset
    ):
        expected = dumps_canonical({"t": sample_datetime_utc})
        assert dumps_canonical({"t": sample_datetime_naive}) == expected
        assert dumps_canonical({"t": sample_datetime_offset}) == expected


class TestValueEncoding:

    def test_bytes_become_prefixed_hex(self):
        assert canonicalize_value(b"\x01\xff") == "0x01ff"
        assert dumps_canonical({"root": bytearray(b"\x00\x10")}) == '{"root":"0x0010"}'

    def test_enum_serializes_to_value(self):
        assert dumps_canonical({"status": CommitmentStatus.CONFIRMED}) == '{"status":"confirmed"}'

    def test_tuple_is_list(self):
        assert canonicalize_value((1, 2)) == [1, 2]

    def test_unsupported_type_raises(self):
        with pytest.raises(CanonicalizationException) as exc_info:
            dumps_canonical({"items": [object()]})
        assert exc_info.value.details["path"] == "items[0]"


class TestExcludeNone:

    def test_none_excluded_from_dict(self):
        assert dumps_canonical({"a": 1, "b": None}) == '{"a":1}'

    def test_none_excluded_from_model(self):
        assert "note" not in dumps_canonical(SampleModel(zeta=1, alpha="x"))

    def test_falsy_values_kept(self):
        assert dumps_canonical({"a": 0, "b": False, "c": ""}) == '{"a":0,"b":false,"c":""}'

    def test_record_optional_fields_dropped(self, sample_record):
        data = json.loads(dumps_canonical(sample_record))
        assert "proof_ref" not in data
        assert data["status"] == "pending"
        assert data["created_at"] == "2026-01-01T00:00:00Z"


class TestFloatSafety:

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_raises(self, value):
        with pytest.raises(CanonicalizationException):
            dumps_canonical({"x": [value]})

    def test_normal_float_works(self):
        assert dumps_canonical({"x": 1.5}) == '{"x":1.5}'


class TestRoundTripStability:

    def test_record_roundtrip(self, sample_record):
        data = loads_canonical(dumps_canonical(sample_record))
        restored = ProcessedCommitment.model_validate(data)
        assert restored == sample_record
        assert dumps_canonical(restored) == dumps_canonical(sample_record)
