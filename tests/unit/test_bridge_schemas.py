"""
Bridge Record Tests
Tests for core/schemas/bridge.py and core/schemas/errors.py
"""
import pytest
from pydantic import ValidationError

from core.schemas import (
    BridgeException,
    CommitmentStatus,
    ErrorCodes,
    InvalidStatusTransitionException,
    LedgerState,
    ProcessedCommitment,
    RootMismatchException,
    SourceEvent,
    normalize_hash_hex,
)


HASH = "0x" + "ab" * 32


def _record(**kwargs):
    return ProcessedCommitment(commitment=HASH, source_index=0, claimed_root=HASH, **kwargs)


class TestNormalizeHashHex:

    def test_accepts_bytes_and_hex_forms(self):
        assert normalize_hash_hex(bytes.fromhex("ab" * 32)) == HASH
        assert normalize_hash_hex("AB" * 32) == HASH
        assert normalize_hash_hex(HASH) == HASH

    @pytest.mark.parametrize("bad", ["0xabcd", "zz" * 32, 42, None])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValueError):
            normalize_hash_hex(bad)

    def test_models_normalize_on_input(self):
        event = SourceEvent(commitment="AB" * 32, index=0, root=bytes(32), timestamp=0)
        assert event.commitment == HASH
        assert event.root == "0x" + "00" * 32

    def test_models_reject_bad_hash(self):
        with pytest.raises(ValidationError):
            ProcessedCommitment(commitment="0x12", source_index=0, claimed_root=HASH)


class TestTransitions:

    def test_happy_path(self):
        record = _record()
        for status in (CommitmentStatus.PROVING, CommitmentStatus.SUBMITTED, CommitmentStatus.CONFIRMED):
            record.transition(status)
        assert record.status.is_terminal

    def test_fields_set_with_transition(self):
        record = _record().transition(CommitmentStatus.FAILED, error_code="X", error_reason="boom")
        assert record.error_code == "X"
        assert record.error_reason == "boom"

    def test_confirmed_is_final(self):
        record = _record().transition(CommitmentStatus.CONFIRMED)
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            record.transition(CommitmentStatus.PENDING)
        assert exc_info.value.code == ErrorCodes.INVALID_STATUS_TRANSITION

    def test_failed_can_only_go_back_to_pending(self):
        record = _record().transition(CommitmentStatus.FAILED)
        assert not record.can_transition(CommitmentStatus.PROVING)
        assert record.transition(CommitmentStatus.PENDING).status == CommitmentStatus.PENDING

    def test_submitted_cannot_skip_back(self):
        record = _record().transition(CommitmentStatus.PROVING).transition(CommitmentStatus.SUBMITTED)
        with pytest.raises(InvalidStatusTransitionException):
            record.transition(CommitmentStatus.PROVING)


class TestErrors:

    def test_bridge_exception_to_error(self):
        exc = RootMismatchException("0x01", "0x02")
        assert isinstance(exc, BridgeException)
        error = exc.to_error_model()
        assert error.code == ErrorCodes.ROOT_MISMATCH
        assert error.details == exc.details

    def test_ledger_state_is_frozen(self):
        state = LedgerState(trusted_root=HASH, last_accepted_marker=HASH)
        with pytest.raises(ValidationError):
            state.total_credited = 5
