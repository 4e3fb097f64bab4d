"""
Processing Ledger Unit Tests
Tests for core/ledger/processing_ledger.py

Covers root adoption, proof admission order, exactly-once crediting,
the per-transaction limit and the overflow halt.
"""
import threading
from dataclasses import replace

import pytest

from core.config.runtime import LedgerConfig, ZERO_ROOT_HEX
from core.crypto.hashing import sha256, to_hex
from core.ledger.processing_ledger import ProcessingLedger
from core.merkle import CommitmentAccumulator
from core.proving.backend import MerklePathProofBackend
from core.schemas.errors import (
    AmountLimitExceededException,
    CommitmentAlreadySpentException,
    ErrorCodes,
    InvalidProofException,
    LedgerHaltedException,
    OverflowInvariantViolation,
    RootMismatchException,
    RootUnchangedException,
)


def _tree(leaves, depth=4):
    acc = CommitmentAccumulator(depth)
    for leaf in leaves:
        acc.insert(leaf)
    return acc


def _proof(acc, index, backend=None):
    return (backend or MerklePathProofBackend()).prove_inclusion(acc.get_proof(index))


@pytest.fixture
def funded(ledger, leaves):
    """Ledger trusting the root of a tree holding four leaves."""
    acc = _tree(leaves[:4])
    ledger.update_trusted_root(acc.get_root(), height=4)
    return ledger, acc


class TestInitialState:

    def test_defaults(self, ledger):
        state = ledger.get_state()
        assert state.trusted_root == ZERO_ROOT_HEX
        assert state.total_credited == 0
        assert state.last_update_height == 0
        assert state.credited_count == 0
        assert state.halted is False

    def test_configured_initial_root(self, backend):
        root = sha256(b"genesis")
        ledger = ProcessingLedger(backend, LedgerConfig(initial_root=to_hex(root)))
        assert ledger.get_state().trusted_root == to_hex(root)


class TestUpdateTrustedRoot:

    def test_same_root_twice_is_root_unchanged(self, ledger):
        """update(R, h) then update(R, h+1) fails; update(R2, h+1) succeeds."""
        root = sha256(b"R")
        ledger.update_trusted_root(root, 5)

        with pytest.raises(RootUnchangedException) as exc_info:
            ledger.update_trusted_root(root, 6)
        assert exc_info.value.code == ErrorCodes.ROOT_UNCHANGED
        assert ledger.get_state().last_update_height == 5

        state = ledger.update_trusted_root(sha256(b"R2"), 6)
        assert state.trusted_root == to_hex(sha256(b"R2"))
        assert state.last_update_height == 6

    def test_accepts_hex_root(self, ledger):
        root = sha256(b"hex")
        state = ledger.update_trusted_root(to_hex(root), 1)
        assert state.trusted_root == to_hex(root)

    def test_negative_height_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.update_trusted_root(sha256(b"R"), -1)


class TestVerifyAndCredit:

    def test_credit_success(self, funded, leaves):
        ledger, acc = funded
        receipt = ledger.verify_and_credit(_proof(acc, 2), leaves[2], 250)

        assert receipt.commitment == to_hex(leaves[2])
        assert receipt.amount == 250
        assert receipt.total_credited == 250
        assert receipt.destination_tx_ref.startswith("0x")

        state = ledger.get_state()
        assert state.total_credited == 250
        assert state.credited_count == 1
        assert state.last_accepted_marker == to_hex(leaves[2])
        assert ledger.is_spent(leaves[2])
        assert not ledger.is_spent(leaves[1])

    def test_root_mismatch_leaves_total_unchanged(self, funded, leaves):
        ledger, acc = funded
        ledger.verify_and_credit(_proof(acc, 0), leaves[0], 100)

        other = _tree(leaves[:5])
        with pytest.raises(RootMismatchException) as exc_info:
            ledger.verify_and_credit(_proof(other, 1), leaves[1], 100)

        assert exc_info.value.details["trusted_root"] == to_hex(acc.get_root())
        assert ledger.get_state().total_credited == 100
        assert not ledger.is_spent(leaves[1])

    def test_double_credit_rejected(self, funded, leaves):
        ledger, acc = funded
        proof = _proof(acc, 1)
        ledger.verify_and_credit(proof, leaves[1], 10)

        with pytest.raises(CommitmentAlreadySpentException):
            ledger.verify_and_credit(proof, leaves[1], 10)
        assert ledger.get_state().total_credited == 10

    def test_tampered_proof_rejected(self, funded, leaves):
        ledger, acc = funded
        proof = _proof(acc, 3)
        proof.payload["witness"]["path"][0] = to_hex(sha256(b"tampered"))

        with pytest.raises(InvalidProofException):
            ledger.verify_and_credit(proof, leaves[3], 10)
        assert ledger.get_state().total_credited == 0

    def test_proof_for_other_commitment_rejected(self, funded, leaves):
        ledger, acc = funded
        with pytest.raises(InvalidProofException, match="different commitment"):
            ledger.verify_and_credit(_proof(acc, 0), leaves[1], 10)
        assert not ledger.is_spent(leaves[0])
        assert not ledger.is_spent(leaves[1])

    def test_root_checked_before_validity(self, funded, leaves):
        ledger, _ = funded
        other = _tree(leaves[:2])
        proof = replace(_proof(other, 0), proof_id="0x" + "00" * 32)

        with pytest.raises(RootMismatchException):
            ledger.verify_and_credit(proof, leaves[0], 10)

    def test_zero_amount_allowed(self, funded, leaves):
        ledger, acc = funded
        receipt = ledger.verify_and_credit(_proof(acc, 0), leaves[0], 0)
        assert receipt.total_credited == 0
        assert ledger.is_spent(leaves[0])

    def test_tx_refs_are_distinct(self, funded, leaves):
        ledger, acc = funded
        first = ledger.verify_and_credit(_proof(acc, 0), leaves[0], 5)
        second = ledger.verify_and_credit(_proof(acc, 1), leaves[1], 5)
        assert first.destination_tx_ref != second.destination_tx_ref


class TestLimits:

    def test_per_tx_limit(self, backend, leaves):
        ledger = ProcessingLedger(backend, LedgerConfig(max_amount_per_tx=100))
        acc = _tree(leaves[:2])
        ledger.update_trusted_root(acc.get_root(), 2)

        with pytest.raises(AmountLimitExceededException):
            ledger.verify_and_credit(_proof(acc, 0), leaves[0], 101)
        receipt = ledger.verify_and_credit(_proof(acc, 0), leaves[0], 100)
        assert receipt.total_credited == 100

    def test_negative_amount_rejected(self, funded, leaves):
        ledger, acc = funded
        with pytest.raises(AmountLimitExceededException):
            ledger.verify_and_credit(_proof(acc, 0), leaves[0], -1)

    def test_overflow_halts_ledger(self, backend, leaves):
        ledger = ProcessingLedger(backend, LedgerConfig(max_total_credited=150))
        acc = _tree(leaves[:4])
        ledger.update_trusted_root(acc.get_root(), 4)
        ledger.verify_and_credit(_proof(acc, 0), leaves[0], 100)

        with pytest.raises(OverflowInvariantViolation):
            ledger.verify_and_credit(_proof(acc, 1), leaves[1], 100)

        assert ledger.halted
        state = ledger.get_state()
        assert state.halted is True
        assert state.total_credited == 100
        assert not ledger.is_spent(leaves[1])

        with pytest.raises(LedgerHaltedException):
            ledger.verify_and_credit(_proof(acc, 2), leaves[2], 1)
        with pytest.raises(LedgerHaltedException):
            ledger.update_trusted_root(sha256(b"later"), 9)


class TestConcurrency:

    def test_concurrent_credits_of_one_commitment_credit_once(self, funded, leaves):
        ledger, acc = funded
        proof = _proof(acc, 0)
        outcomes: list[str] = []
        lock = threading.Lock()

        def submit():
            try:
                ledger.verify_and_credit(proof, leaves[0], 7)
                result = "ok"
            except CommitmentAlreadySpentException:
                result = "spent"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("spent") == 7
        assert ledger.get_state().total_credited == 7
