"""
Relay Orchestrator

Drives each newly observed commitment through
inclusion proof -> proof generation -> ledger submission, deduplicating
by commitment and reporting stats.

Key features:
- At-most-once admission per commitment (the dedup map is the idempotency
  boundary for at-least-once polling)
- Parallel proof generation on a worker pool
- Root adoption + credit serialized through one submission lock
- Every collaborator call bounded by a timeout; a timeout fails the run
- Operator re-drive of failed records and restart reconciliation
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional, Protocol, Union

from core.config.runtime import RelayerConfig
from core.crypto.hashing import to_hex
from core.ledger.processing_ledger import ProcessingLedger
from core.merkle import InclusionProof
from core.proving.backend import ProofBackend
from core.schemas.bridge import (
    CommitmentStatus,
    ProcessedCommitment,
    RelayerStats,
    SourceEvent,
    normalize_hash_hex,
)
from core.schemas.errors import (
    ErrorCodes,
    InvalidStatusTransitionException,
    LeafNotFoundException,
    RelayStepException,
    RootUnchangedException,
)

from relayer.steps import RelayState, StepExecutor, call_with_timeout, make_step


logger = logging.getLogger(__name__)


class InclusionSource(Protocol):
    """What the orchestrator needs from the source chain."""

    def get_inclusion_proof(self, commitment: Union[str, bytes]) -> InclusionProof:
        ...

    def root_height(self, root: Union[str, bytes]) -> Optional[int]:
        ...


class RelayOrchestrator:
    """
    Per-commitment relay runner.

    All record mutations happen under one lock; ledger mutations go through
    the ProcessingLedger, whose own lock linearizes them.
    """

    def __init__(
        self,
        source: InclusionSource,
        backend: ProofBackend,
        ledger: ProcessingLedger,
        *,
        config: Optional[RelayerConfig] = None,
    ):
        self.config = config or RelayerConfig()
        self._source = source
        self._backend = backend
        self._ledger = ledger

        self._processed: dict[str, ProcessedCommitment] = {}
        self._lock = threading.RLock()
        self._submit_lock = threading.Lock()
        self._executor = StepExecutor(stop_on_error=True)

        workers = max(1, self.config.max_workers)
        self._workers = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="relay-worker")
        # Separate pool for timed calls so an abandoned call never blocks a worker
        self._calls = ThreadPoolExecutor(max_workers=workers * 2, thread_name_prefix="relay-call")
        self._started_at = time.monotonic()

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def admit(self, event: SourceEvent) -> Optional[ProcessedCommitment]:
        """
        Create a pending record for a new commitment.

        Returns:
            The new record, or None if the commitment is already tracked
        """
        with self._lock:
            existing = self._processed.get(event.commitment)
            if existing is not None:
                logger.info(
                    f"Skipping already-seen commitment {event.commitment[:12]}... "
                    f"({existing.status.value})"
                )
                return None

            record = ProcessedCommitment(
                commitment=event.commitment,
                source_index=event.index,
                claimed_root=event.root,
                amount=event.amount if event.amount is not None else self.config.default_amount,
            )
            self._processed[record.commitment] = record
            logger.info(f"New commitment {record.commitment[:12]}... at index {record.source_index}")
            return record

    def handle_event(self, event: SourceEvent) -> Optional[ProcessedCommitment]:
        """Admit and drive one event; None when it was a duplicate."""
        record = self.admit(event)
        if record is None:
            return None
        return self._drive(record.commitment)

    def handle_events(self, events: Iterable[SourceEvent]) -> list[ProcessedCommitment]:
        """
        Admit a batch, then drive the new commitments in parallel.

        Returns:
            Final snapshots of the newly admitted records, in event order
        """
        admitted = [
            record for record in (self.admit(event) for event in events) if record is not None
        ]
        if not admitted:
            return []
        if len(admitted) == 1 or self.config.max_workers <= 1:
            return [self._drive(record.commitment) for record in admitted]

        futures = [self._workers.submit(self._drive, record.commitment) for record in admitted]
        return [future.result() for future in futures]

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _transition(self, commitment: str, target: CommitmentStatus, **fields) -> ProcessedCommitment:
        with self._lock:
            return self._processed[commitment].transition(target, **fields)

    def _snapshot(self, commitment: str) -> ProcessedCommitment:
        with self._lock:
            return self._processed[commitment].model_copy()

    def _reconcile_spent(self, commitment: str) -> ProcessedCommitment:
        """Mark a commitment the ledger has already credited as confirmed."""
        self._transition(commitment, CommitmentStatus.CONFIRMED, error_code=None, error_reason=None)
        logger.info(f"Reconciled {commitment[:12]}... as confirmed")
        return self._snapshot(commitment)

    def _drive(self, commitment: str) -> ProcessedCommitment:
        """
        Run one commitment from pending to a terminal status.

        A credit can land after its submit call timed out, so the ledger's
        spent set is consulted before and after the run.
        """
        if self._ledger.is_spent(commitment):
            return self._reconcile_spent(commitment)

        record = self._transition(commitment, CommitmentStatus.PROVING)
        state = RelayState(commitment=commitment, amount=record.amount)

        steps = [
            make_step("fetch_inclusion", self._step_fetch_inclusion),
            make_step("generate_proof", self._step_generate_proof),
            make_step("submit", self._step_submit),
        ]
        state, _ = self._executor.execute(steps, state)

        if state.ok and state.receipt is not None:
            self._transition(
                commitment,
                CommitmentStatus.CONFIRMED,
                destination_tx_ref=state.receipt.destination_tx_ref,
            )
            logger.info(f"Confirmed {commitment[:12]}... tx {state.receipt.destination_tx_ref[:18]}")
        elif state.error_code == ErrorCodes.COMMITMENT_ALREADY_SPENT:
            return self._reconcile_spent(commitment)
        else:
            self._transition(
                commitment,
                CommitmentStatus.FAILED,
                error_code=state.error_code,
                error_reason=state.error_reason,
            )
            logger.error(
                f"Commitment {commitment[:12]}... failed at {state.failed_step}: "
                f"[{state.error_code}] {state.error_reason}"
            )
        return self._snapshot(commitment)

    def _step_fetch_inclusion(self, state: RelayState) -> RelayState:
        """Step 1: inclusion proof against the source's current root."""
        state.inclusion = call_with_timeout(
            self._calls,
            "fetch_inclusion",
            self.config.proof_timeout_s,
            self._source.get_inclusion_proof,
            state.commitment,
        )
        if to_hex(state.inclusion.leaf) != state.commitment:
            raise RelayStepException(
                "Source returned a proof for a different leaf",
                stage="fetch_inclusion",
            )
        return state

    def _step_generate_proof(self, state: RelayState) -> RelayState:
        """Step 2: backend proof generation (the expensive, parallel step)."""
        inclusion = state.inclusion
        state.proof = call_with_timeout(
            self._calls,
            "generate_proof",
            self.config.proof_timeout_s,
            self._backend.generate_proof,
            inclusion.leaf,
            inclusion.index,
            inclusion.path,
            inclusion.root,
        )
        self._transition(state.commitment, CommitmentStatus.SUBMITTED, proof_ref=state.proof.proof_id)
        return state

    def _step_submit(self, state: RelayState) -> RelayState:
        """Step 3: adopt the proof's root if newer, then credit."""
        with self._submit_lock:
            self._adopt_root_if_newer(state.proof.public_root)
            state.receipt = call_with_timeout(
                self._calls,
                "submit",
                self.config.submit_timeout_s,
                self._ledger.verify_and_credit,
                state.proof,
                state.commitment,
                state.amount,
            )
        return state

    def _adopt_root_if_newer(self, root: bytes) -> None:
        """
        Move the ledger's trusted root forward to `root`.

        Only roots the source knows, at a greater height than the ledger's
        last update, are adopted. An older root is left for the ledger to
        reject with RootMismatch.
        """
        height = self._source.root_height(root)
        ledger_state = self._ledger.get_state()
        if height is None or ledger_state.trusted_root == to_hex(root):
            return
        if height <= ledger_state.last_update_height:
            return
        try:
            call_with_timeout(
                self._calls,
                "update_root",
                self.config.submit_timeout_s,
                self._ledger.update_trusted_root,
                root,
                height,
            )
        except RootUnchangedException:
            logger.debug(f"Root {to_hex(root)[:18]} already trusted")

    # ------------------------------------------------------------------
    # Operator actions & restart
    # ------------------------------------------------------------------

    def redrive(self, commitment: Union[str, bytes]) -> ProcessedCommitment:
        """
        Re-run a failed commitment from pending.

        Raises:
            LeafNotFoundException: If the commitment is not tracked
            InvalidStatusTransitionException: If the record is not failed
        """
        key = normalize_hash_hex(commitment)
        with self._lock:
            record = self._processed.get(key)
            if record is None:
                raise LeafNotFoundException(
                    "Commitment is not tracked by the relay",
                    details={"commitment": key},
                )
            if record.status != CommitmentStatus.FAILED:
                raise InvalidStatusTransitionException(
                    key, record.status.value, CommitmentStatus.PENDING.value
                )
            record.transition(CommitmentStatus.PENDING, error_code=None, error_reason=None)

        logger.info(f"Re-driving {key[:12]}...")
        return self._drive(key)

    def restore(self, records: Iterable[ProcessedCommitment]) -> int:
        """
        Load records from a checkpoint. Already-tracked commitments are kept.

        Returns:
            Number of records loaded
        """
        loaded = 0
        with self._lock:
            for record in records:
                if record.commitment not in self._processed:
                    self._processed[record.commitment] = record.model_copy()
                    loaded += 1
        logger.info(f"Restored {loaded} commitment records")
        return loaded

    def resume_incomplete(self) -> list[ProcessedCommitment]:
        """
        Reconcile non-terminal records after a restart.

        Records the ledger already credited become confirmed. Interrupted
        proving/submitted runs are marked failed and re-driven; pending
        records are driven directly.
        """
        with self._lock:
            incomplete = [r.commitment for r in self._processed.values() if not r.status.is_terminal]

        resumed: list[ProcessedCommitment] = []
        for commitment in incomplete:
            if self._ledger.is_spent(commitment):
                resumed.append(self._reconcile_spent(commitment))
                continue

            with self._lock:
                status = self._processed[commitment].status
            if status == CommitmentStatus.PENDING:
                resumed.append(self._drive(commitment))
            else:
                self._transition(
                    commitment,
                    CommitmentStatus.FAILED,
                    error_reason=f"Interrupted while {status.value}",
                )
                resumed.append(self.redrive(commitment))
        return resumed

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def get_record(self, commitment: Union[str, bytes]) -> Optional[ProcessedCommitment]:
        key = normalize_hash_hex(commitment)
        with self._lock:
            record = self._processed.get(key)
            return record.model_copy() if record else None

    def get_processed_commitments(self) -> list[ProcessedCommitment]:
        """All records ordered by source index (audit view)."""
        with self._lock:
            records = [record.model_copy() for record in self._processed.values()]
        return sorted(records, key=lambda record: record.source_index)

    def get_stats(self) -> RelayerStats:
        """
        Counts derived from the record map.

        processed: runs that reached a terminal status
        submitted: confirmed credits
        failed: records currently failed
        queue_depth: records not yet terminal
        """
        with self._lock:
            statuses = [record.status for record in self._processed.values()]
        confirmed = statuses.count(CommitmentStatus.CONFIRMED)
        failed = statuses.count(CommitmentStatus.FAILED)
        return RelayerStats(
            processed=confirmed + failed,
            submitted=confirmed,
            failed=failed,
            queue_depth=len(statuses) - confirmed - failed,
            uptime_s=round(time.monotonic() - self._started_at, 3),
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop the pools. Abandoned timed calls are not waited for."""
        self._workers.shutdown(wait=wait)
        self._calls.shutdown(wait=False, cancel_futures=True)


__all__ = ["InclusionSource", "RelayOrchestrator"]
