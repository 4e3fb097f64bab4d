"""
Bridge Relayer Service

Wires the source watcher, the relay orchestrator and the checkpoint store
into one long-running service, and provides the in-process BridgeNode used
by the CLI and HTTP API.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.config.runtime import RelayerConfig, RuntimeConfig
from core.ledger.processing_ledger import ProcessingLedger
from core.ledger.source_ledger import SourceLedger
from core.proving.backend import MerklePathProofBackend, ProofBackend
from core.schemas.bridge import ProcessedCommitment, RelayerStats, SourceEvent

from relayer.orchestrator import RelayOrchestrator
from relayer.state_store import RelayCheckpoint, load_checkpoint, save_checkpoint
from relayer.watcher import SourceWatcher


logger = logging.getLogger(__name__)


class BridgeRelayer:
    """
    Relayer service.

    Example:
        relayer = BridgeRelayer(source, backend, ledger, config=cfg.relayer)
        relayer.start()
        ...
        relayer.stop()
    """

    def __init__(
        self,
        source: SourceLedger,
        backend: ProofBackend,
        ledger: ProcessingLedger,
        *,
        config: Optional[RelayerConfig] = None,
    ):
        self.config = config or RelayerConfig()
        self.orchestrator = RelayOrchestrator(source, backend, ledger, config=self.config)
        self.watcher = SourceWatcher(source, self._on_events, config=self.config)
        self._ledger = ledger

        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._restored = False

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def _on_events(self, events: list[SourceEvent]) -> list[ProcessedCommitment]:
        records = self.orchestrator.handle_events(events)
        self.save()
        return records

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def checkpoint(self) -> RelayCheckpoint:
        return RelayCheckpoint(
            cursor=self.watcher.cursor,
            records=self.orchestrator.get_processed_commitments(),
        )

    def save(self) -> Optional[Path]:
        """Write the checkpoint if a checkpoint path is configured."""
        if not self.config.checkpoint_path:
            return None
        return save_checkpoint(self.checkpoint(), self.config.checkpoint_path)

    def restore(self) -> list[ProcessedCommitment]:
        """
        Load the checkpoint (once) and reconcile unfinished records.

        Returns:
            Records touched by reconciliation
        """
        if self._restored or not self.config.checkpoint_path:
            self._restored = True
            return []
        self._restored = True

        checkpoint = load_checkpoint(self.config.checkpoint_path)
        if checkpoint is None:
            logger.info(f"No checkpoint at {self.config.checkpoint_path}; starting fresh")
            return []

        self.orchestrator.restore(checkpoint.records)
        self.watcher.restore_cursor(checkpoint.cursor)
        resumed = self.orchestrator.resume_incomplete()
        if resumed:
            self.save()
        logger.info(
            f"Resumed from checkpoint: cursor {checkpoint.cursor}, "
            f"{len(checkpoint.records)} records, {len(resumed)} reconciled"
        )
        return resumed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run_once(self) -> list[ProcessedCommitment]:
        """One poll cycle; returns the records driven in that cycle."""
        self.restore()
        results: list[ProcessedCommitment] = []

        def collect(events: list[SourceEvent]) -> None:
            results.extend(self._on_events(events))

        self.watcher.poll_once(collect)
        return results

    def start(self) -> None:
        """Start the watcher and status-log threads."""
        if self.is_running:
            logger.warning("Relayer already running")
            return

        self.restore()
        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self.watcher.run,
                args=(self._stop_event,),
                name="relay-watcher",
                daemon=True,
            ),
            threading.Thread(target=self._status_loop, name="relay-status", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Relayer started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop polling, persist the checkpoint and release worker pools."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []
        self.save()
        self.orchestrator.shutdown(wait=True)
        logger.info("Relayer stopped")

    def _status_loop(self) -> None:
        while not self._stop_event.wait(self.config.status_interval_s):
            self.log_status()

    def log_status(self) -> None:
        stats = self.get_stats()
        ledger_state = self._ledger.get_state()
        logger.info(
            f"Status: processed={stats.processed} submitted={stats.submitted} "
            f"failed={stats.failed} queue={stats.queue_depth} cursor={stats.cursor} "
            f"root={ledger_state.trusted_root[:18]} total={ledger_state.total_credited}"
        )

    def get_stats(self) -> RelayerStats:
        stats = self.orchestrator.get_stats()
        return stats.model_copy(update={"cursor": self.watcher.cursor})


# =============================================================================
# In-process node
# =============================================================================

@dataclass
class BridgeNode:
    """Both ledgers, the proof backend and the relayer in one process."""
    config: RuntimeConfig
    source: SourceLedger
    backend: ProofBackend
    ledger: ProcessingLedger
    relayer: BridgeRelayer

    def shutdown(self) -> None:
        self.relayer.stop()


def create_node(config: Optional[RuntimeConfig] = None) -> BridgeNode:
    """
    Build an in-process node from configuration.

    Args:
        config: Runtime configuration (defaults to RuntimeConfig())

    Returns:
        BridgeNode with the reference MerklePathProofBackend
    """
    config = config or RuntimeConfig()
    source = SourceLedger(depth=config.tree.depth)
    backend = MerklePathProofBackend()
    ledger = ProcessingLedger(backend, config.ledger)
    relayer = BridgeRelayer(source, backend, ledger, config=config.relayer)
    return BridgeNode(
        config=config,
        source=source,
        backend=backend,
        ledger=ledger,
        relayer=relayer,
    )


__all__ = ["BridgeRelayer", "BridgeNode", "create_node"]
