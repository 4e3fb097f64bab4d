"""
CLI Simulate Command

Run an end-to-end bridge in one process: deposit commitments on the
simulated source, relay them, and check the destination ledger agrees.

Usage:
    bridge simulate --deposits 5 [--amount 100] [--seed demo] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from core.config.runtime import RuntimeConfig
from core.crypto.hashing import sha256, to_hex
from core.schemas.bridge import CommitmentStatus
from core.schemas.errors import BridgeException, CommitmentAlreadySpentException
from relayer.relayer import BridgeNode, create_node


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class SimulationSummary:
    """Summary of a simulated bridge run for CLI output."""
    deposits: int = 0
    confirmed: int = 0
    failed: int = 0
    cycles: int = 0
    source_root: str = ""
    trusted_root: str = ""
    total_credited: int = 0
    expected_total: int = 0
    replay_rejected: bool | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["ok"] = self.ok
        if d["replay_rejected"] is None:
            del d["replay_rejected"]
        if not d["errors"]:
            del d["errors"]
        return d

    @property
    def roots_match(self) -> bool:
        return self.source_root == self.trusted_root

    @property
    def ok(self) -> bool:
        return (
            self.failed == 0
            and self.confirmed == self.deposits
            and self.total_credited == self.expected_total
            and self.roots_match
            and self.replay_rejected is not False
        )


def make_commitment(seed: str, index: int) -> bytes:
    """Deterministic demo commitment."""
    return sha256(f"{seed}:{index}".encode("utf-8"))


def drain(node: BridgeNode, max_cycles: int) -> int:
    """Poll until a cycle drives nothing new. Returns the cycle count."""
    cycles = 0
    while cycles < max_cycles:
        cycles += 1
        if not node.relayer.run_once():
            break
    return cycles


def check_replay(node: BridgeNode, commitment: bytes, amount: int) -> bool:
    """Re-submit a credited commitment; True when the ledger refuses it."""
    inclusion = node.source.get_inclusion_proof(commitment)
    proof = node.backend.prove_inclusion(inclusion)
    try:
        node.ledger.verify_and_credit(proof, commitment, amount)
    except CommitmentAlreadySpentException:
        return True
    logger.error(f"Ledger credited {to_hex(commitment)[:12]}... twice")
    return False


def run_simulation(
    config: RuntimeConfig,
    deposits: int,
    amount: int | None = None,
    seed: str = "bridge",
    replay: bool = True,
) -> SimulationSummary:
    """
    Deposit, relay and reconcile.

    Args:
        config: Runtime configuration for the node
        deposits: Number of commitments to deposit
        amount: Amount per deposit (relayer default when None)
        seed: Seed for the deterministic commitments
        replay: Also check that a second credit of the first commitment is refused

    Returns:
        SimulationSummary
    """
    node = create_node(config)
    summary = SimulationSummary(deposits=deposits)
    try:
        commitments = [make_commitment(seed, i) for i in range(deposits)]
        for commitment in commitments:
            node.source.deposit(commitment, amount)
        logger.info(f"Deposited {deposits} commitment(s)")

        batch_size = max(1, config.relayer.batch_size)
        summary.cycles = drain(node, max_cycles=deposits // batch_size + 2)

        records = node.relayer.orchestrator.get_processed_commitments()
        for record in records:
            if record.status == CommitmentStatus.CONFIRMED:
                summary.confirmed += 1
                summary.expected_total += record.amount
            elif record.status == CommitmentStatus.FAILED:
                summary.failed += 1
                summary.errors.append(
                    f"{record.commitment[:12]}...: [{record.error_code}] {record.error_reason}"
                )

        state = node.ledger.get_state()
        summary.source_root = to_hex(node.source.get_root())
        summary.trusted_root = state.trusted_root
        summary.total_credited = state.total_credited

        if replay and summary.confirmed:
            first = records[0]
            summary.replay_rejected = check_replay(node, commitments[0], first.amount)
    finally:
        node.shutdown()
    return summary


def print_summary_human(summary: SimulationSummary) -> None:
    """Print summary in human-readable format."""
    print(f"deposits: {summary.deposits}")
    print(f"confirmed: {summary.confirmed}")
    print(f"failed: {summary.failed}")
    print(f"cycles: {summary.cycles}")
    print(f"source_root: {summary.source_root}")
    print(f"trusted_root: {summary.trusted_root}")
    print(f"roots_match: {str(summary.roots_match).lower()}")
    print(f"total_credited: {summary.total_credited}")
    if summary.replay_rejected is not None:
        print(f"replay_rejected: {str(summary.replay_rejected).lower()}")
    print(f"ok: {str(summary.ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  - {err}")


def print_summary_json(summary: SimulationSummary) -> None:
    """Print summary as JSON."""
    print(json.dumps(summary.to_dict(), indent=2))


def simulate_cmd(args: Namespace) -> int:
    """
    Execute the simulate command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    config: RuntimeConfig = args.runtime_config
    if args.depth is not None:
        config.tree.depth = args.depth
    if not args.checkpoint:
        config.relayer.checkpoint_path = None

    if args.deposits < 0:
        print("Error: --deposits must be >= 0", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        summary = run_simulation(
            config,
            deposits=args.deposits,
            amount=args.amount,
            seed=args.seed,
            replay=not args.no_replay,
        )
    except (BridgeException, ValueError) as e:
        if args.debug:
            raise
        print(f"Simulation error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print_summary_json(summary)
    else:
        print_summary_human(summary)

    if summary.ok:
        logger.info("Simulation passed")
        return EXIT_SUCCESS
    logger.warning("Simulation finished with mismatches")
    return EXIT_VERIFICATION_FAILED
