"""
CLI Proof Commands

Produce and check inclusion proofs offline.

Usage:
    bridge prove 0x<leaf> 0x<leaf> ... --index 1 [--depth 32] [--out proof.json]
    bridge verify-proof proof.json [--root 0x<root>] [--commitment 0x<leaf>]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from core.crypto.hashing import coerce_hash, to_hex
from core.merkle import CommitmentAccumulator
from core.proving.backend import MerklePathProofBackend, ProofObject
from core.schemas.errors import BridgeException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class ProveSummary:
    """Summary of a generated proof."""
    index: int = 0
    depth: int = 0
    leaf_count: int = 0
    commitment: str = ""
    root: str = ""
    proof_id: str = ""
    saved_to: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["saved_to"]:
            del d["saved_to"]
        return d


@dataclass
class VerifyProofSummary:
    """Summary of proof verification for CLI output."""
    proof_path: str = ""
    backend: str = ""
    proof_id: str = ""
    public_root: str = ""
    public_commitment: str | None = None
    public_valid: bool = False
    root_ok: bool | None = None
    commitment_ok: bool | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["ok"] = self.all_ok
        for key in ("root_ok", "commitment_ok"):
            if d[key] is None:
                del d[key]
        if not d["errors"]:
            del d["errors"]
        return d

    @property
    def all_ok(self) -> bool:
        return self.public_valid and self.root_ok is not False and self.commitment_ok is not False


def build_proof(leaves: list[bytes], index: int, depth: int) -> tuple[ProofObject, CommitmentAccumulator]:
    """Insert `leaves` into a fresh tree and prove the leaf at `index`."""
    tree = CommitmentAccumulator(depth)
    for leaf in leaves:
        tree.insert(leaf)
    backend = MerklePathProofBackend()
    return backend.prove_inclusion(tree.get_proof(index)), tree


def verify_proof_object(
    proof: ProofObject,
    expected_root: bytes | None = None,
    expected_commitment: bytes | None = None,
) -> VerifyProofSummary:
    """Check a proof and compare its public outputs with the expected values."""
    verification = MerklePathProofBackend().verify_proof(proof)
    summary = VerifyProofSummary(
        backend=proof.backend,
        proof_id=proof.proof_id,
        public_root=to_hex(verification.public_root),
        public_commitment=(
            to_hex(verification.public_commitment)
            if verification.public_commitment is not None else None
        ),
        public_valid=verification.public_valid,
    )
    if not verification.public_valid:
        summary.errors.append("Proof does not verify")

    if expected_root is not None:
        summary.root_ok = verification.public_root == expected_root
        if not summary.root_ok:
            summary.errors.append(f"Root mismatch: expected {to_hex(expected_root)}")

    if expected_commitment is not None:
        summary.commitment_ok = verification.public_commitment == expected_commitment
        if not summary.commitment_ok:
            summary.errors.append(f"Commitment mismatch: expected {to_hex(expected_commitment)}")

    return summary


def prove_cmd(args: Namespace) -> int:
    """
    Execute the prove command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    depth = args.depth if args.depth is not None else args.runtime_config.tree.depth
    try:
        leaves = [coerce_hash(leaf) for leaf in args.leaves]
        proof, tree = build_proof(leaves, args.index, depth)
    except (BridgeException, ValueError) as e:
        if args.debug:
            raise
        print(f"Error building proof: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = ProveSummary(
        index=args.index,
        depth=depth,
        leaf_count=tree.leaf_count,
        commitment=to_hex(proof.public_commitment),
        root=to_hex(proof.public_root),
        proof_id=proof.proof_id,
    )

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(proof.to_dict(), indent=2, sort_keys=True))
        summary.saved_to = str(out_path)
        logger.info(f"Wrote proof to {out_path}")

    if args.json or not args.out:
        output = summary.to_dict()
        if not args.out:
            output["proof"] = proof.to_dict()
        print(json.dumps(output, indent=2))
    else:
        print(f"index: {summary.index}")
        print(f"commitment: {summary.commitment}")
        print(f"root: {summary.root}")
        print(f"proof_id: {summary.proof_id}")
        print(f"saved: {summary.saved_to}")

    return EXIT_SUCCESS


def verify_proof_cmd(args: Namespace) -> int:
    """
    Execute the verify-proof command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (2 when the proof or an expectation fails)
    """
    proof_path = Path(args.proof_path)
    if not proof_path.exists():
        print(f"Error: Proof not found: {proof_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        data = json.loads(proof_path.read_text())
        proof = ProofObject.from_dict(data)
        expected_root = coerce_hash(args.root) if args.root else None
        expected_commitment = coerce_hash(args.commitment) if args.commitment else None
    except (KeyError, TypeError, ValueError) as e:
        if args.debug:
            raise
        print(f"Error loading proof: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = verify_proof_object(proof, expected_root, expected_commitment)
    summary.proof_path = str(proof_path)

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(f"proof: {summary.proof_path}")
        print(f"backend: {summary.backend}")
        print(f"public_root: {summary.public_root}")
        print(f"public_commitment: {summary.public_commitment}")
        print(f"public_valid: {str(summary.public_valid).lower()}")
        if summary.root_ok is not None:
            print(f"root_ok: {str(summary.root_ok).lower()}")
        if summary.commitment_ok is not None:
            print(f"commitment_ok: {str(summary.commitment_ok).lower()}")
        for err in summary.errors:
            print(f"  ✗ {err}")

    if summary.all_ok:
        logger.info("Proof verified")
        return EXIT_SUCCESS
    logger.warning("Proof verification failed")
    return EXIT_VERIFICATION_FAILED
