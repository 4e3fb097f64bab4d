"""
Proof Backend Interface

The proving system is an external collaborator. The bridge only ever
looks at a proof's public outputs (public_root, public_valid and, when the
backend exposes it, the attested commitment); everything else in a
ProofObject is opaque.

MerklePathProofBackend is the in-process reference backend. It attests a
Merkle inclusion path by re-verifying the witness it carries; a SNARK
backend would plug in behind the same two methods.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from core.crypto.hashing import from_hex, hash_canonical, to_hex
from core.merkle import InclusionProof, verify_merkle_proof
from core.schemas.errors import InvalidProofException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofObject:
    """
    Opaque proof produced by a ProofBackend.

    Attributes:
        backend: Name of the backend that produced the proof
        proof_id: Stable identifier of the proven statement
        public_root: Root the proof claims inclusion under
        public_commitment: Commitment the proof attests (None if not exposed)
        payload: Backend-private data, never read outside the backend
    """
    backend: str
    proof_id: str
    public_root: bytes
    public_commitment: Optional[bytes] = None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "proof_id": self.proof_id,
            "public_root": to_hex(self.public_root),
            "public_commitment": (
                to_hex(self.public_commitment) if self.public_commitment is not None else None
            ),
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProofObject":
        commitment = data.get("public_commitment")
        return cls(
            backend=data["backend"],
            proof_id=data["proof_id"],
            public_root=from_hex(data["public_root"]),
            public_commitment=from_hex(commitment) if commitment else None,
            payload=dict(data.get("payload") or {}),
        )


@dataclass(frozen=True)
class ProofVerification:
    """Public result of verifying a ProofObject."""
    public_root: bytes
    public_valid: bool
    public_commitment: Optional[bytes] = None


class ProofBackend(ABC):
    """
    Abstract proof backend.

    Implementations must be safe to call from several worker threads.
    """

    name: str = "abstract"

    @abstractmethod
    def generate_proof(
        self,
        leaf: bytes,
        index: int,
        path: Sequence[bytes],
        root: bytes,
    ) -> ProofObject:
        """
        Prove that `leaf` sits at `index` under `root`.

        Raises:
            InvalidProofException: If the witness does not satisfy the statement
        """

    @abstractmethod
    def verify_proof(self, proof: ProofObject) -> ProofVerification:
        """Verify a proof and return its public outputs."""

    def prove_inclusion(self, inclusion: InclusionProof) -> ProofObject:
        """Convenience wrapper taking an InclusionProof."""
        return self.generate_proof(inclusion.leaf, inclusion.index, inclusion.path, inclusion.root)


def statement_id(backend: str, leaf: bytes, index: int, root: bytes) -> str:
    """Deterministic identifier of an inclusion statement."""
    digest = hash_canonical({
        "backend": backend,
        "leaf": leaf,
        "index": index,
        "root": root,
    })
    return to_hex(digest)


class MerklePathProofBackend(ProofBackend):
    """
    Reference backend that attests a Merkle path directly.

    The witness (leaf, index, path) travels in the private payload and is
    re-folded on verification.
    """

    name = "merkle-path"

    def generate_proof(
        self,
        leaf: bytes,
        index: int,
        path: Sequence[bytes],
        root: bytes,
    ) -> ProofObject:
        inclusion = InclusionProof(leaf=leaf, index=index, path=tuple(path), root=root)
        if not verify_merkle_proof(inclusion):
            raise InvalidProofException(
                "Witness does not satisfy the inclusion statement",
                details={"index": index, "root": to_hex(root)},
            )

        proof_id = statement_id(self.name, leaf, index, root)
        logger.debug(f"Generated proof {proof_id[:18]} for leaf {index}")
        return ProofObject(
            backend=self.name,
            proof_id=proof_id,
            public_root=root,
            public_commitment=leaf,
            payload={"witness": inclusion.to_dict()},
        )

    def verify_proof(self, proof: ProofObject) -> ProofVerification:
        invalid = ProofVerification(
            public_root=proof.public_root,
            public_valid=False,
            public_commitment=proof.public_commitment,
        )
        if proof.backend != self.name:
            return invalid

        witness = proof.payload.get("witness")
        if not isinstance(witness, dict):
            return invalid
        try:
            inclusion = InclusionProof.from_dict(witness)
        except (KeyError, TypeError, ValueError):
            return invalid

        valid = (
            verify_merkle_proof(inclusion)
            and inclusion.root == proof.public_root
            and inclusion.leaf == proof.public_commitment
            and proof.proof_id == statement_id(self.name, inclusion.leaf, inclusion.index, inclusion.root)
        )
        return ProofVerification(
            public_root=proof.public_root,
            public_valid=valid,
            public_commitment=proof.public_commitment,
        )


__all__ = [
    "ProofObject",
    "ProofVerification",
    "ProofBackend",
    "MerklePathProofBackend",
    "statement_id",
]
