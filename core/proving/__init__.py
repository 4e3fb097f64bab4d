"""
Proof backend collaborators.
"""
from .backend import (
    MerklePathProofBackend,
    ProofBackend,
    ProofObject,
    ProofVerification,
    statement_id,
)

__all__ = [
    "MerklePathProofBackend",
    "ProofBackend",
    "ProofObject",
    "ProofVerification",
    "statement_id",
]
