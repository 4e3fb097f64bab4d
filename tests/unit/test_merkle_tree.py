"""
Module 03 - Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py

Covers:
1. Zero-hash ladder and the empty-tree root
2. Fixed-depth padding (odd trailing node pairs with zero_hashes[h])
3. Proof generation and verification for every index
4. Tamper detection on leaf, path, root and index
5. Depth validation and InclusionProof wire form
"""
import pytest

from core.crypto.hashing import ZERO_BYTES32, hash_pair, sha256
from core.merkle.merkle_tree import (
    DEFAULT_TREE_DEPTH,
    MAX_TREE_DEPTH,
    InclusionProof,
    build_merkle_proof,
    build_merkle_root,
    compute_root_from_path,
    compute_zero_hashes,
    merkle_parent,
    validate_depth,
    verify_merkle_proof,
)


def _leaves(count: int) -> list[bytes]:
    return [sha256(f"leaf{i}".encode()) for i in range(count)]


class TestZeroHashes:
    """Tests for the zero-hash ladder."""

    def test_first_rung_is_hash_of_zero_leaf(self):
        ladder = compute_zero_hashes(4)
        assert ladder[0] == sha256(ZERO_BYTES32)

    def test_each_rung_pairs_previous(self):
        ladder = compute_zero_hashes(6)
        assert len(ladder) == 7
        for height in range(1, 7):
            assert ladder[height] == hash_pair(ladder[height - 1], ladder[height - 1])

    @pytest.mark.parametrize("depth", [1, 4, DEFAULT_TREE_DEPTH])
    def test_empty_root_is_top_rung(self, depth):
        """Empty tree of depth D has root zero_hashes[D]."""
        assert build_merkle_root([], depth) == compute_zero_hashes(depth)[depth]


class TestDepthValidation:

    @pytest.mark.parametrize("depth", [0, -1, MAX_TREE_DEPTH + 1])
    def test_out_of_range_depth_rejected(self, depth):
        with pytest.raises(ValueError, match="between"):
            validate_depth(depth)

    @pytest.mark.parametrize("depth", [True, 4.0, "4"])
    def test_non_integer_depth_rejected(self, depth):
        with pytest.raises(ValueError, match="integer"):
            validate_depth(depth)

    def test_over_capacity_rejected(self):
        with pytest.raises(ValueError, match="exceed capacity"):
            build_merkle_root(_leaves(5), depth=2)


class TestPadding:
    """Tests for the fixed-depth padding rule."""

    def test_single_leaf_climbs_with_zero_hashes(self):
        leaf = sha256(b"only")
        zeros = compute_zero_hashes(3)

        expected = leaf
        for height in range(3):
            expected = merkle_parent(expected, zeros[height])

        assert build_merkle_root([leaf], depth=3) == expected

    def test_three_leaves_pad_with_zero_leaf_hash(self):
        a, b, c = _leaves(3)
        zeros = compute_zero_hashes(2)

        expected = merkle_parent(merkle_parent(a, b), merkle_parent(c, zeros[0]))

        assert build_merkle_root([a, b, c], depth=2) == expected

    def test_full_tree_uses_no_zero_hashes(self):
        a, b, c, d = _leaves(4)
        expected = merkle_parent(merkle_parent(a, b), merkle_parent(c, d))

        assert build_merkle_root([a, b, c, d], depth=2) == expected

    def test_leaf_order_matters(self):
        a, b = _leaves(2)
        assert build_merkle_root([a, b], depth=4) != build_merkle_root([b, a], depth=4)


class TestProofGeneration:
    """Tests for build_merkle_proof and verify_merkle_proof."""

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 13])
    def test_proof_verifies_for_each_index(self, count):
        leaves = _leaves(count)
        root = build_merkle_root(leaves, depth=5)

        for index in range(count):
            proof = build_merkle_proof(leaves, index, depth=5)
            assert proof.depth == 5
            assert proof.root == root
            assert verify_merkle_proof(proof)

    def test_proof_index_out_of_range_raises(self):
        with pytest.raises(IndexError):
            build_merkle_proof(_leaves(3), 3, depth=4)
        with pytest.raises(IndexError):
            build_merkle_proof([], 0, depth=4)

    def test_compute_root_from_path_matches_tree(self):
        leaves = _leaves(6)
        proof = build_merkle_proof(leaves, 4, depth=3)

        assert compute_root_from_path(proof.leaf, proof.index, proof.path) == proof.root


class TestTamperDetection:
    """Tests for tamper detection (invalid proofs fail)."""

    @pytest.fixture
    def proof(self):
        return build_merkle_proof(_leaves(4), 1, depth=4)

    def test_tampered_sibling_fails(self, proof):
        for level in range(proof.depth):
            path = list(proof.path)
            path[level] = bytes([path[level][0] ^ 0x01]) + path[level][1:]
            tampered = InclusionProof(proof.leaf, proof.index, tuple(path), proof.root)
            assert not verify_merkle_proof(tampered)

    def test_tampered_leaf_fails(self, proof):
        leaf = proof.leaf[:-1] + bytes([proof.leaf[-1] ^ 0xFF])
        assert not verify_merkle_proof(InclusionProof(leaf, proof.index, proof.path, proof.root))

    def test_tampered_root_fails(self, proof):
        root = bytes([proof.root[0] ^ 0x80]) + proof.root[1:]
        assert not verify_merkle_proof(InclusionProof(proof.leaf, proof.index, proof.path, root))

    def test_wrong_index_fails(self, proof):
        assert not verify_merkle_proof(InclusionProof(proof.leaf, 2, proof.path, proof.root))

    def test_index_beyond_path_width_fails(self, proof):
        index = proof.index + (1 << proof.depth)
        assert not verify_merkle_proof(InclusionProof(proof.leaf, index, proof.path, proof.root))

    def test_truncated_path_fails(self, proof):
        assert not verify_merkle_proof(
            InclusionProof(proof.leaf, proof.index, proof.path[:-1], proof.root)
        )

    def test_short_hash_fails(self, proof):
        path = (proof.path[0][:31],) + proof.path[1:]
        assert not verify_merkle_proof(InclusionProof(proof.leaf, proof.index, path, proof.root))


class TestInclusionProof:
    """Tests for the InclusionProof dataclass."""

    def test_immutable(self):
        proof = build_merkle_proof(_leaves(2), 0, depth=2)
        with pytest.raises(AttributeError):
            proof.index = 1

    def test_negative_index_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            InclusionProof(leaf=sha256(b"x"), index=-1)

    def test_path_list_becomes_tuple(self):
        proof = InclusionProof(leaf=sha256(b"x"), index=0, path=[sha256(b"y")])
        assert isinstance(proof.path, tuple)

    def test_dict_form_uses_hex(self):
        proof = build_merkle_proof(_leaves(3), 2, depth=3)
        data = proof.to_dict()

        assert data["leaf"].startswith("0x")
        assert len(data["path"]) == 3
        assert InclusionProof.from_dict(data) == proof


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
