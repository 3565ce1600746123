"""Tests for proving and verifying key derivation."""

import random

import pytest

from circuits import SimpleCircuit
from protocol.errors import CapacityExceeded
from protocol.keys import FIXED_NAMES, VerifyingKey, derive_proving_key, derive_verifying_key
from protocol.params import generate


class TestVerifyingKey:
    """Commitments to the fixed columns."""

    def test_all_columns_committed(self, vk) -> None:
        """Every fixed column has a commitment."""
        assert set(vk.commitments) == set(FIXED_NAMES)
        assert vk.k == 3
        assert vk.num_instances == 1

    def test_deterministic(self, params, shape, vk) -> None:
        """Derivation is deterministic."""
        again = derive_verifying_key(params, shape)
        assert again.commitments == vk.commitments
        assert again.to_bytes() == vk.to_bytes()
        assert again.transcript_repr() == vk.transcript_repr()

    def test_constant_changes_scale_selector(self, params, vk) -> None:
        """Only the scale selector depends on the constant."""
        other = derive_verifying_key(params, SimpleCircuit(8).shape())
        assert other.commitments["q_l"] != vk.commitments["q_l"]
        # the remaining columns do not depend on the constant
        assert other.commitments["q_m"] == vk.commitments["q_m"]
        assert other.commitments["s_sigma1"] == vk.commitments["s_sigma1"]
        assert other.transcript_repr() != vk.transcript_repr()

    def test_capacity_exceeded(self, params) -> None:
        """A circuit larger than the parameters is rejected."""
        with pytest.raises(CapacityExceeded) as info:
            derive_verifying_key(params, SimpleCircuit(7, k=5).shape())
        assert info.value.required_k == 5
        assert info.value.available_k == 4

    def test_bytes_round_trip(self, vk) -> None:
        """Verifying keys survive serialization."""
        restored = VerifyingKey.from_bytes(vk.to_bytes())
        assert restored.commitments == vk.commitments
        assert restored.shape == vk.shape
        assert restored.s_g2 == vk.s_g2

    def test_truncated_bytes(self, vk) -> None:
        """Truncated key bytes are rejected."""
        with pytest.raises(ValueError):
            VerifyingKey.from_bytes(vk.to_bytes()[:-1])

    def test_unknown_circuit(self, vk) -> None:
        """An unknown circuit name is rejected as malformed input."""
        data = bytearray(vk.to_bytes())
        data[2:8] = b"absent"
        with pytest.raises(ValueError, match="unknown circuit"):
            VerifyingKey.from_bytes(bytes(data))


class TestProvingKey:
    """Fixed polynomials kept for proving."""

    def test_matches_vk(self, pk, vk) -> None:
        """The proving key wraps its verifying key."""
        assert pk.vk is vk
        assert pk.params.k == vk.k
        assert set(pk.fixed) == set(FIXED_NAMES)
        assert len(pk.sigmas) == 3

    def test_foreign_parameters(self, vk) -> None:
        """Parameters from another setup are rejected."""
        other = generate(4, rng=random.Random(1))
        with pytest.raises(ValueError, match="different parameters"):
            derive_proving_key(other, vk)

    def test_capacity_exceeded(self, shape) -> None:
        """Parameters smaller than the circuit are rejected."""
        small = generate(2, rng=random.Random(3))
        with pytest.raises(CapacityExceeded):
            derive_verifying_key(small, shape)
