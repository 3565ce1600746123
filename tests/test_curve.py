"""Tests for BN254 group helpers and encodings."""

import pytest

from primitives.curve import (
    G1_GENERATOR,
    G1_INFINITY,
    G2_GENERATOR,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
    g1_add,
    g1_is_on_curve,
    g1_msm,
    g1_mul,
    g1_neg,
    g2_in_subgroup,
    g2_mul,
    pairing_check,
)
from primitives.field import FQ_MODULUS, FR_MODULUS


class TestG1:
    """G1 arithmetic over affine tuples."""

    def test_generator(self) -> None:
        """The generator is (1, 2)."""
        assert G1_GENERATOR == (1, 2)

    def test_add_matches_mul(self) -> None:
        """Doubling by addition matches scalar multiplication."""
        assert g1_add(G1_GENERATOR, G1_GENERATOR) == g1_mul(G1_GENERATOR, 2)

    def test_neg_cancels(self) -> None:
        """A point plus its negation is infinity."""
        p = g1_mul(G1_GENERATOR, 12345)
        assert g1_add(p, g1_neg(p)) == G1_INFINITY

    def test_mul_by_order(self) -> None:
        """Multiplying by the group order gives infinity."""
        assert g1_mul(G1_GENERATOR, FR_MODULUS) == G1_INFINITY

    def test_msm(self) -> None:
        """Multi-scalar multiplication sums the scaled points."""
        points = [G1_GENERATOR, g1_mul(G1_GENERATOR, 3)]
        assert g1_msm(points, [2, 5]) == g1_mul(G1_GENERATOR, 17)

    def test_on_curve(self) -> None:
        """Curve membership rejects bad and non-canonical coordinates."""
        assert g1_is_on_curve(G1_GENERATOR)
        assert g1_is_on_curve(G1_INFINITY)
        assert not g1_is_on_curve((1, 3))
        assert not g1_is_on_curve((1, 2 + FQ_MODULUS))


class TestEncoding:
    """64/128-byte big-endian encodings."""

    def test_g1_round_trip(self) -> None:
        """G1 points survive encoding."""
        p = g1_mul(G1_GENERATOR, 987654321)
        data = encode_g1(p)
        assert len(data) == 64
        assert decode_g1(data) == p

    def test_g1_infinity(self) -> None:
        """All-zero bytes decode to infinity."""
        assert decode_g1(b"\x00" * 64) == G1_INFINITY

    def test_g1_off_curve_rejected(self) -> None:
        """Off-curve coordinates are rejected."""
        with pytest.raises(ValueError):
            decode_g1((1).to_bytes(32, "big") + (3).to_bytes(32, "big"))

    def test_g1_wrong_length(self) -> None:
        """Inputs that are not 64 bytes are rejected."""
        with pytest.raises(ValueError):
            decode_g1(b"\x00" * 63)

    def test_g2_round_trip(self) -> None:
        """G2 points survive encoding."""
        data = encode_g2(G2_GENERATOR)
        assert len(data) == 128
        assert decode_g2(data) == G2_GENERATOR

    def test_g2_word_order(self) -> None:
        """G2 coordinates put the imaginary part first."""
        (x0, x1), _ = G2_GENERATOR
        data = encode_g2(G2_GENERATOR)
        assert int.from_bytes(data[:32], "big") == x1
        assert int.from_bytes(data[32:64], "big") == x0


class TestPairing:
    """Bilinearity through pairing_check."""

    def test_bilinear(self) -> None:
        """Matching scalars cancel in the pairing product."""
        # e(3G, 5H) * e(-15G, H) == 1
        lhs = g1_mul(G1_GENERATOR, 3)
        rhs = g1_neg(g1_mul(G1_GENERATOR, 15))
        assert pairing_check([(lhs, g2_mul(G2_GENERATOR, 5)), (rhs, G2_GENERATOR)])

    def test_mismatch(self) -> None:
        """Mismatched scalars do not cancel."""
        lhs = g1_mul(G1_GENERATOR, 3)
        rhs = g1_neg(g1_mul(G1_GENERATOR, 14))
        assert not pairing_check([(lhs, g2_mul(G2_GENERATOR, 5)), (rhs, G2_GENERATOR)])

    def test_subgroup(self) -> None:
        """The G2 generator is in the prime-order subgroup."""
        assert g2_in_subgroup(G2_GENERATOR)
