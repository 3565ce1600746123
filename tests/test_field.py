"""Tests for the BN254 scalar field helpers."""

import pytest

from primitives.field import FR, FR_MODULUS, batch_inverse, domain, fr, fr_array, get_omega


class TestFieldConstruction:
    """FR construction and reduction."""

    def test_fr_reduces_negative(self) -> None:
        """Negative integers reduce into the field."""
        assert fr(-1) == FR(FR_MODULUS - 1)

    def test_fr_reduces_large(self) -> None:
        """Integers at or above the modulus reduce into the field."""
        assert fr(FR_MODULUS + 5) == FR(5)

    def test_fr_array(self) -> None:
        """Array construction reduces every element."""
        arr = fr_array([1, -1, FR_MODULUS])
        assert [int(x) for x in arr] == [1, FR_MODULUS - 1, 0]


class TestRootsOfUnity:
    """ω_n = 7^((r-1)/n) is a primitive n-th root."""

    @pytest.mark.parametrize("k", [1, 2, 3, 4, 8])
    def test_omega_order(self, k: int) -> None:
        """Omega has order exactly 2^k."""
        n = 1 << k
        omega = get_omega(k)
        assert omega ** n == FR(1)
        assert omega ** (n // 2) == FR(FR_MODULUS - 1)

    def test_omega_k0(self) -> None:
        """The trivial domain has root 1."""
        assert get_omega(0) == FR(1)

    def test_omega_out_of_range(self) -> None:
        """k beyond the two-adicity is rejected."""
        with pytest.raises(ValueError):
            get_omega(29)

    def test_domain_distinct(self) -> None:
        """Domain points are distinct powers of omega."""
        points = domain(3)
        assert len(set(int(p) for p in points)) == 8
        assert points[1] == get_omega(3)


class TestBatchInverse:
    """Montgomery batch inversion."""

    def test_single_element(self) -> None:
        """Single element is inverted correctly."""
        vals = FR([12345])
        assert batch_inverse(vals)[0] * vals[0] == FR(1)

    def test_many_elements(self) -> None:
        """Many elements are inverted correctly."""
        vals = fr_array([2, 3, 5, 7, FR_MODULUS - 1])
        inv = batch_inverse(vals)
        for v, r in zip(vals, inv):
            assert v * r == FR(1)
