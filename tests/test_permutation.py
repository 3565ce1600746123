"""Tests for copy-constraint cycles and the grand product."""

import pytest

from circuits import SimpleCircuit
from circuits.base import COLUMNS
from primitives.field import FR, domain
from protocol.permutation import SHIFTS, grand_product, sigma_evals


def _labels(shape):
    points = domain(shape.k)
    return [FR(shift) * points for shift in SHIFTS]


class TestSigma:
    """Sigma columns encode a permutation of the cell labels."""

    def test_is_permutation(self, shape) -> None:
        """Sigma values are a permutation of the labels."""
        labels = _labels(shape)
        sigmas = sigma_evals(shape)
        identity = sorted(int(x) for column in labels for x in column)
        permuted = sorted(int(x) for column in sigmas for x in column)
        assert identity == permuted
        assert len(set(identity)) == 3 * shape.n

    def test_untouched_cells_are_fixed_points(self, shape) -> None:
        """Cells outside any copy map to themselves."""
        labels = _labels(shape)
        sigmas = sigma_evals(shape)
        # row 7 is padding and appears in no copy
        for j in range(3):
            assert sigmas[j][7] == labels[j][7]

    def test_copies_move_cells(self, shape) -> None:
        """Copied cells move to their partner's label."""
        labels = _labels(shape)
        sigmas = sigma_evals(shape)
        # a[0] is tied to c[4], so its label moves
        assert sigmas[0][0] != labels[0][0]


class TestGrandProduct:
    """Accumulator closes iff copies hold."""

    def test_closes(self, shape) -> None:
        """The accumulator starts at one for a valid assignment."""
        _, assignment = SimpleCircuit(7).assign({"a": 3, "b": 5})
        wires = [assignment.wires[col] for col in COLUMNS]
        z = grand_product(wires, sigma_evals(shape), FR(11), FR(13), shape.k)
        assert z[0] == FR(1)
        assert len(z) == shape.n

    def test_violated_copy(self, shape) -> None:
        """A broken copy leaves the product unclosed."""
        _, assignment = SimpleCircuit(7).assign({"a": 3, "b": 5})
        wires = [assignment.wires[col].copy() for col in COLUMNS]
        wires[1][1] = FR(4)
        with pytest.raises(ValueError, match="does not close"):
            grand_product(wires, sigma_evals(shape), FR(11), FR(13), shape.k)
