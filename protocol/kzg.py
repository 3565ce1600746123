"""KZG commitments over the parameter powers."""

from primitives import polynomial as poly
from primitives.curve import G1Point, g1_msm
from primitives.field import FR
from protocol.params import Parameters


def commit(params: Parameters, coeffs: FR) -> G1Point:
    """[p(tau)]_1 = sum c_i [tau^i]_1."""
    coeffs = poly.trim(coeffs)
    if len(coeffs) > len(params.g1_powers):
        raise ValueError(
            f"polynomial of degree {len(coeffs) - 1} exceeds parameter size {len(params.g1_powers)}"
        )
    return g1_msm(params.g1_powers, [int(c) for c in coeffs])


def opening_quotient(coeffs: FR, point: FR) -> FR:
    """(p(X) - p(z)) / (X - z). The remainder of the division is p(z)."""
    quotient, _ = poly.divide_by_linear(coeffs, point)
    return quotient
