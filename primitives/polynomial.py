"""Dense polynomial operations over FR.

Polynomials are FR arrays of coefficients in ascending order [c0, c1, ...].
Arithmetic goes through galois.Poly, which stores coefficients in descending
order, so every crossing reverses the array.

Domains are tiny (circuit capacity 2^k rows for small k). Interpolation
evaluates at the inverse roots directly instead of calling galois.intt, whose
released API picks its own root of unity.
"""

from typing import List

import galois
import numpy as np

from primitives.field import FR, domain


def _to_poly(coeffs: FR) -> galois.Poly:
    return galois.Poly(coeffs[::-1], field=FR)


def _from_poly(p: galois.Poly) -> FR:
    return p.coeffs[::-1].copy()


def zeros(length: int) -> FR:
    return FR.Zeros(length)


def trim(poly: FR) -> FR:
    """Drop trailing zero coefficients (keeps at least one)."""
    end = len(poly)
    while end > 1 and poly[end - 1] == 0:
        end -= 1
    return poly[:end]


def degree(poly: FR) -> int:
    """Degree of poly; the zero polynomial reports -1."""
    p = _to_poly(poly)
    if p.degree == 0 and p.coeffs[0] == 0:
        return -1
    return p.degree


def add(p: FR, q: FR) -> FR:
    return _from_poly(_to_poly(p) + _to_poly(q))


def sub(p: FR, q: FR) -> FR:
    return _from_poly(_to_poly(p) - _to_poly(q))


def scale(p: FR, s: FR) -> FR:
    return p * s


def mul(p: FR, q: FR) -> FR:
    return _from_poly(_to_poly(p) * _to_poly(q))


def evaluate(poly: FR, x: FR) -> FR:
    return _to_poly(poly)(x)


def shift_argument(poly: FR, factor: FR) -> FR:
    """Coefficients of p(factor * X)."""
    out = poly.copy()
    acc = FR(1)
    for i in range(len(poly)):
        out[i] = poly[i] * acc
        acc = acc * factor
    return out


# --- Domain transforms ---

def to_coefficients(evaluations: FR, k: int) -> FR:
    """Interpolate evaluations over the 2^k domain into coefficients.

    coeffs[i] = n^-1 * sum_j evals[j] * ω^(-ij), i.e. the evaluation vector read
    as a polynomial and evaluated at ω^-i = ω^(n-i).
    """
    n = 1 << k
    if len(evaluations) != n:
        raise ValueError(f"expected {n} evaluations, got {len(evaluations)}")
    inverse_points = domain(k)[(-np.arange(n)) % n]
    return _to_poly(evaluations)(inverse_points) * FR(n) ** -1


def to_evaluations(coefficients: FR, k: int) -> FR:
    """Evaluate coefficients over the 2^k domain."""
    return _to_poly(coefficients)(domain(k))


# --- Vanishing polynomial ---

def _vanishing_poly(n: int) -> galois.Poly:
    return galois.Poly.Degrees([n, 0], coeffs=[1, FR.order - 1], field=FR)


def vanishing(n: int) -> FR:
    """Z_H(X) = X^n - 1."""
    return _from_poly(_vanishing_poly(n))


def divide_by_vanishing(poly: FR, n: int) -> tuple[FR, FR]:
    """Divide by X^n - 1, returning (quotient, remainder)."""
    quotient, remainder = divmod(_to_poly(poly), _vanishing_poly(n))
    return _from_poly(quotient), _from_poly(remainder)


def divide_by_linear(poly: FR, z: FR) -> tuple[FR, FR]:
    """Divide by (X - z), returning (quotient, remainder). The remainder is poly(z)."""
    quotient, remainder = divmod(_to_poly(poly), galois.Poly([1, int(-z)], field=FR))
    return _from_poly(quotient), remainder.coeffs[-1]


def blind(poly: FR, blinders: List[FR], n: int) -> FR:
    """poly + (b0 + b1 X + ...) * Z_H(X). Leaves evaluations on the domain unchanged."""
    mask = galois.Poly(FR([int(b) for b in blinders])[::-1], field=FR)
    return _from_poly(_to_poly(poly) + mask * _vanishing_poly(n))


def split(poly: FR, n: int, parts: int) -> List[FR]:
    """Split into `parts` chunks of n coefficients; the last takes the remainder."""
    chunks = []
    for i in range(parts):
        lo = i * n
        hi = len(poly) if i == parts - 1 else (i + 1) * n
        chunk = poly[lo:hi].copy() if lo < len(poly) else zeros(1)
        if len(chunk) == 0:
            chunk = zeros(1)
        chunks.append(chunk)
    return chunks


def lagrange_basis(i: int, k: int) -> FR:
    """Coefficients of L_i over the 2^k domain."""
    evals = zeros(1 << k)
    evals[i] = FR(1)
    return to_coefficients(evals, k)
