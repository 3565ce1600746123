"""BN254 scalar field Fr and curve constants.

Uses galois library for all field arithmetic. FR is the field type.

The primitive element is supplied explicitly: letting galois search for one
would factor r - 1, which takes minutes for a 254-bit prime.
"""

import galois
from typing import List

# --- Field Construction ---

FR_MODULUS = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001
"""Order r of the BN254 G1/G2 groups, the scalar field prime."""

FQ_MODULUS = 0x30644E72E131A029B85045B68181585D97816A916871CA8D3C208C16D87CFD47
"""BN254 base field prime q (curve coordinates)."""

MULTIPLICATIVE_GENERATOR = 7

FR = galois.GF(FR_MODULUS, primitive_element=MULTIPLICATIVE_GENERATOR, verify=False)
"""Scalar field GF(r)."""

TWO_ADICITY = 28  # r - 1 = 2^28 * odd

MAX_K = TWO_ADICITY


def fr(value: int) -> FR:
    """Construct an FR scalar from any Python int (reduced mod r)."""
    return FR(int(value) % FR_MODULUS)


def fr_array(values: List[int]) -> FR:
    """Construct an FR array from Python ints (each reduced mod r)."""
    return FR([int(v) % FR_MODULUS for v in values])


# --- Roots of Unity ---

def get_omega(k: int) -> FR:
    """Return primitive 2^k-th root of unity 7^((r-1)/2^k)."""
    if not 0 <= k <= TWO_ADICITY:
        raise ValueError(f"k must be in [0, {TWO_ADICITY}], got {k}")
    n = 1 << k
    omega = FR(MULTIPLICATIVE_GENERATOR) ** ((FR_MODULUS - 1) // n)
    if k > 0:
        assert omega ** (n // 2) != FR(1), f"omega is not a primitive {n}-th root"
    return omega


def domain(k: int) -> FR:
    """Evaluation domain [1, ω, ω², ..., ω^(n-1)] for n = 2^k."""
    n = 1 << k
    omega = get_omega(k)
    points = FR.Zeros(n)
    acc = FR(1)
    for i in range(n):
        points[i] = acc
        acc = acc * omega
    return points


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for any galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.

    Args:
        values: Galois FieldArray to invert (must all be non-zero)

    Returns:
        Galois FieldArray where result[i] = values[i]^(-1)

    Raises:
        ZeroDivisionError: If any element is zero
    """
    n = len(values)
    if n == 0:
        return values
    if n == 1:
        return values ** -1

    field_type = type(values)

    # Forward pass: compute prefix products
    cumprods = field_type.Zeros(n)
    cumprods[0] = values[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * values[i]

    inv_total = cumprods[n - 1] ** -1

    # Backward pass: extract individual inverses
    results = field_type.Zeros(n)
    z = inv_total
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results
