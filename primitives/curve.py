"""BN254 (alt_bn128) group operations.

Thin layer over py_ecc.optimized_bn128. Points cross module boundaries as
affine integer tuples so they hash, compare and serialise trivially:

    G1Point = (x, y)                    with (0, 0) the point at infinity
    G2Point = ((x_c0, x_c1), (y_c0, y_c1))  with all zeros at infinity

Byte encodings follow the EVM precompile layout: 32-byte big-endian words,
G2 coordinates ordered c1 before c0.
"""

from typing import List, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    G1,
    G2,
    add,
    b,
    b2,
    curve_order,
    field_modulus,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

from primitives.field import FQ_MODULUS, FR_MODULUS

assert field_modulus == FQ_MODULUS
assert curve_order == FR_MODULUS

# --- Type Aliases ---

G1Point = Tuple[int, int]
G2Point = Tuple[Tuple[int, int], Tuple[int, int]]

G1_INFINITY: G1Point = (0, 0)
G2_INFINITY: G2Point = ((0, 0), (0, 0))

G1_POINT_SIZE = 64
G2_POINT_SIZE = 128
WORD_SIZE = 32


# --- Conversions ---

def _to_int(c) -> int:
    return c if isinstance(c, int) else c.n


def _is_zero(element) -> bool:
    coeffs = getattr(element, "coeffs", None)
    if coeffs is None:
        return _to_int(element) == 0
    return all(_to_int(c) == 0 for c in coeffs)


def _g1_projective(point: G1Point):
    if point == G1_INFINITY:
        return (FQ(1), FQ(1), FQ(0))
    return (FQ(point[0]), FQ(point[1]), FQ(1))


def _g1_affine(point) -> G1Point:
    if _is_zero(point[2]):
        return G1_INFINITY
    x, y = normalize(point)
    return (_to_int(x), _to_int(y))


def _g2_projective(point: G2Point):
    if point == G2_INFINITY:
        return (FQ2([1, 0]), FQ2([1, 0]), FQ2([0, 0]))
    (x0, x1), (y0, y1) = point
    return (FQ2([x0, x1]), FQ2([y0, y1]), FQ2([1, 0]))


def _g2_affine(point) -> G2Point:
    if _is_zero(point[2]):
        return G2_INFINITY
    x, y = normalize(point)
    return (
        (_to_int(x.coeffs[0]), _to_int(x.coeffs[1])),
        (_to_int(y.coeffs[0]), _to_int(y.coeffs[1])),
    )


G1_GENERATOR: G1Point = _g1_affine(G1)
G2_GENERATOR: G2Point = _g2_affine(G2)


# --- G1 arithmetic ---

def g1_add(p: G1Point, q: G1Point) -> G1Point:
    return _g1_affine(add(_g1_projective(p), _g1_projective(q)))


def g1_neg(p: G1Point) -> G1Point:
    if p == G1_INFINITY:
        return p
    return (p[0], (FQ_MODULUS - p[1]) % FQ_MODULUS)


def g1_mul(p: G1Point, scalar: int) -> G1Point:
    scalar = int(scalar) % FR_MODULUS
    if scalar == 0 or p == G1_INFINITY:
        return G1_INFINITY
    return _g1_affine(multiply(_g1_projective(p), scalar))


def g1_msm(points: Sequence[G1Point], scalars: Sequence[int]) -> G1Point:
    """Multi-scalar multiplication sum(scalars[i] * points[i])."""
    if len(points) < len(scalars):
        raise ValueError(f"msm needs {len(scalars)} points, got {len(points)}")
    acc = _g1_projective(G1_INFINITY)
    for point, scalar in zip(points, scalars):
        scalar = int(scalar) % FR_MODULUS
        if scalar == 0 or point == G1_INFINITY:
            continue
        acc = add(acc, multiply(_g1_projective(point), scalar))
    return _g1_affine(acc)


def g1_is_on_curve(p: G1Point) -> bool:
    x, y = p
    if not (0 <= x < FQ_MODULUS and 0 <= y < FQ_MODULUS):
        return False
    if p == G1_INFINITY:
        return True
    return is_on_curve(_g1_projective(p), b)


# --- G2 arithmetic ---

def g2_mul(p: G2Point, scalar: int) -> G2Point:
    scalar = int(scalar) % FR_MODULUS
    if scalar == 0 or p == G2_INFINITY:
        return G2_INFINITY
    return _g2_affine(multiply(_g2_projective(p), scalar))


def g2_is_on_curve(p: G2Point) -> bool:
    coords = [c for pair in p for c in pair]
    if not all(0 <= c < FQ_MODULUS for c in coords):
        return False
    if p == G2_INFINITY:
        return True
    return is_on_curve(_g2_projective(p), b2)


def g2_in_subgroup(p: G2Point) -> bool:
    """G2 has a cofactor, so on-curve points must also be checked for order r."""
    if p == G2_INFINITY:
        return True
    return _is_zero(multiply(_g2_projective(p), FR_MODULUS)[2])


# --- Pairing ---

def pairing_check(pairs: List[Tuple[G1Point, G2Point]]) -> bool:
    """Return True iff prod e(P_i, Q_i) == 1."""
    acc = FQ12.one()
    for p, q in pairs:
        if p == G1_INFINITY or q == G2_INFINITY:
            continue
        acc = acc * pairing(_g2_projective(q), _g1_projective(p))
    return acc == FQ12.one()


# --- Encoding ---

def encode_g1(p: G1Point) -> bytes:
    return p[0].to_bytes(WORD_SIZE, "big") + p[1].to_bytes(WORD_SIZE, "big")


def decode_g1(data: bytes) -> G1Point:
    """Decode a 64-byte G1 point. Raises ValueError on bad length or off-curve points."""
    if len(data) != G1_POINT_SIZE:
        raise ValueError(f"G1 point must be {G1_POINT_SIZE} bytes, got {len(data)}")
    point = (int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big"))
    if not g1_is_on_curve(point):
        raise ValueError(f"G1 point not on curve: {data.hex()}")
    return point


def encode_g2(p: G2Point) -> bytes:
    (x0, x1), (y0, y1) = p
    return b"".join(c.to_bytes(WORD_SIZE, "big") for c in (x1, x0, y1, y0))


def decode_g2(data: bytes) -> G2Point:
    """Decode a 128-byte G2 point (c1 before c0). Raises ValueError if invalid."""
    if len(data) != G2_POINT_SIZE:
        raise ValueError(f"G2 point must be {G2_POINT_SIZE} bytes, got {len(data)}")
    x1, x0, y1, y0 = (int.from_bytes(data[i : i + 32], "big") for i in range(0, 128, 32))
    point = ((x0, x1), (y0, y1))
    if not g2_is_on_curve(point):
        raise ValueError(f"G2 point not on curve: {data.hex()}")
    return point
