"""Precompiled contracts used by the verifier: modexp and the BN254 trio.

Each precompile takes the call input and returns (gas cost, output). An output
of None means the call fails; the caller still pays the gas it forwarded.
"""

from typing import Callable, Dict, Optional, Tuple

from primitives.curve import (
    G1_INFINITY,
    G2_INFINITY,
    g1_add,
    g1_is_on_curve,
    g1_mul,
    g2_in_subgroup,
    g2_is_on_curve,
    pairing_check,
)

MODEXP = 0x05
EC_ADD = 0x06
EC_MUL = 0x07
EC_PAIRING = 0x08

# EIP-1108 prices
EC_ADD_GAS = 150
EC_MUL_GAS = 6000
PAIRING_BASE_GAS = 45000
PAIRING_PER_PAIR_GAS = 34000
MODEXP_MIN_GAS = 200

PAIRING_INPUT_SIZE = 192

PrecompileResult = Tuple[int, Optional[bytes]]


def _words(data: bytes, count: int) -> list:
    data = data[: 32 * count].ljust(32 * count, b"\x00")
    return [int.from_bytes(data[i : i + 32], "big") for i in range(0, 32 * count, 32)]


def _encode(point) -> bytes:
    return point[0].to_bytes(32, "big") + point[1].to_bytes(32, "big")


def _read(data: bytes, offset: int, size: int) -> int:
    return int.from_bytes(data[offset : offset + size].ljust(size, b"\x00"), "big")


def modexp_gas(base_size: int, exp_size: int, mod_size: int, exp_head: int) -> int:
    """EIP-2565 cost. exp_head is the first min(32, exp_size) bytes of the exponent."""
    words = (max(base_size, mod_size) + 7) // 8
    complexity = words * words
    if exp_size <= 32:
        iterations = exp_head.bit_length() - 1 if exp_head else 0
    else:
        iterations = 8 * (exp_size - 32) + max(exp_head.bit_length() - 1, 0)
    iterations = max(iterations, 1)
    return max(MODEXP_MIN_GAS, complexity * iterations // 3)


def modexp(data: bytes) -> PrecompileResult:
    base_size, exp_size, mod_size = _words(data, 3)
    if max(base_size, exp_size, mod_size) > 1 << 16:
        return (1 << 64, None)
    body = data[96:]
    exp_head = _read(body, base_size, min(exp_size, 32))
    gas = modexp_gas(base_size, exp_size, mod_size, exp_head)
    base = _read(body, 0, base_size)
    exponent = _read(body, base_size, exp_size)
    modulus = _read(body, base_size + exp_size, mod_size)
    result = 0 if modulus == 0 else pow(base, exponent, modulus)
    return gas, result.to_bytes(mod_size, "big") if mod_size else b""


def ec_add(data: bytes) -> PrecompileResult:
    x1, y1, x2, y2 = _words(data, 4)
    p, q = (x1, y1), (x2, y2)
    if not (g1_is_on_curve(p) and g1_is_on_curve(q)):
        return EC_ADD_GAS, None
    return EC_ADD_GAS, _encode(g1_add(p, q))


def ec_mul(data: bytes) -> PrecompileResult:
    x, y, scalar = _words(data, 3)
    p = (x, y)
    if not g1_is_on_curve(p):
        return EC_MUL_GAS, None
    return EC_MUL_GAS, _encode(g1_mul(p, scalar))


def ec_pairing(data: bytes) -> PrecompileResult:
    if len(data) % PAIRING_INPUT_SIZE:
        return PAIRING_BASE_GAS, None
    count = len(data) // PAIRING_INPUT_SIZE
    gas = PAIRING_BASE_GAS + PAIRING_PER_PAIR_GAS * count
    pairs = []
    for i in range(count):
        x, y, x1, x0, y1, y0 = _words(data[i * PAIRING_INPUT_SIZE :], 6)
        p = (x, y)
        q = ((x0, x1), (y0, y1))
        if not g1_is_on_curve(p) or not g2_is_on_curve(q) or not g2_in_subgroup(q):
            return gas, None
        if p != G1_INFINITY and q != G2_INFINITY:
            pairs.append((p, q))
    result = 1 if pairing_check(pairs) else 0
    return gas, result.to_bytes(32, "big")


PRECOMPILES: Dict[int, Callable[[bytes], PrecompileResult]] = {
    MODEXP: modexp,
    EC_ADD: ec_add,
    EC_MUL: ec_mul,
    EC_PAIRING: ec_pairing,
}
