"""KZG setup parameters (structured reference string).

Binary layout:
    k            u32 little-endian
    tag          1 byte, FORMAT_TAG
    g1_powers    (2^k + EXTRA_POWERS) x 64 bytes, [tau^i]_1
    g2           128 bytes, [1]_2
    s_g2         128 bytes, [tau]_2
"""

import random
import secrets
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from primitives.curve import (
    G1_GENERATOR,
    G1_POINT_SIZE,
    G1Point,
    G2_GENERATOR,
    G2_POINT_SIZE,
    G2Point,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
    g1_mul,
    g2_in_subgroup,
    g2_mul,
)
from primitives.field import FR_MODULUS, MAX_K
from protocol.errors import MalformedParameters

FORMAT_TAG = 0x01
HEADER_SIZE = 5

# Blinded wire, accumulator and quotient polynomials exceed degree n - 1 by at
# most this many coefficients.
EXTRA_POWERS = 6


def params_size(k: int) -> int:
    return HEADER_SIZE + ((1 << k) + EXTRA_POWERS) * G1_POINT_SIZE + 2 * G2_POINT_SIZE


@dataclass(frozen=True)
class Parameters:
    """Immutable KZG parameters supporting circuits of up to 2^k rows."""
    k: int
    g1_powers: Tuple[G1Point, ...]
    g2: G2Point
    s_g2: G2Point

    @property
    def n(self) -> int:
        return 1 << self.k

    def to_bytes(self) -> bytes:
        out = bytearray(struct.pack("<IB", self.k, FORMAT_TAG))
        for point in self.g1_powers:
            out += encode_g1(point)
        out += encode_g2(self.g2)
        out += encode_g2(self.s_g2)
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Parameters":
        """Parse and validate parameter bytes.

        Raises:
            MalformedParameters: on short/long input, unknown tag, bad k or
                points that are not on the curve
        """
        if len(data) < HEADER_SIZE:
            raise MalformedParameters(f"parameters truncated: {len(data)} bytes, header needs {HEADER_SIZE}")
        k, tag = struct.unpack_from("<IB", data, 0)
        if tag != FORMAT_TAG:
            raise MalformedParameters(f"unknown parameter format tag {tag:#04x}")
        if not 1 <= k <= MAX_K:
            raise MalformedParameters(f"k={k} outside supported range [1, {MAX_K}]")
        expected = params_size(k)
        if len(data) != expected:
            raise MalformedParameters(f"parameters for k={k} must be {expected} bytes, got {len(data)}")

        offset = HEADER_SIZE
        powers = []
        try:
            for _ in range((1 << k) + EXTRA_POWERS):
                powers.append(decode_g1(data[offset : offset + G1_POINT_SIZE]))
                offset += G1_POINT_SIZE
            g2 = decode_g2(data[offset : offset + G2_POINT_SIZE])
            offset += G2_POINT_SIZE
            s_g2 = decode_g2(data[offset : offset + G2_POINT_SIZE])
        except ValueError as e:
            raise MalformedParameters(f"invalid point at offset {offset}: {e}") from e

        if powers[0] != G1_GENERATOR or g2 != G2_GENERATOR:
            raise MalformedParameters("parameters do not start from the standard generators")
        if not g2_in_subgroup(s_g2):
            raise MalformedParameters("[tau]_2 is not in the prime-order subgroup")
        return cls(k=k, g1_powers=tuple(powers), g2=g2, s_g2=s_g2)

    def downsize(self, k: int) -> "Parameters":
        """Parameters for a smaller capacity, sharing the same tau."""
        if k > self.k:
            raise ValueError(f"cannot downsize k={self.k} parameters to k={k}")
        if k == self.k:
            return self
        return Parameters(
            k=k,
            g1_powers=self.g1_powers[: (1 << k) + EXTRA_POWERS],
            g2=self.g2,
            s_g2=self.s_g2,
        )


def generate(k: int, rng: Optional[random.Random] = None) -> Parameters:
    """Run a local (insecure, single-party) setup for capacity 2^k.

    tau exists only inside this call.
    """
    if not 1 <= k <= MAX_K:
        raise ValueError(f"k must be in [1, {MAX_K}], got {k}")
    rng = rng or secrets.SystemRandom()
    tau = rng.randrange(1, FR_MODULUS)

    powers = []
    acc = 1
    for _ in range((1 << k) + EXTRA_POWERS):
        powers.append(g1_mul(G1_GENERATOR, acc))
        acc = acc * tau % FR_MODULUS
    s_g2 = g2_mul(G2_GENERATOR, tau)
    del tau, acc

    return Parameters(k=k, g1_powers=tuple(powers), g2=G2_GENERATOR, s_g2=s_g2)


def serialize(params: Parameters) -> bytes:
    return params.to_bytes()


def deserialize(data: bytes) -> Parameters:
    return Parameters.from_bytes(data)
