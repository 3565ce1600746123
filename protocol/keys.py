"""Proving and verifying key derivation.

The fixed part of the circuit (five selectors and three sigma columns) is
interpolated into polynomials. The verifying key holds their commitments; the
proving key additionally keeps the polynomials and evaluations.
"""

import struct
from dataclasses import dataclass
from typing import Dict, List

from circuits import CircuitShape, get_circuit
from circuits.base import SELECTOR_NAMES
from primitives import polynomial as poly
from primitives.curve import (
    G1_POINT_SIZE,
    G1Point,
    G2_POINT_SIZE,
    G2Point,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
)
from primitives.field import FR, FR_MODULUS, get_omega
from primitives.transcript import keccak256
from protocol.errors import CapacityExceeded
from protocol.kzg import commit
from protocol.params import Parameters
from protocol.permutation import sigma_evals

SIGMA_NAMES = ("s_sigma1", "s_sigma2", "s_sigma3")
FIXED_NAMES = SELECTOR_NAMES + SIGMA_NAMES


@dataclass
class VerifyingKey:
    """Everything needed to check proofs for one circuit shape.

    Attributes:
        shape: Circuit the key was derived from
        commitments: [p(tau)]_1 for each name in FIXED_NAMES
        g2: [1]_2 of the parameters
        s_g2: [tau]_2 of the parameters
    """
    shape: CircuitShape
    commitments: Dict[str, G1Point]
    g2: G2Point
    s_g2: G2Point

    @property
    def k(self) -> int:
        return self.shape.k

    @property
    def n(self) -> int:
        return self.shape.n

    @property
    def num_instances(self) -> int:
        return self.shape.num_instances

    @property
    def omega(self) -> int:
        return int(get_omega(self.k))

    def to_bytes(self) -> bytes:
        name = self.shape.name.encode()
        out = bytearray(struct.pack("<H", len(name)) + name)
        out += self.shape.constant.to_bytes(32, "big")
        out += struct.pack("<II", self.k, self.num_instances)
        for key in FIXED_NAMES:
            out += encode_g1(self.commitments[key])
        out += encode_g2(self.g2)
        out += encode_g2(self.s_g2)
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> "VerifyingKey":
        """Parse a verifying key; the shape is rebuilt from the circuit registry.

        Raises:
            ValueError: on malformed bytes or an unknown circuit
        """
        try:
            (name_len,) = struct.unpack_from("<H", data, 0)
            offset = 2
            name = data[offset : offset + name_len].decode()
            offset += name_len
            constant = int.from_bytes(data[offset : offset + 32], "big")
            offset += 32
            k, num_instances = struct.unpack_from("<II", data, offset)
            offset += 8
        except (struct.error, UnicodeDecodeError) as e:
            raise ValueError(f"verifying key header malformed: {e}") from e

        expected = offset + len(FIXED_NAMES) * G1_POINT_SIZE + 2 * G2_POINT_SIZE
        if len(data) != expected:
            raise ValueError(f"verifying key must be {expected} bytes, got {len(data)}")
        commitments = {}
        for key in FIXED_NAMES:
            commitments[key] = decode_g1(data[offset : offset + G1_POINT_SIZE])
            offset += G1_POINT_SIZE
        g2 = decode_g2(data[offset : offset + G2_POINT_SIZE])
        s_g2 = decode_g2(data[offset + G2_POINT_SIZE :])

        try:
            shape = get_circuit(name, constant, k=k).shape()
        except KeyError as e:
            raise ValueError(f"verifying key names an unknown circuit: {e}") from e
        if shape.num_instances != num_instances:
            raise ValueError(
                f"circuit {name} has {shape.num_instances} instances, key says {num_instances}"
            )
        return cls(shape=shape, commitments=commitments, g2=g2, s_g2=s_g2)

    def transcript_repr(self) -> int:
        """Digest of the key, absorbed first so challenges are bound to it."""
        return int.from_bytes(keccak256(self.to_bytes()), "big") % FR_MODULUS


@dataclass
class ProvingKey:
    """Verifying key plus the fixed polynomials the prover needs.

    Attributes:
        vk: Matching verifying key
        params: Parameters downsized to the circuit's k
        fixed: Coefficients for each name in FIXED_NAMES
        sigmas: Sigma columns in evaluation form
        l0: Coefficients of the first Lagrange basis polynomial
    """
    vk: VerifyingKey
    params: Parameters
    fixed: Dict[str, FR]
    sigmas: List[FR]
    l0: FR


def _fixed_columns(shape: CircuitShape):
    sigmas = sigma_evals(shape)
    evals = dict(shape.selector_evals())
    for name, column in zip(SIGMA_NAMES, sigmas):
        evals[name] = column
    coeffs = {name: poly.to_coefficients(evals[name], shape.k) for name in FIXED_NAMES}
    return coeffs, sigmas


def _fit(params: Parameters, k: int) -> Parameters:
    if k > params.k:
        raise CapacityExceeded(k, params.k)
    return params.downsize(k)


def derive_verifying_key(params: Parameters, shape: CircuitShape) -> VerifyingKey:
    """Commit to the fixed columns of shape.

    Raises:
        CapacityExceeded: if shape needs more rows than params support
    """
    fitted = _fit(params, shape.k)
    coeffs, _ = _fixed_columns(shape)
    commitments = {name: commit(fitted, coeffs[name]) for name in FIXED_NAMES}
    return VerifyingKey(shape=shape, commitments=commitments, g2=params.g2, s_g2=params.s_g2)


def derive_proving_key(params: Parameters, vk: VerifyingKey) -> ProvingKey:
    """Rebuild the fixed polynomials for vk.

    Raises:
        CapacityExceeded: if vk's circuit needs more rows than params support
        ValueError: if vk was derived from different parameters
    """
    fitted = _fit(params, vk.k)
    if vk.g2 != params.g2 or vk.s_g2 != params.s_g2:
        raise ValueError("verifying key was derived from different parameters")
    coeffs, sigmas = _fixed_columns(vk.shape)
    return ProvingKey(
        vk=vk,
        params=fitted,
        fixed=coeffs,
        sigmas=sigmas,
        l0=poly.lagrange_basis(0, vk.k),
    )
