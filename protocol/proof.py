"""PLONK proof layout, calldata encoding and the JSON proof artifact.

Proof bytes are exactly the transcript writes of the prover, in order:

    [a] [b] [c]                      3 x 64   round 1
    [z]                              1 x 64   round 2
    [t_lo] [t_mid] [t_hi]            3 x 64   round 3
    a b c s1 s2 z_omega r            7 x 32   round 4 evaluations
    [W_zeta] [W_zeta_omega]          2 x 64   round 5 openings
"""

import json
from dataclasses import dataclass
from typing import List

from primitives.curve import G1_POINT_SIZE, G1Point, WORD_SIZE, encode_g1
from primitives.field import FR_MODULUS
from primitives.transcript import TranscriptReader
from protocol.errors import MalformedProof

# --- Layout ---

ROUND1_POINTS = ("a", "b", "c")
ROUND2_POINTS = ("z",)
ROUND3_POINTS = ("t_lo", "t_mid", "t_hi")
EVALUATIONS = ("a_eval", "b_eval", "c_eval", "s1_eval", "s2_eval", "z_omega_eval", "r_eval")
OPENING_POINTS = ("w_zeta", "w_zeta_omega")

POINT_FIELDS = ROUND1_POINTS + ROUND2_POINTS + ROUND3_POINTS
PROOF_SIZE = (len(POINT_FIELDS) + len(OPENING_POINTS)) * G1_POINT_SIZE + len(EVALUATIONS) * WORD_SIZE


@dataclass
class Proof:
    """Structured view of proof bytes."""
    a: G1Point
    b: G1Point
    c: G1Point
    z: G1Point
    t_lo: G1Point
    t_mid: G1Point
    t_hi: G1Point
    a_eval: int
    b_eval: int
    c_eval: int
    s1_eval: int
    s2_eval: int
    z_omega_eval: int
    r_eval: int
    w_zeta: G1Point
    w_zeta_omega: G1Point

    def to_bytes(self) -> bytes:
        out = bytearray()
        for name in POINT_FIELDS:
            out += encode_g1(getattr(self, name))
        for name in EVALUATIONS:
            out += getattr(self, name).to_bytes(WORD_SIZE, "big")
        for name in OPENING_POINTS:
            out += encode_g1(getattr(self, name))
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Proof":
        """Parse proof bytes.

        Raises:
            MalformedProof: on wrong length, off-curve points, coordinates
                outside the base field or scalars >= r
        """
        if len(data) != PROOF_SIZE:
            raise MalformedProof(f"proof must be {PROOF_SIZE} bytes, got {len(data)}")
        reader = TranscriptReader(data)
        fields = {}
        try:
            for name in POINT_FIELDS:
                fields[name] = reader.read_point()
            for name in EVALUATIONS:
                fields[name] = reader.read_scalar()
            for name in OPENING_POINTS:
                fields[name] = reader.read_point()
        except ValueError as e:
            raise MalformedProof(str(e)) from e
        return cls(**fields)


# --- Calldata ---

def encode_calldata(instances: List[int], proof: bytes) -> bytes:
    """Public inputs as 32-byte big-endian words followed by the raw proof."""
    out = bytearray()
    for x in instances:
        x = int(x)
        if not 0 <= x < FR_MODULUS:
            raise ValueError(f"public input out of field range: {x}")
        out += x.to_bytes(WORD_SIZE, "big")
    return bytes(out) + bytes(proof)


def decode_calldata(calldata: bytes, num_instances: int) -> tuple[List[int], bytes]:
    """Inverse of encode_calldata."""
    head = num_instances * WORD_SIZE
    if len(calldata) < head:
        raise MalformedProof(f"calldata too short for {num_instances} public inputs")
    instances = [
        int.from_bytes(calldata[i : i + WORD_SIZE], "big") for i in range(0, head, WORD_SIZE)
    ]
    return instances, calldata[head:]


# --- JSON artifact ---

def proof_to_json(proof: bytes, calldata: bytes) -> str:
    return json.dumps({"proof": "0x" + proof.hex(), "calldata": "0x" + calldata.hex()}, indent=4)


def parse_hex(value: str) -> bytes:
    """Decode hex with or without a 0x prefix.

    Raises:
        MalformedProof: if value is not valid hex
    """
    text = value.strip()
    if text.startswith(("0x", "0X")):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise MalformedProof(f"invalid hex string: {e}") from e


def load_proof_artifact(text: str) -> tuple[bytes, bytes]:
    """Parse a proof artifact JSON document into (proof, calldata)."""
    try:
        data = json.loads(text)
        return parse_hex(data["proof"]), parse_hex(data["calldata"])
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise MalformedProof(f"invalid proof artifact: {e}") from e
