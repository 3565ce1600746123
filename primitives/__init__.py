"""Primitives - Field, curve, polynomial and transcript building blocks."""

from primitives.curve import (
    G1_GENERATOR,
    G1_INFINITY,
    G1Point,
    G2_GENERATOR,
    G2Point,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
    g1_add,
    g1_msm,
    g1_mul,
    g1_neg,
    g2_mul,
    pairing_check,
)
from primitives.field import (
    FQ_MODULUS,
    FR,
    FR_MODULUS,
    batch_inverse,
    domain,
    fr,
    get_omega,
)
from primitives.transcript import (
    Transcript,
    TranscriptReader,
    TranscriptWriter,
    keccak256,
)

__all__ = [
    # Field
    "FR",
    "FR_MODULUS",
    "FQ_MODULUS",
    "batch_inverse",
    "domain",
    "fr",
    "get_omega",
    # Curve
    "G1Point",
    "G2Point",
    "G1_GENERATOR",
    "G1_INFINITY",
    "G2_GENERATOR",
    "decode_g1",
    "decode_g2",
    "encode_g1",
    "encode_g2",
    "g1_add",
    "g1_msm",
    "g1_mul",
    "g1_neg",
    "g2_mul",
    "pairing_check",
    # Transcript
    "Transcript",
    "TranscriptReader",
    "TranscriptWriter",
    "keccak256",
]
