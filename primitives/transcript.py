"""
Fiat-Shamir transcript using Keccak-256.

The byte-level behaviour matches what an EVM verifier can reproduce with the
KECCAK256 opcode: the transcript is a growing byte buffer, every squeeze hashes
the buffer and replaces it with the digest.
"""

from typing import List

from Crypto.Hash import keccak

from primitives.curve import G1Point, G1_POINT_SIZE, WORD_SIZE, decode_g1, encode_g1
from primitives.field import FR_MODULUS


def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


class Transcript:
    """
    Keccak-256 Fiat-Shamir transcript.

    Attributes:
        buf: Bytes absorbed since the last squeeze (after a squeeze, the digest)
    """

    def __init__(self):
        self.buf = b""

    def common_scalar(self, scalar: int) -> None:
        """Absorb a field element as one 32-byte big-endian word."""
        scalar = int(scalar)
        if not 0 <= scalar < FR_MODULUS:
            raise ValueError(f"scalar out of range: {scalar}")
        self.buf += scalar.to_bytes(WORD_SIZE, "big")

    def common_point(self, point: G1Point) -> None:
        """Absorb a G1 point as x || y."""
        self.buf += encode_g1(point)

    def squeeze_challenge(self) -> int:
        """Derive the next challenge.

        A buffer holding only the previous digest gets a 0x01 suffix so that
        consecutive squeezes produce distinct values.
        """
        if len(self.buf) == WORD_SIZE:
            self.buf += b"\x01"
        digest = keccak256(self.buf)
        self.buf = digest
        return int.from_bytes(digest, "big") % FR_MODULUS

    def squeeze_challenges(self, count: int) -> List[int]:
        return [self.squeeze_challenge() for _ in range(count)]


class TranscriptWriter(Transcript):
    """Prover side: absorbs values and records them as proof bytes."""

    def __init__(self):
        super().__init__()
        self.proof = bytearray()

    def write_point(self, point: G1Point) -> None:
        self.common_point(point)
        self.proof += encode_g1(point)

    def write_scalar(self, scalar: int) -> None:
        self.common_scalar(scalar)
        self.proof += int(scalar).to_bytes(WORD_SIZE, "big")

    def finalize(self) -> bytes:
        return bytes(self.proof)


class TranscriptReader(Transcript):
    """Verifier side: reads values from proof bytes and absorbs them.

    Raises:
        ValueError: on truncated input, off-curve points or non-canonical scalars
    """

    def __init__(self, proof: bytes):
        super().__init__()
        self.proof = bytes(proof)
        self.cursor = 0

    def _take(self, size: int) -> bytes:
        if self.cursor + size > len(self.proof):
            raise ValueError(
                f"proof truncated: need {size} bytes at offset {self.cursor}, "
                f"have {len(self.proof) - self.cursor}"
            )
        chunk = self.proof[self.cursor : self.cursor + size]
        self.cursor += size
        return chunk

    def read_point(self) -> G1Point:
        point = decode_g1(self._take(G1_POINT_SIZE))
        self.common_point(point)
        return point

    def read_scalar(self) -> int:
        scalar = int.from_bytes(self._take(WORD_SIZE), "big")
        if scalar >= FR_MODULUS:
            raise ValueError(f"non-canonical scalar in proof: {scalar:#x}")
        self.common_scalar(scalar)
        return scalar

    def remaining(self) -> int:
        return len(self.proof) - self.cursor
