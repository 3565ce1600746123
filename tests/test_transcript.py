"""Tests for the Keccak Fiat-Shamir transcript."""

import pytest

from primitives.curve import G1_GENERATOR, encode_g1
from primitives.field import FR_MODULUS
from primitives.transcript import Transcript, TranscriptReader, TranscriptWriter, keccak256


class TestSqueeze:
    """Byte-level squeeze behaviour."""

    def test_squeeze_hashes_buffer(self) -> None:
        """The first challenge is keccak of the absorbed bytes."""
        t = Transcript()
        t.common_scalar(5)
        t.common_point(G1_GENERATOR)
        expected = keccak256((5).to_bytes(32, "big") + encode_g1(G1_GENERATOR))
        assert t.squeeze_challenge() == int.from_bytes(expected, "big") % FR_MODULUS
        assert t.buf == expected

    def test_consecutive_squeezes_differ(self) -> None:
        """A second squeeze rehashes the digest with a counter byte."""
        t = Transcript()
        t.common_scalar(1)
        first = t.squeeze_challenge()
        digest = t.buf
        second = t.squeeze_challenge()
        assert first != second
        assert second == int.from_bytes(keccak256(digest + b"\x01"), "big") % FR_MODULUS

    def test_deterministic(self) -> None:
        """Identical inputs give identical challenges."""
        def run() -> list:
            t = Transcript()
            t.common_scalar(42)
            return t.squeeze_challenges(3)

        assert run() == run()

    def test_scalar_range(self) -> None:
        """Scalars outside the field are rejected."""
        with pytest.raises(ValueError):
            Transcript().common_scalar(FR_MODULUS)


class TestWriterReader:
    """Prover and verifier transcripts stay in lockstep."""

    def test_lockstep(self) -> None:
        """Reader reproduces the writer's values and challenges."""
        writer = TranscriptWriter()
        writer.write_point(G1_GENERATOR)
        writer.write_scalar(77)
        c_prover = writer.squeeze_challenge()

        reader = TranscriptReader(writer.finalize())
        assert reader.read_point() == G1_GENERATOR
        assert reader.read_scalar() == 77
        assert reader.squeeze_challenge() == c_prover
        assert reader.remaining() == 0

    def test_truncated(self) -> None:
        """Reading past the end fails."""
        with pytest.raises(ValueError, match="truncated"):
            TranscriptReader(b"\x00" * 10).read_scalar()

    def test_non_canonical_scalar(self) -> None:
        """Scalars at or above the modulus are rejected."""
        with pytest.raises(ValueError, match="non-canonical"):
            TranscriptReader(FR_MODULUS.to_bytes(32, "big")).read_scalar()
