"""Tests for parameter generation and the parameters file format."""

import random
import struct

import pytest

from primitives.curve import G1_GENERATOR, g1_mul
from primitives.field import FR_MODULUS
from protocol.errors import MalformedParameters
from protocol.params import EXTRA_POWERS, HEADER_SIZE, Parameters, deserialize, generate, params_size, serialize


class TestGenerate:
    """Setup output structure."""

    def test_sizes(self, params) -> None:
        """Power count is 2^k plus the extra powers."""
        assert params.k == 4
        assert len(params.g1_powers) == 16 + EXTRA_POWERS
        assert params.g1_powers[0] == G1_GENERATOR

    def test_powers_are_geometric(self) -> None:
        """The second power is tau times the generator."""
        tau = random.Random(5).randrange(1, FR_MODULUS)
        p = generate(1, rng=random.Random(5))
        assert p.g1_powers[1] == g1_mul(G1_GENERATOR, tau)

    def test_fresh_randomness(self) -> None:
        """Unseeded setups differ."""
        assert generate(1).g1_powers[1] != generate(1).g1_powers[1]

    def test_k_range(self) -> None:
        """k = 0 is rejected."""
        with pytest.raises(ValueError):
            generate(0)


class TestSerialization:
    """Byte layout and validation."""

    def test_round_trip(self, params) -> None:
        """Serialized parameters deserialize to an equal value."""
        data = serialize(params)
        assert len(data) == params_size(4)
        restored = deserialize(data)
        assert restored == params
        assert restored.g1_powers == params.g1_powers
        assert restored.s_g2 == params.s_g2

    def test_header(self, params) -> None:
        """The header is little-endian k followed by the tag."""
        data = serialize(params)
        assert struct.unpack_from("<IB", data, 0) == (4, 0x01)

    def test_truncated(self, params) -> None:
        """Short files are rejected."""
        data = serialize(params)
        with pytest.raises(MalformedParameters):
            deserialize(data[:-1])
        with pytest.raises(MalformedParameters):
            deserialize(data[:3])

    def test_trailing_bytes(self, params) -> None:
        """Extra bytes after the last point are rejected."""
        with pytest.raises(MalformedParameters):
            deserialize(serialize(params) + b"\x00")

    def test_unknown_tag(self, params) -> None:
        """An unknown format tag is rejected."""
        data = bytearray(serialize(params))
        data[4] = 0x02
        with pytest.raises(MalformedParameters, match="tag"):
            deserialize(bytes(data))

    def test_bad_k(self, params) -> None:
        """A zero k in the header is rejected."""
        data = bytearray(serialize(params))
        data[0:4] = struct.pack("<I", 0)
        with pytest.raises(MalformedParameters):
            deserialize(bytes(data))

    def test_point_off_curve(self, params) -> None:
        """A corrupted point is reported with its offset."""
        data = bytearray(serialize(params))
        offset = HEADER_SIZE + 64 + 63  # last byte of y in the second power
        data[offset] ^= 0x01
        with pytest.raises(MalformedParameters, match="offset"):
            deserialize(bytes(data))


class TestDownsize:
    """Smaller capacities share the same powers."""

    def test_downsize(self, params) -> None:
        """Downsizing keeps a prefix of the powers."""
        small = params.downsize(2)
        assert small.k == 2
        assert small.g1_powers == params.g1_powers[: 4 + EXTRA_POWERS]
        assert small.s_g2 == params.s_g2

    def test_downsize_same(self, params) -> None:
        """Downsizing to the same k returns the same object."""
        assert params.downsize(4) is params

    def test_cannot_grow(self, params) -> None:
        """Downsizing to a larger k is rejected."""
        with pytest.raises(ValueError):
            params.downsize(5)

    def test_dataclass_is_frozen(self, params) -> None:
        """Parameters are immutable."""
        with pytest.raises(AttributeError):
            params.k = 9
        assert isinstance(params, Parameters)
