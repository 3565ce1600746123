"""Loader interface for the verification equation.

The verification equation is written once against Loader. A loader decides
what "a scalar" and "a point" are:

    NativeLoader    galois FR scalars and py_ecc points, evaluated immediately
    ProgramLoader   (evm.loader) memory slots, every operation emits code

Scalars and points returned by a loader support +, -, * (and unary -) among
themselves; point * scalar is scalar multiplication.
"""

from abc import ABC, abstractmethod
from typing import List

from primitives.curve import G1Point, G2Point, g1_add, g1_mul, g1_neg, pairing_check
from primitives.field import FR, fr
from primitives.transcript import TranscriptReader


class LoaderTranscript(ABC):
    """Verifier-side transcript over loaded values."""

    @abstractmethod
    def common_scalar(self, scalar) -> None:
        pass

    @abstractmethod
    def read_scalar(self):
        pass

    @abstractmethod
    def read_point(self):
        pass

    @abstractmethod
    def squeeze_challenge(self):
        pass


class Loader(ABC):
    """Uniform interface for native evaluation and code generation."""

    transcript: LoaderTranscript

    @abstractmethod
    def load_const(self, value: int):
        """Scalar constant (reduced mod r)."""
        pass

    @abstractmethod
    def load_instance(self, index: int):
        """Public input `index`."""
        pass

    @abstractmethod
    def load_point(self, point: G1Point):
        """G1 constant."""
        pass

    @abstractmethod
    def invert(self, scalar):
        pass

    @abstractmethod
    def pairing_check(self, lhs, rhs, lhs_g2: G2Point, rhs_g2: G2Point):
        """Result of e(lhs, lhs_g2) == e(rhs, rhs_g2)."""
        pass

    def batch_invert(self, values: List) -> List:
        """Montgomery batch inversion: one invert() plus 3(N-1) multiplications."""
        if not values:
            return []
        prefix = [values[0]]
        for value in values[1:]:
            prefix.append(prefix[-1] * value)
        acc = self.invert(prefix[-1])
        out = [None] * len(values)
        for i in range(len(values) - 1, 0, -1):
            out[i] = acc * prefix[i - 1]
            acc = acc * values[i]
        out[0] = acc
        return out

    def pow_two_power(self, scalar, log_exp: int):
        """scalar^(2^log_exp) by repeated squaring."""
        out = scalar
        for _ in range(log_exp):
            out = out * out
        return out


# --- Native ---

class NativePoint:
    """G1 point with group operators."""

    __slots__ = ("value",)

    def __init__(self, value: G1Point):
        self.value = value

    def __add__(self, other: "NativePoint") -> "NativePoint":
        return NativePoint(g1_add(self.value, other.value))

    def __sub__(self, other: "NativePoint") -> "NativePoint":
        return NativePoint(g1_add(self.value, g1_neg(other.value)))

    def __neg__(self) -> "NativePoint":
        return NativePoint(g1_neg(self.value))

    def __mul__(self, scalar: FR) -> "NativePoint":
        return NativePoint(g1_mul(self.value, int(scalar)))


class NativeTranscript(LoaderTranscript):
    """Reads proof bytes through TranscriptReader, yielding FR / NativePoint."""

    def __init__(self, proof: bytes):
        self.reader = TranscriptReader(proof)

    def common_scalar(self, scalar: FR) -> None:
        self.reader.common_scalar(int(scalar))

    def read_scalar(self) -> FR:
        return FR(self.reader.read_scalar())

    def read_point(self) -> NativePoint:
        return NativePoint(self.reader.read_point())

    def squeeze_challenge(self) -> FR:
        return FR(self.reader.squeeze_challenge())


class NativeLoader(Loader):
    """Evaluates the verification equation directly.

    Raises:
        ValueError: from the transcript when proof bytes are malformed
    """

    def __init__(self, instances: List[int], proof: bytes):
        self.instances = [int(x) for x in instances]
        self.transcript = NativeTranscript(proof)

    def load_const(self, value: int) -> FR:
        return fr(value)

    def load_instance(self, index: int) -> FR:
        return FR(self.instances[index])

    def load_point(self, point: G1Point) -> NativePoint:
        return NativePoint(point)

    def invert(self, scalar: FR) -> FR:
        return scalar ** -1

    def pairing_check(self, lhs: NativePoint, rhs: NativePoint, lhs_g2: G2Point, rhs_g2: G2Point) -> bool:
        return pairing_check([(lhs.value, lhs_g2), (g1_neg(rhs.value), rhs_g2)])
