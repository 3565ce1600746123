"""ProgramLoader: runs the verification equation as a code generator.

Every scalar or point is a memory slot. Arithmetic on them emits instructions
that compute the result into a fresh slot; nothing is evaluated at compile
time except constants.

Memory map:
    0x000 - 0x17f   scratch for precompile input/output
    0x180 - ...     transcript buffer
    after that      value slots, one word per scalar, two per point
"""

from typing import Dict, List

from evm.assembler import Assembly
from evm.precompiles import EC_ADD, EC_MUL, EC_PAIRING, MODEXP
from primitives.curve import G1Point, G2Point
from primitives.field import FQ_MODULUS, FR_MODULUS
from protocol.loader import Loader, LoaderTranscript

SCRATCH = 0x000
TRANSCRIPT = 0x180
REVERT_LABEL = "revert"

R = FR_MODULUS
Q = FQ_MODULUS


class ProgramScalar:
    """Scalar held in one memory word."""

    __slots__ = ("loader", "slot")

    def __init__(self, loader: "ProgramLoader", slot: int):
        self.loader = loader
        self.slot = slot

    def __add__(self, other: "ProgramScalar") -> "ProgramScalar":
        return self.loader.scalar_op("ADDMOD", self, other)

    def __mul__(self, other: "ProgramScalar") -> "ProgramScalar":
        return self.loader.scalar_op("MULMOD", self, other)

    def __sub__(self, other: "ProgramScalar") -> "ProgramScalar":
        return self.loader.scalar_sub(self, other)

    def __neg__(self) -> "ProgramScalar":
        return self.loader.scalar_neg(self)


class ProgramPoint:
    """G1 point held in two memory words (x, y)."""

    __slots__ = ("loader", "slot")

    def __init__(self, loader: "ProgramLoader", slot: int):
        self.loader = loader
        self.slot = slot

    def __add__(self, other: "ProgramPoint") -> "ProgramPoint":
        return self.loader.ec_add(self, other)

    def __sub__(self, other: "ProgramPoint") -> "ProgramPoint":
        return self.loader.ec_add(self, self.loader.ec_neg(other))

    def __neg__(self) -> "ProgramPoint":
        return self.loader.ec_neg(self)

    def __mul__(self, scalar: ProgramScalar) -> "ProgramPoint":
        return self.loader.ec_mul(self, scalar)


class ProgramTranscript(LoaderTranscript):
    """Keccak transcript kept in memory at TRANSCRIPT.

    Mirrors primitives.transcript.Transcript byte for byte; proof items are
    read from calldata in order, right after the public inputs.
    """

    def __init__(self, loader: "ProgramLoader", proof_offset: int):
        self.loader = loader
        self.length = 0
        self.cursor = proof_offset

    def _append_top(self) -> None:
        """Move the word on top of the stack into the transcript buffer."""
        self.loader.asm.push(TRANSCRIPT + self.length)
        self.loader.asm.op("MSTORE")
        self.length += 32

    def common_scalar(self, scalar: ProgramScalar) -> None:
        self.loader.mload(scalar.slot)
        self._append_top()

    def _read_word(self, modulus: int, slot: int) -> None:
        asm = self.loader.asm
        asm.push(self.cursor)
        asm.op("CALLDATALOAD")
        self.loader.revert_unless_below(modulus)
        asm.op("DUP1")
        self.loader.mstore(slot)
        self._append_top()
        self.cursor += 32

    def read_scalar(self) -> ProgramScalar:
        self.loader.asm.comment(f"read scalar at calldata {self.cursor:#x}")
        slot = self.loader.alloc()
        self._read_word(R, slot)
        return ProgramScalar(self.loader, slot)

    def read_point(self) -> ProgramPoint:
        self.loader.asm.comment(f"read point at calldata {self.cursor:#x}")
        slot = self.loader.alloc(2)
        self._read_word(Q, slot)
        self._read_word(Q, slot + 32)
        self.loader.revert_unless_on_curve(slot)
        return ProgramPoint(self.loader, slot)

    def squeeze_challenge(self) -> ProgramScalar:
        asm = self.loader.asm
        asm.comment("squeeze challenge")
        if self.length == 32:
            asm.push(1)
            asm.push(TRANSCRIPT + 32)
            asm.op("MSTORE8")
            self.length = 33
        asm.push(self.length)
        asm.push(TRANSCRIPT)
        asm.op("KECCAK256", "DUP1")
        asm.push(TRANSCRIPT)
        asm.op("MSTORE")
        asm.push(R)
        asm.op("SWAP1", "MOD")
        slot = self.loader.alloc()
        self.loader.mstore(slot)
        self.length = 32
        return ProgramScalar(self.loader, slot)


class ProgramLoader(Loader):
    """Emits verifier assembly for the operations performed on it."""

    def __init__(self, num_instances: int, proof_size: int):
        self.asm = Assembly()
        self.num_instances = num_instances
        self.calldata_size = 32 * num_instances + proof_size
        self.next_slot = TRANSCRIPT + 0x200 + 32 * num_instances
        self.constants: Dict[int, ProgramScalar] = {}
        self.transcript = ProgramTranscript(self, proof_offset=32 * num_instances)

    # --- memory helpers ---

    def alloc(self, words: int = 1) -> int:
        slot = self.next_slot
        self.next_slot += 32 * words
        return slot

    def mload(self, slot: int) -> None:
        self.asm.push(slot)
        self.asm.op("MLOAD")

    def mstore(self, slot: int) -> None:
        self.asm.push(slot)
        self.asm.op("MSTORE")

    # --- guards ---

    def revert_unless_below(self, modulus: int) -> None:
        """Revert unless the word on top of the stack is < modulus (word stays)."""
        self.asm.push(modulus)
        self.asm.op("DUP2", "LT", "ISZERO")
        self.asm.push_label(REVERT_LABEL)
        self.asm.op("JUMPI")

    def revert_unless_on_curve(self, slot: int) -> None:
        """Revert unless (x, y) at slot satisfies y^2 = x^3 + 3 or is (0, 0)."""
        asm = self.asm
        asm.push(Q)
        self.mload(slot + 32)
        asm.op("DUP1", "MULMOD")
        asm.push(Q)
        asm.push(3)
        asm.push(Q)
        self.mload(slot)
        asm.push(Q)
        self.mload(slot)
        asm.op("DUP1", "MULMOD", "MULMOD", "ADDMOD", "EQ")
        self.mload(slot)
        self.mload(slot + 32)
        asm.op("OR", "ISZERO", "OR", "ISZERO")
        asm.push_label(REVERT_LABEL)
        asm.op("JUMPI")

    def check_calldata_size(self) -> None:
        self.asm.section("calldata size")
        self.asm.op("CALLDATASIZE")
        self.asm.push(self.calldata_size)
        self.asm.op("EQ", "ISZERO")
        self.asm.push_label(REVERT_LABEL)
        self.asm.op("JUMPI")

    # --- Loader interface ---

    def load_const(self, value: int) -> ProgramScalar:
        value = int(value) % R
        if value not in self.constants:
            slot = self.alloc()
            self.asm.push(value)
            self.mstore(slot)
            self.constants[value] = ProgramScalar(self, slot)
        return self.constants[value]

    def load_instance(self, index: int) -> ProgramScalar:
        self.asm.comment(f"public input {index}")
        slot = self.alloc()
        self.asm.push(32 * index)
        self.asm.op("CALLDATALOAD")
        self.revert_unless_below(R)
        self.mstore(slot)
        return ProgramScalar(self, slot)

    def load_point(self, point: G1Point) -> ProgramPoint:
        slot = self.alloc(2)
        self.asm.push(point[0])
        self.mstore(slot)
        self.asm.push(point[1])
        self.mstore(slot + 32)
        return ProgramPoint(self, slot)

    def invert(self, scalar: ProgramScalar) -> ProgramScalar:
        """x^(r-2) mod r through the modexp precompile."""
        asm = self.asm
        asm.comment("invert via modexp")
        for offset in (0x00, 0x20, 0x40):
            asm.push(32)
            asm.push(SCRATCH + offset)
            asm.op("MSTORE")
        self.mload(scalar.slot)
        self.mstore(SCRATCH + 0x60)
        asm.push(R - 2)
        self.mstore(SCRATCH + 0x80)
        asm.push(R)
        self.mstore(SCRATCH + 0xA0)
        self._staticcall(MODEXP, args_size=0xC0, ret_size=0x20)
        slot = self.alloc()
        self.mload(SCRATCH)
        self.mstore(slot)
        return ProgramScalar(self, slot)

    def pairing_check(self, lhs: ProgramPoint, rhs: ProgramPoint, lhs_g2: G2Point, rhs_g2: G2Point) -> ProgramScalar:
        """Emit e(lhs, lhs_g2) * e(-rhs, rhs_g2) == 1; the result word lands in a slot."""
        asm = self.asm
        asm.section("pairing check")
        neg_rhs = self.ec_neg(rhs)
        words = [None, None] + _g2_words(lhs_g2) + [None, None] + _g2_words(rhs_g2)
        sources = {0: lhs.slot, 1: lhs.slot + 32, 6: neg_rhs.slot, 7: neg_rhs.slot + 32}
        for i, word in enumerate(words):
            if word is None:
                self.mload(sources[i])
            else:
                asm.push(word)
            self.mstore(SCRATCH + 32 * i)
        self._staticcall(EC_PAIRING, args_size=0x180, ret_size=0x20)
        slot = self.alloc()
        self.mload(SCRATCH)
        self.mstore(slot)
        return ProgramScalar(self, slot)

    # --- scalar arithmetic ---

    def scalar_op(self, opcode: str, a: ProgramScalar, b: ProgramScalar) -> ProgramScalar:
        self.asm.push(R)
        self.mload(b.slot)
        self.mload(a.slot)
        self.asm.op(opcode)
        slot = self.alloc()
        self.mstore(slot)
        return ProgramScalar(self, slot)

    def scalar_sub(self, a: ProgramScalar, b: ProgramScalar) -> ProgramScalar:
        # a + (r - b) mod r; every slot holds a reduced value
        self.asm.push(R)
        self.mload(b.slot)
        self.asm.push(R)
        self.asm.op("SUB")
        self.mload(a.slot)
        self.asm.op("ADDMOD")
        slot = self.alloc()
        self.mstore(slot)
        return ProgramScalar(self, slot)

    def scalar_neg(self, a: ProgramScalar) -> ProgramScalar:
        self.asm.push(R)
        self.mload(a.slot)
        self.asm.push(R)
        self.asm.op("SUB", "MOD")
        slot = self.alloc()
        self.mstore(slot)
        return ProgramScalar(self, slot)

    # --- group arithmetic ---

    def _staticcall(self, address: int, args_size: int, ret_size: int) -> None:
        asm = self.asm
        asm.push(ret_size)
        asm.push(SCRATCH)
        asm.push(args_size)
        asm.push(SCRATCH)
        asm.push(address)
        asm.op("GAS", "STATICCALL", "ISZERO")
        asm.push_label(REVERT_LABEL)
        asm.op("JUMPI")

    def _copy_to_scratch(self, slots: List[int]) -> None:
        for i, slot in enumerate(slots):
            self.mload(slot)
            self.mstore(SCRATCH + 32 * i)

    def _point_from_scratch(self) -> ProgramPoint:
        slot = self.alloc(2)
        self.mload(SCRATCH)
        self.mstore(slot)
        self.mload(SCRATCH + 0x20)
        self.mstore(slot + 32)
        return ProgramPoint(self, slot)

    def ec_add(self, p: ProgramPoint, q: ProgramPoint) -> ProgramPoint:
        self._copy_to_scratch([p.slot, p.slot + 32, q.slot, q.slot + 32])
        self._staticcall(EC_ADD, args_size=0x80, ret_size=0x40)
        return self._point_from_scratch()

    def ec_mul(self, p: ProgramPoint, s: ProgramScalar) -> ProgramPoint:
        self._copy_to_scratch([p.slot, p.slot + 32, s.slot])
        self._staticcall(EC_MUL, args_size=0x60, ret_size=0x40)
        return self._point_from_scratch()

    def ec_neg(self, p: ProgramPoint) -> ProgramPoint:
        slot = self.alloc(2)
        self.mload(p.slot)
        self.mstore(slot)
        self.asm.push(Q)
        self.mload(p.slot + 32)
        self.asm.push(Q)
        self.asm.op("SUB", "MOD")
        self.mstore(slot + 32)
        return ProgramPoint(self, slot)

    # --- program exits ---

    def emit_return(self, result: ProgramScalar) -> None:
        self.asm.section("return pairing result")
        self.mload(result.slot)
        self.mstore(SCRATCH)
        self.asm.push(32)
        self.asm.push(SCRATCH)
        self.asm.op("RETURN")

    def emit_revert(self) -> None:
        self.asm.section("abort")
        self.asm.label(REVERT_LABEL)
        self.asm.push(0)
        self.asm.push(0)
        self.asm.op("REVERT")


def _g2_words(point: G2Point) -> list:
    """EVM order: x.c1, x.c0, y.c1, y.c0."""
    (x0, x1), (y0, y1) = point
    return [x1, x0, y1, y0]
