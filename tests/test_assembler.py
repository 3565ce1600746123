"""Tests for the verifier assembler."""

import pytest

from evm.assembler import Assembly, assemble, disassemble
from protocol.errors import CompilationFailure


class TestAssemble:
    """Lowering assembly text to bytecode."""

    def test_simple(self) -> None:
        """Mnemonics and operands lower to bytes."""
        assert assemble("PUSH1 0x01\nPUSH1 0x02\nADD\n") == bytes([0x60, 0x01, 0x60, 0x02, 0x01])

    def test_comments_and_case(self) -> None:
        """Comments and blank lines are ignored and mnemonics are case-insensitive."""
        source = "; header\n  push1 7   ; seven\n\n  stop\n"
        assert assemble(source) == bytes([0x60, 0x07, 0x00])

    def test_labels(self) -> None:
        """Labels become JUMPDEST and resolve to their offset."""
        source = "PUSH2 @end\nJUMP\nend:\nSTOP\n"
        assert assemble(source) == bytes([0x61, 0x00, 0x04, 0x56, 0x5B, 0x00])

    def test_forward_and_backward_labels(self) -> None:
        """Labels resolve in both directions."""
        source = "start:\nPUSH2 @start\nPUSH2 @done\nJUMPI\ndone:\n"
        assert assemble(source) == bytes([0x5B, 0x61, 0x00, 0x00, 0x61, 0x00, 0x08, 0x57, 0x5B])

    def test_wide_push(self) -> None:
        """PUSH32 takes a full word."""
        code = assemble(f"PUSH32 {2**256 - 1}")
        assert code == bytes([0x7F]) + b"\xff" * 32


class TestAssembleErrors:
    """Each failure names the offending line."""

    def test_unknown_mnemonic(self) -> None:
        """Unknown mnemonics report line and fragment."""
        with pytest.raises(CompilationFailure) as info:
            assemble("STOP\nFROB\n")
        assert info.value.line == 2
        assert info.value.fragment == "FROB"

    def test_duplicate_label(self) -> None:
        """A label defined twice is rejected."""
        with pytest.raises(CompilationFailure, match="duplicate label"):
            assemble("here:\nhere:\n")

    def test_undefined_label(self) -> None:
        """A reference to a missing label is rejected."""
        with pytest.raises(CompilationFailure, match="undefined label"):
            assemble("PUSH2 @nowhere\nJUMP\n")

    def test_operand_too_wide(self) -> None:
        """Operands wider than the push are rejected."""
        with pytest.raises(CompilationFailure, match="does not fit"):
            assemble("PUSH1 0x100")

    def test_invalid_operand(self) -> None:
        """Non-numeric operands are rejected."""
        with pytest.raises(CompilationFailure, match="invalid push operand"):
            assemble("PUSH1 zz")

    def test_missing_operand(self) -> None:
        """PUSH without an operand is rejected."""
        with pytest.raises(CompilationFailure, match="exactly one operand"):
            assemble("PUSH1")

    def test_unexpected_operand(self) -> None:
        """Operands on non-push opcodes are rejected."""
        with pytest.raises(CompilationFailure, match="takes no operand"):
            assemble("ADD 1")

    def test_bad_label_name(self) -> None:
        """Label names with spaces are rejected."""
        with pytest.raises(CompilationFailure, match="invalid label name"):
            assemble("bad label:\n")


class TestAssembly:
    """Source builder."""

    def test_minimal_push_width(self) -> None:
        """Pushes use the narrowest opcode."""
        asm = Assembly()
        asm.push(0)
        asm.push(0xFF)
        asm.push(0x100)
        assert asm.to_source().split() == ["PUSH0", "PUSH1", "0xff", "PUSH2", "0x0100"]

    def test_push_range(self) -> None:
        """Pushes outside a word are rejected."""
        with pytest.raises(ValueError):
            Assembly().push(-1)
        with pytest.raises(ValueError):
            Assembly().push(1 << 256)

    def test_builder_assembles(self) -> None:
        """Builder output assembles."""
        asm = Assembly()
        asm.section("entry")
        asm.comment("jump over nothing")
        asm.push_label("end")
        asm.op("JUMP")
        asm.label("end")
        asm.op("STOP")
        assert assemble(asm.to_source()) == bytes([0x61, 0x00, 0x04, 0x56, 0x5B, 0x00])

    def test_disassemble(self) -> None:
        """Disassembly lists offsets, operands and invalid bytes."""
        listing = disassemble(bytes([0x61, 0x00, 0x04, 0x56, 0x5B, 0x00, 0x0C]))
        assert listing == [
            "00000  PUSH2 0x0004",
            "00003  JUMP",
            "00004  JUMPDEST",
            "00005  STOP",
            "00006  0x0c (invalid)",
        ]
