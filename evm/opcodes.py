"""Instruction set of the verifier machine (EVM numbering, Shanghai gas)."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Opcode:
    """One instruction.

    Attributes:
        code: Byte value
        name: Mnemonic
        inputs: Stack items consumed
        outputs: Stack items produced
        gas: Static gas cost (dynamic parts are charged by the interpreter)
        immediate: Bytes of inline operand following the opcode (PUSHn)
    """
    code: int
    name: str
    inputs: int
    outputs: int
    gas: int
    immediate: int = 0


_TABLE = [
    Opcode(0x00, "STOP", 0, 0, 0),
    Opcode(0x01, "ADD", 2, 1, 3),
    Opcode(0x02, "MUL", 2, 1, 5),
    Opcode(0x03, "SUB", 2, 1, 3),
    Opcode(0x04, "DIV", 2, 1, 5),
    Opcode(0x06, "MOD", 2, 1, 5),
    Opcode(0x08, "ADDMOD", 3, 1, 8),
    Opcode(0x09, "MULMOD", 3, 1, 8),
    Opcode(0x10, "LT", 2, 1, 3),
    Opcode(0x11, "GT", 2, 1, 3),
    Opcode(0x14, "EQ", 2, 1, 3),
    Opcode(0x15, "ISZERO", 1, 1, 3),
    Opcode(0x16, "AND", 2, 1, 3),
    Opcode(0x17, "OR", 2, 1, 3),
    Opcode(0x18, "XOR", 2, 1, 3),
    Opcode(0x19, "NOT", 1, 1, 3),
    Opcode(0x1B, "SHL", 2, 1, 3),
    Opcode(0x1C, "SHR", 2, 1, 3),
    Opcode(0x20, "KECCAK256", 2, 1, 30),
    Opcode(0x35, "CALLDATALOAD", 1, 1, 3),
    Opcode(0x36, "CALLDATASIZE", 0, 1, 2),
    Opcode(0x37, "CALLDATACOPY", 3, 0, 3),
    Opcode(0x50, "POP", 1, 0, 2),
    Opcode(0x51, "MLOAD", 1, 1, 3),
    Opcode(0x52, "MSTORE", 2, 0, 3),
    Opcode(0x53, "MSTORE8", 2, 0, 3),
    Opcode(0x56, "JUMP", 1, 0, 8),
    Opcode(0x57, "JUMPI", 2, 0, 10),
    Opcode(0x58, "PC", 0, 1, 2),
    Opcode(0x59, "MSIZE", 0, 1, 2),
    Opcode(0x5A, "GAS", 0, 1, 2),
    Opcode(0x5B, "JUMPDEST", 0, 0, 1),
    Opcode(0x5F, "PUSH0", 0, 1, 2),
    Opcode(0xF3, "RETURN", 2, 0, 0),
    Opcode(0xFA, "STATICCALL", 6, 1, 100),
    Opcode(0xFD, "REVERT", 2, 0, 0),
    Opcode(0xFE, "INVALID", 0, 0, 0),
]
_TABLE += [Opcode(0x5F + n, f"PUSH{n}", 0, 1, 3, immediate=n) for n in range(1, 33)]
_TABLE += [Opcode(0x7F + n, f"DUP{n}", n, n + 1, 3) for n in range(1, 17)]
_TABLE += [Opcode(0x8F + n, f"SWAP{n}", n + 1, n + 1, 3) for n in range(1, 17)]

BY_CODE: Dict[int, Opcode] = {op.code: op for op in _TABLE}
BY_NAME: Dict[str, Opcode] = {op.name: op for op in _TABLE}

JUMPDEST = BY_NAME["JUMPDEST"].code
PUSH1 = BY_NAME["PUSH1"].code
PUSH32 = BY_NAME["PUSH32"].code
