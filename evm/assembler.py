"""Verifier assembly: text builder and two-pass assembler.

Source format, one item per line:

    ; comment                 ignored (also allowed after an instruction)
    name:                     label; assembles to JUMPDEST
    MNEMONIC                  instruction without operand
    PUSHn 0x1f | 31 | @name   push with a literal or a label address

Label addresses are always pushed with PUSH2.
"""

from typing import Dict, List, Tuple

from evm.opcodes import BY_CODE, BY_NAME, JUMPDEST
from protocol.errors import CompilationFailure

LABEL_PUSH_WIDTH = 2


class Assembly:
    """Accumulates assembly source lines."""

    def __init__(self):
        self.lines: List[str] = []

    def section(self, title: str) -> None:
        self.lines.append(f"; --- {title} ---")

    def comment(self, text: str) -> None:
        self.lines.append(f"    ; {text}")

    def label(self, name: str) -> None:
        self.lines.append(f"{name}:")

    def op(self, *names: str) -> None:
        for name in names:
            self.lines.append(f"    {name}")

    def push(self, value: int) -> None:
        value = int(value)
        if value < 0 or value >= 1 << 256:
            raise ValueError(f"push operand out of range: {value}")
        if value == 0:
            self.lines.append("    PUSH0")
            return
        width = (value.bit_length() + 7) // 8
        self.lines.append(f"    PUSH{width} 0x{value:0{2 * width}x}")

    def push_label(self, name: str) -> None:
        self.lines.append(f"    PUSH{LABEL_PUSH_WIDTH} @{name}")

    def to_source(self) -> str:
        return "\n".join(self.lines) + "\n"


def _parse_operand(token: str, line: int, text: str) -> int:
    try:
        return int(token, 0)
    except ValueError:
        raise CompilationFailure("invalid push operand", line, text) from None


def _parse(source: str) -> List[Tuple[int, str, str, str]]:
    """Return (line number, text, kind, payload) items; kind is 'label' or 'op'."""
    items = []
    for number, raw in enumerate(source.splitlines(), start=1):
        text = raw.split(";", 1)[0].strip()
        if not text:
            continue
        if text.endswith(":"):
            name = text[:-1].strip()
            if not name or not name.replace("_", "").isalnum():
                raise CompilationFailure("invalid label name", number, raw.strip())
            items.append((number, raw.strip(), "label", name))
        else:
            items.append((number, raw.strip(), "op", text))
    return items


def assemble(source: str) -> bytes:
    """Lower assembly text to bytecode.

    Raises:
        CompilationFailure: naming the line and fragment for unknown mnemonics,
            malformed or oversized operands, duplicate or undefined labels
    """
    items = _parse(source)

    # Pass 1: sizes and label addresses
    labels: Dict[str, int] = {}
    offset = 0
    for number, text, kind, payload in items:
        if kind == "label":
            if payload in labels:
                raise CompilationFailure("duplicate label", number, text)
            labels[payload] = offset
            offset += 1
            continue
        mnemonic = payload.split()[0].upper()
        if mnemonic not in BY_NAME:
            raise CompilationFailure("unknown mnemonic", number, text)
        offset += 1 + BY_NAME[mnemonic].immediate

    # Pass 2: encoding
    out = bytearray()
    for number, text, kind, payload in items:
        if kind == "label":
            out.append(JUMPDEST)
            continue
        tokens = payload.split()
        opcode = BY_NAME[tokens[0].upper()]
        operands = tokens[1:]
        if opcode.immediate == 0:
            if operands:
                raise CompilationFailure(f"{opcode.name} takes no operand", number, text)
            out.append(opcode.code)
            continue
        if len(operands) != 1:
            raise CompilationFailure(f"{opcode.name} needs exactly one operand", number, text)
        token = operands[0]
        if token.startswith("@"):
            if token[1:] not in labels:
                raise CompilationFailure("undefined label", number, text)
            value = labels[token[1:]]
        else:
            value = _parse_operand(token, number, text)
        if value < 0 or value >= 1 << (8 * opcode.immediate):
            raise CompilationFailure(f"operand does not fit {opcode.name}", number, text)
        out.append(opcode.code)
        out += value.to_bytes(opcode.immediate, "big")
    return bytes(out)


def disassemble(code: bytes) -> List[str]:
    """Readable listing of bytecode, one instruction per entry."""
    listing = []
    pc = 0
    while pc < len(code):
        opcode = BY_CODE.get(code[pc])
        if opcode is None:
            listing.append(f"{pc:05x}  0x{code[pc]:02x} (invalid)")
            pc += 1
            continue
        if opcode.immediate:
            operand = code[pc + 1 : pc + 1 + opcode.immediate]
            listing.append(f"{pc:05x}  {opcode.name} 0x{operand.hex()}")
        else:
            listing.append(f"{pc:05x}  {opcode.name}")
        pc += 1 + opcode.immediate
    return listing
