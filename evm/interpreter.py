"""Bytecode interpreter for verifier programs.

Executes a single message call: no storage, no logs, no value transfer. Only
precompiles can be called. Gas follows Shanghai static costs plus quadratic
memory expansion; intrinsic transaction gas and calldata gas are included in
the reported total so numbers are comparable to a deployed contract call.
"""

from dataclasses import dataclass
from typing import List

from Crypto.Hash import keccak

from evm.opcodes import BY_CODE, JUMPDEST, PUSH1, PUSH32
from evm.precompiles import PRECOMPILES

WORD = 1 << 256
MASK = WORD - 1

BLOCK_GAS_LIMIT = 30_000_000
TX_BASE_GAS = 21000
CALLDATA_ZERO_GAS = 4
CALLDATA_NONZERO_GAS = 16
KECCAK_WORD_GAS = 6
COPY_WORD_GAS = 3
MEMORY_WORD_GAS = 3
MEMORY_QUAD_DIVISOR = 512
STACK_LIMIT = 1024
MAX_MEMORY = 1 << 32


class ExceptionalHalt(Exception):
    """Execution aborted; all forwarded gas is consumed."""


class OutOfGas(ExceptionalHalt):
    pass


@dataclass
class ExecutionResult:
    """Outcome of a call.

    Attributes:
        success: False on REVERT or exceptional halt
        return_data: RETURN / REVERT payload
        gas_used: Total gas including intrinsic and calldata cost
        error: "revert", or the reason for an exceptional halt
    """
    success: bool
    return_data: bytes
    gas_used: int
    error: str = ""


def intrinsic_gas(calldata: bytes) -> int:
    zeros = calldata.count(0)
    return TX_BASE_GAS + zeros * CALLDATA_ZERO_GAS + (len(calldata) - zeros) * CALLDATA_NONZERO_GAS


def memory_cost(words: int) -> int:
    return MEMORY_WORD_GAS * words + words * words // MEMORY_QUAD_DIVISOR


def valid_jumpdests(code: bytes) -> set:
    """Offsets of JUMPDEST bytes that are not inside PUSH data."""
    dests = set()
    pc = 0
    while pc < len(code):
        op = code[pc]
        if op == JUMPDEST:
            dests.add(pc)
        if PUSH1 <= op <= PUSH32:
            pc += op - PUSH1 + 1
        pc += 1
    return dests


def _word_count(size: int) -> int:
    return (size + 31) // 32


class Machine:
    """State of one execution frame."""

    def __init__(self, code: bytes, calldata: bytes, gas: int):
        self.code = code
        self.calldata = calldata
        self.gas = gas
        self.pc = 0
        self.stack: List[int] = []
        self.memory = bytearray()
        self.jumpdests = valid_jumpdests(code)

    # --- accounting ---

    def charge(self, amount: int) -> None:
        if amount > self.gas:
            self.gas = 0
            raise OutOfGas(f"out of gas at pc={self.pc:#x}")
        self.gas -= amount

    def expand(self, offset: int, size: int) -> None:
        """Grow memory to cover [offset, offset + size) and charge for it."""
        if size == 0:
            return
        end = offset + size
        if end > MAX_MEMORY:
            raise OutOfGas(f"memory access out of range at pc={self.pc:#x}")
        old_words = len(self.memory) // 32
        new_words = _word_count(end)
        if new_words > old_words:
            self.charge(memory_cost(new_words) - memory_cost(old_words))
            self.memory.extend(b"\x00" * (32 * (new_words - old_words)))

    # --- stack ---

    def pop(self) -> int:
        if not self.stack:
            raise ExceptionalHalt(f"stack underflow at pc={self.pc:#x}")
        return self.stack.pop()

    def push(self, value: int) -> None:
        if len(self.stack) >= STACK_LIMIT:
            raise ExceptionalHalt(f"stack overflow at pc={self.pc:#x}")
        self.stack.append(value & MASK)

    # --- memory ---

    def mread(self, offset: int, size: int) -> bytes:
        self.expand(offset, size)
        return bytes(self.memory[offset : offset + size])

    def mwrite(self, offset: int, data: bytes) -> None:
        self.expand(offset, len(data))
        self.memory[offset : offset + len(data)] = data

    def calldata_word(self, offset: int) -> int:
        chunk = self.calldata[offset : offset + 32] if offset < len(self.calldata) else b""
        return int.from_bytes(chunk.ljust(32, b"\x00"), "big")

    # --- execution ---

    def run(self) -> tuple[bool, bytes]:
        """Execute until STOP, RETURN or REVERT. Returns (success, data)."""
        while self.pc < len(self.code):
            op = self.code[self.pc]
            opcode = BY_CODE.get(op)
            if opcode is None or opcode.name == "INVALID":
                raise ExceptionalHalt(f"invalid opcode {op:#04x} at pc={self.pc:#x}")
            if len(self.stack) < opcode.inputs:
                raise ExceptionalHalt(f"stack underflow in {opcode.name} at pc={self.pc:#x}")
            self.charge(opcode.gas)

            if opcode.immediate:
                start = self.pc + 1
                data = self.code[start : start + opcode.immediate].ljust(opcode.immediate, b"\x00")
                self.push(int.from_bytes(data, "big"))
                self.pc += 1 + opcode.immediate
                continue
            name = opcode.name
            if name.startswith("DUP"):
                self.push(self.stack[-int(name[3:])])
            elif name.startswith("SWAP"):
                depth = int(name[4:]) + 1
                self.stack[-1], self.stack[-depth] = self.stack[-depth], self.stack[-1]
            elif name == "STOP":
                return True, b""
            elif name in ("RETURN", "REVERT"):
                offset, size = self.pop(), self.pop()
                return name == "RETURN", self.mread(offset, size)
            elif name in ("JUMP", "JUMPI"):
                dest = self.pop()
                cond = self.pop() if name == "JUMPI" else 1
                if cond:
                    if dest not in self.jumpdests:
                        raise ExceptionalHalt(f"invalid jump destination {dest:#x} at pc={self.pc:#x}")
                    self.pc = dest
                    continue
            else:
                getattr(self, "op_" + name.lower())()
            self.pc += 1
        return True, b""

    # --- arithmetic ---

    def op_add(self):
        self.push(self.pop() + self.pop())

    def op_mul(self):
        self.push(self.pop() * self.pop())

    def op_sub(self):
        a, b = self.pop(), self.pop()
        self.push(a - b)

    def op_div(self):
        a, b = self.pop(), self.pop()
        self.push(0 if b == 0 else a // b)

    def op_mod(self):
        a, b = self.pop(), self.pop()
        self.push(0 if b == 0 else a % b)

    def op_addmod(self):
        a, b, n = self.pop(), self.pop(), self.pop()
        self.push(0 if n == 0 else (a + b) % n)

    def op_mulmod(self):
        a, b, n = self.pop(), self.pop(), self.pop()
        self.push(0 if n == 0 else (a * b) % n)

    # --- comparison and bitwise ---

    def op_lt(self):
        a, b = self.pop(), self.pop()
        self.push(int(a < b))

    def op_gt(self):
        a, b = self.pop(), self.pop()
        self.push(int(a > b))

    def op_eq(self):
        self.push(int(self.pop() == self.pop()))

    def op_iszero(self):
        self.push(int(self.pop() == 0))

    def op_and(self):
        self.push(self.pop() & self.pop())

    def op_or(self):
        self.push(self.pop() | self.pop())

    def op_xor(self):
        self.push(self.pop() ^ self.pop())

    def op_not(self):
        self.push(MASK ^ self.pop())

    def op_shl(self):
        shift, value = self.pop(), self.pop()
        self.push(0 if shift >= 256 else value << shift)

    def op_shr(self):
        shift, value = self.pop(), self.pop()
        self.push(0 if shift >= 256 else value >> shift)

    # --- hashing, calldata, memory ---

    def op_keccak256(self):
        offset, size = self.pop(), self.pop()
        self.charge(KECCAK_WORD_GAS * _word_count(size))
        data = self.mread(offset, size)
        self.push(int.from_bytes(keccak.new(digest_bits=256, data=data).digest(), "big"))

    def op_calldataload(self):
        self.push(self.calldata_word(self.pop()))

    def op_calldatasize(self):
        self.push(len(self.calldata))

    def op_calldatacopy(self):
        dest, offset, size = self.pop(), self.pop(), self.pop()
        self.charge(COPY_WORD_GAS * _word_count(size))
        chunk = self.calldata[offset : offset + size] if offset < len(self.calldata) else b""
        self.mwrite(dest, chunk.ljust(size, b"\x00"))

    def op_pop(self):
        self.pop()

    def op_mload(self):
        self.push(int.from_bytes(self.mread(self.pop(), 32), "big"))

    def op_mstore(self):
        offset, value = self.pop(), self.pop()
        self.mwrite(offset, value.to_bytes(32, "big"))

    def op_mstore8(self):
        offset, value = self.pop(), self.pop()
        self.mwrite(offset, bytes([value & 0xFF]))

    def op_pc(self):
        self.push(self.pc)

    def op_msize(self):
        self.push(len(self.memory))

    def op_gas(self):
        self.push(self.gas)

    def op_jumpdest(self):
        pass

    def op_push0(self):
        self.push(0)

    # --- calls ---

    def op_staticcall(self):
        gas, address = self.pop(), self.pop()
        args_offset, args_size = self.pop(), self.pop()
        ret_offset, ret_size = self.pop(), self.pop()
        self.expand(args_offset, args_size)
        self.expand(ret_offset, ret_size)
        forwarded = min(gas, self.gas - self.gas // 64)

        precompile = PRECOMPILES.get(address)
        if precompile is None:
            # an account without code: succeeds and returns nothing
            self.push(1)
            return
        cost, output = precompile(bytes(self.memory[args_offset : args_offset + args_size]))
        if output is None or cost > forwarded:
            self.charge(forwarded)
            self.push(0)
            return
        self.charge(cost)
        if ret_size:
            self.mwrite(ret_offset, output[:ret_size])
        self.push(1)


def execute(code: bytes, calldata: bytes, gas_limit: int = BLOCK_GAS_LIMIT) -> ExecutionResult:
    """Run code against calldata as a transaction with the given gas limit."""
    intrinsic = intrinsic_gas(calldata)
    if intrinsic > gas_limit:
        return ExecutionResult(False, b"", gas_limit, "intrinsic gas exceeds limit")
    machine = Machine(code, calldata, gas_limit - intrinsic)
    try:
        success, data = machine.run()
    except ExceptionalHalt as e:
        return ExecutionResult(False, b"", gas_limit, str(e))
    gas_used = gas_limit - machine.gas
    return ExecutionResult(success, data, gas_used, "" if success else "revert")
