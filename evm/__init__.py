"""EVM - Verifier program generation and execution."""

from evm.assembler import Assembly, assemble, disassemble
from evm.compiler import VerifierProgram, compile_to_executable, compile_verifier
from evm.interpreter import BLOCK_GAS_LIMIT, ExecutionResult, execute

__all__ = [
    "Assembly",
    "BLOCK_GAS_LIMIT",
    "ExecutionResult",
    "VerifierProgram",
    "assemble",
    "compile_to_executable",
    "compile_verifier",
    "disassemble",
    "execute",
]
