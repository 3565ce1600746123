"""Verifier compiler: verifying key -> verifier assembly -> bytecode."""

from dataclasses import dataclass

from circuits import CircuitShape
from evm.assembler import assemble
from evm.loader import ProgramLoader
from protocol.keys import VerifyingKey
from protocol.params import Parameters
from protocol.plonk_verifier import verify_equation
from protocol.proof import PROOF_SIZE


@dataclass
class VerifierProgram:
    """Assembly source of a verifier plus the interface it expects.

    Attributes:
        source: Assembly text (see evm.assembler for the format)
        circuit: Circuit name
        constant: Circuit constant
        k: log2 of the circuit capacity
        num_instances: Public inputs expected at the start of calldata
        calldata_size: Exact calldata length the program accepts
    """
    source: str
    circuit: str
    constant: int
    k: int
    num_instances: int
    calldata_size: int


def compile_verifier(
    params: Parameters,
    vk: VerifyingKey,
    shape: CircuitShape,
    num_instances: int,
) -> VerifierProgram:
    """Generate the verifier program for vk.

    Raises:
        ValueError: if params, vk, shape and num_instances do not belong together
    """
    if (shape.name, shape.constant, shape.k) != (vk.shape.name, vk.shape.constant, vk.k):
        raise ValueError(
            f"shape {shape.name}/{shape.constant}/k={shape.k} does not match the verifying key "
            f"{vk.shape.name}/{vk.shape.constant}/k={vk.k}"
        )
    if num_instances != vk.num_instances:
        raise ValueError(f"circuit has {vk.num_instances} public inputs, got num_instances={num_instances}")
    if params.k < vk.k or params.g2 != vk.g2 or params.s_g2 != vk.s_g2:
        raise ValueError("verifying key was not derived from these parameters")

    loader = ProgramLoader(num_instances, PROOF_SIZE)
    asm = loader.asm
    asm.section(f"PLONK verifier for circuit '{shape.name}' (constant={shape.constant}, k={vk.k})")
    asm.section(f"calldata: {num_instances} x 32-byte public inputs, then {PROOF_SIZE}-byte proof")
    loader.check_calldata_size()
    asm.section("transcript and verification equation")
    result = verify_equation(loader, vk)
    loader.emit_return(result)
    loader.emit_revert()

    return VerifierProgram(
        source=asm.to_source(),
        circuit=shape.name,
        constant=shape.constant,
        k=vk.k,
        num_instances=num_instances,
        calldata_size=loader.calldata_size,
    )


def compile_to_executable(program: VerifierProgram) -> bytes:
    """Assemble the program. Raises CompilationFailure with the offending line."""
    return assemble(program.source)
