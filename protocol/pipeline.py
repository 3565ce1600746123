"""End-to-end pipeline: setup -> keys -> witness check -> prove -> verify.

File handling lives here. Every artifact is written to a temporary file in the
target directory and moved into place, so a failed run leaves no partial file.
"""

import os
import random
import tempfile
from pathlib import Path
from typing import Optional, Tuple, Union

from circuits import get_circuit
from evm.compiler import VerifierProgram, compile_to_executable, compile_verifier
from protocol.errors import IOFailure
from protocol.keys import ProvingKey, derive_proving_key, derive_verifying_key
from protocol.params import Parameters, generate
from protocol.proof import encode_calldata, parse_hex, proof_to_json
from protocol.prover import prove_and_check
from protocol.verifier import OnChainResult, verify_algebraic, verify_on_chain
from witness import build_for_shape

PathLike = Union[str, Path]


# --- File helpers ---

def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_atomic(path: PathLike, data: Union[bytes, str]) -> None:
    """Write data to path via a temporary file and os.replace.

    Raises:
        IOFailure: if the directory cannot be created or the file written
    """
    path = Path(path)
    payload = data.encode() if isinstance(data, str) else data
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path.parent, prefix=f".{path.name}.", delete=False) as tmp:
            tmp_name = tmp.name
            tmp.write(payload)
        # NamedTemporaryFile creates 0600; give the artifact the mode a plain open() would
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise IOFailure(path, e.strerror or str(e)) from e


def read_file(path: PathLike) -> bytes:
    """Read a whole file. Raises IOFailure with the path."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise IOFailure(path, e.strerror or str(e)) from e


# --- Stages ---

def setup_params(path: PathLike, k: int = 4, rng: Optional[random.Random] = None) -> Parameters:
    """Generate parameters and persist them."""
    params = generate(k, rng=rng)
    write_atomic(path, params.to_bytes())
    print(f"Generated parameters for k={k} -> {path}")
    return params


def load_params(path: PathLike) -> Parameters:
    """Read and validate a parameters file. Raises IOFailure or MalformedParameters."""
    return Parameters.from_bytes(read_file(path))


def derive_keys(params: Parameters, constant: int, circuit: str = "simple") -> ProvingKey:
    """Shape the circuit for constant and derive its proving key."""
    shape = get_circuit(circuit, constant).shape()
    vk = derive_verifying_key(params, shape)
    return derive_proving_key(params, vk)


def generate_verifier(
    params_path: PathLike,
    out_path: PathLike,
    constant: int,
    bytecode: bool = False,
    circuit: str = "simple",
) -> VerifierProgram:
    """Compile the verifier and write it as assembly text or 0x-prefixed bytecode."""
    params = load_params(params_path)
    shape = get_circuit(circuit, constant).shape()
    vk = derive_verifying_key(params, shape)
    program = compile_verifier(params, vk, shape, shape.num_instances)
    code = compile_to_executable(program)
    print(f"Generated verifier program size: {len(code)}")
    write_atomic(out_path, "0x" + code.hex() if bytecode else program.source)
    return program


def generate_proof(
    params_path: PathLike,
    out_path: PathLike,
    constant: int,
    a: int,
    b: int,
    verify: bool = False,
    circuit: str = "simple",
    rng: Optional[random.Random] = None,
    gas_limit: Optional[int] = None,
) -> Tuple[bytes, bytes, Optional[OnChainResult]]:
    """Prove knowledge of (a, b) for the circuit and write the proof artifact.

    With verify=True the proof is also run through the compiled verifier and
    must be accepted before the artifact is written.

    Raises:
        ConstraintViolation: if the witness does not satisfy the circuit
        VerificationRejected: if on-chain verification does not accept
    """
    params = load_params(params_path)
    pk = derive_keys(params, constant, circuit)
    assignment = build_for_shape(pk.vk.shape, {"a": a, "b": b})
    instances = assignment.instances
    proof = prove_and_check(pk, assignment, instances, rng=rng)
    calldata = encode_calldata(instances, proof)

    on_chain = None
    if verify:
        program = compile_verifier(params, pk.vk, pk.vk.shape, pk.vk.num_instances)
        on_chain = verify_on_chain(compile_to_executable(program), calldata, gas_limit=gas_limit)
        on_chain.require_accepted()
        print(f"verified gas cost: {on_chain.gas_used}")

    write_atomic(out_path, proof_to_json(proof, calldata))
    return proof, calldata, on_chain


def verify_proof_hex(
    params_path: PathLike,
    constant: int,
    c: int,
    proof_hex: str,
    circuit: str = "simple",
) -> bool:
    """Verify a hex-encoded proof against the expected public output c."""
    params = load_params(params_path)
    shape = get_circuit(circuit, constant).shape()
    vk = derive_verifying_key(params, shape)
    result = verify_algebraic(vk, [c], parse_hex(proof_hex))
    print(f"Verify proof result: {str(result).lower()}")
    return result
