"""Pipeline configuration with the command-line defaults."""

import json
from dataclasses import asdict, dataclass, fields

from evm.interpreter import BLOCK_GAS_LIMIT


@dataclass
class PipelineConfig:
    """Paths and circuit inputs for one pipeline run.

    Attributes:
        params_path: Parameters file
        verifier_path: Verifier program output (assembly text or 0x-hex bytecode)
        proof_path: Proof artifact JSON output
        circuit: Registry name of the circuit
        constant: Circuit constant
        k: Capacity used when generating parameters
        a, b: Private inputs for proving
        c: Expected public output for verification
        gas_limit: Gas available to the on-chain verifier
    """
    params_path: str = "output/params.bin"
    verifier_path: str = "output/Verifier.asm"
    proof_path: str = "output/proof.json"
    circuit: str = "simple"
    constant: int = 7
    k: int = 4
    a: int = 3
    b: int = 5
    c: int = 1575
    gas_limit: int = BLOCK_GAS_LIMIT

    @classmethod
    def from_json(cls, text: str) -> "PipelineConfig":
        """Build a config from a JSON object; unknown keys are rejected."""
        data = json.loads(text)
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown config keys: {sorted(unknown)}")
        return cls(**data)

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=4)
