"""Verification engine: algebraic check and execution of the compiled verifier."""

from dataclasses import dataclass
from typing import List, Optional

from evm.interpreter import BLOCK_GAS_LIMIT, execute
from primitives.field import FR_MODULUS
from protocol.errors import VerificationRejected
from protocol.keys import VerifyingKey
from protocol.loader import NativeLoader
from protocol.plonk_verifier import verify_equation
from protocol.proof import PROOF_SIZE, encode_calldata


def verify_algebraic(vk: VerifyingKey, instances: List[int], proof: bytes) -> bool:
    """Check a proof against vk and the claimed public inputs.

    Returns False for any invalid proof, including malformed bytes; never
    raises on proof content. Uses no randomness, so the answer is stable.
    """
    instances = [int(x) for x in instances]
    if len(instances) != vk.num_instances:
        print(f"ERROR: expected {vk.num_instances} public inputs, got {len(instances)}")
        return False
    if any(not 0 <= x < FR_MODULUS for x in instances):
        print("ERROR: public input outside the scalar field")
        return False
    if len(proof) != PROOF_SIZE:
        print(f"ERROR: proof must be {PROOF_SIZE} bytes, got {len(proof)}")
        return False

    loader = NativeLoader(instances, proof)
    try:
        accepted = verify_equation(loader, vk)
    except ValueError as e:
        print(f"ERROR: malformed proof: {e}")
        return False
    except ZeroDivisionError:
        print("ERROR: challenge hit the evaluation domain")
        return False
    if not accepted:
        print("ERROR: pairing check failed")
    return bool(accepted)


@dataclass
class OnChainResult:
    """Outcome of executing the verifier program.

    Attributes:
        accepted: Program returned the word 1
        gas_used: Gas consumed, including intrinsic and calldata cost
        reverted: Execution aborted (malformed calldata, failed precompile, out of gas)
        error: Reason for an aborted execution
    """
    accepted: bool
    gas_used: int
    reverted: bool
    error: str = ""

    def require_accepted(self) -> "OnChainResult":
        """Raise VerificationRejected unless accepted."""
        if not self.accepted:
            reason = f"reverted: {self.error}" if self.reverted else "returned false"
            raise VerificationRejected(f"on-chain verification rejected proof ({reason})")
        return self


def verify_on_chain(executable: bytes, calldata: bytes, gas_limit: Optional[int] = None) -> OnChainResult:
    """Run the compiled verifier against calldata in the bundled interpreter."""
    result = execute(executable, calldata, gas_limit=gas_limit or BLOCK_GAS_LIMIT)
    if not result.success:
        return OnChainResult(accepted=False, gas_used=result.gas_used, reverted=True, error=result.error)
    accepted = len(result.return_data) == 32 and int.from_bytes(result.return_data, "big") == 1
    return OnChainResult(accepted=accepted, gas_used=result.gas_used, reverted=False)


def encode(instances: List[int], proof: bytes) -> bytes:
    return encode_calldata(instances, proof)
