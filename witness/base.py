"""Witness assignment followed by the mandatory constraint check."""

from typing import Dict, List, Optional

from circuits import Assignment, CircuitShape, check, get_circuit


def build(
    witness: Dict[str, int],
    constant: int,
    circuit: str = "simple",
    k: Optional[int] = None,
    instances: Optional[List[int]] = None,
) -> Assignment:
    """Assign every cell from the witness and check all constraints.

    Args:
        witness: Private inputs by name, e.g. {"a": 3, "b": 5}
        constant: Circuit configuration value
        circuit: Registry name of the circuit
        k: Row capacity (log2); None picks the smallest that fits
        instances: Claimed public inputs. When given they replace the computed
            ones, so a wrong claim is caught by the check below.

    Returns:
        Assignment with checked=True

    Raises:
        ConstraintViolation: if any gate or copy constraint fails
    """
    module = get_circuit(circuit, constant, k=k)
    _, assignment = module.assign(witness)
    if instances is not None:
        assignment.instances = [int(x) for x in instances]
    check(module.shape(), assignment)
    return assignment


def build_for_shape(
    shape: CircuitShape,
    witness: Dict[str, int],
    instances: Optional[List[int]] = None,
) -> Assignment:
    """Like build(), but laid out for an existing shape (e.g. from a verifying key)."""
    return build(witness, shape.constant, circuit=shape.name, k=shape.k, instances=instances)
