"""Circuits - Gate tables and circuit definitions."""

from typing import Dict, Optional, Type

from circuits.base import (
    Assignment,
    Cell,
    CircuitBuilder,
    CircuitModule,
    CircuitShape,
    Column,
    Gate,
    GateKind,
    check,
)
from circuits.simple import SimpleCircuit, expected_output

CIRCUIT_REGISTRY: Dict[str, Type[CircuitModule]] = {
    "simple": SimpleCircuit,
}


def get_circuit(name: str, constant: int, k: Optional[int] = None) -> CircuitModule:
    """Instantiate a registered circuit.

    Raises:
        KeyError: if no circuit is registered under name
    """
    if name not in CIRCUIT_REGISTRY:
        raise KeyError(f"unknown circuit {name!r}, available: {sorted(CIRCUIT_REGISTRY)}")
    return CIRCUIT_REGISTRY[name](constant, k=k)


__all__ = [
    "Assignment",
    "CIRCUIT_REGISTRY",
    "Cell",
    "CircuitBuilder",
    "CircuitModule",
    "CircuitShape",
    "Column",
    "Gate",
    "GateKind",
    "SimpleCircuit",
    "check",
    "expected_output",
    "get_circuit",
]
