"""Sample circuit: out = constant * a^2 * b^2 with `out` public.

Row layout (k=3, rows 5..7 are padding):

    row 0  public   a = out
    row 1  square   a * a = a^2
    row 2  square   b * b = b^2
    row 3  mul      a^2 * b^2 = a^2 b^2
    row 4  scale    constant * a^2 b^2 = out
"""

from typing import Dict, Optional

from circuits.base import CircuitBuilder, CircuitModule
from primitives.field import FR_MODULUS


class SimpleCircuit(CircuitModule):
    """Two private inputs, one public output."""

    name = "simple"
    num_instances = 1

    def synthesize(self, builder: CircuitBuilder, witness: Optional[Dict[str, int]]) -> None:
        a = builder.witness(None if witness is None else witness["a"])
        b = builder.witness(None if witness is None else witness["b"])
        ab = builder.square_then_mul(a, b)
        out = builder.scale(ab, self.constant)
        builder.expose(out, 0)


def expected_output(constant: int, a: int, b: int) -> int:
    """Reference value of the public output, computed mod r."""
    return constant * a * a * b * b % FR_MODULUS
