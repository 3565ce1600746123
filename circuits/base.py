"""Circuit model: gate table, copy constraints and the builder that fills them.

A circuit is a fixed table of rows over three wire columns (a, b, c). Each row
carries one gate whose selectors instantiate

    qL*a + qR*b + qO*c + qM*a*b + qC + PI = 0

where PI is -x_i on the i-th public row and zero elsewhere. Repeated uses of a
value are tied together by copy constraints between cells.

The same synthesize() routine runs twice: once with unknown values to obtain
the CircuitShape used for key derivation, and once with a concrete witness to
obtain the Assignment. Shape and assignment therefore cannot disagree about
layout.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from primitives.field import FR, FR_MODULUS, MAX_K, fr_array
from protocol.errors import ConstraintViolation

SELECTOR_NAMES = ("q_l", "q_r", "q_o", "q_m", "q_c")


class Column(Enum):
    A = "a"
    B = "b"
    C = "c"


COLUMNS = (Column.A, Column.B, Column.C)


class GateKind(Enum):
    PUBLIC = "public"
    MUL = "mul"
    SCALE = "scale"


@dataclass(frozen=True)
class Gate:
    """One row of the gate table. Selector values are integers mod r."""
    kind: GateKind
    name: str
    q_l: int = 0
    q_r: int = 0
    q_o: int = 0
    q_m: int = 0
    q_c: int = 0

    @classmethod
    def public(cls) -> "Gate":
        # a - x = 0, with -x supplied through PI
        return cls(GateKind.PUBLIC, "public", q_l=1)

    @classmethod
    def mul(cls, name: str = "mul") -> "Gate":
        # a * b - c = 0
        return cls(GateKind.MUL, name, q_m=1, q_o=FR_MODULUS - 1)

    @classmethod
    def scale(cls, constant: int) -> "Gate":
        # constant * a - c = 0
        return cls(GateKind.SCALE, "scale", q_l=constant % FR_MODULUS, q_o=FR_MODULUS - 1)


@dataclass(frozen=True)
class Cell:
    column: Column
    row: int

    def __str__(self) -> str:
        return f"{self.column.value}[{self.row}]"


# --- Shape and assignment ---

@dataclass
class CircuitShape:
    """Fixed constraint system: everything key derivation needs, no values.

    Attributes:
        name: Registry name of the circuit
        constant: Circuit-level configuration value baked into the selectors
        k: log2 of the row capacity
        num_instances: Number of public inputs, placed on rows 0..num_instances-1
        gates: Gate for each used row (rows past len(gates) are zero padding)
        copies: Pairs of cells that must hold equal values
    """
    name: str
    constant: int
    k: int
    num_instances: int
    gates: List[Gate]
    copies: List[Tuple[Cell, Cell]] = field(default_factory=list)

    @property
    def n(self) -> int:
        return 1 << self.k

    def selector_evals(self) -> Dict[str, FR]:
        """Selector columns over the full domain, keyed by SELECTOR_NAMES."""
        out = {}
        for name in SELECTOR_NAMES:
            values = [getattr(g, name) for g in self.gates]
            values += [0] * (self.n - len(values))
            out[name] = fr_array(values)
        return out

    def public_evals(self, instances: List[int]) -> FR:
        """PI column: -x_i on public row i, zero elsewhere."""
        values = [0] * self.n
        for i, x in enumerate(instances):
            values[i] = -int(x)
        return fr_array(values)

    def describe(self) -> str:
        """Human-readable gate table."""
        lines = [f"circuit {self.name} (constant={self.constant}, k={self.k}, rows={len(self.gates)}/{self.n})"]
        for row, gate in enumerate(self.gates):
            sels = " ".join(
                f"{name}={_signed(getattr(gate, name))}"
                for name in SELECTOR_NAMES
                if getattr(gate, name)
            )
            lines.append(f"  row {row:3d}  {gate.name:<10s} {sels}")
        for lhs, rhs in self.copies:
            lines.append(f"  copy {lhs} == {rhs}")
        return "\n".join(lines)


def _signed(value: int) -> str:
    return str(value - FR_MODULUS) if value > FR_MODULUS // 2 else str(value)


@dataclass
class Assignment:
    """Concrete wire values for one proof instance.

    Attributes:
        wires: Column -> FR array of length n
        instances: Public input values
        checked: Set by check() once every constraint has been verified
    """
    wires: Dict[Column, FR]
    instances: List[int]
    checked: bool = False


# --- Builder ---

class Variable:
    """A value flowing through the circuit, bound to the first cell it lands in."""

    __slots__ = ("value", "cell")

    def __init__(self, value: Optional[int]):
        self.value = value
        self.cell: Optional[Cell] = None


class CircuitBuilder:
    """Records gates, cell placements and copy constraints.

    Rows 0..num_instances-1 are reserved for public gates so that PI(X) only
    touches the leading rows of the domain.
    """

    def __init__(self, num_instances: int, known: bool):
        self.known = known
        self.num_instances = num_instances
        self.gates: List[Gate] = [Gate.public() for _ in range(num_instances)]
        self.copies: List[Tuple[Cell, Cell]] = []
        self.values: Dict[Cell, int] = {}
        self.instances: List[Optional[int]] = [None] * num_instances

    def witness(self, value: Optional[int]) -> Variable:
        if self.known and value is None:
            raise ValueError("witness value missing during assignment")
        return Variable(int(value) % FR_MODULUS if self.known else None)

    def _derived(self, compute) -> Variable:
        return Variable(compute() % FR_MODULUS if self.known else None)

    def _place(self, var: Variable, column: Column, row: int) -> None:
        cell = Cell(column, row)
        if var.cell is None:
            var.cell = cell
        else:
            self.copies.append((var.cell, cell))
        if self.known:
            self.values[cell] = var.value

    def _new_row(self, gate: Gate) -> int:
        self.gates.append(gate)
        return len(self.gates) - 1

    # --- gates ---

    def mul(self, x: Variable, y: Variable, name: str = "mul") -> Variable:
        row = self._new_row(Gate.mul(name))
        self._place(x, Column.A, row)
        self._place(y, Column.B, row)
        out = self._derived(lambda: x.value * y.value)
        self._place(out, Column.C, row)
        return out

    def square(self, x: Variable) -> Variable:
        return self.mul(x, x, name="square")

    def scale(self, x: Variable, constant: int) -> Variable:
        row = self._new_row(Gate.scale(constant))
        self._place(x, Column.A, row)
        out = self._derived(lambda: x.value * constant)
        self._place(out, Column.C, row)
        return out

    def square_then_mul(self, x: Variable, y: Variable) -> Variable:
        """Chip: x^2 * y^2 from two squaring rows and one multiplication row."""
        return self.mul(self.square(x), self.square(y))

    def expose(self, var: Variable, index: int) -> None:
        """Constrain var to equal public input `index`."""
        if not 0 <= index < self.num_instances:
            raise ValueError(f"instance index {index} out of range [0, {self.num_instances})")
        self._place(var, Column.A, index)
        if self.known:
            self.instances[index] = var.value

    # --- results ---

    def required_k(self) -> int:
        k = 1
        while (1 << k) < len(self.gates):
            k += 1
        return k

    def wires(self, n: int) -> Dict[Column, FR]:
        columns = {col: [0] * n for col in COLUMNS}
        for cell, value in self.values.items():
            columns[cell.column][cell.row] = value
        return {col: fr_array(vals) for col, vals in columns.items()}


class CircuitModule(ABC):
    """A circuit family parameterised by `constant`.

    Subclasses set `name` and `num_instances` and describe their rows in
    synthesize(); shape() and assign() are derived from it.
    """

    name: str = ""
    num_instances: int = 0

    def __init__(self, constant: int, k: Optional[int] = None):
        self.constant = int(constant) % FR_MODULUS
        self.k = k

    @abstractmethod
    def synthesize(self, builder: CircuitBuilder, witness: Optional[Dict[str, int]]) -> None:
        """Lay out the circuit rows. witness is None when only the shape is wanted."""
        pass

    def _run(self, witness: Optional[Dict[str, int]]) -> Tuple[CircuitBuilder, int]:
        builder = CircuitBuilder(self.num_instances, known=witness is not None)
        self.synthesize(builder, witness)
        required = builder.required_k()
        k = required if self.k is None else self.k
        if k < required:
            raise ValueError(
                f"circuit {self.name} needs {len(builder.gates)} rows, k={k} gives {1 << k}"
            )
        if k > MAX_K:
            raise ValueError(f"k={k} exceeds the maximum domain size 2^{MAX_K}")
        return builder, k

    def shape(self) -> CircuitShape:
        builder, k = self._run(None)
        return CircuitShape(
            name=self.name,
            constant=self.constant,
            k=k,
            num_instances=self.num_instances,
            gates=builder.gates,
            copies=builder.copies,
        )

    def assign(self, witness: Dict[str, int]) -> Tuple[List[int], Assignment]:
        """Compute every cell from the witness. Returns (instances, assignment)."""
        builder, k = self._run(witness)
        instances = [int(x) for x in builder.instances]
        return instances, Assignment(wires=builder.wires(1 << k), instances=instances)


# --- Constraint checking ---

def check(shape: CircuitShape, assignment: Assignment) -> bool:
    """Evaluate every gate and copy constraint.

    Returns:
        True when all constraints hold

    Raises:
        ConstraintViolation: naming the first failing gate row or copy
    """
    n = shape.n
    if len(assignment.instances) != shape.num_instances:
        raise ConstraintViolation(
            f"expected {shape.num_instances} public inputs, got {len(assignment.instances)}",
            gate="instance", row=0,
        )
    for col in COLUMNS:
        if len(assignment.wires[col]) != n:
            raise ConstraintViolation(
                f"column {col.value} has {len(assignment.wires[col])} rows, expected {n}",
                gate="layout", row=0, column=col.value,
            )

    a = assignment.wires[Column.A]
    b = assignment.wires[Column.B]
    c = assignment.wires[Column.C]
    sel = shape.selector_evals()
    pi = shape.public_evals(assignment.instances)

    residual = sel["q_l"] * a + sel["q_r"] * b + sel["q_o"] * c + sel["q_m"] * a * b + sel["q_c"] + pi
    failing = np.nonzero(residual != 0)[0]
    if failing.size:
        row = int(failing[0])
        gate = shape.gates[row].name if row < len(shape.gates) else "padding"
        raise ConstraintViolation(f"gate '{gate}' not satisfied at row {row}", gate=gate, row=row)

    for lhs, rhs in shape.copies:
        if assignment.wires[lhs.column][lhs.row] != assignment.wires[rhs.column][rhs.row]:
            raise ConstraintViolation(
                f"copy constraint {lhs} == {rhs} not satisfied",
                gate="copy", row=rhs.row, column=rhs.column.value,
            )

    assignment.checked = True
    return True
