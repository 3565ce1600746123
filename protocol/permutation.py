"""Copy-constraint permutation: sigma polynomials and the grand product.

Cell (column j, row i) is labelled K[j] * ω^i. Copy constraints are merged into
cycles; sigma maps each cell to the label of its successor in its cycle.
"""

from typing import Dict, List

from circuits.base import COLUMNS, Cell, CircuitShape
from primitives.field import FR, batch_inverse, domain

# Coset shifts for columns a, b, c. H, 2H and 3H are disjoint.
K1 = 2
K2 = 3
SHIFTS = (1, K1, K2)


def _cycles(shape: CircuitShape) -> Dict[Cell, Cell]:
    """Successor map of the copy-constraint cycles."""
    successor: Dict[Cell, Cell] = {}
    owner: Dict[Cell, Cell] = {}
    members: Dict[Cell, List[Cell]] = {}

    for left, right in shape.copies:
        left_rep = owner.get(left, left)
        right_rep = owner.get(right, right)
        if left_rep == right_rep:
            continue
        left_cycle = members.get(left_rep, [left_rep])
        right_cycle = members.get(right_rep, [right_rep])
        if len(left_cycle) < len(right_cycle):
            left, right = right, left
            left_rep, right_rep = right_rep, left_rep
            left_cycle, right_cycle = right_cycle, left_cycle
        for cell in right_cycle:
            owner[cell] = left_rep
        members[left_rep] = left_cycle + right_cycle
        members.pop(right_rep, None)
        # swapping successors splices the two cycles into one
        successor[left], successor[right] = successor.get(right, right), successor.get(left, left)
    return successor


def sigma_evals(shape: CircuitShape) -> List[FR]:
    """Sigma columns over the domain, one FR array per wire column."""
    points = domain(shape.k)
    successor = _cycles(shape)
    out = []
    for col in COLUMNS:
        column = FR.Zeros(shape.n)
        for row in range(shape.n):
            target = successor.get(Cell(col, row), Cell(col, row))
            shift = SHIFTS[COLUMNS.index(target.column)]
            column[row] = FR(shift) * points[target.row]
        out.append(column)
    return out


def grand_product(wires: List[FR], sigmas: List[FR], beta: FR, gamma: FR, k: int) -> FR:
    """Accumulator z over the domain.

    z[0] = 1, z[i+1] = z[i] * prod_j (w_j + β K_j ω^i + γ) / (w_j + β σ_j + γ).
    The full product wraps back to 1 exactly when every copy constraint holds.
    """
    n = 1 << k
    points = domain(k)
    numerator = FR.Ones(n)
    denominator = FR.Ones(n)
    for shift, wire, sigma in zip(SHIFTS, wires, sigmas):
        numerator = numerator * (wire + beta * FR(shift) * points + gamma)
        denominator = denominator * (wire + beta * sigma + gamma)
    ratios = numerator * batch_inverse(denominator)

    z = FR.Ones(n)
    for i in range(n - 1):
        z[i + 1] = z[i] * ratios[i]
    if z[n - 1] * ratios[n - 1] != FR(1):
        raise ValueError("permutation grand product does not close; copy constraints are violated")
    return z
