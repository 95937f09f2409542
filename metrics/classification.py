"""
metrics/classification.py

Per-(customer, month) revenue movement classification.

Each cell compares ``curr = rev(c, m)`` with ``prev = rev(c, m - 1)``:

New        curr > 0 and prev == 0      amount = curr
Upgrade    curr > prev and prev > 0    amount = curr - prev   (positive)
Downgrade  curr < prev and curr > 0    amount = curr - prev   (negative)
Churn      curr == 0 and prev > 0      amount = -prev         (negative)
Flat       anything else               amount = 0

The four non-flat predicates are mutually exclusive. ``amount`` is the
signed contribution of the cell to its MRR bridge line, so downstream
builders never repeat the comparisons.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from metrics.revenue import RevenueMatrix


class MovementKind(str, Enum):
    FLAT = "flat"
    NEW = "new"
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"
    CHURN = "churn"


@dataclass(frozen=True)
class Movement:
    """Classified revenue change of one customer between two adjacent months."""

    kind: MovementKind
    amount: float = 0

    @property
    def is_flat(self) -> bool:
        return self.kind is MovementKind.FLAT


FLAT = Movement(MovementKind.FLAT)

# movements[m][c]
MovementGrid = tuple[tuple[Movement, ...], ...]


def classify(curr: float, prev: float) -> Movement:
    """Classify one customer's change from *prev* to *curr*."""
    if curr > 0 and prev == 0:
        return Movement(MovementKind.NEW, curr)
    if curr > prev and prev > 0:
        return Movement(MovementKind.UPGRADE, curr - prev)
    if curr < prev and curr > 0:
        return Movement(MovementKind.DOWNGRADE, curr - prev)
    if curr == 0 and prev > 0:
        return Movement(MovementKind.CHURN, -prev)
    return FLAT


def classify_matrix(matrix: RevenueMatrix) -> MovementGrid:
    """
    Classify every cell of *matrix*, indexed ``[month][customer]``.

    Month 0 compares against the implicit all-zero month ``-1``, so every
    customer paying in the first month is New.
    """
    return tuple(
        tuple(
            classify(matrix.rev(c, m), matrix.rev(c, m - 1))
            for c in range(matrix.customer_count)
        )
        for m in range(matrix.month_count)
    )


def amounts_of(column: tuple[Movement, ...], kind: MovementKind) -> list[float]:
    """Signed amounts of every movement of *kind* in one month, in customer order."""
    return [movement.amount for movement in column if movement.kind is kind]
