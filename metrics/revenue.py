"""
metrics/revenue.py

Bounds-safe access to the customer revenue matrix.

Every builder reads revenue through :meth:`RevenueMatrix.rev`, which is a
total function: months before the axis starts, months after it ends, and
missing or NaN cells all read as ``0``. Month ``-1`` therefore behaves as
"no prior revenue" without any special-casing of the first column.
"""

from __future__ import annotations

import math
from typing import Sequence

from metrics.types import CustomerRecord


class RevenueMatrix:
    """
    Read-only view over ``revenue[customer][month]``.

    Usage::

        matrix = RevenueMatrix(customers, month_count=len(dates))
        matrix.rev(0, -1)  # 0, nothing before the first month
    """

    def __init__(self, customers: Sequence[CustomerRecord], month_count: int) -> None:
        self._rows = tuple(tuple(customer.revenue) for customer in customers)
        self._month_count = month_count

    @property
    def customer_count(self) -> int:
        return len(self._rows)

    @property
    def month_count(self) -> int:
        return self._month_count

    def rev(self, customer_index: int, month_index: int) -> float:
        """
        Revenue of customer *customer_index* in month *month_index*.

        Returns ``0`` outside ``[0, month_count)`` and for missing cells.
        """
        if month_index < 0 or month_index >= self._month_count:
            return 0
        row = self._rows[customer_index]
        if month_index >= len(row):
            return 0
        return _cell_value(row[month_index])

    def column(self, month_index: int) -> tuple[float, ...]:
        """Revenue of every customer in *month_index*, in customer order."""
        return tuple(self.rev(c, month_index) for c in range(self.customer_count))


def _cell_value(value: float | None) -> float:
    if value is None:
        return 0
    if isinstance(value, float) and math.isnan(value):
        return 0
    return value
