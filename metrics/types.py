"""
metrics/types.py

Input value types shared by the engine and its callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, order=True)
class MonthKey:
    """
    One entry of the month axis.

    Only the calendar month matters; days and time zones are dropped by the
    ingestion layer before a ``MonthKey`` is created.
    """

    year: int
    month: int
    """Calendar month, 1–12."""

    def as_dict(self) -> dict[str, int]:
        return {"year": self.year, "month": self.month}


@dataclass(frozen=True)
class CustomerRecord:
    """
    One customer's realised recurring revenue per month.

    ``revenue[m]`` lines up with ``dates[m]`` of the month axis. Zero (or a
    missing cell) means the customer was not paying that month.
    """

    name: str
    revenue: Sequence[float | None]
