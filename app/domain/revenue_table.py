"""
app/domain/revenue_table.py

Domain models produced by the revenue spreadsheet ingestion flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from metrics.types import CustomerRecord, MonthKey


@dataclass(frozen=True)
class RowValidationError:
    """
    One skipped spreadsheet row and the reason it was skipped.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class RevenueTable:
    """
    Parsed customer revenue table, ready for the metrics engine.

    ``customers[i].revenue`` has exactly ``len(dates)`` non-negative values
    and at least one of them is positive.
    """

    customers: list[CustomerRecord]
    dates: list[MonthKey]
    header_row_number: int
    rows_skipped: int = 0
    validation_errors: list[RowValidationError] = field(default_factory=list)
    source_filename: str | None = None

    @property
    def month_count(self) -> int:
        return len(self.dates)

    @property
    def customer_count(self) -> int:
        return len(self.customers)
