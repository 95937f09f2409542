"""
app/validators/revenue_validator.py

Cell-level parsing for revenue spreadsheet ingestion.
"""

from __future__ import annotations

import math
import numbers
from datetime import date, datetime, timedelta
from typing import Any, Sequence

import pandas as pd

from metrics.types import MonthKey

MONTH_HEADER_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y-%m",
    "%b-%y",
    "%b-%Y",
    "%B-%Y",
    "%b %y",
    "%b %Y",
    "%B %Y",
)

# Day 0 of spreadsheet serial dates (accounts for the 1900 leap-year bug).
EXCEL_EPOCH = datetime(1899, 12, 30)

# Serial numbers at or below this are plain numbers, not dates.
MIN_SERIAL_DATE = 365

MIN_HEADER_YEAR = 1900

_CURRENCY_NOISE = str.maketrans("", "", "$, \u00a0")


class RevenueCellParser:
    """
    Parses month headers, customer names and revenue amounts from raw cells.

    Cells come either from ``csv.reader`` (always strings) or from
    ``pandas.read_excel`` (native datetimes, numbers and strings).
    """

    def is_completely_empty_row(self, row: Sequence[Any]) -> bool:
        """
        Return True when all values in the row are empty or whitespace.
        """

        return all(self._is_blank(value) for value in row)

    def parse_month(self, value: Any) -> MonthKey | None:
        """
        Return the calendar month of a date-like header cell, else None.

        Accepted: datetime/date values, numeric workbook cells holding a
        spreadsheet serial date, and strings in ISO or one of
        :data:`MONTH_HEADER_FORMATS`. Years up to 1900 are rejected.
        """

        if self._is_blank(value) or isinstance(value, bool):
            return None

        parsed: date | None = None
        if isinstance(value, (datetime, date)):
            parsed = value
        elif isinstance(value, numbers.Real):
            parsed = self._parse_serial_date(float(value))
        elif isinstance(value, str):
            parsed = self._parse_date_string(value.strip())

        if parsed is None or parsed.year <= MIN_HEADER_YEAR:
            return None
        return MonthKey(year=parsed.year, month=parsed.month)

    def parse_customer_name(self, cells: Sequence[Any]) -> str | None:
        """
        Return the last non-blank text cell of *cells* (the label columns).
        """

        name: str | None = None
        for value in cells:
            if isinstance(value, str) and value.strip():
                name = value.strip()
        return name

    def parse_revenue(self, value: Any) -> float:
        """
        Parse one revenue cell. Blank, unparseable and negative values read as 0.
        """

        if self._is_blank(value) or isinstance(value, bool):
            return 0.0

        if isinstance(value, numbers.Real):
            amount = float(value)
        else:
            cleaned = str(value).translate(_CURRENCY_NOISE)
            try:
                amount = float(cleaned)
            except ValueError:
                return 0.0

        if not math.isfinite(amount):
            return 0.0
        return max(0.0, amount)

    def parse_optional_number(self, value: Any) -> float | None:
        """
        Parse an optional numeric input. Blank reads as None.

        Raises
        ------
        ValueError: When a non-blank value is not a finite number.
        """

        if self._is_blank(value):
            return None
        if isinstance(value, bool):
            raise ValueError(f"{value!r} is not a number.")
        if isinstance(value, str):
            value = value.translate(_CURRENCY_NOISE)
        amount = float(value)
        if not math.isfinite(amount):
            raise ValueError(f"{value!r} is not a finite number.")
        return amount

    @staticmethod
    def _parse_serial_date(serial: float) -> datetime | None:
        if not serial > MIN_SERIAL_DATE:
            return None
        try:
            return EXCEL_EPOCH + timedelta(days=serial)
        except OverflowError:
            return None

    @staticmethod
    def _parse_date_string(raw: str) -> datetime | None:
        normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            return datetime.fromisoformat(normalized)
        except ValueError:
            pass

        for fmt in MONTH_HEADER_FORMATS:
            try:
                return datetime.strptime(raw, fmt)
            except ValueError:
                continue
        return None

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip() == ""
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False
