"""
app/formatting.py

Display formatting for month labels and metric values.
"""

from __future__ import annotations

from metrics.types import MonthKey

MONTH_NAMES: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

MISSING = "---"


def format_month_label(month: MonthKey | None) -> str:
    """``MonthKey(2024, 1)`` → ``"Jan-24"``."""
    if month is None:
        return ""
    return f"{MONTH_NAMES[month.month - 1]}-{str(month.year)[-2:]}"


def format_currency(value: float | None) -> str:
    if value is None:
        return MISSING
    amount = f"{abs(value):,.0f}"
    if amount == "0":
        return "$0"
    return f"-${amount}" if value < 0 else f"${amount}"


def format_value(value: float | None, fmt: str) -> str:
    """
    Format one metric value.

    Formats: ``currency`` ($1,234), ``percent`` (12.3%), ``number`` (1,234),
    ``ratio`` (1.23x). ``None`` renders as ``---``.
    """
    if value is None:
        return MISSING
    if fmt == "currency":
        return format_currency(value)
    if fmt == "percent":
        return f"{value * 100:.1f}%"
    if fmt == "number":
        return f"{value:,.0f}"
    if fmt == "ratio":
        return f"{value:.2f}x"
    return str(value)
