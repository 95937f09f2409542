"""
tests/test_report_formatting.py

Pytest unit tests for value formatting and the shared report layout.
"""

from __future__ import annotations

import dataclasses

import pytest

from app.formatting import MISSING, format_currency, format_month_label, format_value
from app.report_layout import (
    CORE_TABLES,
    EFFICIENCY_TABLE,
    ReportRow,
    first_active_index,
    report_tables,
    table_frame,
)
from metrics.engine import calculate_metrics
from metrics.result import SERIES_KEYS
from metrics.types import CustomerRecord, MonthKey

_DATES = [MonthKey(2023, 12), MonthKey(2024, 1), MonthKey(2024, 2)]


class TestFormatting:
    def test_month_label(self) -> None:
        assert format_month_label(MonthKey(2024, 1)) == "Jan-24"
        assert format_month_label(MonthKey(2009, 12)) == "Dec-09"
        assert format_month_label(None) == ""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1234.4, "$1,234"),
            (-1234.6, "-$1,235"),
            (0, "$0"),
            (-0.2, "$0"),
            (None, MISSING),
        ],
    )
    def test_currency(self, value, expected) -> None:
        assert format_currency(value) == expected

    @pytest.mark.parametrize(
        ("value", "fmt", "expected"),
        [
            (0.1234, "percent", "12.3%"),
            (-0.05, "percent", "-5.0%"),
            (1234, "number", "1,234"),
            (1.234, "ratio", "1.23x"),
            (500, "currency", "$500"),
            (None, "percent", "---"),
        ],
    )
    def test_value(self, value, fmt, expected) -> None:
        assert format_value(value, fmt) == expected


class TestReportLayout:
    def test_every_row_refers_to_a_series(self) -> None:
        for table in CORE_TABLES + (EFFICIENCY_TABLE,):
            for row in table.rows:
                assert row.key in SERIES_KEYS
                assert row.fmt in {"currency", "percent", "number", "ratio"}

    def test_row_fields_are_all_rendered(self) -> None:
        assert [f.name for f in dataclasses.fields(ReportRow)] == ["label", "key", "fmt"]

    def test_efficiency_table_only_with_net_loss(self) -> None:
        customers = [CustomerRecord("Acme", [0, 10, 20])]
        assert report_tables(calculate_metrics(customers, _DATES)) == CORE_TABLES
        with_loss = calculate_metrics(customers, _DATES, [None, -5, None])
        assert report_tables(with_loss)[-1] is EFFICIENCY_TABLE

    def test_first_active_index(self) -> None:
        late = calculate_metrics([CustomerRecord("Acme", [0, 0, 20])], _DATES)
        assert first_active_index(late) == 2

    def test_table_frame_starts_at_first_active_month(self) -> None:
        result = calculate_metrics([CustomerRecord("Acme", [0, 10, 20])], _DATES)
        frame = table_frame(result, CORE_TABLES[0], first_active_index(result))

        assert list(frame.columns) == ["Jan-24", "Feb-24"]
        assert list(frame.index) == ["Begin", "New", "Upgrade", "Downgrade", "Churn", "End"]
        assert frame.loc["End"].tolist() == ["$10", "$20"]
        assert frame.loc["Upgrade", "Feb-24"] == "$10"
