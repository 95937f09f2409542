"""
tests/test_revenue_ingestion.py

Pytest unit tests for RevenueCellParser and RevenueIngestionService.

Spreadsheets are built in memory; no files are read from disk.
"""

from __future__ import annotations

import io
from datetime import date, datetime

import pandas as pd
import pytest
import xlrd

from app.services.revenue_ingestion_service import (
    SUPPORTED_EXTENSIONS,
    RevenueFileValidationError,
    RevenueIngestionService,
)
from app.validators.revenue_validator import RevenueCellParser
from metrics.types import MonthKey

_REPORT_CSV = (
    "Revenue report,,,\n"
    ",,,\n"
    "Customer,1/31/2024,2/29/2024,3/31/2024\n"
    'Acme,"$1,000",1200,0\n'
    "Beta,,500,500\n"
    "No Revenue,0,0,0\n"
    ",100,100,100\n"
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def parser() -> RevenueCellParser:
    return RevenueCellParser()


@pytest.fixture()
def service() -> RevenueIngestionService:
    return RevenueIngestionService(
        min_date_headers=2,
        max_validation_errors=500,
        log_validation_errors=False,
    )


def _workbook_bytes(rows: list[list[object]]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, index=False, header=False, sheet_name="Revenue")
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Cell parsing
# ---------------------------------------------------------------------------


class TestParseMonth:
    @pytest.mark.parametrize(
        "value",
        [
            "1/31/2024",
            "01/31/24",
            "2024-01-31",
            "2024-01",
            "Jan-24",
            "Jan 2024",
            "January 2024",
            datetime(2024, 1, 31, 12, 30),
            date(2024, 1, 1),
            pd.Timestamp("2024-01-31"),
            45322,
        ],
    )
    def test_accepted_formats(self, parser, value) -> None:
        assert parser.parse_month(value) == MonthKey(2024, 1)

    @pytest.mark.parametrize(
        "value",
        ["Customer", "", "   ", None, 100, 365, True, "1/1/1900", float("nan")],
    )
    def test_rejected_values(self, parser, value) -> None:
        assert parser.parse_month(value) is None


class TestParseRevenue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("$1,234.50", 1234.5),
            ("1 000", 1000.0),
            (250, 250.0),
            (-5, 0.0),
            ("-$20", 0.0),
            ("n/a", 0.0),
            ("inf", 0.0),
            (None, 0.0),
            ("", 0.0),
            (float("nan"), 0.0),
        ],
    )
    def test_values(self, parser, value, expected) -> None:
        assert parser.parse_revenue(value) == expected


class TestParseCustomerName:
    def test_last_text_cell_wins(self, parser) -> None:
        assert parser.parse_customer_name(["EMEA", "Acme Corp", "  "]) == "Acme Corp"

    def test_no_text_cell(self, parser) -> None:
        assert parser.parse_customer_name([None, 12, ""]) is None


class TestParseOptionalNumber:
    def test_blank_is_none(self, parser) -> None:
        assert parser.parse_optional_number("  ") is None
        assert parser.parse_optional_number(None) is None

    def test_numbers(self, parser) -> None:
        assert parser.parse_optional_number("-10,000") == -10000.0
        assert parser.parse_optional_number(12) == 12.0

    @pytest.mark.parametrize("value", ["abc", "nan", True])
    def test_invalid_raises(self, parser, value) -> None:
        with pytest.raises(ValueError):
            parser.parse_optional_number(value)


# ---------------------------------------------------------------------------
# CSV ingestion
# ---------------------------------------------------------------------------


class TestCSVIngestion:
    def test_header_below_title_and_blank_rows(self, service) -> None:
        table = service.parse_upload(filename="report.csv", data=_REPORT_CSV.encode("utf-8"))

        assert table.header_row_number == 3
        assert table.dates == [MonthKey(2024, 1), MonthKey(2024, 2), MonthKey(2024, 3)]
        assert [c.name for c in table.customers] == ["Acme", "Beta"]
        assert list(table.customers[0].revenue) == [1000.0, 1200.0, 0.0]
        assert list(table.customers[1].revenue) == [0.0, 500.0, 500.0]
        assert table.source_filename == "report.csv"

    def test_skipped_rows_are_reported(self, service) -> None:
        table = service.parse_upload(filename="report.csv", data=_REPORT_CSV.encode("utf-8"))

        assert table.rows_skipped == 2
        assert [e.row_number for e in table.validation_errors] == [6, 7]
        assert table.validation_errors[0].message == "Row has no positive revenue."
        assert table.validation_errors[0].value == "No Revenue"
        assert table.validation_errors[1].message == "Row has no customer name."

    def test_byte_order_mark_is_ignored(self, service) -> None:
        data = "\ufeffCustomer,Jan-24,Feb-24\nAcme,10,20\n".encode("utf-8")
        table = service.parse_upload(filename="bom.csv", data=data)
        assert table.customer_count == 1
        assert table.month_count == 2

    def test_short_rows_are_padded_with_zero(self, service) -> None:
        data = b"Customer,Jan-24,Feb-24,Mar-24\nAcme,10\n"
        table = service.parse_upload(filename="short.csv", data=data)
        assert list(table.customers[0].revenue) == [10.0, 0.0, 0.0]

    def test_validation_errors_are_capped(self) -> None:
        capped = RevenueIngestionService(
            min_date_headers=2,
            max_validation_errors=1,
            log_validation_errors=True,
        )
        table = capped.parse_upload(filename="report.csv", data=_REPORT_CSV.encode("utf-8"))
        assert table.rows_skipped == 2
        assert len(table.validation_errors) == 1

    def test_single_row_rejected(self, service) -> None:
        with pytest.raises(RevenueFileValidationError, match="at least a header row"):
            service.parse_upload(filename="one.csv", data=b"Customer,Jan-24,Feb-24\n")

    def test_missing_date_header_rejected(self, service) -> None:
        with pytest.raises(RevenueFileValidationError, match="Could not find date headers"):
            service.parse_upload(filename="nodates.csv", data=b"Customer,Q1,Q2\nAcme,1,2\n")

    def test_no_revenue_rejected(self, service) -> None:
        data = b"Customer,Jan-24,Feb-24\nAcme,0,0\n"
        with pytest.raises(RevenueFileValidationError, match="No customer data with revenue"):
            service.parse_upload(filename="zero.csv", data=data)

    def test_non_utf8_rejected(self, service) -> None:
        with pytest.raises(RevenueFileValidationError, match="UTF-8"):
            service.parse_upload(filename="latin.csv", data=b"Customer,Jan-24,Feb-24\nCaf\xe9,1,2\n")

    def test_unsupported_extension_rejected(self, service) -> None:
        with pytest.raises(RevenueFileValidationError, match="Please upload one of"):
            service.parse_upload(filename="report.txt", data=_REPORT_CSV.encode("utf-8"))

    def test_min_date_headers_is_respected(self) -> None:
        strict = RevenueIngestionService(
            min_date_headers=3,
            max_validation_errors=10,
            log_validation_errors=False,
        )
        with pytest.raises(RevenueFileValidationError):
            strict.parse_upload(filename="two.csv", data=b"Customer,Jan-24,Feb-24\nAcme,1,2\n")


# ---------------------------------------------------------------------------
# Workbook ingestion
# ---------------------------------------------------------------------------


class TestWorkbookIngestion:
    def test_round_trip(self, service) -> None:
        data = _workbook_bytes(
            [
                ["ARR Report", None, None, None],
                ["Customer", datetime(2024, 1, 31), datetime(2024, 2, 29), datetime(2024, 3, 31)],
                ["Acme", 100, 120, 0],
                ["Beta", 0, 50.5, 50.5],
            ]
        )
        table = service.parse_upload(filename="book.xlsx", data=data)

        assert table.header_row_number == 2
        assert table.dates == [MonthKey(2024, 1), MonthKey(2024, 2), MonthKey(2024, 3)]
        assert [c.name for c in table.customers] == ["Acme", "Beta"]
        assert list(table.customers[1].revenue) == [0.0, 50.5, 50.5]

    def test_corrupt_workbook_rejected(self, service) -> None:
        with pytest.raises(RevenueFileValidationError, match="Workbook could not be read"):
            service.parse_upload(filename="broken.xlsx", data=b"definitely not a zip file")

    def test_legacy_xls_goes_through_read_excel(self, service, monkeypatch) -> None:
        calls: list[dict[str, object]] = []

        def fake_read_excel(source, **kwargs):
            calls.append({"bytes": source.getvalue(), **kwargs})
            return pd.DataFrame(
                [["Customer", "Jan-24", "Feb-24"], ["Acme", 10.0, float("nan")]]
            )

        monkeypatch.setattr(
            "app.services.revenue_ingestion_service.pd.read_excel", fake_read_excel
        )
        table = service.parse_upload(filename="Invoice.XLS", data=b"\xd0\xcf\x11\xe0legacy")

        assert "xls" in SUPPORTED_EXTENSIONS
        assert calls == [{"bytes": b"\xd0\xcf\x11\xe0legacy", "header": None, "sheet_name": 0}]
        assert table.dates == [MonthKey(2024, 1), MonthKey(2024, 2)]
        assert list(table.customers[0].revenue) == [10.0, 0.0]

    def test_corrupt_legacy_workbook_rejected(self, service, monkeypatch) -> None:
        def fake_read_excel(source, **kwargs):
            raise xlrd.XLRDError("Unsupported format, or corrupt file")

        monkeypatch.setattr(
            "app.services.revenue_ingestion_service.pd.read_excel", fake_read_excel
        )
        with pytest.raises(RevenueFileValidationError, match="Workbook could not be read"):
            service.parse_upload(filename="broken.xls", data=b"\xd0\xcf\x11\xe0")
