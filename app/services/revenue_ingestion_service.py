"""
app/services/revenue_ingestion_service.py

Service layer turning an uploaded revenue spreadsheet into a RevenueTable.
Accepts CSV and Excel workbooks; pandas reads ``.xlsx`` with openpyxl and
legacy ``.xls`` with xlrd.

Expected layout
---------------
One header row holding the month columns (dates in any accepted format),
optionally preceded by title or blank rows; one row per customer below it,
with the customer name in a column left of the first month column.

The header row is the first row containing at least ``min_date_headers``
date-like cells. Rows without a customer name and rows without any positive
revenue are skipped and reported as validation errors. The resulting table
always satisfies the metrics engine preconditions: uniform row length,
non-negative values, at least one customer with positive revenue.
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from functools import lru_cache
from typing import Any, Sequence

import pandas as pd
import xlrd

from app.config import get_ingestion_settings
from app.domain.revenue_table import RevenueTable, RowValidationError
from app.logging_utils import log_event
from app.validators.revenue_validator import RevenueCellParser
from metrics.types import CustomerRecord, MonthKey

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({"csv", "xls", "xlsx"})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RevenueFileValidationError(ValueError):
    """
    Raised when an uploaded file cannot be turned into a revenue table.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class RevenueIngestionService:
    """
    Coordinates spreadsheet reading, header detection and row parsing.
    """

    def __init__(
        self,
        *,
        min_date_headers: int,
        max_validation_errors: int,
        log_validation_errors: bool,
        parser: RevenueCellParser | None = None,
    ) -> None:
        self._min_date_headers = max(1, min_date_headers)
        self._max_validation_errors = max(1, max_validation_errors)
        self._log_validation_errors = log_validation_errors
        self._parser = parser or RevenueCellParser()

    def parse_upload(self, *, filename: str, data: bytes) -> RevenueTable:
        """
        Read *data* according to the extension of *filename* and parse it.

        Raises
        ------
        RevenueFileValidationError: Unsupported extension, unreadable file,
            missing header row, or no customer with revenue.
        """
        extension = _extension_of(filename)
        if extension not in SUPPORTED_EXTENSIONS:
            raise RevenueFileValidationError(
                f"Please upload one of: {', '.join(sorted('.' + e for e in SUPPORTED_EXTENSIONS))}."
            )

        if extension == "csv":
            rows = self._read_csv_rows(data)
        else:
            rows = self._read_workbook_rows(data)
        return self.parse_rows(rows, source_filename=filename)

    def parse_rows(
        self,
        rows: Sequence[Sequence[Any]],
        *,
        source_filename: str | None = None,
    ) -> RevenueTable:
        """
        Detect the month header in *rows* and parse every customer row below it.
        """
        if len(rows) < 2:
            raise RevenueFileValidationError(
                "File must have at least a header row and one data row."
            )

        header_index, dates, start_col = self._find_header(rows)

        customers: list[CustomerRecord] = []
        captured_errors: list[RowValidationError] = []
        rows_skipped = 0

        for row_index in range(header_index + 1, len(rows)):
            row = list(rows[row_index])
            row_number = row_index + 1
            if self._parser.is_completely_empty_row(row):
                continue

            name = self._parser.parse_customer_name(row[:start_col])
            if not name:
                rows_skipped += 1
                self._record_error(
                    captured_errors,
                    RowValidationError(
                        row_number=row_number,
                        column=None,
                        message="Row has no customer name.",
                        value=None,
                    ),
                )
                continue

            revenue = [
                self._parser.parse_revenue(row[col] if col < len(row) else None)
                for col in range(start_col, start_col + len(dates))
            ]
            if not any(value > 0 for value in revenue):
                rows_skipped += 1
                self._record_error(
                    captured_errors,
                    RowValidationError(
                        row_number=row_number,
                        column=None,
                        message="Row has no positive revenue.",
                        value=name,
                    ),
                )
                continue

            customers.append(CustomerRecord(name=name, revenue=tuple(revenue)))

        if not customers:
            raise RevenueFileValidationError("No customer data with revenue found in the file.")

        table = RevenueTable(
            customers=customers,
            dates=dates,
            header_row_number=header_index + 1,
            rows_skipped=rows_skipped,
            validation_errors=captured_errors,
            source_filename=source_filename,
        )
        log_event(
            logger,
            logging.INFO,
            "revenue_table_parsed",
            filename=source_filename,
            customers=table.customer_count,
            months=table.month_count,
            first_month=dates[0].as_dict(),
            last_month=dates[-1].as_dict(),
            rows_skipped=rows_skipped,
        )
        return table

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_csv_rows(data: bytes) -> list[list[Any]]:
        text_stream: io.TextIOWrapper | None = None
        try:
            text_stream = io.TextIOWrapper(io.BytesIO(data), encoding="utf-8-sig", newline="")
            return [list(row) for row in csv.reader(text_stream)]
        except UnicodeDecodeError as exc:
            raise RevenueFileValidationError("CSV must be UTF-8 encoded.") from exc
        except csv.Error as exc:
            raise RevenueFileValidationError(f"Invalid CSV format: {exc}") from exc
        finally:
            if text_stream is not None:
                text_stream.detach()

    @staticmethod
    def _read_workbook_rows(data: bytes) -> list[list[Any]]:
        try:
            frame = pd.read_excel(io.BytesIO(data), header=None, sheet_name=0)
        except (ValueError, KeyError, OSError, zipfile.BadZipFile, xlrd.XLRDError) as exc:
            raise RevenueFileValidationError(f"Workbook could not be read: {exc}") from exc

        return [
            [None if _is_missing(value) else value for value in row]
            for row in frame.astype(object).itertuples(index=False, name=None)
        ]

    # ------------------------------------------------------------------
    # Header detection
    # ------------------------------------------------------------------

    def _find_header(
        self,
        rows: Sequence[Sequence[Any]],
    ) -> tuple[int, list[MonthKey], int]:
        """
        Return ``(row index, month axis, first month column)`` of the header row.
        """
        for row_index, row in enumerate(rows):
            dates: list[MonthKey] = []
            start_col = -1
            for col, value in enumerate(row):
                month = self._parser.parse_month(value)
                if month is None:
                    continue
                if start_col == -1:
                    start_col = col
                dates.append(month)

            if len(dates) >= self._min_date_headers:
                return row_index, dates, start_col

        raise RevenueFileValidationError(
            "Could not find date headers. Ensure the spreadsheet has a row with "
            "dates (e.g., 1/31/2024)."
        )

    def _record_error(
        self,
        captured_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "Revenue row skipped row=%s column=%s message=%s value=%r",
                error.row_number,
                error.column,
                error.message,
                error.value,
            )

        if len(captured_errors) < self._max_validation_errors:
            captured_errors.append(error)


def _extension_of(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].strip().lower() if "." in filename else ""


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_revenue_ingestion_service() -> RevenueIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """
    settings = get_ingestion_settings()
    return RevenueIngestionService(
        min_date_headers=settings.min_date_headers,
        max_validation_errors=settings.max_validation_errors,
        log_validation_errors=settings.log_validation_errors,
    )
