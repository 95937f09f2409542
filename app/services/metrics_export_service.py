"""
app/services/metrics_export_service.py

Workbook and flat-table export of a MetricsResult.

Workbook layout
---------------
One sheet per report group, each with a header row ``Metric, <month labels>``
and one row per metric holding raw (unformatted) values; undefined values
are written as empty cells:

    MRR Bridge: begin / new / upgrade / downgrade / churn / end
    Growth    : ARR, MRR, New ARR, YoY growth, customer wins
    Retention : net new MRR, TTM and cohort retention, event statistics
    Customers : customer bridge, ACV, concentration, customer retention/growth
    Efficiency: only when net loss was supplied and the sheet is enabled

Flat layout
-----------
One row per month: ``month_index, year, month, month_label`` followed by
every available series key, in a deterministic column order suitable for
CSV or JSON consumers.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import pandas as pd

from app.config import get_export_settings
from app.formatting import format_month_label
from app.report_layout import EFFICIENCY_TABLE, ReportTable, report_tables
from metrics.result import MetricsResult

_VALID_FORMATS: frozenset[str] = frozenset({"xlsx", "csv", "json"})
_SHEET_NAME_LIMIT = 31
_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# Exceptions and result containers
# ---------------------------------------------------------------------------


class ExportFormatError(ValueError):
    """
    Raised when an unsupported export format is requested.
    """


@dataclass
class ExportResult:
    """
    Flat tabular data ready for CSV or JSON serialisation.

    Attributes
    ----------
    rows:   Flat dict per month; all values are JSON-safe scalars or None.
    fields: Ordered column names; deterministic across calls.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class MetricsExportService:
    """
    Serialise metrics for download. Every method is read-only.
    """

    def __init__(self, *, workbook_filename: str, include_efficiency_sheet: bool) -> None:
        self.workbook_filename = workbook_filename
        self._include_efficiency_sheet = include_efficiency_sheet

    @property
    def xlsx_media_type(self) -> str:
        return _XLSX_MEDIA_TYPE

    @staticmethod
    def validate_format(output_format: str) -> str:
        """
        Return the normalised *output_format*.

        Raises
        ------
        ExportFormatError: When the format is not one of xlsx, csv, json.
        """
        normalized = output_format.strip().lower()
        if normalized not in _VALID_FORMATS:
            raise ExportFormatError(
                f"Unknown format {output_format!r}. Valid: {sorted(_VALID_FORMATS)}"
            )
        return normalized

    # ------------------------------------------------------------------
    # Workbook
    # ------------------------------------------------------------------

    def workbook_sheets(self, result: MetricsResult) -> dict[str, pd.DataFrame]:
        """
        Build one DataFrame per sheet, keyed by sheet name, in workbook order.
        """
        labels = [format_month_label(month) for month in result.dates]
        grouped: dict[str, list[list[Any]]] = {}
        for table in self._tables(result):
            sheet_rows = grouped.setdefault(table.sheet_name[:_SHEET_NAME_LIMIT], [])
            for row in table.rows:
                sheet_rows.append([row.label, *result.series(row.key)])

        return {
            sheet_name: pd.DataFrame(rows, columns=["Metric", *labels])
            for sheet_name, rows in grouped.items()
        }

    def to_workbook_bytes(self, result: MetricsResult) -> bytes:
        """
        Render *result* as an ``.xlsx`` workbook and return its bytes.
        """
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            for sheet_name, frame in self.workbook_sheets(result).items():
                frame.to_excel(writer, index=False, sheet_name=sheet_name)
        return buffer.getvalue()

    def _tables(self, result: MetricsResult) -> tuple[ReportTable, ...]:
        tables = report_tables(result)
        if not self._include_efficiency_sheet:
            tables = tuple(table for table in tables if table is not EFFICIENCY_TABLE)
        return tables

    # ------------------------------------------------------------------
    # Flat rows
    # ------------------------------------------------------------------

    def to_flat(self, result: MetricsResult) -> ExportResult:
        """
        One row per month with every available series as a column.
        """
        keys = result.available_keys()
        fields = ["month_index", "year", "month", "month_label", *keys]
        rows: list[dict[str, Any]] = []
        for index, month in enumerate(result.dates):
            row: dict[str, Any] = {
                "month_index": index,
                "year": month.year,
                "month": month.month,
                "month_label": format_month_label(month),
            }
            for key in keys:
                row[key] = result.series(key)[index]
            rows.append(row)
        return ExportResult(rows=rows, fields=fields)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_metrics_export_service() -> MetricsExportService:
    """
    Build and cache the export service with env-driven settings.
    """
    settings = get_export_settings()
    return MetricsExportService(
        workbook_filename=settings.workbook_filename,
        include_efficiency_sheet=settings.include_efficiency_sheet,
    )
