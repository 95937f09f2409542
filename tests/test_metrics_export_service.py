"""
tests/test_metrics_export_service.py

Pytest unit tests for MetricsExportService.

Coverage
--------
- Workbook sheet grouping and layout
- Efficiency sheet presence rules
- Workbook bytes readable by pandas
- Flat per-month rows and deterministic field order
- Format validation
"""

from __future__ import annotations

import io
import math

import pandas as pd
import pytest

from app.services.metrics_export_service import ExportFormatError, MetricsExportService
from metrics.engine import calculate_metrics
from metrics.result import CORE_SERIES_KEYS, EFFICIENCY_KEYS, MetricsResult
from metrics.types import CustomerRecord, MonthKey

_DATES = [MonthKey(2024, 1), MonthKey(2024, 2), MonthKey(2024, 3)]
_CUSTOMERS = [CustomerRecord("Acme", [100, 120, 0]), CustomerRecord("Beta", [0, 50, 50])]


@pytest.fixture()
def svc() -> MetricsExportService:
    return MetricsExportService(workbook_filename="MRR_Metrics.xlsx", include_efficiency_sheet=True)


@pytest.fixture()
def result() -> MetricsResult:
    return calculate_metrics(_CUSTOMERS, _DATES)


@pytest.fixture()
def result_with_loss() -> MetricsResult:
    return calculate_metrics(_CUSTOMERS, _DATES, [-10, -10, None])


class TestWorkbookSheets:
    def test_core_sheets_in_order(self, svc, result) -> None:
        sheets = svc.workbook_sheets(result)
        assert list(sheets) == ["MRR Bridge", "Growth", "Retention", "Customers"]

    def test_header_row_and_labels(self, svc, result) -> None:
        bridge = svc.workbook_sheets(result)["MRR Bridge"]
        assert list(bridge.columns) == ["Metric", "Jan-24", "Feb-24", "Mar-24"]
        assert list(bridge["Metric"]) == ["Begin", "New", "Upgrade", "Downgrade", "Churn", "End"]
        end_row = bridge.iloc[-1].tolist()
        assert end_row == ["End", 100, 170, 50]

    def test_retention_sheet_holds_event_rows(self, svc, result) -> None:
        retention = svc.workbook_sheets(result)["Retention"]
        assert len(retention) == 13
        assert retention["Metric"].iloc[0] == "Net New MRR"
        assert "Max Churn" in retention["Metric"].tolist()

    def test_efficiency_sheet_when_net_loss_given(self, svc, result_with_loss) -> None:
        sheets = svc.workbook_sheets(result_with_loss)
        assert list(sheets)[-1] == "Efficiency"
        assert sheets["Efficiency"]["Metric"].iloc[0] == "Net Loss"

    def test_efficiency_sheet_can_be_disabled(self, result_with_loss) -> None:
        svc = MetricsExportService(workbook_filename="x.xlsx", include_efficiency_sheet=False)
        assert "Efficiency" not in svc.workbook_sheets(result_with_loss)


class TestWorkbookBytes:
    def test_readable_by_pandas(self, svc, result_with_loss) -> None:
        content = svc.to_workbook_bytes(result_with_loss)
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None)

        assert list(sheets) == ["MRR Bridge", "Growth", "Retention", "Customers", "Efficiency"]
        customers = sheets["Customers"].set_index("Metric")
        assert customers.loc["End"].tolist() == [1, 2, 1]

    def test_undefined_values_are_empty_cells(self, svc, result) -> None:
        content = svc.to_workbook_bytes(result)
        growth = pd.read_excel(io.BytesIO(content), sheet_name="Growth").set_index("Metric")
        assert all(math.isnan(value) for value in growth.loc["YOY Growth"].tolist())

    def test_media_type(self, svc) -> None:
        assert svc.xlsx_media_type.endswith("spreadsheetml.sheet")


class TestFlatRows:
    def test_one_row_per_month(self, svc, result) -> None:
        flat = svc.to_flat(result)
        assert len(flat.rows) == 3
        assert flat.rows[1]["month_label"] == "Feb-24"
        assert flat.rows[1]["year"] == 2024
        assert flat.rows[1]["month"] == 2
        assert flat.rows[1]["end_mrr"] == 170
        assert flat.rows[0]["yoy_growth"] is None

    def test_field_order(self, svc, result, result_with_loss) -> None:
        assert svc.to_flat(result).fields == [
            "month_index", "year", "month", "month_label", *CORE_SERIES_KEYS
        ]
        assert svc.to_flat(result_with_loss).fields[-len(EFFICIENCY_KEYS):] == list(EFFICIENCY_KEYS)

    def test_rows_contain_every_field(self, svc, result_with_loss) -> None:
        flat = svc.to_flat(result_with_loss)
        assert all(list(row) == flat.fields for row in flat.rows)


class TestValidateFormat:
    @pytest.mark.parametrize(("raw", "expected"), [("xlsx", "xlsx"), (" CSV ", "csv"), ("Json", "json")])
    def test_accepted(self, raw, expected) -> None:
        assert MetricsExportService.validate_format(raw) == expected

    def test_rejected(self) -> None:
        with pytest.raises(ExportFormatError, match="Unknown format"):
            MetricsExportService.validate_format("pdf")
