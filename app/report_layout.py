"""
app/report_layout.py

Row layout of the metrics report, shared by the workbook export and the
Streamlit UI so both present the same tables in the same order.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from app.formatting import format_month_label, format_value
from metrics.result import MetricsResult


@dataclass(frozen=True)
class ReportRow:
    label: str
    key: str
    fmt: str
    """One of ``currency``, ``percent``, ``number``, ``ratio``."""


@dataclass(frozen=True)
class ReportTable:
    title: str
    sheet_name: str
    rows: tuple[ReportRow, ...]


MRR_BRIDGE_TABLE = ReportTable(
    title="MRR Bridge",
    sheet_name="MRR Bridge",
    rows=(
        ReportRow("Begin", "begin_mrr", "currency"),
        ReportRow("New", "new_mrr", "currency"),
        ReportRow("Upgrade", "upgrade_mrr", "currency"),
        ReportRow("Downgrade", "downgrade_mrr", "currency"),
        ReportRow("Churn", "churn_mrr", "currency"),
        ReportRow("End", "end_mrr", "currency"),
    ),
)

GROWTH_TABLE = ReportTable(
    title="Growth",
    sheet_name="Growth",
    rows=(
        ReportRow("ARR", "arr", "currency"),
        ReportRow("MRR", "mrr", "currency"),
        ReportRow("New ARR (TTM)", "new_arr", "currency"),
        ReportRow("YOY Growth", "yoy_growth", "percent"),
        ReportRow("Max Customer Win", "max_customer_win", "currency"),
        ReportRow("Avg Customer Win", "avg_customer_win", "currency"),
    ),
)

RETENTION_TABLE = ReportTable(
    title="Retention",
    sheet_name="Retention",
    rows=(
        ReportRow("Net New MRR", "net_new_mrr", "currency"),
        ReportRow("TTM NDR", "ttm_ndr", "percent"),
        ReportRow("TTM GDR", "ttm_gdr", "percent"),
        ReportRow("Cohort NDR", "cohort_ndr", "percent"),
        ReportRow("Cohort GDR", "cohort_gdr", "percent"),
    ),
)

EVENTS_TABLE = ReportTable(
    title="Upgrades, Downgrades & Churn",
    sheet_name="Retention",
    rows=(
        ReportRow("Upgrades (#)", "upgrade_count", "number"),
        ReportRow("Downgrades (#)", "downgrade_count", "number"),
        ReportRow("Max Upgrade", "max_upgrade", "currency"),
        ReportRow("Avg Upgrade", "avg_upgrade", "currency"),
        ReportRow("Max Downgrade", "max_downgrade", "currency"),
        ReportRow("Avg Downgrade", "avg_downgrade", "currency"),
        ReportRow("Max Churn", "max_churn", "currency"),
        ReportRow("Avg Churn", "avg_churn", "currency"),
    ),
)

CUSTOMERS_TABLE = ReportTable(
    title="Customers",
    sheet_name="Customers",
    rows=(
        ReportRow("Begin", "begin_customers", "number"),
        ReportRow("New", "new_customers", "number"),
        ReportRow("Churn", "churned_customers", "number"),
        ReportRow("End", "end_customers", "number"),
        ReportRow("ACV", "acv", "currency"),
        ReportRow("Largest Customer", "largest_customer", "currency"),
        ReportRow("Max Concentration", "max_concentration", "percent"),
        ReportRow("Gross Cust. Retention (TTM)", "gross_customer_retention", "percent"),
        ReportRow("Customer Growth (YOY)", "customer_growth", "percent"),
    ),
)

EFFICIENCY_TABLE = ReportTable(
    title="Efficiency",
    sheet_name="Efficiency",
    rows=(
        ReportRow("Net Loss", "net_loss", "currency"),
        ReportRow("TTM New ARR / TTM Net Loss", "ttm_new_arr_over_loss", "ratio"),
        ReportRow("Payback Period (TTM)", "ttm_payback", "ratio"),
        ReportRow("6mo New ARR / 6mo Net Loss", "six_month_new_arr_over_loss", "ratio"),
        ReportRow("Payback Period (6mo)", "six_month_payback", "ratio"),
    ),
)

CORE_TABLES: tuple[ReportTable, ...] = (
    MRR_BRIDGE_TABLE,
    GROWTH_TABLE,
    RETENTION_TABLE,
    EVENTS_TABLE,
    CUSTOMERS_TABLE,
)


def report_tables(result: MetricsResult) -> tuple[ReportTable, ...]:
    """Tables to present for *result*; Efficiency only when net loss was supplied."""
    if result.has_efficiency:
        return CORE_TABLES + (EFFICIENCY_TABLE,)
    return CORE_TABLES


def first_active_index(result: MetricsResult) -> int:
    """Index of the first month with positive End MRR, or 0 when there is none."""
    for index, value in enumerate(result.end_mrr):
        if value > 0:
            return index
    return 0


def table_frame(
    result: MetricsResult,
    table: ReportTable,
    start: int = 0,
) -> pd.DataFrame:
    """
    Formatted display frame of *table*: one row per metric, one column per
    month from *start* onwards.
    """
    labels = [format_month_label(month) for month in result.dates[start:]]
    rows = [
        [format_value(value, row.fmt) for value in result.series(row.key)[start:]]
        for row in table.rows
    ]
    return pd.DataFrame(rows, index=[row.label for row in table.rows], columns=labels)
