"""Streamlit frontend for the MRR metrics engine."""

from __future__ import annotations

import hashlib
import time
from typing import Any, Optional

import pandas as pd
import streamlit as st

from app.domain.revenue_table import RevenueTable
from app.formatting import format_month_label
from app.report_layout import first_active_index, report_tables, table_frame
from app.services.metrics_export_service import get_metrics_export_service
from app.services.metrics_service import (
    MetricsInputError,
    get_metrics_service,
    parse_net_loss_inputs,
)
from app.services.revenue_ingestion_service import (
    RevenueFileValidationError,
    get_revenue_ingestion_service,
)
from metrics.result import MetricsResult

st.set_page_config(page_title="MRR Metrics", page_icon="$", layout="wide")

_NET_LOSS_COLUMNS = 6


@st.cache_data(show_spinner=False)
def _parse_revenue_file(data: bytes, filename: str) -> RevenueTable:
    """Parse one uploaded file; cached per file content."""
    return get_revenue_ingestion_service().parse_upload(filename=filename, data=data)


def _month_index(result: MetricsResult, start: int) -> pd.DatetimeIndex:
    """Chart x-axis: first day of each month from *start* onwards."""
    return pd.DatetimeIndex(
        [pd.Timestamp(year=month.year, month=month.month, day=1) for month in result.dates[start:]],
        name="Month",
    )


def _series_frame(result: MetricsResult, columns: dict[str, str], start: int) -> pd.DataFrame:
    """Chart frame with one column per ``{label: key}`` entry."""
    return pd.DataFrame(
        {label: list(result.series(key)[start:]) for label, key in columns.items()},
        index=_month_index(result, start),
    )


def _retention_start(result: MetricsResult, start: int) -> int:
    """First month at or after *start* with a defined TTM NDR."""
    for index in range(start, result.month_count):
        if result.ttm_ndr[index] is not None:
            return index
    return start


def _render_tables(result: MetricsResult, start: int) -> None:
    for table in report_tables(result):
        st.subheader(table.title)
        st.dataframe(table_frame(result, table, start), use_container_width=True)


def _render_charts(result: MetricsResult, start: int) -> None:
    ccol1, ccol2 = st.columns(2)
    with ccol1:
        st.markdown("**MRR Bridge**")
        st.bar_chart(
            _series_frame(
                result,
                {
                    "New": "new_mrr",
                    "Upgrade": "upgrade_mrr",
                    "Downgrade": "downgrade_mrr",
                    "Churn": "churn_mrr",
                },
                start,
            )
        )
        st.line_chart(_series_frame(result, {"End MRR": "end_mrr"}, start))
    with ccol2:
        st.markdown("**ARR**")
        st.line_chart(_series_frame(result, {"ARR": "arr"}, start))

    ccol3, ccol4 = st.columns(2)
    with ccol3:
        st.markdown("**Retention**")
        retention_start = _retention_start(result, start)
        st.line_chart(
            _series_frame(
                result,
                {
                    "TTM NDR": "ttm_ndr",
                    "TTM GDR": "ttm_gdr",
                    "Cohort NDR": "cohort_ndr",
                    "Cohort GDR": "cohort_gdr",
                },
                retention_start,
            )
        )
    with ccol4:
        st.markdown("**Customers**")
        st.bar_chart(
            _series_frame(
                result,
                {"New": "new_customers", "Churn": "churned_customers"},
                start,
            )
        )
        st.line_chart(_series_frame(result, {"End Customers": "end_customers"}, start))


if "uploaded_hash" not in st.session_state:
    st.session_state.uploaded_hash = None
if "revenue_table" not in st.session_state:
    st.session_state.revenue_table = None
if "metrics_result" not in st.session_state:
    st.session_state.metrics_result = None
if "metrics_error" not in st.session_state:
    st.session_state.metrics_error = None
if "execution_time_s" not in st.session_state:
    st.session_state.execution_time_s = None


st.title("MRR Metrics")

st.subheader("Section 1: Revenue Upload")
uploaded_file = st.file_uploader("Upload revenue spreadsheet", type=["csv", "xlsx", "xls"])
if uploaded_file is not None:
    uploaded_bytes = uploaded_file.getvalue()
    uploaded_hash = hashlib.sha256(uploaded_bytes).hexdigest()
    if uploaded_hash != st.session_state.uploaded_hash:
        st.session_state.uploaded_hash = uploaded_hash
        st.session_state.metrics_result = None
        st.session_state.metrics_error = None
        try:
            st.session_state.revenue_table = _parse_revenue_file(uploaded_bytes, uploaded_file.name)
        except RevenueFileValidationError as exc:
            st.session_state.revenue_table = None
            st.session_state.metrics_error = str(exc)

table: Optional[RevenueTable] = st.session_state.revenue_table
if table is None:
    if st.session_state.metrics_error:
        st.error(st.session_state.metrics_error)
    else:
        st.info("Upload a CSV, XLSX or XLS file with one row per customer and one column per month.")
    st.stop()

first_label = format_month_label(table.dates[0])
last_label = format_month_label(table.dates[-1])
st.success(
    f"Loaded {table.customer_count} customers over {table.month_count} months "
    f"({first_label} to {last_label})."
)
if table.rows_skipped:
    st.caption(f"Skipped {table.rows_skipped} row(s) without a customer name or revenue.")
    with st.expander("Skipped rows"):
        st.dataframe(
            pd.DataFrame(
                [
                    {"row": error.row_number, "reason": error.message, "value": error.value}
                    for error in table.validation_errors
                ]
            ),
            use_container_width=True,
        )

st.subheader("Section 2: Net Loss (optional)")
st.caption(
    "Enter monthly net loss as a positive amount (10000 for a $10,000 loss) to enable the "
    "efficiency metrics. Leave blank to skip a month."
)
net_loss_raw: list[Any] = []
for row_start in range(0, table.month_count, _NET_LOSS_COLUMNS):
    columns = st.columns(_NET_LOSS_COLUMNS)
    for offset, column in enumerate(columns):
        index = row_start + offset
        if index >= table.month_count:
            break
        with column:
            net_loss_raw.append(
                st.text_input(
                    format_month_label(table.dates[index]),
                    key=f"net_loss_{st.session_state.uploaded_hash}_{index}",
                    placeholder="0",
                )
            )

if st.button("Calculate Metrics", type="primary"):
    started = time.perf_counter()
    try:
        net_loss = parse_net_loss_inputs(net_loss_raw, table.month_count)
        st.session_state.metrics_result = get_metrics_service().compute(
            table.customers,
            table.dates,
            net_loss,
        )
        st.session_state.metrics_error = None
        st.session_state.execution_time_s = time.perf_counter() - started
    except MetricsInputError as exc:
        st.session_state.metrics_result = None
        st.session_state.metrics_error = str(exc)
        st.session_state.execution_time_s = None


st.subheader("Section 3: Metrics")
if st.session_state.metrics_error:
    st.error(st.session_state.metrics_error)
elif st.session_state.metrics_result is None:
    st.info("Calculate metrics to view results.")
else:
    result: MetricsResult = st.session_state.metrics_result
    start = first_active_index(result)
    if st.session_state.execution_time_s is not None:
        st.caption(f"Execution time: {st.session_state.execution_time_s:.3f}s")

    export_service = get_metrics_export_service()
    st.download_button(
        label="Download Excel Workbook",
        data=export_service.to_workbook_bytes(result),
        file_name=export_service.workbook_filename,
        mime=export_service.xlsx_media_type,
    )

    _render_tables(result, start)
    _render_charts(result, start)
