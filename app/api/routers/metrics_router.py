"""
app/api/routers/metrics_router.py

Metrics computation HTTP endpoints.

POST /metrics         JSON customers + month axis (+ optional net loss)
POST /metrics/upload  multipart revenue file (+ optional ``net_loss`` form field)

The upload's ``net_loss`` field is a semicolon-separated list with one entry per
month of the parsed file; blank entries mean "no value for that month".
Semicolons keep thousands separators such as ``1,500`` inside one entry.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, status

from app.api.dependencies import get_revenue_upload
from app.config import MetricsIngestionSettings, get_ingestion_settings
from app.domain.revenue_table import RevenueTable
from app.schemas.metrics import (
    MetricsRequest,
    MetricsResponse,
    MetricsUploadResponse,
    RevenueRowErrorResponse,
    RevenueTableSummaryResponse,
)
from app.services.metrics_service import (
    MetricsInputError,
    MetricsService,
    get_metrics_service,
    parse_net_loss_inputs,
)
from app.services.revenue_ingestion_service import (
    RevenueFileValidationError,
    RevenueIngestionService,
    get_revenue_ingestion_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


@router.post("/metrics", response_model=MetricsResponse)
def compute_metrics(
    request: MetricsRequest,
    metrics_service: MetricsService = Depends(get_metrics_service),
) -> MetricsResponse:
    """
    Compute every metric series for the supplied revenue matrix.
    """

    try:
        result = metrics_service.compute(
            request.customer_records(),
            request.month_keys(),
            request.net_loss,
        )
    except MetricsInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Metrics computation failed customers=%d", len(request.customers))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Metrics computation failed; see server logs for details.",
        ) from exc

    return MetricsResponse.from_result(result)


@router.post("/metrics/upload", response_model=MetricsUploadResponse)
def upload_revenue_file(
    file: UploadFile = Depends(get_revenue_upload),
    net_loss: str | None = Form(
        default=None,
        description="Optional semicolon-separated net loss per month; blanks allowed.",
    ),
    settings: MetricsIngestionSettings = Depends(get_ingestion_settings),
    ingestion_service: RevenueIngestionService = Depends(get_revenue_ingestion_service),
    metrics_service: MetricsService = Depends(get_metrics_service),
) -> MetricsUploadResponse:
    """
    Parse one revenue spreadsheet and compute its metrics.
    """

    try:
        data = file.file.read(settings.max_upload_bytes + 1)
    finally:
        file.file.close()

    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.max_upload_bytes} byte upload limit.",
        )

    try:
        table = ingestion_service.parse_upload(filename=file.filename or "", data=data)
        net_loss_series = parse_net_loss_inputs(
            _split_net_loss(net_loss),
            table.month_count,
        )
        result = metrics_service.compute(table.customers, table.dates, net_loss_series)
    except (RevenueFileValidationError, MetricsInputError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Revenue upload failed filename=%r", file.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Revenue upload failed; see server logs for details.",
        ) from exc

    return MetricsUploadResponse(
        table=_table_summary(table),
        metrics=MetricsResponse.from_result(result),
    )


def _split_net_loss(raw: str | None) -> list[str] | None:
    if raw is None or not raw.strip():
        return None
    return [part.strip() for part in raw.split(";")]


def _table_summary(table: RevenueTable) -> RevenueTableSummaryResponse:
    return RevenueTableSummaryResponse(
        filename=table.source_filename,
        customers=table.customer_count,
        months=table.month_count,
        header_row_number=table.header_row_number,
        rows_skipped=table.rows_skipped,
        validation_errors=[
            RevenueRowErrorResponse(
                row_number=error.row_number,
                column=error.column,
                message=error.message,
                value=error.value,
            )
            for error in table.validation_errors
        ],
    )
