"""
app/api/routers/metrics_export_router.py

Metrics export endpoint.

POST /metrics/export?format=xlsx|csv|json

Body: the same JSON as ``POST /metrics``.

Responses
---------
XLSX → Response, one sheet per report table
       Content-Disposition: attachment; filename=<METRICS_EXPORT_FILENAME>
CSV  → StreamingResponse, one row per month, Content-Type: text/csv
JSON → JSONResponse, Body: {"rows": int, "fields": list[str], "data": list[dict]}

All transformation logic lives in MetricsExportService; the router only
handles HTTP plumbing (serialisation, content-type, error mapping).
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from app.schemas.metrics import MetricsRequest
from app.services.metrics_export_service import (
    ExportFormatError,
    ExportResult,
    MetricsExportService,
    get_metrics_export_service,
)
from app.services.metrics_service import (
    MetricsInputError,
    MetricsService,
    get_metrics_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


# ---------------------------------------------------------------------------
# Serialisation helpers (no business logic)
# ---------------------------------------------------------------------------


def _to_csv_streaming(result: ExportResult, filename: str) -> StreamingResponse:
    """Stream *result* as a UTF-8 CSV file download."""

    def _generate() -> Iterator[str]:
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=result.fields,
            extrasaction="ignore",
            restval="",
            lineterminator="\r\n",
        )
        writer.writeheader()
        yield buf.getvalue()

        for row in result.rows:
            buf.seek(0)
            buf.truncate(0)
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
            yield buf.getvalue()

    return StreamingResponse(
        content=_generate(),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(len(result.rows)),
        },
    )


def _to_json_response(result: ExportResult) -> JSONResponse:
    """Return *result* as a structured JSON response."""
    return JSONResponse(
        content={
            "rows": len(result.rows),
            "fields": result.fields,
            "data": result.rows,
        }
    )


def _to_workbook_response(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.post("/metrics/export", summary="Export computed metrics")
def export_metrics(
    request: MetricsRequest,
    output_format: str = Query(
        default="xlsx",
        alias="format",
        description='Output format: "xlsx" (workbook), "csv" (file download) or "json".',
    ),
    metrics_service: MetricsService = Depends(get_metrics_service),
    export_service: MetricsExportService = Depends(get_metrics_export_service),
) -> Response:
    """
    Compute metrics for the request body and return them in the chosen format.
    """
    try:
        output_format = export_service.validate_format(output_format)
        result = metrics_service.compute(
            request.customer_records(),
            request.month_keys(),
            request.net_loss,
        )
    except (ExportFormatError, MetricsInputError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc

    try:
        if output_format == "xlsx":
            response: Response = _to_workbook_response(
                export_service.to_workbook_bytes(result),
                export_service.workbook_filename,
                export_service.xlsx_media_type,
            )
        else:
            flat = export_service.to_flat(result)
            if output_format == "csv":
                response = _to_csv_streaming(flat, "mrr_metrics.csv")
            else:
                response = _to_json_response(flat)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Metrics export failed format=%r", output_format)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export failed; see server logs for details.",
        ) from exc

    logger.info(
        "Metrics export format=%r months=%d efficiency=%s",
        output_format,
        result.month_count,
        result.has_efficiency,
    )
    return response
