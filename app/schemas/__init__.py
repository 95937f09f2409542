"""
app/schemas package marker.
"""

from app.schemas.metrics import (
    CustomerRevenueModel,
    HealthResponse,
    MetricsRequest,
    MetricsResponse,
    MetricsUploadResponse,
    MonthKeyModel,
    RevenueRowErrorResponse,
    RevenueTableSummaryResponse,
)

__all__ = [
    "CustomerRevenueModel",
    "HealthResponse",
    "MetricsRequest",
    "MetricsResponse",
    "MetricsUploadResponse",
    "MonthKeyModel",
    "RevenueRowErrorResponse",
    "RevenueTableSummaryResponse",
]
