"""
app/services package marker.
"""

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
    parse_net_loss_inputs,
)
from app.services.revenue_ingestion_service import (
    RevenueFileValidationError,
    RevenueIngestionService,
    get_revenue_ingestion_service,
)

__all__ = [
    "ExportFormatError",
    "ExportResult",
    "MetricsExportService",
    "get_metrics_export_service",
    "MetricsInputError",
    "MetricsService",
    "get_metrics_service",
    "parse_net_loss_inputs",
    "RevenueFileValidationError",
    "RevenueIngestionService",
    "get_revenue_ingestion_service",
]
