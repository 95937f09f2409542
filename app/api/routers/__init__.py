"""
app/api/routers package marker.
"""

from app.api.routers.metrics_export_router import router as metrics_export_router
from app.api.routers.metrics_router import router as metrics_router

__all__ = [
    "metrics_export_router",
    "metrics_router",
]
