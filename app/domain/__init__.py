"""
app/domain package marker.
"""

from app.domain.revenue_table import RevenueTable, RowValidationError

__all__ = [
    "RevenueTable",
    "RowValidationError",
]
