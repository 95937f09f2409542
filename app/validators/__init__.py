"""
app/validators package marker.
"""

from app.validators.revenue_validator import RevenueCellParser

__all__ = [
    "RevenueCellParser",
]
