"""
metrics/events.py

Per-month upgrade, downgrade and churn event statistics.

Downgrade and churn magnitudes are signed (non-positive), so their "max"
is the most negative value of the month. Every max/average series is None
in a month without any event of that type.
"""

from __future__ import annotations

from typing import Any, Mapping

from metrics.base import BaseSeriesBuilder, Series, mean_or_none
from metrics.classification import MovementGrid, MovementKind, amounts_of

_SENTINEL = None


class EventStatisticsBuilder(BaseSeriesBuilder):
    """Counts and max/average magnitudes of upgrade, downgrade and churn events."""

    provides = (
        "upgrade_count",
        "downgrade_count",
        "max_upgrade",
        "avg_upgrade",
        "max_downgrade",
        "avg_downgrade",
        "max_churn",
        "avg_churn",
    )

    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        movements: MovementGrid = inputs["movements"]

        upgrades = [amounts_of(column, MovementKind.UPGRADE) for column in movements]
        downgrades = [amounts_of(column, MovementKind.DOWNGRADE) for column in movements]
        churns = [amounts_of(column, MovementKind.CHURN) for column in movements]

        return {
            "upgrade_count": tuple(len(u) for u in upgrades),
            "downgrade_count": tuple(len(d) for d in downgrades),
            "max_upgrade": tuple(max(u) if u else _SENTINEL for u in upgrades),
            "avg_upgrade": tuple(mean_or_none(u) for u in upgrades),
            "max_downgrade": tuple(min(d) if d else _SENTINEL for d in downgrades),
            "avg_downgrade": tuple(mean_or_none(d) for d in downgrades),
            "max_churn": tuple(min(c) if c else _SENTINEL for c in churns),
            "avg_churn": tuple(mean_or_none(c) for c in churns),
        }
