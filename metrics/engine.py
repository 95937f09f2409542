"""
metrics/engine.py

Entry point of the metrics engine.

The computation is an ordered pass of immutable stages over one shared
context:

    RevenueMatrix → classify_matrix → MRRBridgeBuilder → GrowthSeriesBuilder
    → RetentionSeriesBuilder → EventStatisticsBuilder → CustomerBridgeBuilder
    → EfficiencyBuilder (only with net-loss data)

Each stage reads the raw inputs and the completed series of earlier stages
and contributes its own series; nothing is written back. The engine does
not validate its inputs. Callers must pass a non-empty month axis and
revenue rows of the same length (see ``app.services.metrics_service``).
"""

from __future__ import annotations

from typing import Any, Sequence

from metrics.base import BaseSeriesBuilder
from metrics.bridge import MRRBridgeBuilder
from metrics.classification import classify_matrix
from metrics.customers import CustomerBridgeBuilder
from metrics.efficiency import EfficiencyBuilder, has_net_loss
from metrics.events import EventStatisticsBuilder
from metrics.growth import GrowthSeriesBuilder
from metrics.result import CORE_SERIES_KEYS, EFFICIENCY_KEYS, MetricsResult
from metrics.retention import RetentionSeriesBuilder
from metrics.revenue import RevenueMatrix
from metrics.types import CustomerRecord, MonthKey

# ---------------------------------------------------------------------------
# Stage registry, in execution order
# ---------------------------------------------------------------------------

_CORE_STAGES: tuple[BaseSeriesBuilder, ...] = (
    MRRBridgeBuilder(),
    GrowthSeriesBuilder(),
    RetentionSeriesBuilder(),
    EventStatisticsBuilder(),
    CustomerBridgeBuilder(),
)
_EFFICIENCY_STAGE: BaseSeriesBuilder = EfficiencyBuilder()


def calculate_metrics(
    customers: Sequence[CustomerRecord],
    dates: Sequence[MonthKey],
    net_loss: Sequence[float | None] | None = None,
) -> MetricsResult:
    """
    Compute every metric series for *customers* over the *dates* axis.

    Parameters
    ----------
    customers:
        Customer revenue rows, each ``len(dates)`` long, values non-negative.
    dates:
        Month axis; index ``m`` of every series refers to ``dates[m]``.
    net_loss:
        Optional monthly net loss (a loss is a positive amount), one entry per
        month, ``None`` for unknown months. A series without any defined
        entry is treated as no series.

    Returns
    -------
    MetricsResult
        Series of length ``len(dates)``. The efficiency group is present
        only when *net_loss* has at least one defined entry.

    Usage::

        result = calculate_metrics(customers, dates)
        result.end_mrr[-1]
    """
    matrix = RevenueMatrix(customers, month_count=len(dates))
    context: dict[str, Any] = {
        "matrix": matrix,
        "month_count": matrix.month_count,
        "movements": classify_matrix(matrix),
        "net_loss": net_loss,
    }

    with_efficiency = has_net_loss(net_loss)
    stages = _CORE_STAGES
    if with_efficiency:
        stages = stages + (_EFFICIENCY_STAGE,)

    for stage in stages:
        context = {**context, **stage.build(context)}

    efficiency: dict[str, Any] = {}
    if with_efficiency:
        efficiency = {key: context[key] for key in EFFICIENCY_KEYS}

    return MetricsResult(
        dates=tuple(dates),
        **{key: context[key] for key in CORE_SERIES_KEYS},
        **efficiency,
    )
