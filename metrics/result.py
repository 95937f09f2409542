"""
metrics/result.py

Output container of the metrics engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from metrics.base import Series
from metrics.types import MonthKey

BRIDGE_KEYS: tuple[str, ...] = (
    "begin_mrr",
    "new_mrr",
    "upgrade_mrr",
    "downgrade_mrr",
    "churn_mrr",
    "end_mrr",
)
GROWTH_KEYS: tuple[str, ...] = (
    "arr",
    "mrr",
    "new_arr",
    "yoy_growth",
    "max_customer_win",
    "avg_customer_win",
)
RETENTION_KEYS: tuple[str, ...] = (
    "net_new_mrr",
    "ttm_ndr",
    "ttm_gdr",
    "cohort_ndr",
    "cohort_gdr",
)
EVENT_KEYS: tuple[str, ...] = (
    "upgrade_count",
    "downgrade_count",
    "max_upgrade",
    "avg_upgrade",
    "max_downgrade",
    "avg_downgrade",
    "max_churn",
    "avg_churn",
)
CUSTOMER_KEYS: tuple[str, ...] = (
    "begin_customers",
    "new_customers",
    "churned_customers",
    "end_customers",
    "acv",
    "largest_customer",
    "max_concentration",
    "gross_customer_retention",
    "customer_growth",
)
EFFICIENCY_KEYS: tuple[str, ...] = (
    "net_loss",
    "ttm_new_arr_over_loss",
    "ttm_payback",
    "six_month_new_arr_over_loss",
    "six_month_payback",
)

CORE_SERIES_KEYS: tuple[str, ...] = (
    BRIDGE_KEYS + GROWTH_KEYS + RETENTION_KEYS + EVENT_KEYS + CUSTOMER_KEYS
)
SERIES_KEYS: tuple[str, ...] = CORE_SERIES_KEYS + EFFICIENCY_KEYS


@dataclass(frozen=True)
class MetricsResult:
    """
    Every metric series, aligned with the ``dates`` month axis.

    Each series holds one value per month. ``None`` means the metric is
    undefined that month (insufficient history or a zero denominator) and
    is distinct from ``0``.

    The efficiency group (:data:`EFFICIENCY_KEYS`) is ``None`` as a whole
    when no net-loss data was supplied; :meth:`as_dict` then omits those
    keys entirely.
    """

    dates: tuple[MonthKey, ...]

    # MRR bridge
    begin_mrr: Series
    new_mrr: Series
    upgrade_mrr: Series
    downgrade_mrr: Series
    churn_mrr: Series
    end_mrr: Series

    # Growth
    arr: Series
    mrr: Series
    new_arr: Series
    yoy_growth: Series
    max_customer_win: Series
    avg_customer_win: Series

    # Retention
    net_new_mrr: Series
    ttm_ndr: Series
    ttm_gdr: Series
    cohort_ndr: Series
    cohort_gdr: Series

    # Upgrade / downgrade / churn events
    upgrade_count: Series
    downgrade_count: Series
    max_upgrade: Series
    avg_upgrade: Series
    max_downgrade: Series
    avg_downgrade: Series
    max_churn: Series
    avg_churn: Series

    # Customers
    begin_customers: Series
    new_customers: Series
    churned_customers: Series
    end_customers: Series
    acv: Series
    largest_customer: Series
    max_concentration: Series
    gross_customer_retention: Series
    customer_growth: Series

    # Efficiency, present only with net-loss data
    net_loss: Series | None = None
    ttm_new_arr_over_loss: Series | None = None
    ttm_payback: Series | None = None
    six_month_new_arr_over_loss: Series | None = None
    six_month_payback: Series | None = None

    @property
    def month_count(self) -> int:
        return len(self.dates)

    @property
    def has_efficiency(self) -> bool:
        return self.net_loss is not None

    def series(self, key: str) -> Series | None:
        """Return the series stored under *key*; raises KeyError for unknown keys."""
        if key not in SERIES_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def available_keys(self) -> tuple[str, ...]:
        """Keys of every series present in this result, in stable order."""
        return SERIES_KEYS if self.has_efficiency else CORE_SERIES_KEYS

    def as_dict(self) -> dict[str, Any]:
        """
        JSON-safe dictionary of the result.

        ``dates`` becomes a list of ``{"year", "month"}`` objects and every
        series a list. Efficiency keys are absent when the group is absent.
        """
        payload: dict[str, Any] = {"dates": [month.as_dict() for month in self.dates]}
        for key in self.available_keys():
            payload[key] = list(getattr(self, key))
        return payload

