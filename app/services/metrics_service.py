"""
app/services/metrics_service.py

Metrics computation service.

Guards the metrics engine's input contract and wraps every run with
structured logging. The engine itself (``metrics.engine``) performs no
validation; every precondition is checked here:

    - at least one month and at least one customer
    - every revenue row exactly as long as the month axis
    - at least one positive revenue value
    - net-loss series, when given, exactly as long as the month axis

A net-loss series without any defined entry is dropped before the engine
runs, so the efficiency group is absent from the result.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Sequence

from app.logging_utils import log_event
from app.validators.revenue_validator import RevenueCellParser
from metrics.efficiency import has_net_loss
from metrics.engine import calculate_metrics
from metrics.result import MetricsResult
from metrics.types import CustomerRecord, MonthKey

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MetricsInputError(ValueError):
    """
    Raised when inputs violate the metrics engine's preconditions.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class MetricsService:
    """
    Stateless wrapper around :func:`metrics.engine.calculate_metrics`.

    Usage::

        service = MetricsService()
        result = service.compute(customers, dates, net_loss=None)
        print(result.end_mrr[-1])
    """

    def compute(
        self,
        customers: Sequence[CustomerRecord],
        dates: Sequence[MonthKey],
        net_loss: Sequence[float | None] | None = None,
    ) -> MetricsResult:
        """
        Validate the inputs and run the metrics engine.

        Raises
        ------
        MetricsInputError: When any precondition listed in the module
            docstring is violated.
        """
        self._validate(customers, dates, net_loss)
        if not has_net_loss(net_loss):
            net_loss = None

        started = time.perf_counter()
        result = calculate_metrics(customers, dates, net_loss)
        elapsed_ms = (time.perf_counter() - started) * 1000

        log_event(
            logger,
            logging.INFO,
            "metrics_computed",
            customers=len(customers),
            months=len(dates),
            efficiency=result.has_efficiency,
            elapsed_ms=round(elapsed_ms, 3),
        )
        return result

    @staticmethod
    def _validate(
        customers: Sequence[CustomerRecord],
        dates: Sequence[MonthKey],
        net_loss: Sequence[float | None] | None,
    ) -> None:
        month_count = len(dates)
        if month_count == 0:
            raise MetricsInputError("At least one month is required.")
        if not customers:
            raise MetricsInputError("At least one customer is required.")

        has_revenue = False
        for index, customer in enumerate(customers):
            if not customer.name or not customer.name.strip():
                raise MetricsInputError(f"Customer #{index + 1} has no name.")
            if len(customer.revenue) != month_count:
                raise MetricsInputError(
                    f"Customer {customer.name!r} has {len(customer.revenue)} revenue "
                    f"values; expected {month_count}."
                )
            for value in customer.revenue:
                if value is not None and value < 0:
                    raise MetricsInputError(
                        f"Customer {customer.name!r} has negative revenue {value!r}."
                    )
                if value is not None and value > 0:
                    has_revenue = True

        if not has_revenue:
            raise MetricsInputError("No customer data with revenue was supplied.")

        if net_loss is not None and len(net_loss) != month_count:
            raise MetricsInputError(
                f"Net loss has {len(net_loss)} values; expected {month_count}."
            )


def parse_net_loss_inputs(
    values: Sequence[Any] | None,
    month_count: int,
    parser: RevenueCellParser | None = None,
) -> list[float | None] | None:
    """
    Turn raw per-month net-loss inputs into a net-loss series.

    Blank inputs become ``None``. Returns ``None`` when no month has a value,
    which disables the efficiency metrics.

    Raises
    ------
    MetricsInputError: When the number of inputs differs from *month_count*
        or an input is not a number.
    """
    if values is None:
        return None
    if len(values) != month_count:
        raise MetricsInputError(
            f"Net loss has {len(values)} values; expected {month_count}."
        )

    parser = parser or RevenueCellParser()
    series: list[float | None] = []
    for index, raw in enumerate(values):
        try:
            series.append(parser.parse_optional_number(raw))
        except ValueError as exc:
            raise MetricsInputError(
                f"Net loss for month {index + 1} is not a number: {raw!r}."
            ) from exc

    return series if has_net_loss(series) else None


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_metrics_service() -> MetricsService:
    """
    Return the shared metrics service instance.
    """
    return MetricsService()
