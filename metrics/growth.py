"""
metrics/growth.py

Growth series derived from the MRR bridge.

Formulas
--------
ARR               = end_mrr * 12
MRR               = end_mrr
New ARR           = arr[m] - arr[m - 12]              (m >= 12)
YoY Growth        = mrr[m] / mrr[m - 12] - 1          (m >= 12, mrr[m - 12] != 0)
Max Customer Win  = largest first-month MRR of a New customer
Avg Customer Win  = mean first-month MRR of New customers

Insufficient history and zero denominators return None for the affected
month. The customer-win series are None (not 0) in months without a New
customer.
"""

from __future__ import annotations

from typing import Any, Mapping

from metrics.base import BaseSeriesBuilder, Series, mean_or_none
from metrics.classification import MovementGrid, MovementKind, amounts_of

_YEAR = 12
_SENTINEL = None  # value stored when a metric cannot be computed


class GrowthSeriesBuilder(BaseSeriesBuilder):
    """ARR, trailing New ARR, year-over-year growth and new-customer wins."""

    provides = ("arr", "mrr", "new_arr", "yoy_growth", "max_customer_win", "avg_customer_win")

    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        end_mrr: Series = inputs["end_mrr"]
        movements: MovementGrid = inputs["movements"]
        months = range(len(end_mrr))

        arr = tuple(value * 12 for value in end_mrr)
        mrr = tuple(end_mrr)
        wins = [amounts_of(column, MovementKind.NEW) for column in movements]

        return {
            "arr": arr,
            "mrr": mrr,
            "new_arr": tuple(_new_arr(arr, m) for m in months),
            "yoy_growth": tuple(_yoy_growth(mrr, m) for m in months),
            "max_customer_win": tuple(max(w) if w else _SENTINEL for w in wins),
            "avg_customer_win": tuple(mean_or_none(w) for w in wins),
        }


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def _new_arr(arr: Series, m: int) -> float | None:
    """New ARR = ARR now minus ARR twelve months ago. None before month 12."""
    if m < _YEAR:
        return _SENTINEL
    return arr[m] - arr[m - _YEAR]


def _yoy_growth(mrr: Series, m: int) -> float | None:
    """
    YoY Growth = mrr[m] / mrr[m - 12] - 1.

    Returns None before month 12 or when MRR twelve months ago is zero.
    """
    if m < _YEAR or mrr[m - _YEAR] == 0:
        return _SENTINEL
    return mrr[m] / mrr[m - _YEAR] - 1