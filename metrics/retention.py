"""
metrics/retention.py

Trailing-twelve-month and fixed-cohort dollar retention.

All four ratios need at least twelve months of history (m >= 12). The TTM
ratios use the inclusive twelve-month window [m - 11, m] of the bridge and
the Begin MRR at its first month as the base:

TTM NDR = (Σ upgrade + Σ downgrade + Σ churn + base) / base
TTM GDR = (Σ downgrade + Σ churn + base) / base

The cohort ratios follow the customers paying exactly twelve months ago,
divided by End MRR of that month:

Cohort NDR = Σ rev(c, m) / end_mrr[m - 12]
Cohort GDR = Σ min(rev(c, m), rev(c, m - 12)) / end_mrr[m - 12]

Cohort NDR credits expansion and can exceed 1; Cohort GDR caps each
customer at their old revenue and cannot.
"""

from __future__ import annotations

from typing import Any, Mapping

from metrics.base import BaseSeriesBuilder, Series, trailing_window
from metrics.revenue import RevenueMatrix

_YEAR = 12
_SENTINEL = None


class RetentionSeriesBuilder(BaseSeriesBuilder):
    """TTM and cohort net/gross dollar retention."""

    provides = ("ttm_ndr", "ttm_gdr", "cohort_ndr", "cohort_gdr")

    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        matrix: RevenueMatrix = inputs["matrix"]
        begin_mrr: Series = inputs["begin_mrr"]
        end_mrr: Series = inputs["end_mrr"]
        upgrade_mrr: Series = inputs["upgrade_mrr"]
        downgrade_mrr: Series = inputs["downgrade_mrr"]
        churn_mrr: Series = inputs["churn_mrr"]
        months = range(len(end_mrr))

        return {
            "ttm_ndr": tuple(
                _ttm_retention(m, begin_mrr, downgrade_mrr, churn_mrr, upgrade_mrr) for m in months
            ),
            "ttm_gdr": tuple(
                _ttm_retention(m, begin_mrr, downgrade_mrr, churn_mrr) for m in months
            ),
            "cohort_ndr": tuple(_cohort_retention(m, matrix, end_mrr, capped=False) for m in months),
            "cohort_gdr": tuple(_cohort_retention(m, matrix, end_mrr, capped=True) for m in months),
        }


def _ttm_retention(
    m: int,
    begin_mrr: Series,
    downgrade_mrr: Series,
    churn_mrr: Series,
    upgrade_mrr: Series | None = None,
) -> float | None:
    """
    Trailing-twelve-month dollar retention ending at month *m*.

    Net retention when *upgrade_mrr* is given, gross retention otherwise.
    Returns None before month 12 or when the window's opening MRR is zero.
    """
    if m < _YEAR:
        return _SENTINEL
    window = trailing_window(m, _YEAR)
    base = begin_mrr[window.start]
    if base == 0:
        return _SENTINEL

    sum_downgrades = 0
    sum_churn = 0
    for i in window:
        sum_downgrades += downgrade_mrr[i]
        sum_churn += churn_mrr[i]

    if upgrade_mrr is None:
        return (sum_downgrades + sum_churn + base) / base

    sum_upgrades = 0
    for i in window:
        sum_upgrades += upgrade_mrr[i]
    return (sum_upgrades + sum_downgrades + sum_churn + base) / base


def _cohort_retention(
    m: int,
    matrix: RevenueMatrix,
    end_mrr: Series,
    *,
    capped: bool,
) -> float | None:
    """
    Retention of the cohort paying in month ``m - 12``.

    With *capped* each customer contributes at most their revenue at cohort
    formation (gross); otherwise their full current revenue (net).
    """
    if m < _YEAR or end_mrr[m - _YEAR] == 0:
        return _SENTINEL

    retained = 0
    for c in range(matrix.customer_count):
        old = matrix.rev(c, m - _YEAR)
        if old > 0:
            current = matrix.rev(c, m)
            retained += min(current, old) if capped else current
    return retained / end_mrr[m - _YEAR]
