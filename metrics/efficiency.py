"""
metrics/efficiency.py

Capital-efficiency ratios driven by an optional monthly net-loss series.

Net loss is entered as a positive amount of money lost (10000 for a
$10,000 loss). The ratios divide by the negated window sum
(``sum_loss * -1``), so a loss-making period with growing ARR yields a
negative ratio and payback.

TTM       ratio = new_arr[m] / -(Σ loss[m-11..m])               (new_arr[m] defined)
6-month   ratio = 12 * Σ (new + upgrade + downgrade + churn)[m-5..m]
                  / -(Σ loss[m-5..m])                            (m >= 5)
Payback   = 1 / ratio                                            (ratio != 0)

Only defined loss entries are summed. A window with no defined entry, or
whose entries sum to zero, yields None for both ratio and payback.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

from metrics.base import BaseSeriesBuilder, Series, trailing_window

_TTM_WINDOW = 12
_SIX_MONTH_WINDOW = 6
_SENTINEL = None


class EfficiencyBuilder(BaseSeriesBuilder):
    """
    New-ARR-to-net-loss ratios and payback periods.

    The engine only runs this stage when :func:`has_net_loss` is true for
    the supplied series.
    """

    provides = (
        "net_loss",
        "ttm_new_arr_over_loss",
        "ttm_payback",
        "six_month_new_arr_over_loss",
        "six_month_payback",
    )

    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        net_loss: Sequence[float | None] = inputs["net_loss"]
        new_arr: Series = inputs["new_arr"]
        new_mrr: Series = inputs["new_mrr"]
        upgrade_mrr: Series = inputs["upgrade_mrr"]
        downgrade_mrr: Series = inputs["downgrade_mrr"]
        churn_mrr: Series = inputs["churn_mrr"]
        months = range(len(new_arr))

        ttm = [_ttm_ratio(m, new_arr, net_loss) for m in months]
        six_month = [
            _six_month_ratio(m, net_loss, new_mrr, upgrade_mrr, downgrade_mrr, churn_mrr)
            for m in months
        ]

        return {
            "net_loss": tuple(_loss_at(net_loss, m) for m in months),
            "ttm_new_arr_over_loss": tuple(ttm),
            "ttm_payback": tuple(_payback(ratio) for ratio in ttm),
            "six_month_new_arr_over_loss": tuple(six_month),
            "six_month_payback": tuple(_payback(ratio) for ratio in six_month),
        }


def has_net_loss(net_loss: Sequence[float | None] | None) -> bool:
    """True when *net_loss* holds at least one defined entry."""
    if not net_loss:
        return False
    return any(_loss_at(net_loss, i) is not None for i in range(len(net_loss)))


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def _loss_at(net_loss: Sequence[float | None], index: int) -> float | None:
    if index < 0 or index >= len(net_loss):
        return None
    value = net_loss[index]
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return value


def _window_loss(net_loss: Sequence[float | None], window: range) -> float | None:
    """
    Sum of the defined loss entries in *window*.

    Returns None when no entry in the window is defined.
    """
    total = 0
    has_loss = False
    for i in window:
        value = _loss_at(net_loss, i)
        if value is not None:
            total += value
            has_loss = True
    return total if has_loss else None


def _ratio(new_arr: float, sum_loss: float | None) -> float | None:
    if sum_loss is None or sum_loss == 0:
        return _SENTINEL
    return new_arr / (sum_loss * -1)


def _ttm_ratio(m: int, new_arr: Series, net_loss: Sequence[float | None]) -> float | None:
    """TTM New ARR over TTM net loss. Effectively None before month 12."""
    if m < _TTM_WINDOW - 1 or new_arr[m] is None:
        return _SENTINEL
    return _ratio(new_arr[m], _window_loss(net_loss, trailing_window(m, _TTM_WINDOW)))


def _six_month_ratio(
    m: int,
    net_loss: Sequence[float | None],
    new_mrr: Series,
    upgrade_mrr: Series,
    downgrade_mrr: Series,
    churn_mrr: Series,
) -> float | None:
    """
    Annualised six-month net-new MRR over six-month net loss.

    The six-month total is multiplied by 12, not 2.
    """
    if m < _SIX_MONTH_WINDOW - 1:
        return _SENTINEL
    window = trailing_window(m, _SIX_MONTH_WINDOW)
    sum_new = 0
    for i in window:
        sum_new += new_mrr[i] + upgrade_mrr[i] + downgrade_mrr[i] + churn_mrr[i]
    sum_new *= 12
    return _ratio(sum_new, _window_loss(net_loss, window))


def _payback(ratio: float | None) -> float | None:
    """Payback period = 1 / ratio. None when the ratio is undefined or zero."""
    if ratio is None or ratio == 0:
        return _SENTINEL
    return 1 / ratio
