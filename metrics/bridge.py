"""
metrics/bridge.py

MRR bridge: month-over-month New / Upgrade / Downgrade / Churn totals and
the Begin → End MRR recurrence.

Formulas
--------
new_mrr[m]        = Σ New amounts in month m          (>= 0)
upgrade_mrr[m]    = Σ Upgrade deltas                  (>= 0)
downgrade_mrr[m]  = Σ Downgrade deltas                (<= 0)
churn_mrr[m]      = Σ -prev over churned customers    (<= 0)
begin_mrr[0]      = 0
begin_mrr[m]      = end_mrr[m - 1]
end_mrr[m]        = begin + new + upgrade + downgrade + churn
net_new_mrr[m]    = upgrade + downgrade + churn       (existing customers only)

The Begin/End recurrence is computed in increasing month order.
"""

from __future__ import annotations

from typing import Any, Mapping

from metrics.base import BaseSeriesBuilder, Series
from metrics.classification import Movement, MovementKind, MovementGrid


class MRRBridgeBuilder(BaseSeriesBuilder):
    """Aggregates classified movements into the monthly MRR bridge."""

    provides = (
        "new_mrr",
        "upgrade_mrr",
        "downgrade_mrr",
        "churn_mrr",
        "begin_mrr",
        "end_mrr",
        "net_new_mrr",
    )

    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        movements: MovementGrid = inputs["movements"]

        totals = [_bridge_totals(column) for column in movements]
        new_mrr = tuple(t[MovementKind.NEW] for t in totals)
        upgrade_mrr = tuple(t[MovementKind.UPGRADE] for t in totals)
        downgrade_mrr = tuple(t[MovementKind.DOWNGRADE] for t in totals)
        churn_mrr = tuple(t[MovementKind.CHURN] for t in totals)

        begin_mrr: list[float] = []
        end_mrr: list[float] = []
        for m in range(len(movements)):
            begin = 0 if m == 0 else end_mrr[m - 1]
            begin_mrr.append(begin)
            end_mrr.append(begin + new_mrr[m] + upgrade_mrr[m] + downgrade_mrr[m] + churn_mrr[m])

        net_new_mrr = tuple(
            upgrade_mrr[m] + downgrade_mrr[m] + churn_mrr[m] for m in range(len(movements))
        )

        return {
            "new_mrr": new_mrr,
            "upgrade_mrr": upgrade_mrr,
            "downgrade_mrr": downgrade_mrr,
            "churn_mrr": churn_mrr,
            "begin_mrr": tuple(begin_mrr),
            "end_mrr": tuple(end_mrr),
            "net_new_mrr": net_new_mrr,
        }


def _bridge_totals(column: tuple[Movement, ...]) -> dict[MovementKind, float]:
    """Sum one month's signed movement amounts per bridge line, in customer order."""
    totals: dict[MovementKind, float] = {
        MovementKind.NEW: 0,
        MovementKind.UPGRADE: 0,
        MovementKind.DOWNGRADE: 0,
        MovementKind.CHURN: 0,
    }
    for movement in column:
        if movement.is_flat:
            continue
        totals[movement.kind] += movement.amount
    return totals
