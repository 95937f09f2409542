"""
metrics/customers.py

Customer-count bridge, contract value and concentration.

Formulas
--------
new_customers[m]            = number of New movements
churned_customers[m]        = -(number of Churn movements)
begin_customers[0]          = 0
begin_customers[m]          = end_customers[m - 1]
end_customers[m]            = begin + new + churned
ACV                         = end_mrr / end_customers * 12
Largest Customer            = max_c rev(c, m) * 12
Max Concentration           = largest_customer / arr
Gross Customer Retention    = (Σ churned_customers[m-11..m] + begin_customers[m - 11])
                              / begin_customers[m - 11]                  (m >= 12)
Customer Growth             = end_customers[m] / end_customers[m - 12] - 1  (m >= 12)

Division-by-zero cases return None for the affected month.
"""

from __future__ import annotations

from typing import Any, Mapping

from metrics.base import BaseSeriesBuilder, Series, trailing_window
from metrics.classification import MovementGrid, MovementKind
from metrics.revenue import RevenueMatrix

_YEAR = 12
_SENTINEL = None


class CustomerBridgeBuilder(BaseSeriesBuilder):
    """Customer counts, ACV, concentration and customer retention/growth."""

    provides = (
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

    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        matrix: RevenueMatrix = inputs["matrix"]
        movements: MovementGrid = inputs["movements"]
        end_mrr: Series = inputs["end_mrr"]
        arr: Series = inputs["arr"]
        months = range(len(movements))

        new_customers = tuple(_count(column, MovementKind.NEW) for column in movements)
        churned_customers = tuple(-_count(column, MovementKind.CHURN) for column in movements)

        begin_customers: list[int] = []
        end_customers: list[int] = []
        for m in months:
            begin = 0 if m == 0 else end_customers[m - 1]
            begin_customers.append(begin)
            end_customers.append(begin + new_customers[m] + churned_customers[m])

        largest_customer = tuple(_largest_customer(matrix.column(m)) for m in months)

        return {
            "begin_customers": tuple(begin_customers),
            "new_customers": new_customers,
            "churned_customers": churned_customers,
            "end_customers": tuple(end_customers),
            "acv": tuple(_acv(end_mrr[m], end_customers[m]) for m in months),
            "largest_customer": largest_customer,
            "max_concentration": tuple(
                _concentration(largest_customer[m], arr[m]) for m in months
            ),
            "gross_customer_retention": tuple(
                _gross_customer_retention(m, begin_customers, churned_customers) for m in months
            ),
            "customer_growth": tuple(_customer_growth(m, end_customers) for m in months),
        }


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def _count(column, kind: MovementKind) -> int:
    return sum(1 for movement in column if movement.kind is kind)


def _acv(end_mrr: float, end_customers: int) -> float | None:
    """ACV = End MRR per customer, annualised. None without customers."""
    if end_customers <= 0:
        return _SENTINEL
    return (end_mrr / end_customers) * 12


def _largest_customer(revenues: tuple[float, ...]) -> float | None:
    """Largest single customer's revenue, annualised. None when nobody pays."""
    largest = 0
    for value in revenues:
        largest = max(largest, value)
    return largest * 12 if largest > 0 else _SENTINEL


def _concentration(largest_customer: float | None, arr: float) -> float | None:
    if largest_customer is None or not arr > 0:
        return _SENTINEL
    return largest_customer / arr


def _gross_customer_retention(
    m: int,
    begin_customers: list[int],
    churned_customers: Series,
) -> float | None:
    """
    Share of the customers at the start of the trailing year who have not churned.

    Returns None before month 12 or when the window opened with no customers.
    """
    if m < _YEAR:
        return _SENTINEL
    window = trailing_window(m, _YEAR)
    base = begin_customers[window.start]
    if base == 0:
        return _SENTINEL
    churned = sum(churned_customers[i] for i in window)
    return (churned + base) / base


def _customer_growth(m: int, end_customers: list[int]) -> float | None:
    if m < _YEAR or not end_customers[m - _YEAR] > 0:
        return _SENTINEL
    return end_customers[m] / end_customers[m - _YEAR] - 1
