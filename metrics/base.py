"""
metrics/base.py

Abstract base class for every stage of the metrics pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

Series = tuple  # tuple[float | int | None, ...], one entry per month


class BaseSeriesBuilder(ABC):
    """
    Contract for one stage of the metrics pipeline.

    Subclasses receive a read-only mapping holding the raw inputs plus every
    series produced by earlier stages, and return a plain dictionary of the
    series they own. A stage never mutates its inputs and never reads a
    series produced by a later stage.

    No I/O, no logging, and no side effects are permitted inside
    :meth:`build`.
    """

    #: Keys of the series this stage adds to the pipeline context.
    provides: tuple[str, ...] = ()

    @abstractmethod
    def build(self, inputs: Mapping[str, Any]) -> dict[str, Series]:
        """
        Compute this stage's series from *inputs*.

        Parameters
        ----------
        inputs:
            Pipeline context: ``matrix``, ``movements``, ``month_count``,
            ``net_loss`` and all series built so far, keyed by name.

        Returns
        -------
        dict[str, Series]
            One tuple per key in :attr:`provides`, each ``month_count`` long.
        """


def ordered_sum(values: Iterable[float]) -> float:
    """
    Plain left-to-right float accumulation starting from zero.

    ``sum()`` applies compensated summation to floats on Python 3.12+, which
    would make results depend on the interpreter version.
    """
    total = 0
    for value in values:
        total += value
    return total


def trailing_window(month_index: int, length: int) -> range:
    """Inclusive window of *length* months ending at *month_index*."""
    return range(month_index - length + 1, month_index + 1)


def mean_or_none(values: list[float]) -> float | None:
    """Arithmetic mean of *values*, or None for an empty month."""
    if not values:
        return None
    return ordered_sum(values) / len(values)
