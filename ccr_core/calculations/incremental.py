"""
Incremental measures of adding trades to an existing portfolio.

The existing portfolio and the portfolio with the new trades are priced on
the same exposure grid (and, for meaningful differences, the same simulated
scenarios). The incremental value of a measure is the new total minus the
existing total.
"""

import logging
from collections.abc import Sequence
from typing import TypeAlias

from ccr_core._types import Date
from ccr_core.calculations.batch import BatchCalculations
from ccr_core.calculations.evaluator import DEFAULT_CONFIDENCE
from ccr_core.calculations.streaming import StreamingCalculations
from ccr_core.measures.catalog import CCRMeasure, parse_measure

logger = logging.getLogger(__name__)

MeasureSource: TypeAlias = BatchCalculations | StreamingCalculations
"""Calculator able to answer ``get_measure``."""


class IncrementalCalculations:
    """
    Difference between a portfolio with new trades and the existing one.

    Parameters
    ----------
    new : BatchCalculations | StreamingCalculations
        Calculator over the portfolio including the new trades
    existing : BatchCalculations | StreamingCalculations
        Calculator over the existing portfolio

    Example
    -------
    >>> incremental = IncrementalCalculations(
    ...     BatchCalculations(with_trade, grid, kernels, credit),
    ...     BatchCalculations(without_trade, grid, kernels, credit),
    ... )
    >>> incremental.get_measure("CVA")
    >>> incremental.get_measure_total("CVA")
    """

    def __init__(self, new: MeasureSource, existing: MeasureSource) -> None:
        if new is existing:
            raise ValueError("New and existing calculators must be distinct")
        if new.grid.as_of != existing.grid.as_of or tuple(new.grid.dates) != tuple(
            existing.grid.dates
        ):
            raise ValueError("New and existing calculators must share an exposure grid")
        self.new = new
        self.existing = existing

    @property
    def grid(self):
        return self.new.grid

    def get_measure(
        self,
        measure: "CCRMeasure | str",
        date: Date | None = None,
        confidence: float = DEFAULT_CONFIDENCE,
        multipliers: Sequence[float] | None = None,
    ) -> float:
        """Incremental value: new total minus existing total."""
        measure = parse_measure(measure)
        new = self.new.get_measure(measure, date, confidence, multipliers)
        old = self.existing.get_measure(measure, date, confidence, multipliers)
        logger.debug("Incremental %s: %.6g - %.6g", measure.value, new, old)
        return new - old

    def get_measure_total(
        self,
        measure: "CCRMeasure | str",
        date: Date | None = None,
        confidence: float = DEFAULT_CONFIDENCE,
        multipliers: Sequence[float] | None = None,
    ) -> float:
        """Measure of the portfolio including the new trades."""
        return self.new.get_measure(measure, date, confidence, multipliers)
