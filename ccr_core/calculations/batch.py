"""
Batch calculator over a fully materialized path table.

Fundamentals are built on first use by feeding the whole table through a
fresh accumulator set and cached, so repeated queries of measures that
share fundamentals cost one pass over the table.
"""

import logging
from collections.abc import Sequence

import numpy as np

from ccr_core._types import Date, FloatArray
from ccr_core.calculations.evaluator import (
    DEFAULT_CONFIDENCE,
    CreditInputs,
    MeasureEvaluator,
    relative_std_error,
    validate_confidence,
)
from ccr_core.calculations.fundamentals import AccumulatorSet, Reduced
from ccr_core.market.kernels import KernelSet
from ccr_core.measures.accumulators import AccumulatorKind, MomentProfile
from ccr_core.measures.catalog import (
    CCRMeasure,
    FundamentalKey,
    Side,
    Spread,
    fundamentals,
    parse_measure,
)
from ccr_core.measures.distribution import ExposureDistribution
from ccr_core.measures.radon_nikodym import Weighting
from ccr_core.numerics.grid import ExposureGrid
from ccr_core.paths.sample import PathTable

logger = logging.getLogger(__name__)


class BatchCalculations:
    """
    CCR measures computed directly from a ``PathTable``.

    Parameters
    ----------
    table : PathTable
        Simulated paths and netted exposures
    grid : ExposureGrid
        As-of date and exposure dates (one per table column)
    kernels : KernelSet | None
        Integration kernels in ``KernelIndex`` order
    credit : CreditInputs | None
        Recoveries and one-year default probability

    Example
    -------
    >>> calc = BatchCalculations(table, grid, kernels, CreditInputs(0.4, 0.4, 0.02))
    >>> cva = calc.get_measure("CVA")
    >>> pfe = calc.get_measure(CCRMeasure.PFE, grid.last_date, 0.99)
    """

    def __init__(
        self,
        table: PathTable,
        grid: ExposureGrid,
        kernels: KernelSet | None = None,
        credit: CreditInputs | None = None,
    ) -> None:
        if table.n_dates != grid.n_dates:
            raise ValueError(
                f"Path table has {table.n_dates} dates but the grid has {grid.n_dates}"
            )
        self.table = table
        self.grid = grid
        self.credit = credit or CreditInputs()
        self._cache: dict[FundamentalKey, Reduced] = {}
        self.evaluator = MeasureEvaluator(grid, kernels, self.credit, self.fundamental)

    @property
    def kernels(self) -> KernelSet | None:
        return self.evaluator.kernels

    @property
    def n_paths(self) -> int:
        return self.table.n_paths

    def fundamental(self, key: FundamentalKey) -> Reduced:
        """Reduced fundamental, computed from the table on first use."""
        if key not in self._cache:
            accs = AccumulatorSet(self.grid.n_dates, [key])
            accs.accumulate_table(self.table)
            self._cache.update(accs.reduce())
            logger.debug("Computed %s from %d paths", key.label, self.table.n_paths)
        return self._cache[key]

    def get_measure(
        self,
        measure: "CCRMeasure | str",
        date: Date | None = None,
        confidence: float = DEFAULT_CONFIDENCE,
        multipliers: Sequence[float] | None = None,
    ) -> float:
        """Value of a catalog measure (see ``MeasureEvaluator.evaluate``)."""
        measure = parse_measure(measure)
        for key in fundamentals(measure):
            self.fundamental(key)
        return self.evaluator.evaluate(measure, date, confidence, multipliers)

    # ------------------------------------------------------------------
    # Direct access to fundamentals
    # ------------------------------------------------------------------

    def pv(
        self,
        weighting: Weighting = Weighting.CPTY,
        discounted: bool = False,
        side: Side = Side.POSITIVE,
    ) -> FloatArray:
        """Weighted expected exposure at every exposure date."""
        return self.fundamental(
            FundamentalKey(AccumulatorKind.RATIO, weighting, discounted, side)
        )

    def moments(
        self,
        weighting: Weighting = Weighting.CPTY,
        discounted: bool = True,
        side: Side = Side.POSITIVE,
    ) -> MomentProfile:
        return self.fundamental(
            FundamentalKey(AccumulatorKind.VARIANCE, weighting, discounted, side)
        )

    def sigma(
        self,
        weighting: Weighting = Weighting.CPTY,
        discounted: bool = True,
        side: Side = Side.POSITIVE,
    ) -> FloatArray:
        """Weighted exposure standard deviation at every exposure date."""
        return self.moments(weighting, discounted, side).sigma

    def std_error(
        self,
        weighting: Weighting = Weighting.CPTY,
        discounted: bool = True,
        side: Side = Side.POSITIVE,
    ) -> FloatArray:
        """Monte Carlo standard error of the expected exposure, relative to it."""
        m = self.moments(weighting, discounted, side)
        mean = self.pv(weighting, discounted, side)
        return relative_std_error(m.sigma, mean, float(np.max(m.n_samples)))

    def distributions(
        self,
        weighting: Weighting = Weighting.CPTY,
        discounted: bool = False,
        side: Side = Side.POSITIVE,
    ) -> list[ExposureDistribution]:
        """Empirical exposure distribution at every exposure date."""
        return self.fundamental(
            FundamentalKey(AccumulatorKind.DISTRIBUTION, weighting, discounted, side)
        )

    def pfe(
        self,
        confidence: float = DEFAULT_CONFIDENCE,
        weighting: Weighting = Weighting.CPTY,
        discounted: bool = False,
        side: Side = Side.POSITIVE,
    ) -> FloatArray:
        """Exposure quantile at every exposure date."""
        validate_confidence(confidence)
        dists = self.distributions(weighting, discounted, side)
        return np.array([d.quantile(confidence) for d in dists])

    def funding_cost(self) -> FloatArray:
        """Survival-weighted discounted exposure times the borrow spread."""
        return self.fundamental(
            FundamentalKey(
                AccumulatorKind.RATIO, Weighting.FUNDING, True, Side.POSITIVE, Spread.BORROW
            )
        )

    def funding_benefit(self) -> FloatArray:
        """Survival-weighted discounted negative exposure times the lend spread."""
        return self.fundamental(
            FundamentalKey(
                AccumulatorKind.RATIO, Weighting.FUNDING, True, Side.NEGATIVE, Spread.LEND
            )
        )

    def borrow_spread(self) -> FloatArray:
        """Mean discounted exposure times mean borrow spread (no conditioning)."""
        return self.fundamental(
            FundamentalKey(
                AccumulatorKind.SPREAD_PRODUCT,
                Weighting.ZERO,
                True,
                Side.POSITIVE,
                Spread.BORROW,
            )
        )

    def lend_spread(self) -> FloatArray:
        """Mean discounted negative exposure times mean lend spread."""
        return self.fundamental(
            FundamentalKey(
                AccumulatorKind.SPREAD_PRODUCT,
                Weighting.ZERO,
                True,
                Side.NEGATIVE,
                Spread.LEND,
            )
        )

    def own_spread(self, weighting: Weighting = Weighting.ZERO) -> FloatArray:
        """Weighted average own credit spread at every exposure date."""
        t = self.table
        w = t.weight[:, None] * weighting.profile(t)
        num = (w * t.own_spread).sum(axis=0)
        den = w.sum(axis=0)
        out = np.zeros_like(num)
        np.divide(num, den, out=out, where=den > 0.0)
        return out

    def rn_density(self, weighting: Weighting = Weighting.ZERO) -> FloatArray:
        """Average Radon-Nikodym derivative at every exposure date."""
        return self.fundamental(FundamentalKey(AccumulatorKind.DENSITY, weighting))

