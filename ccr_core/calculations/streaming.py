"""
Streaming calculator built from path-by-path sufficient statistics.

Measures are registered up front, paths are accumulated one at a time (or
one shard at a time per worker), shards are merged, and a single reduce
produces the fundamentals every registered measure is evaluated from.
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from functools import reduce

from ccr_core._types import Date
from ccr_core.calculations.evaluator import (
    DEFAULT_CONFIDENCE,
    CreditInputs,
    MeasureEvaluator,
    validate_confidence,
)
from ccr_core.calculations.fundamentals import AccumulatorSet, Reduced
from ccr_core.exceptions import (
    AccumulatorStateError,
    IncompatibleMergeError,
    MeasureNotRegisteredError,
)
from ccr_core.market.kernels import KernelSet
from ccr_core.measures.accumulators import AccumulatorKind
from ccr_core.measures.catalog import CCRMeasure, FundamentalKey, fundamentals, parse_measure
from ccr_core.numerics.grid import ExposureGrid
from ccr_core.paths.sample import ExposureProfile, PathSample, PathTable

logger = logging.getLogger(__name__)


def _accumulate_shard(
    worker: "StreamingCalculations", shard: PathTable
) -> "StreamingCalculations":
    """Accumulate one shard into a spawned calculator and hand it back."""
    worker.accumulate_table(shard)
    return worker


class Stage(Enum):
    """Lifecycle stage of a streaming calculator."""

    REGISTERING = "registering"
    ACCUMULATING = "accumulating"
    REDUCED = "reduced"


class StreamingCalculations:
    """
    CCR measures from streamed paths.

    Parameters
    ----------
    grid : ExposureGrid
        As-of date and exposure dates shared by every path
    kernels : KernelSet | None
        Integration kernels in ``KernelIndex`` order
    credit : CreditInputs | None
        Recoveries and one-year default probability
    measures : Iterable[CCRMeasure | str]
        Measures to register immediately at ``DEFAULT_CONFIDENCE``

    Example
    -------
    >>> calc = StreamingCalculations(grid, kernels, credit)
    >>> calc.add_measure_accumulator(CCRMeasure.CVA)
    >>> calc.add_measure_accumulator(CCRMeasure.PFE, 0.99)
    >>> for path, profile in table.iter_paths():
    ...     calc.accumulate_path(path, profile)
    >>> calc.get_measure(CCRMeasure.CVA)
    """

    def __init__(
        self,
        grid: ExposureGrid,
        kernels: KernelSet | None = None,
        credit: CreditInputs | None = None,
        measures: Iterable["CCRMeasure | str"] = (),
    ) -> None:
        self.grid = grid
        self.credit = credit or CreditInputs()
        self.stage = Stage.REGISTERING
        self._accumulators = AccumulatorSet(grid.n_dates, ())
        self._min_confidence: dict[FundamentalKey, float] = {}
        self._results: dict[FundamentalKey, Reduced] = {}
        self.evaluator = MeasureEvaluator(grid, kernels, self.credit, self._fundamental)
        for measure in measures:
            self.add_measure_accumulator(measure)

    @property
    def kernels(self) -> KernelSet | None:
        return self.evaluator.kernels

    @property
    def n_paths(self) -> int:
        """Number of paths accumulated into this calculator (merged shards included)."""
        return self._accumulators.n_paths

    @property
    def registered(self) -> frozenset[FundamentalKey]:
        return self._accumulators.keys

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_measure_accumulator(
        self, measure: "CCRMeasure | str", confidence: float = DEFAULT_CONFIDENCE
    ) -> None:
        """
        Register the fundamentals a measure needs.

        Registration is idempotent per fundamental. Distribution fundamentals
        remember the smallest confidence requested for them.

        Raises
        ------
        MeasureNotSupportedError
            If the measure is not in the catalog
        AccumulatorStateError
            If paths have already been accumulated
        """
        measure = parse_measure(measure)
        validate_confidence(confidence)
        if self.stage is not Stage.REGISTERING:
            raise AccumulatorStateError(
                f"Cannot register {measure.value} once accumulation has started"
            )
        keys = fundamentals(measure)
        added = self._accumulators.add(keys)
        for key in keys:
            if key.kind is AccumulatorKind.DISTRIBUTION:
                self._min_confidence[key] = min(
                    self._min_confidence.get(key, confidence), confidence
                )
        if added:
            logger.debug(
                "Registered %s: %s", measure.value, ", ".join(k.label for k in added)
            )

    def has_measure_accumulator(
        self, measure: "CCRMeasure | str", confidence: float = DEFAULT_CONFIDENCE
    ) -> bool:
        """Whether a query of ``measure`` at ``confidence`` can be answered."""
        keys = fundamentals(parse_measure(measure))
        for key in keys:
            if key not in self._accumulators:
                return False
            minimum = self._min_confidence.get(key)
            if minimum is not None and confidence < minimum:
                return False
        return True

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def _start_accumulating(self) -> None:
        if self.stage is Stage.REDUCED:
            raise AccumulatorStateError("Cannot accumulate after reduce")
        if self.stage is Stage.REGISTERING:
            if not len(self._accumulators):
                raise AccumulatorStateError("No measures registered")
            self.stage = Stage.ACCUMULATING

    def accumulate_exposures(
        self,
        path: PathSample,
        d: int,
        positive_exposure: float,
        positive_collateral: float,
        negative_exposure: float,
        negative_collateral: float,
    ) -> None:
        """
        Add one path's netted exposure at date index ``d``.

        Exposures are non-negative magnitudes; collateral is the
        uncollateralized minus the collateralized exposure. A path is
        counted when its first date is accumulated.
        """
        self._start_accumulating()
        if not 0 <= d < self.grid.n_dates:
            raise IndexError(f"Date index {d} outside grid of {self.grid.n_dates} dates")
        self._accumulators.accumulate_exposures(
            path,
            d,
            positive_exposure,
            positive_collateral,
            negative_exposure,
            negative_collateral,
        )
        if d == 0:
            self._accumulators.n_paths += 1

    def accumulate_path(self, path: PathSample, exposure: ExposureProfile) -> None:
        """Add one path at every exposure date."""
        self._start_accumulating()
        if path.n_dates != self.grid.n_dates:
            raise ValueError(
                f"Path has {path.n_dates} dates but the grid has {self.grid.n_dates}"
            )
        self._accumulators.accumulate_path(path, exposure)

    def accumulate_table(self, table: PathTable) -> None:
        """Add every path of a table in storage order."""
        self._start_accumulating()
        if table.n_dates != self.grid.n_dates:
            raise ValueError(
                f"Path table has {table.n_dates} dates but the grid has {self.grid.n_dates}"
            )
        self._accumulators.accumulate_table(table)

    # ------------------------------------------------------------------
    # Sharding
    # ------------------------------------------------------------------

    def spawn(self) -> "StreamingCalculations":
        """Empty calculator with the same registrations, for another worker."""
        if self.stage is Stage.REDUCED:
            raise AccumulatorStateError("Cannot spawn from a reduced calculator")
        worker = StreamingCalculations(self.grid, self.kernels, self.credit)
        worker._accumulators = self._accumulators.spawn()
        worker._min_confidence = dict(self._min_confidence)
        return worker

    def merge(self, other: "StreamingCalculations") -> "StreamingCalculations":
        """
        Fold another shard's statistics into this calculator.

        Raises
        ------
        AccumulatorStateError
            If either calculator has already been reduced
        IncompatibleMergeError
            If the grids or registrations differ, or ``other`` is ``self``
        """
        if other is self:
            raise IncompatibleMergeError("Cannot merge calculator with self")
        if Stage.REDUCED in (self.stage, other.stage):
            raise AccumulatorStateError("Cannot merge a reduced calculator")
        if other.grid.as_of != self.grid.as_of or other.grid.dates != self.grid.dates:
            raise IncompatibleMergeError("Exposure grids differ")
        self._accumulators.merge(other._accumulators)
        for key, confidence in other._min_confidence.items():
            self._min_confidence[key] = min(
                self._min_confidence.get(key, confidence), confidence
            )
        if other.stage is Stage.ACCUMULATING:
            self.stage = Stage.ACCUMULATING
        return self

    def accumulate_in_parallel(
        self,
        shards: Sequence[PathTable],
        executor: Executor | None = None,
        max_workers: int | None = None,
    ) -> "StreamingCalculations":
        """
        Accumulate path shards concurrently and merge them into this calculator.

        Each shard is fed to its own spawned calculator on ``executor`` (a
        thread pool when omitted). The accumulated calculators returned by
        the executor are folded pairwise in submission order, so process
        pools work as well as thread pools.
        """
        if self.stage is Stage.REDUCED:
            raise AccumulatorStateError("Cannot accumulate after reduce")
        owns_executor = executor is None
        pool = executor or ThreadPoolExecutor(max_workers=max_workers)
        try:
            futures = [
                pool.submit(_accumulate_shard, self.spawn(), shard)
                for shard in shards
            ]
            workers = [future.result() for future in futures]
        finally:
            if owns_executor:
                pool.shutdown()
        if workers:
            reduce(StreamingCalculations.merge, workers[1:], workers[0])
            self.merge(workers[0])
        logger.debug("Accumulated %d shards (%d paths)", len(shards), self.n_paths)
        return self

    # ------------------------------------------------------------------
    # Reduction and queries
    # ------------------------------------------------------------------

    def reduce(self) -> None:
        """
        Reduce every accumulator once and release the raw statistics.

        Raises
        ------
        AccumulatorStateError
            If nothing was accumulated or the calculator is already reduced
        """
        if self.stage is Stage.REDUCED:
            raise AccumulatorStateError("Calculator has already been reduced")
        if self.stage is not Stage.ACCUMULATING:
            raise AccumulatorStateError("No paths have been accumulated")
        self._results = self._accumulators.reduce()
        released = self._accumulators.spawn()
        released.n_paths = self._accumulators.n_paths
        self._accumulators = released
        self.stage = Stage.REDUCED

    def _fundamental(self, key: FundamentalKey) -> Reduced:
        try:
            return self._results[key]
        except KeyError:
            raise MeasureNotRegisteredError(
                f"Fundamental {key.label} was not registered"
            ) from None

    def get_measure(
        self,
        measure: "CCRMeasure | str",
        date: Date | None = None,
        confidence: float = DEFAULT_CONFIDENCE,
        multipliers: Sequence[float] | None = None,
    ) -> float:
        """
        Value of a registered measure (see ``MeasureEvaluator.evaluate``).

        Reduces on first query. Tail queries below the smallest registered
        confidence are answered but logged as a warning.
        """
        measure = parse_measure(measure)
        if self.stage is not Stage.REDUCED:
            self.reduce()
        keys = fundamentals(measure)
        missing = [k.label for k in keys if k not in self._results]
        if missing:
            raise MeasureNotRegisteredError(
                f"Measure {measure.value} needs unregistered fundamentals: {missing}"
            )
        for key in keys:
            minimum = self._min_confidence.get(key)
            if minimum is not None and confidence < minimum:
                logger.warning(
                    "%s queried at confidence %.4f below registered minimum %.4f",
                    measure.value,
                    confidence,
                    minimum,
                )
        return self.evaluator.evaluate(measure, date, confidence, multipliers)
