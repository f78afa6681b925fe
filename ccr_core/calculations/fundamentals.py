"""
Feeding paths into a keyed set of accumulators.

``AccumulatorSet`` owns one accumulator per registered fundamental, all
sized to the same exposure grid. It is the unit that is cloned per worker,
merged across shards and reduced once.
"""

import logging
from collections.abc import Iterable
from typing import TypeAlias

from ccr_core._types import FloatArray
from ccr_core.exceptions import AccumulatorStateError, IncompatibleMergeError
from ccr_core.measures.accumulators import (
    Accumulator,
    AccumulatorKind,
    MomentProfile,
    new_accumulator,
)
from ccr_core.measures.catalog import FundamentalKey, Side
from ccr_core.measures.distribution import ExposureDistribution
from ccr_core.paths.sample import ExposureProfile, PathSample, PathTable

logger = logging.getLogger(__name__)

Reduced: TypeAlias = FloatArray | MomentProfile | list[ExposureDistribution]
"""Reduced value of one fundamental."""


def side_values(side: Side, pos, pos_coll, neg, neg_coll):
    """Exposure and collateral seen by a fundamental on the given side."""
    if side is Side.POSITIVE:
        return pos, pos_coll
    if side is Side.NEGATIVE:
        return neg, neg_coll
    return pos + pos_coll - neg - neg_coll, 0.0 * pos


def _path_weight(path: PathSample | PathTable) -> float | FloatArray:
    if isinstance(path, PathTable):
        return path.weight[:, None]
    return path.weight


class AccumulatorSet:
    """
    One accumulator per fundamental on a shared exposure grid.

    Parameters
    ----------
    n_dates : int
        Number of exposure dates
    keys : Iterable[FundamentalKey]
        Fundamentals to track; duplicates are collapsed

    Example
    -------
    >>> accs = AccumulatorSet(n_dates=3, keys=fundamentals(CCRMeasure.EE))
    >>> accs.accumulate_path(path, profile)
    >>> results = accs.reduce()
    """

    def __init__(self, n_dates: int, keys: Iterable[FundamentalKey]) -> None:
        if n_dates < 1:
            raise ValueError(f"n_dates must be positive, got {n_dates}")
        self.n_dates = n_dates
        self._accumulators: dict[FundamentalKey, Accumulator] = {}
        self.n_paths = 0
        self.reduced = False
        self.add(keys)

    def __contains__(self, key: FundamentalKey) -> bool:
        return key in self._accumulators

    def __len__(self) -> int:
        return len(self._accumulators)

    @property
    def keys(self) -> frozenset[FundamentalKey]:
        return frozenset(self._accumulators)

    def add(self, keys: Iterable[FundamentalKey]) -> list[FundamentalKey]:
        """Create accumulators for keys not yet tracked; return the new ones."""
        self._check_open()
        added = []
        for key in keys:
            if key not in self._accumulators:
                self._accumulators[key] = new_accumulator(
                    key.kind, self.n_dates, key.discounted
                )
                added.append(key)
        return added

    def _check_open(self) -> None:
        if self.reduced:
            raise AccumulatorStateError("Accumulator set has already been reduced")

    def spawn(self) -> "AccumulatorSet":
        """Empty set with the same fundamentals, for another worker."""
        return AccumulatorSet(self.n_dates, self._accumulators)

    def accumulate_exposures(
        self,
        path: PathSample,
        d: int,
        positive_exposure: float,
        positive_collateral: float,
        negative_exposure: float,
        negative_collateral: float,
    ) -> None:
        """Add one path's netted exposure at date index ``d``."""
        self._check_open()
        for key, acc in self._accumulators.items():
            rn = float(key.weighting(path, d))
            if key.kind is AccumulatorKind.DENSITY:
                acc.accumulate(d, rn)
                continue
            w = path.weight * rn
            df = float(path.discount_factor[d])
            e, c = side_values(
                key.side,
                positive_exposure,
                positive_collateral,
                negative_exposure,
                negative_collateral,
            )
            if key.kind is AccumulatorKind.DISTRIBUTION:
                acc.accumulate(d, w, df, e, c)
            elif key.kind is AccumulatorKind.SPREAD_PRODUCT:
                acc.accumulate(d, w, df, e, float(getattr(path, key.spread.value)[d]))
            else:
                if key.spread is not None:
                    e *= float(getattr(path, key.spread.value)[d])
                acc.accumulate(d, w, df, e)

    def accumulate_path(
        self, path: PathSample | PathTable, exposure: ExposureProfile
    ) -> None:
        """
        Add whole paths at once.

        ``path`` is a single ``PathSample`` with a 1D exposure profile or a
        ``PathTable`` with 2D exposure columns; the result matches calling
        ``accumulate_exposures`` for every path and date in order.
        """
        self._check_open()
        weight = _path_weight(path)
        df = path.discount_factor
        for key, acc in self._accumulators.items():
            rn = key.weighting.profile(path)
            if key.kind is AccumulatorKind.DENSITY:
                acc.accumulate_path(rn)
                continue
            w = weight * rn
            e, c = side_values(key.side, *exposure)
            if key.kind is AccumulatorKind.DISTRIBUTION:
                acc.accumulate_path(w, df, e, c)
            elif key.kind is AccumulatorKind.SPREAD_PRODUCT:
                acc.accumulate_path(w, df, e, getattr(path, key.spread.value))
            else:
                if key.spread is not None:
                    e = e * getattr(path, key.spread.value)
                acc.accumulate_path(w, df, e)
        self.n_paths += path.n_paths if isinstance(path, PathTable) else 1

    def accumulate_table(self, table: PathTable) -> None:
        """Add every path of a table."""
        self.accumulate_path(table, table.exposures)

    def merge(self, other: "AccumulatorSet") -> "AccumulatorSet":
        """
        Fold another shard into this one.

        Raises
        ------
        IncompatibleMergeError
            If ``other`` is this set or tracks different fundamentals
        AccumulatorStateError
            If either set has already been reduced
        """
        if other is self:
            raise IncompatibleMergeError("Cannot merge accumulator set with self")
        self._check_open()
        if other.reduced:
            raise AccumulatorStateError("Cannot merge a reduced accumulator set")
        if other.n_dates != self.n_dates:
            raise IncompatibleMergeError(
                f"Exposure grids differ: {self.n_dates} vs {other.n_dates} dates"
            )
        if other.keys != self.keys:
            missing = sorted(k.label for k in other.keys ^ self.keys)
            raise IncompatibleMergeError(f"Registered fundamentals differ: {missing}")
        for key, acc in self._accumulators.items():
            acc.merge(other._accumulators[key])
        self.n_paths += other.n_paths
        logger.debug("Merged shard of %d paths (total %d)", other.n_paths, self.n_paths)
        return self

    def reduce(self) -> dict[FundamentalKey, Reduced]:
        """Reduce every accumulator to its per-date result."""
        self._check_open()
        self.reduced = True
        results = {key: acc.reduce() for key, acc in self._accumulators.items()}
        logger.debug(
            "Reduced %d fundamentals over %d paths", len(results), self.n_paths
        )
        return results
