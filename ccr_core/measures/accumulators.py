"""
Sufficient-statistic accumulators for the CCR fundamentals.

One accumulator instance holds the running statistics of one fundamental
across every exposure date. Paths are fed either one date at a time
(``accumulate``) or one or many whole paths at a time
(``accumulate_path``, arrays of shape ``(n_dates,)`` or
``(n_paths, n_dates)``). Shards built from the same registration merge
associatively, and ``reduce`` turns the statistics into per-date results.
Reduce runs once; afterwards the accumulator rejects updates and merges
with ``AccumulatorStateError``.

The variants form a closed set:

- ``RatioAccumulator``: weighted mean exposure
- ``VarianceAccumulator``: weighted standard deviation of exposure
- ``SpreadProductAccumulator``: mean exposure times mean funding spread
- ``DistributionAccumulator``: empirical exposure distribution
- ``DensityAccumulator``: average Radon-Nikodym derivative
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, TypeAlias

import numpy as np

from ccr_core._types import FloatArray
from ccr_core.exceptions import AccumulatorStateError, IncompatibleMergeError
from ccr_core.measures.distribution import ExposureDistribution

SIGMA_FLOOR = 1e-5
"""Standard deviations below this level reduce to exactly zero."""


class AccumulatorKind(Enum):
    """Accumulator variant tags."""

    RATIO = "ratio"
    VARIANCE = "variance"
    SPREAD_PRODUCT = "spread_product"
    DISTRIBUTION = "distribution"
    DENSITY = "density"


class MomentProfile(NamedTuple):
    """Reduced first and second moments of a variance accumulator."""

    mean: FloatArray
    sigma: FloatArray
    n_samples: FloatArray


def _as_paths(*arrays: FloatArray) -> list[FloatArray]:
    return [np.atleast_2d(np.asarray(a, dtype=np.float64)) for a in arrays]


def _safe_ratio(num: FloatArray, den: FloatArray) -> FloatArray:
    out = np.zeros_like(num)
    np.divide(num, den, out=out, where=den > 0.0)
    return out


@dataclass
class _Accumulator:
    """Shared shape, lifecycle and merge checks."""

    n_dates: int
    discounted: bool = False
    reduced: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.n_dates < 1:
            raise ValueError(f"n_dates must be positive, got {self.n_dates}")

    def empty_like(self):
        """Fresh accumulator with the same configuration."""
        return type(self)(n_dates=self.n_dates, discounted=self.discounted)

    def _check_open(self) -> None:
        if self.reduced:
            raise AccumulatorStateError(f"{type(self).__name__} has already been reduced")

    def _close(self) -> None:
        self._check_open()
        self.reduced = True

    def _check_mergeable(self, other: "_Accumulator") -> None:
        if other is self:
            raise IncompatibleMergeError("Cannot merge accumulator with self")
        self._check_open()
        if other.reduced:
            raise AccumulatorStateError("Cannot merge a reduced accumulator")
        if type(other) is not type(self):
            raise IncompatibleMergeError(
                f"Cannot merge {type(other).__name__} into {type(self).__name__}"
            )
        if other.n_dates != self.n_dates or other.discounted != self.discounted:
            raise IncompatibleMergeError(
                f"Accumulator configurations differ: "
                f"({self.n_dates}, {self.discounted}) vs "
                f"({other.n_dates}, {other.discounted})"
            )


@dataclass
class RatioAccumulator(_Accumulator):
    """
    Weighted expectation of exposure.

    ``weighted_exposure += w * df * e`` and ``norm += w`` when discounted,
    ``norm += w * df`` otherwise. Reduces to ``weighted_exposure / norm``
    with 0 where the normalizer is not positive.
    """

    weighted_exposure: FloatArray = field(init=False)
    norm: FloatArray = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.weighted_exposure = np.zeros(self.n_dates)
        self.norm = np.zeros(self.n_dates)

    def accumulate(self, d: int, w: float, df: float, e: float) -> None:
        self._check_open()
        self.weighted_exposure[d] += w * df * e
        self.norm[d] += w if self.discounted else w * df

    def accumulate_path(self, w: FloatArray, df: FloatArray, e: FloatArray) -> None:
        self._check_open()
        w, df, e = _as_paths(w, df, e)
        self.weighted_exposure += (w * df * e).sum(axis=0)
        self.norm += (w if self.discounted else w * df).sum(axis=0)

    def merge(self, other: "RatioAccumulator") -> None:
        self._check_mergeable(other)
        self.weighted_exposure += other.weighted_exposure
        self.norm += other.norm

    def reduce(self) -> FloatArray:
        self._close()
        return _safe_ratio(self.weighted_exposure, self.norm)


@dataclass
class VarianceAccumulator(_Accumulator):
    """
    Weighted first and second moments of exposure.

    The second moment adds ``w * df**2 * e**2`` when discounted and
    ``w * df * e**2`` otherwise, so both moments share the ratio normalizer.
    """

    weighted_exposure: FloatArray = field(init=False)
    weighted_exposure_squared: FloatArray = field(init=False)
    norm: FloatArray = field(init=False)
    count: FloatArray = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.weighted_exposure = np.zeros(self.n_dates)
        self.weighted_exposure_squared = np.zeros(self.n_dates)
        self.norm = np.zeros(self.n_dates)
        self.count = np.zeros(self.n_dates)

    def accumulate(self, d: int, w: float, df: float, e: float) -> None:
        self._check_open()
        self.weighted_exposure[d] += w * df * e
        if self.discounted:
            self.weighted_exposure_squared[d] += w * df * df * e * e
            self.norm[d] += w
        else:
            self.weighted_exposure_squared[d] += w * df * e * e
            self.norm[d] += w * df
        self.count[d] += 1

    def accumulate_path(self, w: FloatArray, df: FloatArray, e: FloatArray) -> None:
        self._check_open()
        w, df, e = _as_paths(w, df, e)
        self.weighted_exposure += (w * df * e).sum(axis=0)
        if self.discounted:
            self.weighted_exposure_squared += (w * (df * e) ** 2).sum(axis=0)
            self.norm += w.sum(axis=0)
        else:
            self.weighted_exposure_squared += (w * df * e * e).sum(axis=0)
            self.norm += (w * df).sum(axis=0)
        self.count += w.shape[0]

    def merge(self, other: "VarianceAccumulator") -> None:
        self._check_mergeable(other)
        self.weighted_exposure += other.weighted_exposure
        self.weighted_exposure_squared += other.weighted_exposure_squared
        self.norm += other.norm
        self.count += other.count

    def reduce(self) -> MomentProfile:
        self._close()
        mean = _safe_ratio(self.weighted_exposure, self.norm)
        second = _safe_ratio(self.weighted_exposure_squared, self.norm)
        sigma = np.sqrt(np.maximum(second - mean * mean, 0.0))
        sigma[sigma < SIGMA_FLOOR] = 0.0
        return MomentProfile(mean=mean, sigma=sigma, n_samples=self.count.copy())


@dataclass
class SpreadProductAccumulator(_Accumulator):
    """
    Product of the mean discounted exposure and the mean funding spread.

    Tracks ``w * df * e``, ``w * spread`` and ``w``; reduces to
    ``(weighted_exposure / norm) * (weighted_spread / norm)``.
    """

    weighted_exposure: FloatArray = field(init=False)
    weighted_spread: FloatArray = field(init=False)
    norm: FloatArray = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.weighted_exposure = np.zeros(self.n_dates)
        self.weighted_spread = np.zeros(self.n_dates)
        self.norm = np.zeros(self.n_dates)

    def accumulate(
        self, d: int, w: float, df: float, e: float, spread: float
    ) -> None:
        self._check_open()
        self.weighted_exposure[d] += w * df * e
        self.weighted_spread[d] += w * spread
        self.norm[d] += w

    def accumulate_path(
        self, w: FloatArray, df: FloatArray, e: FloatArray, spread: FloatArray
    ) -> None:
        self._check_open()
        w, df, e, spread = _as_paths(w, df, e, spread)
        self.weighted_exposure += (w * df * e).sum(axis=0)
        self.weighted_spread += (w * spread).sum(axis=0)
        self.norm += w.sum(axis=0)

    def merge(self, other: "SpreadProductAccumulator") -> None:
        self._check_mergeable(other)
        self.weighted_exposure += other.weighted_exposure
        self.weighted_spread += other.weighted_spread
        self.norm += other.norm

    def reduce(self) -> FloatArray:
        self._close()
        return _safe_ratio(self.weighted_exposure, self.norm) * _safe_ratio(
            self.weighted_spread, self.norm
        )


@dataclass
class DistributionAccumulator(_Accumulator):
    """
    Weighted positive exposure samples per date.

    Samples with non-positive weight are discarded. When discounted the
    exposure is multiplied by the discount factor, otherwise the weight is.
    Every kept weight adds to ``norm``; only strictly positive exposures are
    stored and add to ``mass``. Raw samples are released by ``reduce``.
    """

    norm: FloatArray = field(init=False)
    mass: FloatArray = field(init=False)
    _values: list[list[FloatArray]] = field(init=False, repr=False)
    _collateral: list[list[FloatArray]] = field(init=False, repr=False)
    _weights: list[list[FloatArray]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.norm = np.zeros(self.n_dates)
        self.mass = np.zeros(self.n_dates)
        self._values = [[] for _ in range(self.n_dates)]
        self._collateral = [[] for _ in range(self.n_dates)]
        self._weights = [[] for _ in range(self.n_dates)]

    @property
    def n_stored(self) -> int:
        """Number of raw samples currently held."""
        return sum(len(chunk) for chunks in self._values for chunk in chunks)

    def accumulate(
        self, d: int, w: float, df: float, e: float, collateral: float
    ) -> None:
        self._check_open()
        if w <= 0.0:
            return
        if self.discounted:
            e *= df
        else:
            w *= df
        self.norm[d] += w
        if e > 0.0:
            self._values[d].append(np.array([e]))
            self._collateral[d].append(np.array([collateral]))
            self._weights[d].append(np.array([w]))
            self.mass[d] += w

    def accumulate_path(
        self,
        w: FloatArray,
        df: FloatArray,
        e: FloatArray,
        collateral: FloatArray,
    ) -> None:
        self._check_open()
        w, df, e, collateral = _as_paths(w, df, e, collateral)
        keep = w > 0.0
        if self.discounted:
            e = e * df
        else:
            w = w * df
        w = np.where(keep, w, 0.0)
        self.norm += w.sum(axis=0)
        stored = keep & (e > 0.0)
        self.mass += np.where(stored, w, 0.0).sum(axis=0)
        for d in np.flatnonzero(stored.any(axis=0)):
            rows = stored[:, d]
            self._values[d].append(e[rows, d])
            self._collateral[d].append(collateral[rows, d])
            self._weights[d].append(w[rows, d])

    def merge(self, other: "DistributionAccumulator") -> None:
        self._check_mergeable(other)
        for d in range(self.n_dates):
            self._values[d].extend(other._values[d])
            self._collateral[d].extend(other._collateral[d])
            self._weights[d].extend(other._weights[d])
        self.norm += other.norm
        self.mass += other.mass

    def reduce(self) -> list[ExposureDistribution]:
        self._close()
        dists = []
        for d in range(self.n_dates):
            if self._values[d]:
                values = np.concatenate(self._values[d])
                collateral = np.concatenate(self._collateral[d])
                weights = np.concatenate(self._weights[d])
            else:
                values = collateral = weights = np.zeros(0)
            dists.append(
                ExposureDistribution.from_samples(
                    values, collateral, weights, float(self.norm[d])
                )
            )
            self._values[d] = []
            self._collateral[d] = []
            self._weights[d] = []
        return dists


@dataclass
class DensityAccumulator(_Accumulator):
    """Unweighted average of a Radon-Nikodym derivative over paths."""

    total: FloatArray = field(init=False)
    count: FloatArray = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.total = np.zeros(self.n_dates)
        self.count = np.zeros(self.n_dates)

    def accumulate(self, d: int, rn: float) -> None:
        self._check_open()
        self.total[d] += rn
        self.count[d] += 1

    def accumulate_path(self, rn: FloatArray) -> None:
        self._check_open()
        (rn,) = _as_paths(rn)
        self.total += rn.sum(axis=0)
        self.count += rn.shape[0]

    def merge(self, other: "DensityAccumulator") -> None:
        self._check_mergeable(other)
        self.total += other.total
        self.count += other.count

    def reduce(self) -> FloatArray:
        self._close()
        return _safe_ratio(self.total, self.count)


Accumulator: TypeAlias = (
    RatioAccumulator
    | VarianceAccumulator
    | SpreadProductAccumulator
    | DistributionAccumulator
    | DensityAccumulator
)


def new_accumulator(
    kind: AccumulatorKind, n_dates: int, discounted: bool = False
) -> Accumulator:
    """
    Create an empty accumulator of the given variant.

    Parameters
    ----------
    kind : AccumulatorKind
        Variant tag
    n_dates : int
        Number of exposure dates
    discounted : bool
        Whether exposures are discounted before averaging

    Returns
    -------
    Accumulator
        Zeroed accumulator
    """
    match kind:
        case AccumulatorKind.RATIO:
            return RatioAccumulator(n_dates, discounted)
        case AccumulatorKind.VARIANCE:
            return VarianceAccumulator(n_dates, discounted)
        case AccumulatorKind.SPREAD_PRODUCT:
            return SpreadProductAccumulator(n_dates, discounted)
        case AccumulatorKind.DISTRIBUTION:
            return DistributionAccumulator(n_dates, discounted)
        case AccumulatorKind.DENSITY:
            return DensityAccumulator(n_dates, discounted)
    raise ValueError(f"Unknown accumulator kind: {kind}")
