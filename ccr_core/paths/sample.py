"""
Simulated path containers consumed by the measure accumulators.

A ``PathSample`` is one row of simulation output: a sampling weight and,
per exposure date, the measure-change streams, discount factor and
funding spreads. A ``PathTable`` stacks the same streams for many paths
(shape ``(n_paths, n_dates)``) together with the netted exposures, and is
the store the batch calculator reads from.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np

from ccr_core._types import FloatArray, PathArray

_STREAMS = (
    "rn",
    "rn_cpty",
    "rn_own",
    "rn_survival",
    "discount_factor",
    "borrow_spread",
    "lend_spread",
    "own_spread",
)

_EXPOSURES = (
    "positive_exposure",
    "positive_collateral",
    "negative_exposure",
    "negative_collateral",
)


class ExposureProfile(NamedTuple):
    """
    Netted exposure of one path across all exposure dates.

    All four arrays hold non-negative magnitudes. Collateral is the
    uncollateralized exposure minus the collateralized exposure, so
    ``positive_exposure + positive_collateral`` is the exposure before
    collateral.
    """

    positive_exposure: FloatArray
    positive_collateral: FloatArray
    negative_exposure: FloatArray
    negative_collateral: FloatArray

    @property
    def net_value(self) -> FloatArray:
        """Uncollateralized portfolio value (positive minus negative side)."""
        return (
            self.positive_exposure
            + self.positive_collateral
            - self.negative_exposure
            - self.negative_collateral
        )


@dataclass
class PathSample:
    """
    Simulated values of a single path.

    Attributes
    ----------
    path_id : int
        Path identifier
    weight : float
        Monte Carlo or quadrature weight (>= 0)
    rn : FloatArray
        Radon-Nikodym derivative from the simulation to the pricing measure
    rn_cpty : FloatArray
        Derivative conditioning on counterparty default at each date
    rn_own : FloatArray
        Derivative conditioning on own default at each date
    rn_survival : FloatArray
        Derivative conditioning on survival at each date
    discount_factor : FloatArray
        Stochastic discount factor to each date
    borrow_spread, lend_spread, own_spread : FloatArray
        Funding and own credit spreads at each date
    """

    path_id: int
    weight: float
    rn: FloatArray
    rn_cpty: FloatArray
    rn_own: FloatArray
    rn_survival: FloatArray
    discount_factor: FloatArray
    borrow_spread: FloatArray
    lend_spread: FloatArray
    own_spread: FloatArray

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.weight < 0:
            raise ValueError(f"Path weight must be non-negative, got {self.weight}")
        n_dates = len(self.discount_factor)
        for name in _STREAMS:
            arr = np.asarray(getattr(self, name), dtype=np.float64)
            if arr.shape != (n_dates,):
                raise ValueError(
                    f"Stream '{name}' must have shape ({n_dates},), got {arr.shape}"
                )
            setattr(self, name, arr)

    @property
    def n_dates(self) -> int:
        """Number of exposure dates carried by the path."""
        return len(self.discount_factor)

    @classmethod
    def flat(
        cls,
        path_id: int,
        n_dates: int,
        weight: float = 1.0,
        discount_factor: float | FloatArray = 1.0,
    ) -> "PathSample":
        """
        Create a path with unit measure changes and zero spreads.

        Example
        -------
        >>> p = PathSample.flat(0, n_dates=3)
        >>> p.rn
        array([1., 1., 1.])
        """
        ones = np.ones(n_dates)
        zeros = np.zeros(n_dates)
        return cls(
            path_id=path_id,
            weight=weight,
            rn=ones,
            rn_cpty=ones,
            rn_own=ones,
            rn_survival=ones,
            discount_factor=np.broadcast_to(discount_factor, (n_dates,)).astype(float),
            borrow_spread=zeros,
            lend_spread=zeros,
            own_spread=zeros,
        )


@dataclass
class PathTable:
    """
    Fully materialized simulation output for the batch calculator.

    Every stream is a ``(n_paths, n_dates)`` array except ``weight``
    which has shape ``(n_paths,)``.
    """

    weight: FloatArray
    rn: PathArray
    rn_cpty: PathArray
    rn_own: PathArray
    rn_survival: PathArray
    discount_factor: PathArray
    borrow_spread: PathArray
    lend_spread: PathArray
    own_spread: PathArray
    positive_exposure: PathArray
    positive_collateral: PathArray
    negative_exposure: PathArray
    negative_collateral: PathArray
    path_ids: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate shapes and default the path identifiers."""
        self.weight = np.asarray(self.weight, dtype=np.float64)
        if self.weight.ndim != 1:
            raise ValueError(f"weight must be 1D, got shape {self.weight.shape}")
        if np.any(self.weight < 0):
            raise ValueError("Path weights must be non-negative")
        shape = np.shape(self.discount_factor)
        if len(shape) != 2 or shape[0] != len(self.weight):
            raise ValueError(
                f"discount_factor must have shape ({len(self.weight)}, n_dates), "
                f"got {shape}"
            )
        for name in _STREAMS + _EXPOSURES:
            arr = np.asarray(getattr(self, name), dtype=np.float64)
            if arr.shape != shape:
                raise ValueError(f"'{name}' must have shape {shape}, got {arr.shape}")
            setattr(self, name, arr)
        if not self.path_ids:
            self.path_ids = list(range(len(self.weight)))

    @property
    def n_paths(self) -> int:
        """Number of stored paths."""
        return len(self.weight)

    @property
    def n_dates(self) -> int:
        """Number of exposure dates."""
        return self.discount_factor.shape[1]

    @property
    def exposures(self) -> ExposureProfile:
        """Exposure columns of every path."""
        return ExposureProfile(
            self.positive_exposure,
            self.positive_collateral,
            self.negative_exposure,
            self.negative_collateral,
        )

    def path(self, i: int) -> PathSample:
        """Return row ``i`` as a ``PathSample``."""
        return PathSample(
            path_id=self.path_ids[i],
            weight=float(self.weight[i]),
            **{name: getattr(self, name)[i] for name in _STREAMS},
        )

    def exposure(self, i: int) -> ExposureProfile:
        """Return the exposure profile of row ``i``."""
        return ExposureProfile(*(col[i] for col in self.exposures))

    def iter_paths(self) -> Iterator[tuple[PathSample, ExposureProfile]]:
        """Yield ``(path, exposure profile)`` pairs in storage order."""
        for i in range(self.n_paths):
            yield self.path(i), self.exposure(i)

    def subset(self, rows: Sequence[int] | slice) -> "PathTable":
        """Return a new table restricted to the given rows."""
        idx = np.arange(self.n_paths)[rows]
        return PathTable(
            weight=self.weight[idx],
            **{name: getattr(self, name)[idx] for name in _STREAMS + _EXPOSURES},
            path_ids=[self.path_ids[i] for i in idx],
        )

    @classmethod
    def from_paths(
        cls,
        paths: Sequence[PathSample],
        exposures: Sequence[ExposureProfile],
    ) -> "PathTable":
        """
        Stack individual paths and their exposures into a table.

        Parameters
        ----------
        paths : Sequence[PathSample]
            Simulated paths, all on the same exposure grid
        exposures : Sequence[ExposureProfile]
            Netted exposure of each path, in the same order

        Returns
        -------
        PathTable
            Stacked table
        """
        if len(paths) != len(exposures):
            raise ValueError(
                f"Got {len(paths)} paths but {len(exposures)} exposure profiles"
            )
        if not paths:
            raise ValueError("Cannot build a path table from zero paths")
        columns = {name: np.vstack([getattr(p, name) for p in paths]) for name in _STREAMS}
        for j, name in enumerate(_EXPOSURES):
            columns[name] = np.vstack([np.asarray(e[j], dtype=float) for e in exposures])
        return cls(
            weight=np.array([p.weight for p in paths], dtype=float),
            path_ids=[p.path_id for p in paths],
            **columns,
        )
