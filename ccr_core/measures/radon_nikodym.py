"""
Measure-change weightings.

Each weighting maps a path and an exposure date index to the
Radon-Nikodym derivative used to average exposures under a particular
pricing measure. The functions accept either a single ``PathSample``
(returning a scalar) or a ``PathTable`` (returning one value per path).
"""

from collections.abc import Callable
from enum import Enum
from typing import TypeAlias

import numpy as np

from ccr_core._types import FloatArray
from ccr_core.paths.sample import PathSample, PathTable

PathLike: TypeAlias = PathSample | PathTable


def _column(path: PathLike, stream: str, d: int) -> float | FloatArray:
    values = getattr(path, stream)
    if isinstance(path, PathTable):
        return values[:, d]
    return float(values[d])


def cpty_rn(path: PathLike, d: int) -> float | FloatArray:
    """Measure conditioned on counterparty default: ``rn * rn_cpty``."""
    return _column(path, "rn", d) * _column(path, "rn_cpty", d)


def own_rn(path: PathLike, d: int) -> float | FloatArray:
    """Measure conditioned on own default: ``rn * rn_own``."""
    return _column(path, "rn", d) * _column(path, "rn_own", d)


def funding_rn(path: PathLike, d: int) -> float | FloatArray:
    """Measure conditioned on joint survival: ``rn * rn_survival``."""
    return _column(path, "rn", d) * _column(path, "rn_survival", d)


def zero_rn(path: PathLike, d: int) -> float | FloatArray:
    """Pricing measure without default conditioning: ``rn``."""
    return _column(path, "rn", d)


class Weighting(Enum):
    """Named weighting functions referenced by the measure table."""

    CPTY = "cpty"
    OWN = "own"
    FUNDING = "funding"
    ZERO = "zero"

    @property
    def function(self) -> Callable[[PathLike, int], float | FloatArray]:
        """Weighting function for a single date index."""
        return _FUNCTIONS[self]

    def __call__(self, path: PathLike, d: int) -> float | FloatArray:
        return _FUNCTIONS[self](path, d)

    def profile(self, path: PathLike) -> FloatArray:
        """
        Weighting over every exposure date at once.

        Returns shape ``(n_dates,)`` for a path and
        ``(n_paths, n_dates)`` for a table.
        """
        rn = np.asarray(path.rn)
        if self is Weighting.ZERO:
            return rn
        return rn * np.asarray(getattr(path, _CONDITIONING[self]))


_FUNCTIONS: dict[Weighting, Callable[[PathLike, int], float | FloatArray]] = {
    Weighting.CPTY: cpty_rn,
    Weighting.OWN: own_rn,
    Weighting.FUNDING: funding_rn,
    Weighting.ZERO: zero_rn,
}

_CONDITIONING = {
    Weighting.CPTY: "rn_cpty",
    Weighting.OWN: "rn_own",
    Weighting.FUNDING: "rn_survival",
}
