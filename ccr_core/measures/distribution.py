"""
Empirical exposure distribution used by the tail measures.

The distribution is a step CDF over the distinct simulated exposure
values. Every knot also carries the collateral observed with the first
sample at that value, so the collateral held at the exposure quantile
can be read off the same CDF.
"""

from dataclasses import dataclass

import numpy as np

from ccr_core._types import FloatArray


@dataclass(frozen=True)
class ExposureDistribution:
    """
    Step CDF over sorted exposure values.

    Attributes
    ----------
    values : FloatArray
        Distinct exposure values in increasing order
    collateral : FloatArray
        Collateral carried at each knot
    cdf : FloatArray
        Cumulative probability at each knot (non-decreasing, ends near 1)

    Example
    -------
    >>> dist = ExposureDistribution(
    ...     values=np.array([0.0, 10.0, 20.0]),
    ...     collateral=np.zeros(3),
    ...     cdf=np.array([1 / 3, 2 / 3, 1.0]),
    ... )
    >>> dist.quantile(0.95)
    20.0
    """

    values: FloatArray
    collateral: FloatArray
    cdf: FloatArray

    def __post_init__(self) -> None:
        """Validate inputs."""
        n = len(self.values)
        if n == 0:
            raise ValueError("Distribution must have at least one knot")
        if len(self.collateral) != n or len(self.cdf) != n:
            raise ValueError(
                f"values, collateral and cdf must have equal length, got "
                f"{n}, {len(self.collateral)}, {len(self.cdf)}"
            )

    @classmethod
    def degenerate(cls, value: float = 0.0) -> "ExposureDistribution":
        """Point mass at ``value`` with zero collateral."""
        return cls(
            values=np.array([value]),
            collateral=np.zeros(1),
            cdf=np.ones(1),
        )

    @classmethod
    def from_samples(
        cls,
        values: FloatArray,
        collateral: FloatArray,
        weights: FloatArray,
        norm: float,
    ) -> "ExposureDistribution":
        """
        Build the CDF from weighted positive samples.

        Parameters
        ----------
        values : FloatArray
            Strictly positive exposure samples, in accumulation order
        collateral : FloatArray
            Collateral observed with each sample
        weights : FloatArray
            Probability weight of each sample
        norm : float
            Total weight of all samples, including those with zero exposure

        Returns
        -------
        ExposureDistribution
            Distribution with a zero knot holding ``norm - sum(weights)``
            when some weight sits at zero exposure
        """
        if norm <= 0.0:
            return cls.degenerate()

        order = np.argsort(values, kind="stable")
        values = np.asarray(values, dtype=float)[order]
        collateral = np.asarray(collateral, dtype=float)[order]
        weights = np.asarray(weights, dtype=float)[order]
        mass = float(weights.sum())

        # Equal values collapse onto the first sample's knot
        if len(values) > 0:
            starts = np.flatnonzero(np.r_[True, values[1:] != values[:-1]])
            weights = np.add.reduceat(weights, starts)
            values = values[starts]
            collateral = collateral[starts]

        if mass < norm:
            values = np.r_[0.0, values]
            collateral = np.r_[0.0, collateral]
            weights = np.r_[norm - mass, weights]

        return cls(values=values, collateral=collateral, cdf=np.cumsum(weights / norm))

    def _knot(self, p: float) -> int:
        if not 0.0 < p <= 1.0:
            raise ValueError(f"Confidence must be in (0, 1], got {p}")
        idx = int(np.searchsorted(self.cdf, p, side="left"))
        return min(idx, len(self.values) - 1)

    def quantile(self, p: float) -> float:
        """Smallest exposure whose cumulative probability reaches ``p``."""
        return float(self.values[self._knot(p)])

    def collateral_quantile(self, p: float) -> float:
        """Collateral carried at the exposure ``p``-quantile knot."""
        return float(self.collateral[self._knot(p)])

    def expectation(self) -> float:
        """Mean of the step distribution."""
        probs = np.diff(np.r_[0.0, self.cdf])
        return float(np.dot(self.values, probs))
