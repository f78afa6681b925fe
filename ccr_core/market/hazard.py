"""
Flat hazard rate curves for the default kernels.

Provides survival and default probabilities used to discretize the
counterparty and own default densities, and the one-year default
probability consumed by the capital calculation.
"""

from dataclasses import dataclass

import numpy as np

from ccr_core._types import Date, FloatArray
from ccr_core.market.daycount import one_year_after, year_fraction


@dataclass
class HazardCurve:
    """
    Flat hazard rate curve anchored at a valuation date.

    Survival probability is ``S(t) = exp(-λ t)`` with ``t`` the ACT/365F
    year fraction from ``as_of``.

    Attributes
    ----------
    as_of : Date
        Curve anchor date
    hazard_rate : float
        Constant hazard rate (per annum)
    recovery_rate : float
        Recovery rate in case of default (0-1)

    Example
    -------
    >>> curve = HazardCurve(dt.date(2025, 1, 1), hazard_rate=0.02, recovery_rate=0.4)
    >>> round(curve.default_probability(dt.date(2026, 1, 1)), 4)
    0.0198
    """

    as_of: Date
    hazard_rate: float = 0.01
    recovery_rate: float = 0.4

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.hazard_rate < 0:
            raise ValueError(
                f"Hazard rate must be non-negative, got {self.hazard_rate}"
            )
        if not 0 <= self.recovery_rate <= 1:
            raise ValueError(
                f"Recovery rate must be in [0, 1], got {self.recovery_rate}"
            )

    @property
    def lgd(self) -> float:
        """Loss given default (1 - recovery rate)."""
        return 1.0 - self.recovery_rate

    def survival_probability(self, t: float | FloatArray) -> float | FloatArray:
        """
        Survival probability to year fraction(s) ``t``.

        Parameters
        ----------
        t : float | FloatArray
            Time(s) in years from the anchor date

        Returns
        -------
        float | FloatArray
            ``exp(-λ t)``
        """
        return np.exp(-self.hazard_rate * np.asarray(t))  # type: ignore[return-value]

    def survival_to(self, date: Date) -> float:
        """Survival probability from the anchor date to ``date``."""
        return float(self.survival_probability(year_fraction(self.as_of, date)))

    def default_probability(self, date: Date) -> float:
        """Probability of default between the anchor date and ``date``."""
        return 1.0 - self.survival_to(date)

    def one_year_default_probability(self) -> float:
        """Default probability over one calendar year from the anchor date."""
        return self.default_probability(one_year_after(self.as_of))

    @classmethod
    def from_cds_spread(
        cls, as_of: Date, spread: float, recovery_rate: float = 0.4
    ) -> "HazardCurve":
        """
        Create a hazard curve from a CDS spread with ``λ = spread / LGD``.

        Parameters
        ----------
        as_of : Date
            Curve anchor date
        spread : float
            CDS spread in decimal (e.g., 0.01 for 100bps)
        recovery_rate : float
            Recovery rate assumption

        Returns
        -------
        HazardCurve
            Hazard curve implied by the spread
        """
        lgd = 1.0 - recovery_rate
        if lgd <= 0:
            raise ValueError("LGD must be positive")
        return cls(as_of=as_of, hazard_rate=spread / lgd, recovery_rate=recovery_rate)
