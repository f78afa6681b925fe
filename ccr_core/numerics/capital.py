"""
Basel IRB capital for counterparty credit risk.

Implements the Advanced IRB capital requirement ``K`` with the maturity
adjustment, the risk weighted assets ``RWA = EAD * 12.5 * K`` and the
exposure at default ``EAD = alpha * EEPE``.
"""

import numpy as np
from scipy.stats import norm

ALPHA = 1.4
"""Regulatory multiplier applied to effective EPE."""

RISK_WEIGHT_MULTIPLIER = 12.5
"""Reciprocal of the 8% minimum capital ratio."""

MATURITY_CAP = 5.0
"""Effective maturity is capped at five years."""

CONFIDENCE = 0.999


def asset_correlation(pd: float) -> float:
    """Supervisory asset correlation ``R(PD)`` for corporate exposures."""
    g = (1.0 - np.exp(-50.0 * pd)) / (1.0 - np.exp(-50.0))
    return float(0.12 * g + 0.24 * (1.0 - g))


def maturity_adjustment(pd: float) -> float:
    """Maturity slope ``b(PD) = (0.11852 - 0.05478 ln PD)^2``."""
    return float((0.11852 - 0.05478 * np.log(pd)) ** 2)


def capital_requirement(pd: float, recovery: float, maturity: float) -> float:
    """
    Capital requirement ``K`` per unit of EAD.

    Parameters
    ----------
    pd : float
        One-year counterparty default probability
    recovery : float
        Counterparty recovery rate; ``LGD = 1 - recovery``
    maturity : float
        Effective maturity in years, capped at 5

    Returns
    -------
    float
        ``LGD * (Φ[(Φ⁻¹(PD) + √R Φ⁻¹(0.999)) / √(1-R)] - PD)
        * (1 + (M - 2.5) b) / (1 - 1.5 b)``; 0 when ``PD <= 0``

    Example
    -------
    >>> k = capital_requirement(pd=0.01, recovery=0.4, maturity=2.5)
    >>> print(f"K: {k:.4f}")
    K: 0.0985
    """
    if not 0.0 <= recovery <= 1.0:
        raise ValueError(f"Recovery rate must be in [0, 1], got {recovery}")
    if pd <= 0.0:
        return 0.0
    if pd >= 1.0:
        raise ValueError(f"Default probability must be below 1, got {pd}")

    lgd = 1.0 - recovery
    r = asset_correlation(pd)
    b = maturity_adjustment(pd)
    m = min(maturity, MATURITY_CAP)
    conditional_pd = norm.cdf(
        (norm.ppf(pd) + np.sqrt(r) * norm.ppf(CONFIDENCE)) / np.sqrt(1.0 - r)
    )
    return float(lgd * (conditional_pd - pd) * (1.0 + (m - 2.5) * b) / (1.0 - 1.5 * b))


def exposure_at_default(eepe: float) -> float:
    """EAD under the internal model method: ``alpha * EEPE``."""
    return ALPHA * eepe


def risk_weighted_assets(eepe: float, k: float) -> float:
    """Risk weighted assets ``alpha * EEPE * 12.5 * K``."""
    return exposure_at_default(eepe) * RISK_WEIGHT_MULTIPLIER * k
