"""
Numerical routines on the exposure grid.

Provides interpolation and kernel integration of per-date profiles, the
running-max and time-average statistics, and the Basel IRB capital
formulas.
"""

from ccr_core.numerics.capital import (
    capital_requirement,
    exposure_at_default,
    risk_weighted_assets,
)
from ccr_core.numerics.grid import ExposureGrid

__all__ = [
    "ExposureGrid",
    "capital_requirement",
    "exposure_at_default",
    "risk_weighted_assets",
]
