"""
Pydantic configuration models for the CCR measure engine.

These models provide validation and type-safe configuration for:
- Credit parameters (recoveries, hazard rates)
- The exposure date grid
- Requested measures
- Synthetic path generation for demos and tests
"""

import datetime as dt
import warnings
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from ccr_core.exceptions import MeasureNotSupportedError
from ccr_core.market.daycount import add_months
from ccr_core.measures.catalog import CCRMeasure, parse_measure

_MONTHS = {"monthly": 1, "quarterly": 3, "semiannual": 6, "annual": 12}


class CreditConfig(BaseModel):
    """
    Credit parameters for CVA/DVA and capital calculations.

    Attributes
    ----------
    cpty_recovery : float
        Counterparty recovery rate (0-1)
    own_recovery : float
        Own recovery rate (0-1)
    hazard_rate_counterparty_bps : float
        Counterparty hazard rate in basis points (per annum)
    hazard_rate_own_bps : float
        Own hazard rate in basis points (per annum)
    unilateral : bool
        Ignore own default in the kernels

    Example
    -------
    >>> config = CreditConfig(cpty_recovery=0.4, hazard_rate_counterparty_bps=200)
    >>> config.hazard_rate_counterparty
    0.02
    """

    cpty_recovery: float = Field(ge=0, le=1, default=0.40)
    own_recovery: float = Field(ge=0, le=1, default=0.40)
    hazard_rate_counterparty_bps: float = Field(ge=0, le=10000, default=120)
    hazard_rate_own_bps: float = Field(ge=0, le=10000, default=100)
    unilateral: bool = False

    @field_validator("cpty_recovery", "own_recovery")
    @classmethod
    def recovery_realistic(cls, v: float) -> float:
        """Warn about recoveries that leave almost no loss."""
        if v > 0.9:
            warnings.warn(
                f"Recovery rate {v} > 0.9 is unusual; typical values are 0.25-0.6",
                UserWarning,
                stacklevel=2,
            )
        return v

    @property
    def hazard_rate_counterparty(self) -> float:
        """Counterparty hazard rate as decimal."""
        return self.hazard_rate_counterparty_bps / 10000

    @property
    def hazard_rate_own(self) -> float:
        """Own hazard rate as decimal."""
        return self.hazard_rate_own_bps / 10000


class GridConfig(BaseModel):
    """
    Exposure date grid.

    Either list ``exposure_dates`` explicitly or give ``horizon_years`` and
    ``frequency`` to roll a regular schedule forward from ``as_of``.

    Attributes
    ----------
    as_of : date
        Valuation date
    exposure_dates : list[date] | None
        Explicit strictly increasing exposure dates
    horizon_years : float
        Schedule horizon in years
    frequency : str
        Schedule frequency ('monthly', 'quarterly', 'semiannual', 'annual')
    """

    as_of: dt.date
    exposure_dates: list[dt.date] | None = None
    horizon_years: float = Field(gt=0, le=50, default=5.0)
    frequency: Literal["monthly", "quarterly", "semiannual", "annual"] = "quarterly"

    @model_validator(mode="after")
    def validate_dates(self) -> "GridConfig":
        """Explicit dates must be non-empty and strictly increasing."""
        if self.exposure_dates is None:
            return self
        if not self.exposure_dates:
            raise ValueError("exposure_dates must not be empty")
        for a, b in zip(self.exposure_dates, self.exposure_dates[1:]):
            if b <= a:
                raise ValueError(f"exposure_dates must be strictly increasing: {a} >= {b}")
        if self.exposure_dates[0] < self.as_of:
            warnings.warn(
                f"First exposure date {self.exposure_dates[0]} precedes as_of {self.as_of}",
                UserWarning,
                stacklevel=2,
            )
        return self

    def dates(self) -> list[dt.date]:
        """Exposure dates, explicit or rolled from the schedule."""
        if self.exposure_dates is not None:
            return list(self.exposure_dates)
        step = _MONTHS[self.frequency]
        n_steps = max(1, int(round(self.horizon_years * 12 / step)))
        return [add_months(self.as_of, step * i) for i in range(1, n_steps + 1)]


class MeasureRequest(BaseModel):
    """
    One requested measure.

    Attributes
    ----------
    name : str
        Measure name as listed in ``CCRMeasure``
    confidence : float
        Quantile level for tail measures
    date : date | None
        Query date, where the measure uses one
    """

    name: str
    confidence: float = Field(gt=0, lt=1, default=0.95)
    date: dt.date | None = None

    @field_validator("name")
    @classmethod
    def known_measure(cls, v: str) -> str:
        """Normalize to the catalog name."""
        try:
            return parse_measure(v).value
        except MeasureNotSupportedError as exc:
            raise ValueError(str(exc)) from exc

    @property
    def measure(self) -> CCRMeasure:
        return parse_measure(self.name)


class SyntheticPathConfig(BaseModel):
    """
    Parameters of the synthetic path generator used by demos and tests.

    Attributes
    ----------
    n_paths : int
        Number of paths
    seed : int | None
        Random seed for reproducibility
    initial_rate, kappa, theta, rate_vol : float
        Ornstein-Uhlenbeck short rate driving the discount factors
    notional : float
        Scale of the portfolio value
    mtm_drift, mtm_vol : float
        Drift and volatility of the portfolio value per unit notional
    collateral_threshold : float | None
        CSA threshold; positive exposure above it is collateralized
    borrow_spread_bps, lend_spread_bps, own_spread_bps : float
        Flat funding and own credit spreads in basis points
    rn_vol : float
        Log-normal dispersion of the measure-change streams (0 for unit)
    """

    n_paths: int = Field(ge=1, le=1_000_000, default=2000)
    seed: int | None = Field(default=42)
    initial_rate: float = Field(ge=-0.02, le=0.20, default=0.02)
    kappa: float = Field(gt=0, le=2.0, default=0.1)
    theta: float = Field(ge=-0.02, le=0.20, default=0.02)
    rate_vol: float = Field(ge=0, le=0.10, default=0.01)
    notional: float = Field(gt=0, default=1e7)
    mtm_drift: float = Field(ge=-1, le=1, default=0.0)
    mtm_vol: float = Field(ge=0, le=2, default=0.05)
    collateral_threshold: float | None = Field(ge=0, default=None)
    borrow_spread_bps: float = Field(ge=0, le=1000, default=100)
    lend_spread_bps: float = Field(ge=0, le=1000, default=50)
    own_spread_bps: float = Field(ge=0, le=1000, default=80)
    rn_vol: float = Field(ge=0, le=1, default=0.0)


class CalculationConfig(BaseModel):
    """
    Complete configuration of a measure run.

    Attributes
    ----------
    grid : GridConfig
        Exposure date grid
    credit : CreditConfig
        Credit parameters
    measures : list[MeasureRequest]
        Measures to compute
    paths : SyntheticPathConfig
        Synthetic path parameters
    mode : str
        'batch' (path table) or 'streaming' (sharded accumulation)
    n_shards : int
        Number of shards in streaming mode
    """

    grid: GridConfig
    credit: CreditConfig = Field(default_factory=CreditConfig)
    measures: list[MeasureRequest] = Field(default_factory=list)
    paths: SyntheticPathConfig = Field(default_factory=SyntheticPathConfig)
    mode: Literal["batch", "streaming"] = "batch"
    n_shards: int = Field(ge=1, le=256, default=1)

    @model_validator(mode="after")
    def shards_fit_paths(self) -> "CalculationConfig":
        """Every shard needs at least one path."""
        if self.n_shards > self.paths.n_paths:
            raise ValueError(
                f"n_shards ({self.n_shards}) cannot exceed n_paths ({self.paths.n_paths})"
            )
        return self
