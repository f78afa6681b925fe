"""
Seeded synthetic path tables for demos and tests.

Discount factors come from an Ornstein-Uhlenbeck short rate, the portfolio
value from a drifted Brownian fan, and the funding spreads are flat. The
measure-change streams are either identically one or mean-one log-normal.
This is sample data, not a pricing model.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ccr_core.market.daycount import year_fraction
from ccr_core.numerics.grid import ExposureGrid
from ccr_core.paths.sample import PathTable

if TYPE_CHECKING:
    from ccr_core.config.models import SyntheticPathConfig


@dataclass
class SyntheticPathGenerator:
    """
    Generator of ``PathTable``s on an exposure grid.

    Attributes
    ----------
    n_paths : int
        Number of paths
    seed : int | None
        Random seed for reproducibility
    initial_rate, kappa, theta, rate_vol : float
        OU short rate ``dr = kappa (theta - r) dt + rate_vol dW``
    notional : float
        Scale of the portfolio value
    mtm_drift, mtm_vol : float
        Portfolio value ``V(t) = notional (mtm_drift t + mtm_vol W(t))``
    collateral_threshold : float | None
        Positive exposure above this level is collateralized
    borrow_spread, lend_spread, own_spread : float
        Flat spreads (decimal)
    rn_vol : float
        Dispersion of the log-normal measure-change streams

    Example
    -------
    >>> gen = SyntheticPathGenerator(n_paths=1000, seed=7)
    >>> table = gen.generate(grid)
    >>> table.positive_exposure.shape
    (1000, 20)
    """

    n_paths: int = 2000
    seed: int | None = 42
    initial_rate: float = 0.02
    kappa: float = 0.1
    theta: float = 0.02
    rate_vol: float = 0.01
    notional: float = 1e7
    mtm_drift: float = 0.0
    mtm_vol: float = 0.05
    collateral_threshold: float | None = None
    borrow_spread: float = 0.01
    lend_spread: float = 0.005
    own_spread: float = 0.008
    rn_vol: float = 0.0

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.n_paths < 1:
            raise ValueError(f"n_paths must be positive, got {self.n_paths}")
        if self.kappa <= 0:
            raise ValueError(f"kappa must be positive, got {self.kappa}")
        if self.rate_vol < 0 or self.mtm_vol < 0 or self.rn_vol < 0:
            raise ValueError("Volatilities must be non-negative")
        if self.collateral_threshold is not None and self.collateral_threshold < 0:
            raise ValueError(
                f"collateral_threshold must be non-negative, got {self.collateral_threshold}"
            )

    @classmethod
    def from_config(cls, config: "SyntheticPathConfig") -> "SyntheticPathGenerator":
        """
        Create generator from configuration.

        Parameters
        ----------
        config : SyntheticPathConfig
            Synthetic path configuration

        Returns
        -------
        SyntheticPathGenerator
            Configured generator
        """
        return cls(
            n_paths=config.n_paths,
            seed=config.seed,
            initial_rate=config.initial_rate,
            kappa=config.kappa,
            theta=config.theta,
            rate_vol=config.rate_vol,
            notional=config.notional,
            mtm_drift=config.mtm_drift,
            mtm_vol=config.mtm_vol,
            collateral_threshold=config.collateral_threshold,
            borrow_spread=config.borrow_spread_bps / 10000,
            lend_spread=config.lend_spread_bps / 10000,
            own_spread=config.own_spread_bps / 10000,
            rn_vol=config.rn_vol,
        )

    def _short_rates(self, rng: np.random.Generator, dt: np.ndarray) -> np.ndarray:
        # Exact OU transition between grid dates
        rates = np.empty((self.n_paths, len(dt)))
        r = np.full(self.n_paths, self.initial_rate)
        for i, step in enumerate(dt):
            decay = np.exp(-self.kappa * step)
            std = self.rate_vol * np.sqrt((1 - decay**2) / (2 * self.kappa))
            r = r * decay + self.theta * (1 - decay) + std * rng.standard_normal(self.n_paths)
            rates[:, i] = r
        return rates

    def _measure_change(self, rng: np.random.Generator, n_dates: int) -> np.ndarray:
        if self.rn_vol == 0:
            return np.ones((self.n_paths, n_dates))
        z = rng.standard_normal((self.n_paths, n_dates))
        return np.exp(self.rn_vol * z - 0.5 * self.rn_vol**2)

    def generate(self, grid: ExposureGrid) -> PathTable:
        """
        Simulate a path table on the exposure grid.

        Parameters
        ----------
        grid : ExposureGrid
            As-of date and exposure dates; dates must follow ``as_of``

        Returns
        -------
        PathTable
            Table of shape ``(n_paths, n_dates)``
        """
        t = np.array([year_fraction(grid.as_of, d) for d in grid.dates])
        if t[0] <= 0:
            raise ValueError("Exposure dates must be after the as-of date")
        dt = np.diff(np.r_[0.0, t])
        rng = np.random.default_rng(self.seed)
        n, m = self.n_paths, grid.n_dates

        rates = self._short_rates(rng, dt)
        # Left-point rule with r(0) = initial_rate
        prev_rates = np.column_stack([np.full(n, self.initial_rate), rates[:, :-1]])
        discount_factor = np.exp(-np.cumsum(prev_rates * dt, axis=1))

        brownian = np.cumsum(rng.standard_normal((n, m)) * np.sqrt(dt), axis=1)
        value = self.notional * (self.mtm_drift * t + self.mtm_vol * brownian)

        positive = np.maximum(value, 0.0)
        negative = np.maximum(-value, 0.0)
        if self.collateral_threshold is None:
            positive_collateral = np.zeros_like(positive)
        else:
            positive_collateral = np.maximum(positive - self.collateral_threshold, 0.0)
        negative_collateral = np.zeros_like(negative)

        return PathTable(
            weight=np.ones(n),
            rn=self._measure_change(rng, m),
            rn_cpty=self._measure_change(rng, m),
            rn_own=self._measure_change(rng, m),
            rn_survival=self._measure_change(rng, m),
            discount_factor=discount_factor,
            borrow_spread=np.full((n, m), self.borrow_spread),
            lend_spread=np.full((n, m), self.lend_spread),
            own_spread=np.full((n, m), self.own_spread),
            positive_exposure=positive - positive_collateral,
            positive_collateral=positive_collateral,
            negative_exposure=negative - negative_collateral,
            negative_collateral=negative_collateral,
        )
