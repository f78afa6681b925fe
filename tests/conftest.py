"""
Pytest fixtures for CCR measure testing.

Provides reusable grids, hazard curves, kernels, credit inputs and path tables.
"""

import datetime as dt
from collections.abc import Callable, Sequence

import numpy as np
import pytest

from ccr_core.calculations import CreditInputs
from ccr_core.market import HazardCurve, IntegrationKernel, add_months, build_kernels
from ccr_core.numerics import ExposureGrid
from ccr_core.paths import ExposureProfile, PathSample, PathTable, SyntheticPathGenerator


@pytest.fixture
def as_of() -> dt.date:
    """Valuation date."""
    return dt.date(2025, 1, 1)


@pytest.fixture
def quarterly_dates(as_of: dt.date) -> list[dt.date]:
    """Standard 5-year quarterly exposure dates."""
    return [add_months(as_of, 3 * i) for i in range(1, 21)]


@pytest.fixture
def grid(as_of: dt.date, quarterly_dates: list[dt.date]) -> ExposureGrid:
    """5-year quarterly exposure grid."""
    return ExposureGrid(as_of, quarterly_dates)


@pytest.fixture
def cpty_curve(as_of: dt.date) -> HazardCurve:
    """Counterparty hazard curve with 200bps hazard rate."""
    return HazardCurve(as_of, hazard_rate=0.02, recovery_rate=0.4)


@pytest.fixture
def own_curve(as_of: dt.date) -> HazardCurve:
    """Own hazard curve with 100bps hazard rate."""
    return HazardCurve(as_of, hazard_rate=0.01, recovery_rate=0.4)


@pytest.fixture
def kernels(
    as_of: dt.date,
    grid: ExposureGrid,
    cpty_curve: HazardCurve,
    own_curve: HazardCurve,
) -> list[IntegrationKernel]:
    """Bilateral kernels on the exposure dates."""
    return build_kernels(as_of, grid.dates, cpty_curve, own_curve)


@pytest.fixture
def credit(cpty_curve: HazardCurve) -> CreditInputs:
    """Credit inputs consistent with the hazard curves."""
    return CreditInputs(
        cpty_recovery=0.4,
        own_recovery=0.4,
        default_probability=cpty_curve.one_year_default_probability(),
    )


@pytest.fixture
def synthetic_table(grid: ExposureGrid) -> PathTable:
    """Seeded synthetic paths with non-trivial measure changes and collateral."""
    generator = SyntheticPathGenerator(
        n_paths=400,
        seed=7,
        mtm_drift=0.01,
        collateral_threshold=5e5,
        rn_vol=0.2,
    )
    return generator.generate(grid)


@pytest.fixture
def table_factory() -> Callable[..., PathTable]:
    """Build a table of flat paths from per-path positive/negative exposures."""

    def _make(
        positive: Sequence[Sequence[float]],
        negative: Sequence[Sequence[float]] | None = None,
        weights: Sequence[float] | None = None,
        discount_factor: float = 1.0,
    ) -> PathTable:
        pos = np.asarray(positive, dtype=float)
        neg = np.zeros_like(pos) if negative is None else np.asarray(negative, dtype=float)
        n_paths, n_dates = pos.shape
        w = np.ones(n_paths) if weights is None else np.asarray(weights, dtype=float)
        paths = [
            PathSample.flat(i, n_dates, weight=w[i], discount_factor=discount_factor)
            for i in range(n_paths)
        ]
        zeros = np.zeros(n_dates)
        exposures = [ExposureProfile(pos[i], zeros, neg[i], zeros) for i in range(n_paths)]
        return PathTable.from_paths(paths, exposures)

    return _make


@pytest.fixture
def single_date_grid(as_of: dt.date) -> ExposureGrid:
    """Grid with one exposure date."""
    return ExposureGrid(as_of, [dt.date(2025, 7, 1)])
