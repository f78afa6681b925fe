"""
Tests for grid interpolation, kernel integration, time statistics and capital.
"""

import datetime as dt

import numpy as np
import pytest
from scipy.stats import norm

from ccr_core.market import IntegrationKernel, KernelIndex, year_fraction
from ccr_core.numerics import (
    ExposureGrid,
    capital_requirement,
    exposure_at_default,
    risk_weighted_assets,
)


@pytest.fixture
def ten_day_grid() -> ExposureGrid:
    """Three exposure dates ten days apart after a ten-day stub."""
    as_of = dt.date(2025, 1, 1)
    return ExposureGrid(
        as_of, [dt.date(2025, 1, 11), dt.date(2025, 1, 21), dt.date(2025, 1, 31)]
    )


class TestExposureGrid:
    """Tests for grid construction and lookup."""

    def test_requires_increasing_dates(self, as_of: dt.date) -> None:
        """Exposure dates must be strictly increasing."""
        with pytest.raises(ValueError, match="strictly increasing"):
            ExposureGrid(as_of, [dt.date(2025, 6, 1), dt.date(2025, 6, 1)])

    def test_requires_dates(self, as_of: dt.date) -> None:
        """An empty grid is rejected."""
        with pytest.raises(ValueError, match="at least one"):
            ExposureGrid(as_of, [])

    def test_index(self, grid: ExposureGrid) -> None:
        """Grid dates map to their position, other dates to None."""
        assert grid.index(grid.dates[4]) == 4
        assert grid.index(grid.dates[4] + dt.timedelta(days=1)) is None

    def test_one_year(self, grid: ExposureGrid) -> None:
        assert grid.one_year == dt.date(2026, 1, 1)


class TestInterpolation:
    """Tests for profile interpolation."""

    def test_boundaries(self, grid: ExposureGrid) -> None:
        """Exact at T0 and Tn, flat before T0, zero after Tn."""
        f = np.arange(1.0, grid.n_dates + 1.0)
        assert grid.interpolate(f, grid.first_date) == f[0]
        assert grid.interpolate(f, grid.as_of) == f[0]
        assert grid.interpolate(f, grid.last_date) == f[-1]
        assert grid.interpolate(f, grid.last_date + dt.timedelta(days=1)) == 0.0
        assert grid.interpolate(f, dt.date(2040, 1, 1)) == 0.0

    def test_linear_in_days(self) -> None:
        """Midpoint in days gives the midpoint value."""
        grid = ExposureGrid(dt.date(2025, 1, 1), [dt.date(2025, 7, 1), dt.date(2026, 1, 1)])
        assert grid.interpolate(np.array([10.0, 20.0]), dt.date(2025, 10, 1)) == 15.0

    def test_grid_dates_exact(self, grid: ExposureGrid) -> None:
        """Interior grid dates return their own values."""
        f = np.sin(np.arange(grid.n_dates))
        for i in (1, 7, 13):
            assert grid.interpolate(f, grid.dates[i]) == pytest.approx(f[i])


class TestIntegration:
    """Tests for kernel integration."""

    def test_constant_profile(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """A constant profile integrates to LGD times the kernel mass."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        f = np.full(grid.n_dates, 100.0)
        assert grid.integrate(f, kernel, 0.4) == pytest.approx(60.0 * kernel.total)

    def test_additivity(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Integrals over adjacent ranges add up."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        rng = np.random.default_rng(5)
        f = rng.random(grid.n_dates) * 1e6
        a, b, c = grid.as_of, grid.dates[6], grid.dates[15]
        whole = grid.integrate(f, kernel, 0.4, a, c)
        parts = grid.integrate(f, kernel, 0.4, a, b) + grid.integrate(f, kernel, 0.4, b, c)
        assert whole == pytest.approx(parts, rel=1e-9)

    def test_additivity_to_last_date(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Default limits cover as-of to the last kernel date."""
        kernel = kernels[KernelIndex.SURVIVAL]
        f = np.linspace(1.0, 2.0, grid.n_dates)
        b = grid.dates[3]
        assert grid.integrate(f, kernel, 0.0) == pytest.approx(
            grid.integrate(f, kernel, 0.0, end=b) + grid.integrate(f, kernel, 0.0, start=b),
            rel=1e-9,
        )

    def test_empty_range(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Empty or out-of-range integrals are zero."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        f = np.ones(grid.n_dates)
        assert grid.integrate(f, kernel, 0.4, grid.dates[5], grid.dates[2]) == 0.0
        assert grid.integrate(f, kernel, 0.4, start=grid.last_date) == 0.0

    def test_end_clamped(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Upper limits past the last kernel date are clamped."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        f = np.ones(grid.n_dates)
        late = grid.last_date + dt.timedelta(days=400)
        assert grid.integrate(f, kernel, 0.4, end=late) == grid.integrate(f, kernel, 0.4)

    def test_theta(self, grid: ExposureGrid, kernels: list[IntegrationKernel]) -> None:
        """Theta integrates from as-of to the requested date (default one day)."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        f = np.full(grid.n_dates, 10.0)
        next_day = grid.as_of + dt.timedelta(days=1)
        assert grid.integrate_theta(f, kernel, 0.4) == grid.integrate(
            f, kernel, 0.4, grid.as_of, next_day
        )
        assert grid.integrate_theta(f, kernel, 0.4) > 0

    def test_buckets_sum_to_total(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Buckets partition the full integral."""
        kernel = kernels[KernelIndex.OWN_DEFAULT]
        f = np.linspace(5.0, 1.0, grid.n_dates)
        buckets = [grid.bucket_integral(f, grid.as_of, kernel, 0.4)]
        buckets += [grid.bucket_integral(f, d, kernel, 0.4) for d in grid.dates[:-1]]
        assert sum(buckets) == pytest.approx(grid.integrate(f, kernel, 0.4), rel=1e-9)

    def test_bucket_interior_date(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """A date inside a bucket selects the whole bucket."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        f = np.ones(grid.n_dates)
        inside = grid.dates[2] + dt.timedelta(days=10)
        assert grid.bucket_integral(f, inside, kernel, 0.4) == grid.integrate(
            f, kernel, 0.4, grid.dates[2], grid.dates[3]
        )

    def test_bucket_outside_grid(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Dates before as-of or from the last date on have no bucket."""
        kernel = kernels[KernelIndex.CPTY_DEFAULT]
        f = np.ones(grid.n_dates)
        assert grid.bucket_integral(f, grid.as_of - dt.timedelta(days=1), kernel, 0.4) == 0.0
        assert grid.bucket_integral(f, grid.last_date, kernel, 0.4) == 0.0


class TestTimeStatistics:
    """Tests for running max, time average and effective maturity."""

    def test_running_max(self, ten_day_grid: ExposureGrid) -> None:
        f = np.array([1.0, 3.0, 2.0])
        assert ten_day_grid.running_max(f) == 3.0
        assert ten_day_grid.running_max(f, ten_day_grid.dates[0]) == 1.0
        assert np.array_equal(ten_day_grid.running_max_profile(f), [1.0, 3.0, 3.0])

    def test_running_max_floored(self, ten_day_grid: ExposureGrid) -> None:
        """Running max never drops below zero."""
        assert ten_day_grid.running_max(np.array([-1.0, -2.0, -3.0])) == 0.0

    def test_time_average(self, ten_day_grid: ExposureGrid) -> None:
        """Day-weighted average including the initial stub."""
        f = np.array([1.0, 2.0, 3.0])
        assert ten_day_grid.time_average(f) == pytest.approx(2.0)

    def test_time_average_constant(self, grid: ExposureGrid) -> None:
        f = np.full(grid.n_dates, 7.5)
        assert grid.time_average(f) == pytest.approx(7.5)
        assert grid.time_average(f, grid.one_year) == pytest.approx(7.5)

    def test_effective_epe(self, ten_day_grid: ExposureGrid) -> None:
        """Effective EPE averages the running-max profile."""
        f = np.array([1.0, 3.0, 2.0])
        assert ten_day_grid.effective_epe(f) == pytest.approx((10 + 30 + 30) / 30)

    def test_effective_maturity_zero_profile(self, grid: ExposureGrid) -> None:
        """Zero exposure gives exactly 1.0."""
        assert grid.effective_maturity(np.zeros(grid.n_dates)) == 1.0

    def test_effective_maturity_late_exposure(self, grid: ExposureGrid) -> None:
        """Exposure only after one year gives exactly 5.0."""
        f = np.array([0.0 if d <= grid.one_year else 1e6 for d in grid.dates])
        assert grid.effective_maturity(f) == 5.0

    def test_effective_maturity_flat(self, grid: ExposureGrid) -> None:
        """A flat profile has maturity equal to the grid horizon."""
        f = np.full(grid.n_dates, 1e6)
        expected = year_fraction(grid.as_of, grid.last_date)
        assert grid.effective_maturity(f) == pytest.approx(expected)


class TestCapital:
    """Tests for the Basel IRB formulas."""

    @staticmethod
    def _reference_k(pd: float, lgd: float, m: float) -> float:
        r = 0.12 * (1 - np.exp(-50 * pd)) / (1 - np.exp(-50)) + 0.24 * (
            1 - (1 - np.exp(-50 * pd)) / (1 - np.exp(-50))
        )
        b = (0.11852 - 0.05478 * np.log(pd)) ** 2
        cond = norm.cdf((norm.ppf(pd) + np.sqrt(r) * norm.ppf(0.999)) / np.sqrt(1 - r))
        return lgd * (cond - pd) * (1 + (m - 2.5) * b) / (1 - 1.5 * b)

    def test_matches_reference(self) -> None:
        """K agrees with the closed-form Basel formula."""
        for pd, m in ((0.01, 2.5), (0.003, 1.0), (0.05, 4.2)):
            k = capital_requirement(pd, recovery=0.4, maturity=m)
            assert k == pytest.approx(self._reference_k(pd, 0.6, m), rel=1e-12)

    def test_maturity_capped(self) -> None:
        """Maturity above five years is capped."""
        assert capital_requirement(0.02, 0.4, 7.0) == capital_requirement(0.02, 0.4, 5.0)

    def test_zero_pd(self) -> None:
        assert capital_requirement(0.0, 0.4, 2.5) == 0.0

    def test_invalid_inputs(self) -> None:
        with pytest.raises(ValueError):
            capital_requirement(1.0, 0.4, 2.5)
        with pytest.raises(ValueError):
            capital_requirement(0.01, 1.4, 2.5)

    def test_increases_with_pd(self) -> None:
        assert capital_requirement(0.02, 0.4, 2.5) > capital_requirement(0.01, 0.4, 2.5)

    def test_rwa(self) -> None:
        """RWA = 1.4 * EEPE * 12.5 * K."""
        assert exposure_at_default(1e6) == pytest.approx(1.4e6)
        assert risk_weighted_assets(1e6, 0.08) == pytest.approx(1.4e6 * 12.5 * 0.08)
