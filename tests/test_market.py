"""
Tests for market module: day counting, hazard curves and integration kernels.
"""

import datetime as dt

import numpy as np
import pytest

from ccr_core.market import (
    HazardCurve,
    IntegrationKernel,
    KernelIndex,
    add_months,
    build_kernels,
    kernel_at,
    one_year_after,
    year_fraction,
)
from ccr_core.numerics import ExposureGrid


class TestDayCount:
    """Tests for day-count and calendar helpers."""

    def test_year_fraction(self) -> None:
        assert year_fraction(dt.date(2025, 1, 1), dt.date(2026, 1, 1)) == 1.0
        assert year_fraction(dt.date(2024, 1, 1), dt.date(2025, 1, 1)) == 366 / 365

    def test_one_year_after_leap_day(self) -> None:
        """29 February rolls to 28 February."""
        assert one_year_after(dt.date(2024, 2, 29)) == dt.date(2025, 2, 28)
        assert one_year_after(dt.date(2025, 3, 15)) == dt.date(2026, 3, 15)

    def test_add_months_clamps(self) -> None:
        """Month ends clamp to shorter months."""
        assert add_months(dt.date(2025, 1, 31), 1) == dt.date(2025, 2, 28)
        assert add_months(dt.date(2024, 1, 31), 1) == dt.date(2024, 2, 29)
        assert add_months(dt.date(2025, 11, 15), 3) == dt.date(2026, 2, 15)
        assert add_months(dt.date(2025, 3, 31), -1) == dt.date(2025, 2, 28)


class TestHazardCurve:
    """Tests for HazardCurve class."""

    def test_survival_probability(self, cpty_curve: HazardCurve) -> None:
        """Test survival probability calculation."""
        surv_5y = cpty_curve.survival_probability(5.0)
        assert np.isclose(surv_5y, np.exp(-0.02 * 5.0), rtol=1e-10)

    def test_survival_at_zero(self, cpty_curve: HazardCurve) -> None:
        """Survival probability at t=0 should be 1."""
        assert cpty_curve.survival_probability(0.0) == 1.0

    def test_default_probability_by_date(self, cpty_curve: HazardCurve) -> None:
        """Default probability to a date uses ACT/365F."""
        pd = cpty_curve.default_probability(dt.date(2026, 1, 1))
        assert np.isclose(pd, 1 - np.exp(-0.02))
        assert cpty_curve.one_year_default_probability() == pytest.approx(pd)

    def test_from_cds_spread(self, as_of: dt.date) -> None:
        """Hazard rate from CDS spread: lambda = spread / LGD."""
        curve = HazardCurve.from_cds_spread(as_of, spread=0.012, recovery_rate=0.4)
        assert np.isclose(curve.hazard_rate, 0.02)
        assert np.isclose(curve.lgd, 0.6)

    def test_invalid_parameters(self, as_of: dt.date) -> None:
        """Negative hazard or out-of-range recovery is rejected."""
        with pytest.raises(ValueError, match="Hazard rate"):
            HazardCurve(as_of, hazard_rate=-0.01)
        with pytest.raises(ValueError, match="Recovery rate"):
            HazardCurve(as_of, recovery_rate=1.5)
        with pytest.raises(ValueError, match="LGD"):
            HazardCurve.from_cds_spread(as_of, 0.01, recovery_rate=1.0)


class TestKernels:
    """Tests for kernel construction."""

    def test_first_to_default_split(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """Counterparty and own increments add up to the joint default mass."""
        t = year_fraction(grid.as_of, grid.last_date)
        cpty = kernels[KernelIndex.CPTY_DEFAULT]
        own = kernels[KernelIndex.OWN_DEFAULT]
        assert cpty.total + own.total == pytest.approx(1 - np.exp(-0.03 * t))
        assert cpty.total / own.total == pytest.approx(2.0)

    def test_unilateral(self, grid: ExposureGrid, cpty_curve: HazardCurve) -> None:
        """Unilateral kernels carry no own default mass."""
        kernels = build_kernels(grid.as_of, grid.dates, cpty_curve, unilateral=True)
        t = year_fraction(grid.as_of, grid.last_date)
        assert kernels[KernelIndex.OWN_DEFAULT].total == 0.0
        assert kernels[KernelIndex.CPTY_DEFAULT].total == pytest.approx(1 - np.exp(-0.02 * t))

    def test_no_default_kernel(
        self, grid: ExposureGrid, kernels: list[IntegrationKernel]
    ) -> None:
        """The no-default kernel is the bare year fraction."""
        no_default = kernels[KernelIndex.NO_DEFAULT]
        assert no_default.total == pytest.approx(year_fraction(grid.as_of, grid.last_date))
        survival = kernels[KernelIndex.SURVIVAL]
        assert np.all(survival.increments <= no_default.increments)

    def test_zero_hazard(self, grid: ExposureGrid) -> None:
        """Zero hazard gives empty default kernels."""
        flat = HazardCurve(grid.as_of, hazard_rate=0.0)
        kernels = build_kernels(grid.as_of, grid.dates, flat, flat)
        assert kernels[KernelIndex.CPTY_DEFAULT].total == 0.0
        assert np.allclose(
            kernels[KernelIndex.SURVIVAL].increments,
            kernels[KernelIndex.NO_DEFAULT].increments,
        )

    def test_kernel_at(self, kernels: list[IntegrationKernel]) -> None:
        """Missing kernels resolve to None."""
        assert kernel_at(kernels, KernelIndex.SURVIVAL) is kernels[2]
        assert kernel_at(kernels[:1], KernelIndex.OWN_DEFAULT) is None
        assert kernel_at(None, 0) is None

    def test_kernel_validation(self, as_of: dt.date) -> None:
        """Kernel dates and increments must align and increase."""
        with pytest.raises(ValueError, match="shape"):
            IntegrationKernel([as_of], np.ones(2))
        with pytest.raises(ValueError, match="strictly increasing"):
            IntegrationKernel([as_of, as_of], np.ones(2))
