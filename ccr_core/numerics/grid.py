"""
Exposure-grid interpolation, kernel integration and time statistics.

Every routine works on a per-date profile ``f`` (one value per exposure
date) produced by reducing an accumulator. Dates are calendar dates and
elapsed time is measured in whole days, with year fractions taken as
ACT/365F.
"""

import datetime as dt
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from ccr_core._types import Date, FloatArray, IntArray, Recovery
from ccr_core.market.kernels import IntegrationKernel
from ccr_core.market.daycount import one_year_after, year_fraction

logger = logging.getLogger(__name__)


@dataclass
class ExposureGrid:
    """
    As-of date and the strictly increasing exposure dates of a run.

    Attributes
    ----------
    as_of : Date
        Valuation date
    dates : Sequence[Date]
        Exposure dates ``T0 < T1 < ... < Tn``

    Example
    -------
    >>> grid = ExposureGrid(dt.date(2025, 1, 1), [dt.date(2025, 7, 1), dt.date(2026, 1, 1)])
    >>> grid.interpolate(np.array([10.0, 20.0]), dt.date(2025, 10, 1))
    15.0
    """

    as_of: Date
    dates: Sequence[Date]
    ordinals: IntArray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate inputs."""
        self.dates = tuple(self.dates)
        if not self.dates:
            raise ValueError("Exposure grid must contain at least one date")
        self.ordinals = np.array([d.toordinal() for d in self.dates], dtype=np.int64)
        if np.any(np.diff(self.ordinals) <= 0):
            raise ValueError("Exposure dates must be strictly increasing")

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def n_dates(self) -> int:
        """Number of exposure dates."""
        return len(self.dates)

    @property
    def first_date(self) -> Date:
        return self.dates[0]

    @property
    def last_date(self) -> Date:
        return self.dates[-1]

    @property
    def one_year(self) -> Date:
        """As-of date plus one calendar year."""
        return one_year_after(self.as_of)

    def index(self, date: Date) -> int | None:
        """Position of ``date`` on the grid, or None when it is not a grid date."""
        i = int(np.searchsorted(self.ordinals, date.toordinal()))
        if i < len(self.dates) and self.ordinals[i] == date.toordinal():
            return i
        return None

    # ------------------------------------------------------------------
    # Interpolation and integration
    # ------------------------------------------------------------------

    def interpolate(self, f: FloatArray, date: Date) -> float:
        """
        Linear interpolation of a per-date profile in elapsed days.

        Dates on or before ``T0`` return ``f[0]``. The last date returns
        ``f[-1]`` and anything strictly after it returns 0.
        """
        t = date.toordinal()
        o = self.ordinals
        if t <= o[0]:
            return float(f[0])
        if t >= o[-1]:
            return float(f[-1]) if t == o[-1] else 0.0
        i = int(np.searchsorted(o, t, side="right"))
        w = (t - o[i - 1]) / (o[i] - o[i - 1])
        return float(f[i - 1] + (f[i] - f[i - 1]) * w)

    def integrate(
        self,
        f: FloatArray,
        kernel: IntegrationKernel,
        recovery: Recovery,
        start: Date | None = None,
        end: Date | None = None,
    ) -> float:
        """
        Trapezoid integral of ``(1 - R) * f`` against a default kernel.

        Parameters
        ----------
        f : FloatArray
            Per-date profile, interpolated at the kernel dates
        kernel : IntegrationKernel
            Kernel dates and the probability mass ending at each date
        recovery : float
            Recovery rate applied as ``1 - R``
        start : Date | None
            Lower limit (default: as-of date)
        end : Date | None
            Upper limit (default: last kernel date)

        Returns
        -------
        float
            Integral value; 0 for an empty range

        Notes
        -----
        The last partial interval uses the kernel increment interpolated by
        elapsed days between the kernel dates bracketing ``end``. An upper
        limit past the last kernel date is clamped to it.
        """
        start = self.as_of if start is None else start
        end = kernel.last_date if end is None else min(end, kernel.last_date)
        if end <= start:
            return 0.0

        k = kernel.ordinals
        inc = kernel.increments
        n = len(k)
        t_start = start.toordinal()
        t_end = end.toordinal()
        if t_start >= k[-1]:
            return 0.0

        lo = int(np.searchsorted(k, t_start, side="right"))
        hi = n - 1 if t_end >= k[-1] else int(np.searchsorted(k, t_end, side="left"))
        lgd = 1.0 - recovery

        total = 0.0
        prev = self.interpolate(f, start)
        for i in range(lo, hi):
            cur = self.interpolate(f, kernel.dates[i])
            total += 0.5 * lgd * (prev + cur) * inc[i]
            prev = cur

        if hi >= 1:
            w1 = t_end - k[hi - 1]
            w2 = k[hi] - t_end
            last_increment = (w2 * inc[hi - 1] + w1 * inc[hi]) / (w1 + w2)
        else:
            last_increment = inc[0]
        total += 0.5 * lgd * (prev + self.interpolate(f, end)) * last_increment
        return float(total)

    def integrate_theta(
        self,
        f: FloatArray,
        kernel: IntegrationKernel,
        recovery: Recovery,
        date: Date | None = None,
    ) -> float:
        """Integral from the as-of date to ``date`` (default: one day later)."""
        if date is None:
            date = self.as_of + dt.timedelta(days=1)
        return self.integrate(f, kernel, recovery, start=self.as_of, end=date)

    def bucket_integral(
        self,
        f: FloatArray,
        date: Date,
        kernel: IntegrationKernel,
        recovery: Recovery,
    ) -> float:
        """
        Integral over the exposure bucket containing ``date``.

        The first bucket runs from the as-of date to ``T0``; later buckets
        run from ``T_i`` to ``T_{i+1}``. Dates before the as-of date or on
        or after the last exposure date give 0.
        """
        if date < self.as_of or date >= self.last_date:
            return 0.0
        if date < self.first_date:
            start, end = self.as_of, self.first_date
        else:
            i = int(np.searchsorted(self.ordinals, date.toordinal(), side="right"))
            start, end = self.dates[i - 1], self.dates[i]
        return self.integrate(f, kernel, recovery, start=start, end=end)

    # ------------------------------------------------------------------
    # Time statistics
    # ------------------------------------------------------------------

    def running_max(self, f: FloatArray, date: Date | None = None) -> float:
        """
        Maximum of ``f`` over exposure dates before ``date`` and at ``date``.

        The value at ``date`` is interpolated; the result is floored at 0.
        """
        date = self.last_date if date is None else date
        peak = 0.0
        for i, d in enumerate(self.dates):
            if d < date:
                peak = max(peak, float(f[i]))
            else:
                peak = max(peak, self.interpolate(f, date))
                break
        return peak

    def running_max_profile(self, f: FloatArray) -> FloatArray:
        """Running maximum evaluated at every exposure date."""
        return np.maximum.accumulate(np.maximum(np.asarray(f, dtype=float), 0.0))

    def time_average(self, f: FloatArray, date: Date | None = None) -> float:
        """
        Day-weighted average of ``f`` from the as-of date to ``date``.

        ``f[0]`` covers the stub from the as-of date to ``T0``. Each later
        exposure date before ``date`` covers the interval ending at it, and
        the interpolated value at ``date`` covers the final partial interval.
        """
        date = self.last_date if date is None else date
        elapsed = float((self.first_date - self.as_of).days)
        total = float(f[0]) * elapsed
        for i in range(1, self.n_dates):
            if self.dates[i] < date:
                span = float((self.dates[i] - self.dates[i - 1]).days)
                total += float(f[i]) * span
            else:
                span = float((date - self.dates[i - 1]).days)
                total += self.interpolate(f, date) * span
                elapsed += span
                break
            elapsed += span
        return 0.0 if elapsed <= 1e-12 else total / elapsed

    def effective_epe(self, f: FloatArray, date: Date | None = None) -> float:
        """Time average of the running-max profile up to ``date``."""
        return self.time_average(self.running_max_profile(f), date)

    def effective_maturity(self, f: FloatArray) -> float:
        """
        Basel effective maturity of a discounted exposure profile.

        Returns
        -------
        float
            ``1 + num / den`` with
            ``num = A(f, Tn) * years(as_of, Tn) - A(f, as_of + 1y)`` and
            ``den = A(running max of f, as_of + 1y)``; exactly 1.0 when both
            terms vanish and 5.0 when only the denominator does
        """
        horizon = self.one_year
        numerator = self.time_average(f, self.last_date) * year_fraction(
            self.as_of, self.last_date
        ) - self.time_average(f, horizon)
        denominator = self.effective_epe(f, horizon)
        if abs(numerator) < 1e-12 and abs(denominator) < 1e-12:
            return 1.0
        if denominator <= 0.0:
            logger.debug("Effective maturity capped: zero one-year effective EPE")
            return 5.0
        return 1.0 + numerator / denominator
