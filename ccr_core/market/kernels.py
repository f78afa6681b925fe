"""
Discretized integration kernels.

A kernel is a date grid with the probability mass (or time mass) of the
interval ending at each date. Measures integrate their exposure profiles
against one of four kernels, held in a fixed order.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from ccr_core._types import Date, FloatArray, IntArray
from ccr_core.market.hazard import HazardCurve
from ccr_core.market.daycount import year_fraction


class KernelIndex(IntEnum):
    """Position of each kernel in a kernel set."""

    CPTY_DEFAULT = 0
    OWN_DEFAULT = 1
    SURVIVAL = 2
    NO_DEFAULT = 3


@dataclass
class IntegrationKernel:
    """
    Kernel dates and the increment of the interval ending at each date.

    Attributes
    ----------
    dates : Sequence[Date]
        Strictly increasing kernel dates
    increments : FloatArray
        Mass of ``(dates[i-1], dates[i]]``; the first entry covers the
        interval from the as-of date
    """

    dates: Sequence[Date]
    increments: FloatArray
    ordinals: IntArray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate inputs."""
        self.dates = tuple(self.dates)
        self.increments = np.asarray(self.increments, dtype=np.float64)
        if not self.dates:
            raise ValueError("Kernel must contain at least one date")
        if self.increments.shape != (len(self.dates),):
            raise ValueError(
                f"Kernel increments must have shape ({len(self.dates)},), "
                f"got {self.increments.shape}"
            )
        self.ordinals = np.array([d.toordinal() for d in self.dates], dtype=np.int64)
        if np.any(np.diff(self.ordinals) <= 0):
            raise ValueError("Kernel dates must be strictly increasing")

    @property
    def last_date(self) -> Date:
        return self.dates[-1]

    @property
    def total(self) -> float:
        """Total kernel mass."""
        return float(self.increments.sum())


KernelSet = Sequence[IntegrationKernel | None]
"""Kernels in ``KernelIndex`` order; trailing entries may be missing."""


def kernel_at(kernels: KernelSet | None, index: int) -> IntegrationKernel | None:
    """Kernel at ``index``, or None when the set does not provide it."""
    if kernels is None or index >= len(kernels):
        return None
    return kernels[index]


def build_kernels(
    as_of: Date,
    dates: Sequence[Date],
    cpty: HazardCurve,
    own: HazardCurve | None = None,
    unilateral: bool = False,
) -> list[IntegrationKernel]:
    """
    Build the four standard kernels from flat hazard curves.

    Parameters
    ----------
    as_of : Date
        Valuation date, start of the first interval
    dates : Sequence[Date]
        Kernel dates
    cpty : HazardCurve
        Counterparty hazard curve
    own : HazardCurve | None
        Own hazard curve (ignored when ``unilateral``)
    unilateral : bool
        Treat the own institution as default-free

    Returns
    -------
    list[IntegrationKernel]
        ``[counterparty default, own default, joint survival, no default]``

    Notes
    -----
    With flat hazards ``λc`` and ``λo`` the first-to-default density splits
    as ``λc / (λc + λo)`` of the joint default probability for the
    counterparty and the rest for the own institution. The survival kernel
    weights each interval's year fraction by the joint survival at its end;
    the no-default kernel is the bare year fraction.

    Example
    -------
    >>> cpty = HazardCurve(as_of, hazard_rate=0.02)
    >>> kernels = build_kernels(as_of, grid.dates, cpty, unilateral=True)
    >>> kernels[KernelIndex.OWN_DEFAULT].total
    0.0
    """
    t = np.array([year_fraction(as_of, d) for d in dates])
    dt_years = np.diff(np.r_[0.0, t])

    lam_c = cpty.hazard_rate
    lam_o = 0.0 if unilateral or own is None else own.hazard_rate
    lam = lam_c + lam_o
    joint_survival = np.exp(-lam * t)
    joint_default = -np.diff(np.r_[1.0, joint_survival])

    if lam > 0.0:
        cpty_inc = joint_default * lam_c / lam
        own_inc = joint_default * lam_o / lam
    else:
        cpty_inc = np.zeros_like(t)
        own_inc = np.zeros_like(t)

    return [
        IntegrationKernel(dates, cpty_inc),
        IntegrationKernel(dates, own_inc),
        IntegrationKernel(dates, joint_survival * dt_years),
        IntegrationKernel(dates, dt_years),
    ]

