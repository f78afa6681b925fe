"""
Market inputs for kernel integration.

This module provides:
- ACT/365F day counting and month arithmetic
- Flat hazard rate curves
- Integration kernels and their construction from hazard curves
"""

from ccr_core.market.daycount import add_months, one_year_after, year_fraction
from ccr_core.market.hazard import HazardCurve
from ccr_core.market.kernels import (
    IntegrationKernel,
    KernelIndex,
    KernelSet,
    build_kernels,
    kernel_at,
)

__all__ = [
    "add_months",
    "one_year_after",
    "year_fraction",
    "HazardCurve",
    "IntegrationKernel",
    "KernelIndex",
    "KernelSet",
    "build_kernels",
    "kernel_at",
]
