"""
Simulated path containers.

Provides single-path samples, stacked path tables for batch calculation,
and a seeded synthetic generator for demos and tests.
"""

from ccr_core.paths.sample import ExposureProfile, PathSample, PathTable
from ccr_core.paths.synthetic import SyntheticPathGenerator

__all__ = [
    "ExposureProfile",
    "PathSample",
    "PathTable",
    "SyntheticPathGenerator",
]
