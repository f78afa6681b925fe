"""
Common type aliases used throughout the CCR measure engine.

This module defines type aliases for numpy arrays and other common types
to improve code readability and enable better static type checking.
"""

import datetime as dt
from typing import TypeAlias

import numpy as np
import numpy.typing as npt

# Array type aliases
FloatArray: TypeAlias = npt.NDArray[np.float64]
"""1D or 2D array of 64-bit floats."""

IntArray: TypeAlias = npt.NDArray[np.int64]
"""1D or 2D array of 64-bit integers."""

PathArray: TypeAlias = npt.NDArray[np.float64]
"""
2D array of shape (n_paths, n_dates) holding one simulated stream.

Each row is a single simulation path, and each column is an exposure date.
"""

# Scalar type aliases
Date: TypeAlias = dt.date
"""Calendar date; exposure and kernel grids are sequences of these."""

Recovery: TypeAlias = float
"""Recovery rate as a fraction of exposure (e.g., 0.4)."""

Confidence: TypeAlias = float
"""Quantile level for tail measures (e.g., 0.95)."""
