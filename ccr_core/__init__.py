"""
CCR Measure Engine - Core Package.

Counterparty credit risk exposure profiles and valuation and regulatory
measures (CVA, DVA, FVA, PFE, EC, effective maturity, RWA) from simulated
paths. The same measures are available from a materialized path table
(batch) or from path-by-path sufficient statistics merged across workers
(streaming).

Example
-------
>>> from ccr_core import BatchCalculations, CreditInputs, ExposureGrid, build_kernels
>>> grid = ExposureGrid(as_of, exposure_dates)
>>> kernels = build_kernels(as_of, grid.dates, cpty_curve, own_curve)
>>> calc = BatchCalculations(table, grid, kernels, CreditInputs(0.4, 0.4, pd_1y))
>>> cva = calc.get_measure("CVA")
"""

__version__ = "1.0.0"

# Core types
from ccr_core._types import FloatArray, IntArray, PathArray

# Errors
from ccr_core.exceptions import (
    AccumulatorStateError,
    CCRError,
    IncompatibleMergeError,
    MeasureNotRegisteredError,
    MeasureNotSupportedError,
)

# Configuration
from ccr_core.config import (
    CalculationConfig,
    CreditConfig,
    GridConfig,
    MeasureRequest,
    load_calculation_config,
)

# Market
from ccr_core.market import HazardCurve, IntegrationKernel, KernelIndex, build_kernels

# Paths
from ccr_core.paths import ExposureProfile, PathSample, PathTable, SyntheticPathGenerator

# Measures
from ccr_core.measures import CCRMeasure, ExposureDistribution, Weighting

# Numerics
from ccr_core.numerics import ExposureGrid, capital_requirement

# Calculators
from ccr_core.calculations import (
    BatchCalculations,
    CreditInputs,
    IncrementalCalculations,
    StreamingCalculations,
)

# Reporting
from ccr_core.reporting import (
    create_measure_summary,
    create_profile_table,
    export_to_csv,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "FloatArray",
    "IntArray",
    "PathArray",
    # Errors
    "CCRError",
    "MeasureNotSupportedError",
    "MeasureNotRegisteredError",
    "AccumulatorStateError",
    "IncompatibleMergeError",
    # Config
    "CalculationConfig",
    "CreditConfig",
    "GridConfig",
    "MeasureRequest",
    "load_calculation_config",
    # Market
    "HazardCurve",
    "IntegrationKernel",
    "KernelIndex",
    "build_kernels",
    # Paths
    "PathSample",
    "PathTable",
    "ExposureProfile",
    "SyntheticPathGenerator",
    # Measures
    "CCRMeasure",
    "ExposureDistribution",
    "Weighting",
    # Numerics
    "ExposureGrid",
    "capital_requirement",
    # Calculators
    "BatchCalculations",
    "IncrementalCalculations",
    "StreamingCalculations",
    "CreditInputs",
    # Reporting
    "create_profile_table",
    "create_measure_summary",
    "export_to_csv",
]
