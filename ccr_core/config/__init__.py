"""
Configuration module for the CCR measure engine.

Provides Pydantic-validated configuration models and YAML loading utilities
for credit parameters, the exposure grid, measure requests and synthetic
path generation.
"""

from ccr_core.config.loader import (
    create_default_calculation_config,
    load_calculation_config,
    load_credit_config,
)
from ccr_core.config.models import (
    CalculationConfig,
    CreditConfig,
    GridConfig,
    MeasureRequest,
    SyntheticPathConfig,
)

__all__ = [
    # Models
    "CreditConfig",
    "GridConfig",
    "MeasureRequest",
    "SyntheticPathConfig",
    "CalculationConfig",
    # Loaders
    "load_calculation_config",
    "load_credit_config",
    "create_default_calculation_config",
]
