"""
YAML configuration loading utilities.

Provides functions to load and validate configuration from YAML files,
returning properly typed Pydantic model instances.
"""

import datetime as dt
from pathlib import Path
from typing import Any

import yaml

from ccr_core.config.models import (
    CalculationConfig,
    CreditConfig,
    GridConfig,
    MeasureRequest,
)


def _load_yaml(path: Path) -> dict[str, Any]:
    """
    Load a YAML file and return its contents as a dictionary.

    Parameters
    ----------
    path : Path
        Path to the YAML file

    Returns
    -------
    dict[str, Any]
        Parsed YAML contents

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    yaml.YAMLError
        If the file contains invalid YAML
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_calculation_config(path: Path | str) -> CalculationConfig:
    """
    Load a complete run configuration from a YAML file.

    Parameters
    ----------
    path : Path | str
        Path to the configuration YAML file

    Returns
    -------
    CalculationConfig
        Validated configuration

    Example
    -------
    >>> config = load_calculation_config("data/run.yaml")
    >>> print([m.name for m in config.measures])
    ['CVA', 'PFE']
    """
    data = _load_yaml(Path(path))

    # Handle nested 'calculation' key if present
    if "calculation" in data:
        data = data["calculation"]

    return CalculationConfig(**data)


def load_credit_config(path: Path | str) -> CreditConfig:
    """
    Load credit parameters from a YAML file.

    Parameters
    ----------
    path : Path | str
        Path to the YAML file

    Returns
    -------
    CreditConfig
        Validated credit configuration
    """
    data = _load_yaml(Path(path))

    # Handle nested 'credit' key if present
    if "credit" in data:
        data = data["credit"]

    return CreditConfig(**data)


def create_default_calculation_config(as_of: dt.date) -> CalculationConfig:
    """
    Create a default configuration with typical values.

    Parameters
    ----------
    as_of : date
        Valuation date

    Returns
    -------
    CalculationConfig
        Quarterly five-year grid, headline measures, 2000 synthetic paths
    """
    return CalculationConfig(
        grid=GridConfig(as_of=as_of, horizon_years=5.0, frequency="quarterly"),
        credit=CreditConfig(),
        measures=[
            MeasureRequest(name=name)
            for name in ("CVA", "DVA", "FVA", "EPE", "EEPE", "EffectiveMaturity", "RWA")
        ]
        + [MeasureRequest(name="MPFE", confidence=0.99)],
    )
