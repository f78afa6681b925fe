"""
Export utilities for CCR results.

Provides CSV and JSON export and a one-call summary report.
"""

import datetime as dt
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ccr_core.config.models import MeasureRequest
from ccr_core.reporting.tables import (
    Calculator,
    create_measure_summary,
    create_profile_table,
)


def export_to_csv(
    df: pd.DataFrame,
    path: str | Path,
    float_format: str = "%.6f",
) -> None:
    """
    Export DataFrame to CSV.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to export
    path : str | Path
        Output file path
    float_format : str
        Format string for floats
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, float_format=float_format)


def _convert(obj: Any) -> Any:
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, dt.date):
        return obj.isoformat()
    elif isinstance(obj, dict):
        return {str(k): _convert(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_convert(v) for v in obj]
    return obj


def export_to_json(
    data: dict[str, Any],
    path: str | Path,
    indent: int = 2,
) -> None:
    """
    Export dictionary to JSON.

    Numpy scalars and arrays become plain numbers and lists, dates become
    ISO strings.

    Parameters
    ----------
    data : dict
        Data to export
    path : str | Path
        Output file path
    indent : int
        JSON indentation
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_convert(data), f, indent=indent)


def create_summary_report(
    calc: Calculator,
    requests: Sequence[MeasureRequest],
    output_dir: str | Path,
    prefix: str = "ccr_report",
) -> dict[str, Path]:
    """
    Create a summary report with multiple files.

    Parameters
    ----------
    calc : BatchCalculations | StreamingCalculations
        Calculator to query; needs EE, NEE, DiscountedEE and PFE registered
    requests : Sequence[MeasureRequest]
        Scalar measures for the summary
    output_dir : str | Path
        Output directory
    prefix : str
        File name prefix

    Returns
    -------
    dict[str, Path]
        Paths of the created ``profile``, ``measures`` and ``summary`` files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    created_files = {}

    profile_df = create_profile_table(calc)
    profile_path = output_dir / f"{prefix}_profile.csv"
    export_to_csv(profile_df, profile_path)
    created_files["profile"] = profile_path

    measures_df = create_measure_summary(calc, requests)
    measures_path = output_dir / f"{prefix}_measures.csv"
    export_to_csv(measures_df, measures_path)
    created_files["measures"] = measures_path

    summary = {
        "as_of": calc.grid.as_of,
        "n_dates": calc.grid.n_dates,
        "horizon": calc.grid.last_date,
        "measures": dict(zip(measures_df["Measure"], measures_df["Value"])),
        "peak_ee": float(profile_df["EE"].max()),
    }
    summary_path = output_dir / f"{prefix}_summary.json"
    export_to_json(summary, summary_path)
    created_files["summary"] = summary_path

    return created_files


def format_currency(value: float, decimals: int = 2) -> str:
    """
    Format value as currency string.

    Parameters
    ----------
    value : float
        Value to format
    decimals : int
        Decimal places

    Returns
    -------
    str
        Formatted string like "$1,234.56M"
    """
    abs_value = abs(value)
    if abs_value >= 1e9:
        return f"${value/1e9:,.{decimals}f}B"
    elif abs_value >= 1e6:
        return f"${value/1e6:,.{decimals}f}M"
    elif abs_value >= 1e3:
        return f"${value/1e3:,.{decimals}f}K"
    else:
        return f"${value:,.{decimals}f}"
