"""
Table generation utilities for CCR reporting.

Creates pandas DataFrames of measure profiles and scalar summaries from
either calculator.
"""

from collections.abc import Sequence
from typing import TypeAlias

import pandas as pd

from ccr_core.calculations.batch import BatchCalculations
from ccr_core.calculations.streaming import StreamingCalculations
from ccr_core.config.models import MeasureRequest
from ccr_core.measures.catalog import CCRMeasure, parse_measure

Calculator: TypeAlias = BatchCalculations | StreamingCalculations

DEFAULT_PROFILE_MEASURES = (
    CCRMeasure.EE,
    CCRMeasure.NEE,
    CCRMeasure.DiscountedEE,
    CCRMeasure.PFE,
)

CAPITAL_MEASURES = (
    CCRMeasure.EEPE,
    CCRMeasure.EAD,
    CCRMeasure.EffectiveMaturity,
    CCRMeasure.CapitalRequirement,
    CCRMeasure.RWA,
)


def create_profile_table(
    calc: Calculator,
    measures: Sequence["CCRMeasure | str"] = DEFAULT_PROFILE_MEASURES,
    confidence: float = 0.95,
) -> pd.DataFrame:
    """
    Create a table of point measures over the exposure dates.

    Parameters
    ----------
    calc : BatchCalculations | StreamingCalculations
        Calculator to query
    measures : Sequence[CCRMeasure | str]
        Measures evaluated at each exposure date
    confidence : float
        Quantile level for tail measures

    Returns
    -------
    pd.DataFrame
        One row per exposure date with ``Date``, ``Time (Y)`` and one column
        per measure
    """
    grid = calc.grid
    data: dict[str, list] = {
        "Date": list(grid.dates),
        "Time (Y)": [(d - grid.as_of).days / 365.0 for d in grid.dates],
    }
    for measure in measures:
        m = parse_measure(measure)
        data[m.value] = [calc.get_measure(m, d, confidence) for d in grid.dates]
    return pd.DataFrame(data)


def create_measure_summary(
    calc: Calculator,
    requests: Sequence[MeasureRequest],
) -> pd.DataFrame:
    """
    Create a table of scalar measure values.

    Parameters
    ----------
    calc : BatchCalculations | StreamingCalculations
        Calculator to query
    requests : Sequence[MeasureRequest]
        Measures with their confidence and optional date

    Returns
    -------
    pd.DataFrame
        Columns ``Measure``, ``Confidence``, ``Date`` and ``Value``
    """
    rows = [
        {
            "Measure": r.name,
            "Confidence": r.confidence,
            "Date": r.date,
            "Value": calc.get_measure(r.measure, r.date, r.confidence),
        }
        for r in requests
    ]
    return pd.DataFrame(rows, columns=["Measure", "Confidence", "Date", "Value"])


def create_capital_table(calc: Calculator) -> pd.DataFrame:
    """
    Create the regulatory capital breakdown.

    Parameters
    ----------
    calc : BatchCalculations | StreamingCalculations
        Calculator to query; needs the EE and discounted EE fundamentals

    Returns
    -------
    pd.DataFrame
        Columns ``Component`` and ``Value``
    """
    one_year = calc.grid.one_year
    data = [
        {
            "Component": m.value,
            "Value": calc.get_measure(m, one_year if m is CCRMeasure.EEPE else None),
        }
        for m in CAPITAL_MEASURES
    ]
    return pd.DataFrame(data)
