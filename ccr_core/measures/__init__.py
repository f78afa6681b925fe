"""
Measure definitions and their sufficient statistics.

Provides the measure-change weightings, the accumulator variants, the
empirical exposure distribution and the static measure catalog.
"""

from ccr_core.measures.accumulators import (
    AccumulatorKind,
    DensityAccumulator,
    DistributionAccumulator,
    MomentProfile,
    RatioAccumulator,
    SpreadProductAccumulator,
    VarianceAccumulator,
    new_accumulator,
)
from ccr_core.measures.catalog import (
    MEASURE_TABLE,
    CCRMeasure,
    FundamentalKey,
    MeasureSpec,
    Rule,
    Side,
    fundamentals,
    measure_spec,
    parse_measure,
)
from ccr_core.measures.distribution import ExposureDistribution
from ccr_core.measures.radon_nikodym import (
    Weighting,
    cpty_rn,
    funding_rn,
    own_rn,
    zero_rn,
)

__all__ = [
    # Weightings
    "Weighting",
    "cpty_rn",
    "own_rn",
    "funding_rn",
    "zero_rn",
    # Accumulators
    "AccumulatorKind",
    "RatioAccumulator",
    "VarianceAccumulator",
    "SpreadProductAccumulator",
    "DistributionAccumulator",
    "DensityAccumulator",
    "MomentProfile",
    "new_accumulator",
    "ExposureDistribution",
    # Catalog
    "CCRMeasure",
    "FundamentalKey",
    "MeasureSpec",
    "Rule",
    "Side",
    "MEASURE_TABLE",
    "fundamentals",
    "measure_spec",
    "parse_measure",
]
