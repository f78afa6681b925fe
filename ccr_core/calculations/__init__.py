"""
Batch and streaming CCR calculators.

Both calculators answer ``get_measure`` through the same evaluator and
measure catalog; they differ only in how the fundamentals are obtained.
``IncrementalCalculations`` prices new trades as the difference of two
calculators.
"""

from ccr_core.calculations.batch import BatchCalculations
from ccr_core.calculations.evaluator import CreditInputs, MeasureEvaluator
from ccr_core.calculations.fundamentals import AccumulatorSet
from ccr_core.calculations.incremental import IncrementalCalculations
from ccr_core.calculations.streaming import StreamingCalculations

__all__ = [
    "AccumulatorSet",
    "BatchCalculations",
    "CreditInputs",
    "IncrementalCalculations",
    "MeasureEvaluator",
    "StreamingCalculations",
]
