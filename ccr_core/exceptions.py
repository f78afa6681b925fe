"""
Exceptions raised by the CCR measure engine.

Ratio reductions never raise (an empty normalizer reduces to 0); these
errors flag programming mistakes at registration, merge and query time.
"""


class CCRError(Exception):
    """Base class for all errors raised by ccr_core."""


class MeasureNotSupportedError(CCRError, NotImplementedError):
    """The measure identifier has no entry in the dispatch table."""

    def __init__(self, measure: object) -> None:
        super().__init__(f"Measure {measure} not supported")
        self.measure = measure


class MeasureNotRegisteredError(CCRError, LookupError):
    """A streaming query needs an accumulator that was never registered."""


class AccumulatorStateError(CCRError, RuntimeError):
    """An accumulator set was used out of its lifecycle order."""


class IncompatibleMergeError(CCRError, ValueError):
    """Two accumulator sets with different registrations were merged."""
