"""
Measure evaluation shared by the batch and streaming calculators.

The evaluator turns reduced fundamentals into measure values by following
the dispatch table: it assembles the per-date profile from the measure's
terms and applies the measure's rule on the exposure grid.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from ccr_core._types import Confidence, Date, FloatArray
from ccr_core.calculations.fundamentals import Reduced
from ccr_core.market.kernels import IntegrationKernel, KernelSet, kernel_at
from ccr_core.measures.accumulators import MomentProfile
from ccr_core.measures.catalog import (
    CCRMeasure,
    FundamentalKey,
    MeasureSpec,
    RecoverySource,
    Rule,
    Statistic,
    Term,
    measure_spec,
    parse_measure,
)
from ccr_core.numerics.capital import (
    capital_requirement,
    exposure_at_default,
    risk_weighted_assets,
)
from ccr_core.numerics.grid import ExposureGrid

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.95


@dataclass
class CreditInputs:
    """
    Credit parameters shared by every measure of a run.

    Attributes
    ----------
    cpty_recovery : float
        Counterparty recovery rate (CVA, EC, capital)
    own_recovery : float
        Own recovery rate (DVA)
    default_probability : float
        One-year counterparty default probability (capital)
    """

    cpty_recovery: float = 0.4
    own_recovery: float = 0.4
    default_probability: float = 0.0

    def __post_init__(self) -> None:
        """Validate inputs."""
        for name in ("cpty_recovery", "own_recovery"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if not 0 <= self.default_probability < 1:
            raise ValueError(
                f"default_probability must be in [0, 1), got {self.default_probability}"
            )

    def recovery(self, source: RecoverySource) -> float:
        if source is RecoverySource.CPTY:
            return self.cpty_recovery
        if source is RecoverySource.OWN:
            return self.own_recovery
        return 0.0


def validate_confidence(confidence: Confidence) -> Confidence:
    """Reject confidence levels outside (0, 1)."""
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"Confidence must be in (0, 1), got {confidence}")
    return confidence


def relative_std_error(sigma: FloatArray, mean: FloatArray, n_paths: float) -> FloatArray:
    """Per-date ``sigma / (sqrt(N) * mean)``, 0 where the mean is not positive."""
    denominator = np.sqrt(n_paths) * np.asarray(mean, dtype=float)
    out = np.zeros_like(denominator)
    np.divide(sigma, denominator, out=out, where=denominator > 0.0)
    return out


class MeasureEvaluator:
    """
    Evaluate catalog measures from reduced fundamentals.

    Parameters
    ----------
    grid : ExposureGrid
        As-of date and exposure dates of the run
    kernels : KernelSet | None
        Integration kernels in ``KernelIndex`` order
    credit : CreditInputs
        Recoveries and one-year default probability
    resolve : Callable[[FundamentalKey], Reduced]
        Lookup of a reduced fundamental; raises when it is unavailable
    """

    def __init__(
        self,
        grid: ExposureGrid,
        kernels: KernelSet | None,
        credit: CreditInputs,
        resolve: Callable[[FundamentalKey], Reduced],
    ) -> None:
        self.grid = grid
        self.kernels = kernels
        self.credit = credit
        self._resolve = resolve

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def statistic(self, term: Term, confidence: float) -> FloatArray:
        """Per-date values of one term (without its coefficient)."""
        reduced = self._resolve(term.key)
        match term.statistic:
            case Statistic.MEAN:
                if isinstance(reduced, MomentProfile):
                    return reduced.mean
                return np.asarray(reduced)
            case Statistic.SIGMA:
                return reduced.sigma
            case Statistic.QUANTILE:
                return np.array([dist.quantile(confidence) for dist in reduced])
            case Statistic.COLLATERAL_QUANTILE:
                return np.array([dist.collateral_quantile(confidence) for dist in reduced])
            case Statistic.VALUE:
                return np.asarray(reduced)
        raise ValueError(f"Unknown statistic: {term.statistic}")

    def profile(
        self,
        spec: MeasureSpec,
        confidence: float,
        multipliers: Sequence[float] | None = None,
    ) -> FloatArray:
        """Combined per-date profile of a measure's terms."""
        f = np.zeros(self.grid.n_dates)
        for term in spec.terms:
            f = f + term.coefficient * self.statistic(term, confidence)
        if multipliers is not None:
            m = np.asarray(multipliers, dtype=float)
            if m.shape != (self.grid.n_dates,):
                raise ValueError(
                    f"multipliers must have shape ({self.grid.n_dates},), got {m.shape}"
                )
            f = f * m
        return f

    def _kernel(self, measure: CCRMeasure, spec: MeasureSpec) -> IntegrationKernel | None:
        kernel = kernel_at(self.kernels, int(spec.kernel))
        if kernel is None:
            logger.debug("No %s kernel for %s; returning 0", spec.kernel.name, measure.value)
        return kernel

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        measure: "CCRMeasure | str",
        date: Date | None = None,
        confidence: Confidence = DEFAULT_CONFIDENCE,
        multipliers: Sequence[float] | None = None,
    ) -> float:
        """
        Value of one measure.

        Parameters
        ----------
        measure : CCRMeasure | str
            Measure identifier
        date : Date | None
            Query date; its meaning and default depend on the measure rule
        confidence : float
            Quantile level for tail measures
        multipliers : Sequence[float] | None
            Per-date scaling of the integrand (integral measures only)

        Returns
        -------
        float
            Measure value
        """
        measure = parse_measure(measure)
        validate_confidence(confidence)
        spec = measure_spec(measure)
        grid = self.grid

        match spec.rule:
            case Rule.SUM:
                return float(
                    sum(
                        self.evaluate(c, date, confidence, multipliers)
                        for c in spec.components
                    )
                )
            case Rule.POINT:
                f = self.profile(spec, confidence)
                return grid.interpolate(f, grid.as_of if date is None else date)
            case Rule.STD_ERROR:
                return self._std_error(spec, grid.as_of if date is None else date)
            case Rule.RUNNING_MAX:
                return grid.running_max(self.profile(spec, confidence), date)
            case Rule.PEAK:
                # maximum over the whole grid; the query date is ignored
                return grid.running_max(self.profile(spec, confidence), grid.last_date)
            case Rule.TIME_AVERAGE:
                return grid.time_average(self.profile(spec, confidence), date)
            case Rule.EFFECTIVE_EPE:
                return grid.effective_epe(self.profile(spec, confidence), date)
            case Rule.EAD:
                eepe = grid.effective_epe(self.profile(spec, confidence), grid.one_year)
                return exposure_at_default(eepe)
            case Rule.EFFECTIVE_MATURITY:
                return grid.effective_maturity(self.profile(spec, confidence))
            case Rule.CAPITAL:
                return self._capital(self.statistic(spec.terms[0], confidence))
            case Rule.RWA:
                k = self._capital(self.statistic(spec.terms[0], confidence))
                eepe = grid.effective_epe(
                    self.statistic(spec.terms[1], confidence), grid.one_year
                )
                return risk_weighted_assets(eepe, k)

        kernel = self._kernel(measure, spec)
        if kernel is None:
            return 0.0
        f = self.profile(spec, confidence, multipliers)
        recovery = self.credit.recovery(spec.recovery)
        match spec.rule:
            case Rule.INTEGRAL:
                value = grid.integrate(f, kernel, recovery)
            case Rule.THETA:
                value = grid.integrate_theta(f, kernel, recovery, date)
            case Rule.BUCKETED:
                value = grid.bucket_integral(
                    f, grid.as_of if date is None else date, kernel, recovery
                )
            case _:
                raise ValueError(f"Unhandled rule {spec.rule} for {measure.value}")
        return spec.sign * value

    def _std_error(self, spec: MeasureSpec, date: Date) -> float:
        sigma_term, mean_term = spec.terms
        moments = self._resolve(sigma_term.key)
        ratio = relative_std_error(
            moments.sigma,
            self.statistic(mean_term, DEFAULT_CONFIDENCE),
            float(np.max(moments.n_samples)),
        )
        return self.grid.interpolate(ratio, date)

    def _capital(self, discounted_ee: FloatArray) -> float:
        maturity = self.grid.effective_maturity(discounted_ee)
        return capital_requirement(
            self.credit.default_probability, self.credit.cpty_recovery, maturity
        )
