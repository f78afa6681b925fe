"""
Measure catalog: the static dispatch table of every supported measure.

Each ``CCRMeasure`` maps to a ``MeasureSpec`` naming the evaluation rule,
the fundamentals it reads (accumulator variant, weighting, discounting,
exposure side and funding spread), the kernel it integrates against, the
recovery it applies and its sign. The batch and streaming calculators
both read this table, so measure coverage is defined in one place.
"""

from dataclasses import dataclass
from enum import Enum

from ccr_core.exceptions import MeasureNotSupportedError
from ccr_core.market.kernels import KernelIndex
from ccr_core.measures.accumulators import AccumulatorKind
from ccr_core.measures.radon_nikodym import Weighting


class CCRMeasure(Enum):
    """Supported counterparty credit risk measures."""

    # Exposure profiles
    EE = "EE"
    EE0 = "EE0"
    CE = "CE"
    DiscountedEE = "DiscountedEE"
    DiscountedEE0 = "DiscountedEE0"
    DiscountedCE = "DiscountedCE"
    NEE = "NEE"
    NEE0 = "NEE0"
    DiscountedNEE = "DiscountedNEE"
    DiscountedNEE0 = "DiscountedNEE0"
    EPV = "EPV"
    DiscountedEPV = "DiscountedEPV"
    # Time statistics
    EEE = "EEE"
    EEE0 = "EEE0"
    EPE = "EPE"
    EPE0 = "EPE0"
    ENE = "ENE"
    ENE0 = "ENE0"
    EEPE = "EEPE"
    EEPE0 = "EEPE0"
    EAD = "EAD"
    EAD0 = "EAD0"
    # Tail
    PFE = "PFE"
    PFE0 = "PFE0"
    DiscountedPFE = "DiscountedPFE"
    DiscountedPFE0 = "DiscountedPFE0"
    PFNE = "PFNE"
    DiscountedPFNE = "DiscountedPFNE"
    MPFE = "MPFE"
    MPFNE = "MPFNE"
    PFCSA = "PFCSA"
    PFNCSA = "PFNCSA"
    # Dispersion
    Sigma = "Sigma"
    SigmaEE = "SigmaEE"
    SigmaDiscountedEE = "SigmaDiscountedEE"
    SigmaNEE = "SigmaNEE"
    SigmaDiscountedNEE = "SigmaDiscountedNEE"
    StdErrEE = "StdErrEE"
    StdErrDiscountedEE = "StdErrDiscountedEE"
    StdErrNEE = "StdErrNEE"
    StdErrDiscountedNEE = "StdErrDiscountedNEE"
    # Valuation adjustments
    CVA = "CVA"
    CVA0 = "CVA0"
    DVA = "DVA"
    DVA0 = "DVA0"
    FCA = "FCA"
    FCA0 = "FCA0"
    FCANoDefault = "FCANoDefault"
    FBA = "FBA"
    FBA0 = "FBA0"
    FBANoDefault = "FBANoDefault"
    FVA = "FVA"
    FVA0 = "FVA0"
    FVANoDefault = "FVANoDefault"
    EC = "EC"
    EC0 = "EC0"
    # Theta
    CVATheta = "CVATheta"
    DVATheta = "DVATheta"
    FCATheta = "FCATheta"
    FBATheta = "FBATheta"
    FVATheta = "FVATheta"
    # Bucketed
    BucketedCVA = "BucketedCVA"
    BucketedCVA0 = "BucketedCVA0"
    BucketedDVA = "BucketedDVA"
    BucketedDVA0 = "BucketedDVA0"
    # Capital
    EffectiveMaturity = "EffectiveMaturity"
    EffectiveMaturity0 = "EffectiveMaturity0"
    CapitalRequirement = "CapitalRequirement"
    CapitalRequirement0 = "CapitalRequirement0"
    RWA = "RWA"
    RWA0 = "RWA0"
    # Measure change
    CptyRn = "CptyRn"
    OwnRn = "OwnRn"
    FundingRn = "FundingRn"
    ZeroRn = "ZeroRn"


class Side(Enum):
    """Which netted exposure a fundamental accumulates."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NET = "net"


class Spread(Enum):
    """Funding spread stream applied to a funding fundamental."""

    BORROW = "borrow_spread"
    LEND = "lend_spread"


class Statistic(Enum):
    """Per-date value read from a reduced fundamental."""

    MEAN = "mean"
    SIGMA = "sigma"
    QUANTILE = "quantile"
    COLLATERAL_QUANTILE = "collateral_quantile"
    VALUE = "value"


class Rule(Enum):
    """How a measure turns its per-date profile into a number."""

    POINT = "point"
    STD_ERROR = "std_error"
    RUNNING_MAX = "running_max"
    PEAK = "peak"
    TIME_AVERAGE = "time_average"
    EFFECTIVE_EPE = "effective_epe"
    EAD = "ead"
    INTEGRAL = "integral"
    THETA = "theta"
    BUCKETED = "bucketed"
    EFFECTIVE_MATURITY = "effective_maturity"
    CAPITAL = "capital"
    RWA = "rwa"
    SUM = "sum"


class RecoverySource(Enum):
    """Recovery applied inside the kernel integral."""

    NONE = "none"
    CPTY = "cpty"
    OWN = "own"


@dataclass(frozen=True)
class FundamentalKey:
    """
    Identity of one accumulator.

    Two measures that need the same statistics share one accumulator,
    so registration is deduplicated on this key.
    """

    kind: AccumulatorKind
    weighting: Weighting
    discounted: bool = False
    side: Side = Side.POSITIVE
    spread: Spread | None = None

    @property
    def label(self) -> str:
        parts = [self.kind.value, self.weighting.value, self.side.value]
        if self.discounted:
            parts.append("discounted")
        if self.spread is not None:
            parts.append(self.spread.value)
        return "/".join(parts)


@dataclass(frozen=True)
class Term:
    """One signed statistic contributing to a measure's profile."""

    statistic: Statistic
    key: FundamentalKey
    coefficient: float = 1.0


@dataclass(frozen=True)
class MeasureSpec:
    """Dispatch entry for one measure."""

    rule: Rule
    terms: tuple[Term, ...] = ()
    kernel: KernelIndex | None = None
    recovery: RecoverySource = RecoverySource.NONE
    sign: float = 1.0
    components: tuple[CCRMeasure, ...] = ()

    @property
    def uses_distribution(self) -> bool:
        return any(t.key.kind is AccumulatorKind.DISTRIBUTION for t in self.terms)


_R = AccumulatorKind.RATIO
_V = AccumulatorKind.VARIANCE
_D = AccumulatorKind.DISTRIBUTION
_S = AccumulatorKind.SPREAD_PRODUCT
_N = AccumulatorKind.DENSITY
_NEG = Side.NEGATIVE

EE_KEY = FundamentalKey(_R, Weighting.CPTY)
EE0_KEY = FundamentalKey(_R, Weighting.ZERO)
DISCOUNTED_EE_KEY = FundamentalKey(_R, Weighting.CPTY, True)
DISCOUNTED_EE0_KEY = FundamentalKey(_R, Weighting.ZERO, True)
NEE_KEY = FundamentalKey(_R, Weighting.OWN, False, _NEG)
NEE0_KEY = FundamentalKey(_R, Weighting.ZERO, False, _NEG)
DISCOUNTED_NEE_KEY = FundamentalKey(_R, Weighting.OWN, True, _NEG)
DISCOUNTED_NEE0_KEY = FundamentalKey(_R, Weighting.ZERO, True, _NEG)
EPV_KEY = FundamentalKey(_R, Weighting.ZERO, False, Side.NET)
DISCOUNTED_EPV_KEY = FundamentalKey(_R, Weighting.ZERO, True, Side.NET)

SIGMA_EE_KEY = FundamentalKey(_V, Weighting.CPTY)
SIGMA_DISCOUNTED_EE_KEY = FundamentalKey(_V, Weighting.CPTY, True)
SIGMA_NEE_KEY = FundamentalKey(_V, Weighting.OWN, False, _NEG)
SIGMA_DISCOUNTED_NEE_KEY = FundamentalKey(_V, Weighting.OWN, True, _NEG)

PFE_KEY = FundamentalKey(_D, Weighting.CPTY)
DISCOUNTED_PFE_KEY = FundamentalKey(_D, Weighting.CPTY, True)
PFE0_KEY = FundamentalKey(_D, Weighting.ZERO)
DISCOUNTED_PFE0_KEY = FundamentalKey(_D, Weighting.ZERO, True)
PFNE_KEY = FundamentalKey(_D, Weighting.OWN, False, _NEG)
DISCOUNTED_PFNE_KEY = FundamentalKey(_D, Weighting.OWN, True, _NEG)

FCA_KEY = FundamentalKey(_R, Weighting.FUNDING, True, Side.POSITIVE, Spread.BORROW)
FBA_KEY = FundamentalKey(_R, Weighting.FUNDING, True, _NEG, Spread.LEND)
FCA0_KEY = FundamentalKey(_S, Weighting.ZERO, True, Side.POSITIVE, Spread.BORROW)
FBA0_KEY = FundamentalKey(_S, Weighting.ZERO, True, _NEG, Spread.LEND)


def _point(statistic: Statistic, key: FundamentalKey) -> MeasureSpec:
    return MeasureSpec(Rule.POINT, (Term(statistic, key),))


def _mean(rule: Rule, key: FundamentalKey) -> MeasureSpec:
    return MeasureSpec(rule, (Term(Statistic.MEAN, key),))


def _integral(
    rule: Rule,
    terms: tuple[Term, ...],
    kernel: KernelIndex,
    recovery: RecoverySource,
    sign: float,
) -> MeasureSpec:
    return MeasureSpec(rule, terms, kernel=kernel, recovery=recovery, sign=sign)


def _std_error(sigma: FundamentalKey, mean: FundamentalKey) -> MeasureSpec:
    return MeasureSpec(
        Rule.STD_ERROR, (Term(Statistic.SIGMA, sigma), Term(Statistic.MEAN, mean))
    )


def _rwa(discounted: FundamentalKey, undiscounted: FundamentalKey) -> MeasureSpec:
    return MeasureSpec(
        Rule.RWA, (Term(Statistic.MEAN, discounted), Term(Statistic.MEAN, undiscounted))
    )


def _ec(quantile: FundamentalKey, mean: FundamentalKey) -> tuple[Term, ...]:
    return (Term(Statistic.QUANTILE, quantile), Term(Statistic.MEAN, mean, -1.0))


_MEAN = Statistic.MEAN
_Q = Statistic.QUANTILE
_CPTY = KernelIndex.CPTY_DEFAULT
_OWN = KernelIndex.OWN_DEFAULT
_SURV = KernelIndex.SURVIVAL
_NODEF = KernelIndex.NO_DEFAULT
_RC = RecoverySource.CPTY
_RO = RecoverySource.OWN
_R0 = RecoverySource.NONE
_M = CCRMeasure

MEASURE_TABLE: dict[CCRMeasure, MeasureSpec] = {
    # Exposure profiles
    _M.EE: _point(_MEAN, EE_KEY),
    _M.EE0: _point(_MEAN, EE0_KEY),
    _M.CE: _point(_MEAN, EE0_KEY),
    _M.DiscountedEE: _point(_MEAN, DISCOUNTED_EE_KEY),
    _M.DiscountedEE0: _point(_MEAN, DISCOUNTED_EE0_KEY),
    _M.DiscountedCE: _point(_MEAN, DISCOUNTED_EE0_KEY),
    _M.NEE: _point(_MEAN, NEE_KEY),
    _M.NEE0: _point(_MEAN, NEE0_KEY),
    _M.DiscountedNEE: _point(_MEAN, DISCOUNTED_NEE_KEY),
    _M.DiscountedNEE0: _point(_MEAN, DISCOUNTED_NEE0_KEY),
    _M.EPV: _point(_MEAN, EPV_KEY),
    _M.DiscountedEPV: _point(_MEAN, DISCOUNTED_EPV_KEY),
    # Time statistics
    _M.EEE: _mean(Rule.RUNNING_MAX, EE_KEY),
    _M.EEE0: _mean(Rule.RUNNING_MAX, EE0_KEY),
    _M.EPE: _mean(Rule.TIME_AVERAGE, EE_KEY),
    _M.EPE0: _mean(Rule.TIME_AVERAGE, EE0_KEY),
    _M.ENE: _mean(Rule.TIME_AVERAGE, NEE_KEY),
    _M.ENE0: _mean(Rule.TIME_AVERAGE, NEE0_KEY),
    _M.EEPE: _mean(Rule.EFFECTIVE_EPE, EE_KEY),
    _M.EEPE0: _mean(Rule.EFFECTIVE_EPE, EE0_KEY),
    _M.EAD: _mean(Rule.EAD, EE_KEY),
    _M.EAD0: _mean(Rule.EAD, EE0_KEY),
    # Tail
    _M.PFE: _point(_Q, PFE_KEY),
    _M.PFE0: _point(_Q, PFE0_KEY),
    _M.DiscountedPFE: _point(_Q, DISCOUNTED_PFE_KEY),
    _M.DiscountedPFE0: _point(_Q, DISCOUNTED_PFE0_KEY),
    _M.PFNE: _point(_Q, PFNE_KEY),
    _M.DiscountedPFNE: _point(_Q, DISCOUNTED_PFNE_KEY),
    _M.MPFE: MeasureSpec(Rule.PEAK, (Term(_Q, PFE_KEY),)),
    _M.MPFNE: MeasureSpec(Rule.PEAK, (Term(_Q, PFNE_KEY),)),
    _M.PFCSA: _point(Statistic.COLLATERAL_QUANTILE, PFE_KEY),
    _M.PFNCSA: _point(Statistic.COLLATERAL_QUANTILE, PFNE_KEY),
    # Dispersion
    _M.Sigma: _point(Statistic.SIGMA, SIGMA_DISCOUNTED_EE_KEY),
    _M.SigmaEE: _point(Statistic.SIGMA, SIGMA_EE_KEY),
    _M.SigmaDiscountedEE: _point(Statistic.SIGMA, SIGMA_DISCOUNTED_EE_KEY),
    _M.SigmaNEE: _point(Statistic.SIGMA, SIGMA_NEE_KEY),
    _M.SigmaDiscountedNEE: _point(Statistic.SIGMA, SIGMA_DISCOUNTED_NEE_KEY),
    _M.StdErrEE: _std_error(SIGMA_EE_KEY, EE_KEY),
    _M.StdErrDiscountedEE: _std_error(SIGMA_DISCOUNTED_EE_KEY, DISCOUNTED_EE_KEY),
    _M.StdErrNEE: _std_error(SIGMA_NEE_KEY, NEE_KEY),
    _M.StdErrDiscountedNEE: _std_error(SIGMA_DISCOUNTED_NEE_KEY, DISCOUNTED_NEE_KEY),
    # Valuation adjustments
    _M.CVA: _integral(Rule.INTEGRAL, (Term(_MEAN, DISCOUNTED_EE_KEY),), _CPTY, _RC, -1.0),
    _M.CVA0: _integral(Rule.INTEGRAL, (Term(_MEAN, DISCOUNTED_EE0_KEY),), _CPTY, _RC, -1.0),
    _M.DVA: _integral(Rule.INTEGRAL, (Term(_MEAN, DISCOUNTED_NEE_KEY),), _OWN, _RO, 1.0),
    _M.DVA0: _integral(Rule.INTEGRAL, (Term(_MEAN, DISCOUNTED_NEE0_KEY),), _OWN, _RO, 1.0),
    _M.FCA: _integral(Rule.INTEGRAL, (Term(_MEAN, FCA_KEY),), _SURV, _R0, -1.0),
    _M.FCA0: _integral(Rule.INTEGRAL, (Term(Statistic.VALUE, FCA0_KEY),), _SURV, _R0, -1.0),
    _M.FCANoDefault: _integral(
        Rule.INTEGRAL, (Term(Statistic.VALUE, FCA0_KEY),), _NODEF, _R0, -1.0
    ),
    _M.FBA: _integral(Rule.INTEGRAL, (Term(_MEAN, FBA_KEY),), _SURV, _R0, 1.0),
    _M.FBA0: _integral(Rule.INTEGRAL, (Term(Statistic.VALUE, FBA0_KEY),), _SURV, _R0, 1.0),
    _M.FBANoDefault: _integral(
        Rule.INTEGRAL, (Term(Statistic.VALUE, FBA0_KEY),), _NODEF, _R0, 1.0
    ),
    _M.FVA: MeasureSpec(Rule.SUM, components=(_M.FCA, _M.FBA)),
    _M.FVA0: MeasureSpec(Rule.SUM, components=(_M.FCA0, _M.FBA0)),
    _M.FVANoDefault: MeasureSpec(Rule.SUM, components=(_M.FCANoDefault, _M.FBANoDefault)),
    _M.EC: _integral(Rule.INTEGRAL, _ec(DISCOUNTED_PFE_KEY, DISCOUNTED_EE_KEY), _CPTY, _RC, -1.0),
    _M.EC0: _integral(
        Rule.INTEGRAL, _ec(DISCOUNTED_PFE0_KEY, DISCOUNTED_EE0_KEY), _CPTY, _RC, -1.0
    ),
    # Theta
    _M.CVATheta: _integral(Rule.THETA, (Term(_MEAN, DISCOUNTED_EE_KEY),), _CPTY, _RC, 1.0),
    _M.DVATheta: _integral(Rule.THETA, (Term(_MEAN, DISCOUNTED_NEE_KEY),), _OWN, _RO, -1.0),
    _M.FCATheta: _integral(Rule.THETA, (Term(_MEAN, FCA_KEY),), _SURV, _R0, 1.0),
    _M.FBATheta: _integral(Rule.THETA, (Term(_MEAN, FBA_KEY),), _SURV, _R0, -1.0),
    _M.FVATheta: MeasureSpec(Rule.SUM, components=(_M.FCATheta, _M.FBATheta)),
    # Bucketed
    _M.BucketedCVA: _integral(
        Rule.BUCKETED, (Term(_MEAN, DISCOUNTED_EE_KEY),), _CPTY, _RC, -1.0
    ),
    _M.BucketedCVA0: _integral(
        Rule.BUCKETED, (Term(_MEAN, DISCOUNTED_EE0_KEY),), _CPTY, _RC, -1.0
    ),
    _M.BucketedDVA: _integral(
        Rule.BUCKETED, (Term(_MEAN, DISCOUNTED_NEE_KEY),), _OWN, _RO, 1.0
    ),
    _M.BucketedDVA0: _integral(
        Rule.BUCKETED, (Term(_MEAN, DISCOUNTED_NEE0_KEY),), _OWN, _RO, 1.0
    ),
    # Capital
    _M.EffectiveMaturity: _mean(Rule.EFFECTIVE_MATURITY, DISCOUNTED_EE_KEY),
    _M.EffectiveMaturity0: _mean(Rule.EFFECTIVE_MATURITY, DISCOUNTED_EE0_KEY),
    _M.CapitalRequirement: _mean(Rule.CAPITAL, DISCOUNTED_EE_KEY),
    _M.CapitalRequirement0: _mean(Rule.CAPITAL, DISCOUNTED_EE0_KEY),
    _M.RWA: _rwa(DISCOUNTED_EE_KEY, EE_KEY),
    _M.RWA0: _rwa(DISCOUNTED_EE0_KEY, EE0_KEY),
    # Measure change
    _M.CptyRn: _point(Statistic.VALUE, FundamentalKey(_N, Weighting.CPTY)),
    _M.OwnRn: _point(Statistic.VALUE, FundamentalKey(_N, Weighting.OWN)),
    _M.FundingRn: _point(Statistic.VALUE, FundamentalKey(_N, Weighting.FUNDING)),
    _M.ZeroRn: _point(Statistic.VALUE, FundamentalKey(_N, Weighting.ZERO)),
}


_BY_NAME = {m.value.lower(): m for m in CCRMeasure}


def parse_measure(measure: "CCRMeasure | str") -> CCRMeasure:
    """
    Resolve a measure identifier.

    Parameters
    ----------
    measure : CCRMeasure | str
        Enum member or its name (case-insensitive)

    Returns
    -------
    CCRMeasure
        The catalog entry

    Raises
    ------
    MeasureNotSupportedError
        If the identifier has no entry in the table
    """
    if isinstance(measure, CCRMeasure):
        resolved = measure
    elif isinstance(measure, str) and measure.strip().lower() in _BY_NAME:
        resolved = _BY_NAME[measure.strip().lower()]
    else:
        raise MeasureNotSupportedError(measure)
    if resolved not in MEASURE_TABLE:
        raise MeasureNotSupportedError(measure)
    return resolved


def measure_spec(measure: "CCRMeasure | str") -> MeasureSpec:
    """Dispatch entry of a measure."""
    return MEASURE_TABLE[parse_measure(measure)]


def fundamentals(measure: "CCRMeasure | str") -> tuple[FundamentalKey, ...]:
    """Every fundamental a measure reads, including those of its components."""
    spec = measure_spec(measure)
    keys = [t.key for t in spec.terms]
    for component in spec.components:
        keys.extend(fundamentals(component))
    return tuple(dict.fromkeys(keys))

