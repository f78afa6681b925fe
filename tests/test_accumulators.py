"""
Tests for the accumulator variants and the empirical exposure distribution.
"""

import numpy as np
import pytest

from ccr_core.exceptions import AccumulatorStateError, IncompatibleMergeError
from ccr_core.measures import (
    AccumulatorKind,
    DensityAccumulator,
    DistributionAccumulator,
    ExposureDistribution,
    RatioAccumulator,
    SpreadProductAccumulator,
    VarianceAccumulator,
    new_accumulator,
)


class TestRatioAccumulator:
    """Tests for weighted expected exposure."""

    def test_zero_weights_reduce_to_zero(self) -> None:
        """Dates without informative paths reduce to exactly 0."""
        acc = RatioAccumulator(3)
        acc.accumulate_path(np.zeros(3), np.ones(3), np.array([1.0, 2.0, 3.0]))
        result = acc.reduce()
        assert np.array_equal(result, np.zeros(3))
        assert not np.isnan(result).any()

    def test_empty_reduces_to_zero(self) -> None:
        """Nothing accumulated gives 0, never NaN."""
        assert np.array_equal(RatioAccumulator(2, discounted=True).reduce(), np.zeros(2))

    def test_discounted_normalizer(self) -> None:
        """Discounted ratio normalizes by weight, undiscounted by weight times df."""
        discounted = RatioAccumulator(1, discounted=True)
        forward = RatioAccumulator(1)
        for acc in (discounted, forward):
            acc.accumulate(0, 1.0, 0.5, 10.0)
        assert np.isclose(discounted.reduce()[0], 5.0)
        assert np.isclose(forward.reduce()[0], 10.0)

    def test_per_date_matches_vectorised(self) -> None:
        """Per-date and whole-path updates agree."""
        rng = np.random.default_rng(0)
        w, df, e = rng.random((3, 6, 4))
        a = RatioAccumulator(4, discounted=True)
        b = RatioAccumulator(4, discounted=True)
        for i in range(6):
            for d in range(4):
                a.accumulate(d, w[i, d], df[i, d], e[i, d])
        b.accumulate_path(w, df, e)
        assert np.allclose(a.reduce(), b.reduce())

    def test_merge_matches_single_shard(self) -> None:
        """Merging shards equals accumulating everything at once."""
        rng = np.random.default_rng(1)
        w, df, e = rng.random((3, 10, 5))
        whole = RatioAccumulator(5)
        whole.accumulate_path(w, df, e)
        left, right = RatioAccumulator(5), RatioAccumulator(5)
        left.accumulate_path(w[:3], df[:3], e[:3])
        right.accumulate_path(w[3:], df[3:], e[3:])
        left.merge(right)
        assert np.allclose(left.reduce(), whole.reduce())


class TestVarianceAccumulator:
    """Tests for exposure standard deviation."""

    def test_sigma(self) -> None:
        """Two equally weighted samples 1 and 3 give sigma 1."""
        acc = VarianceAccumulator(1, discounted=True)
        acc.accumulate_path(np.ones((2, 1)), np.ones((2, 1)), np.array([[1.0], [3.0]]))
        moments = acc.reduce()
        assert np.isclose(moments.mean[0], 2.0)
        assert np.isclose(moments.sigma[0], 1.0)
        assert moments.n_samples[0] == 2

    def test_constant_exposure_sigma_zero(self) -> None:
        """Constant exposure has exactly zero sigma."""
        acc = VarianceAccumulator(2)
        acc.accumulate_path(np.ones((5, 2)), np.full((5, 2), 0.97), np.full((5, 2), 5.0))
        assert np.array_equal(acc.reduce().sigma, np.zeros(2))

    def test_tiny_sigma_floored(self) -> None:
        """Sigma below 1e-5 reduces to exactly 0."""
        acc = VarianceAccumulator(1, discounted=True)
        acc.accumulate(0, 1.0, 1.0, 1.0)
        acc.accumulate(0, 1.0, 1.0, 1.0 + 1e-6)
        assert acc.reduce().sigma[0] == 0.0

    def test_sigma_non_negative(self) -> None:
        """Sigma is never negative."""
        rng = np.random.default_rng(2)
        acc = VarianceAccumulator(8)
        acc.accumulate_path(rng.random((50, 8)), rng.random((50, 8)), rng.random((50, 8)))
        assert np.all(acc.reduce().sigma >= 0.0)

    def test_merge_adds_counts(self) -> None:
        """Sample counts add on merge."""
        a, b = VarianceAccumulator(1), VarianceAccumulator(1)
        a.accumulate(0, 1.0, 1.0, 2.0)
        b.accumulate(0, 1.0, 1.0, 4.0)
        b.accumulate(0, 1.0, 1.0, 6.0)
        a.merge(b)
        moments = a.reduce()
        assert moments.n_samples[0] == 3
        assert np.isclose(moments.mean[0], 4.0)


class TestSpreadProductAccumulator:
    """Tests for the exposure times spread product."""

    def test_product_of_means(self) -> None:
        """Reduces to mean exposure times mean spread."""
        acc = SpreadProductAccumulator(1, discounted=True)
        acc.accumulate(0, 1.0, 1.0, 10.0, 0.01)
        acc.accumulate(0, 1.0, 1.0, 20.0, 0.03)
        assert np.isclose(acc.reduce()[0], 15.0 * 0.02)


class TestDensityAccumulator:
    """Tests for the average Radon-Nikodym derivative."""

    def test_average(self) -> None:
        """Unweighted average over paths."""
        acc = DensityAccumulator(2)
        acc.accumulate_path(np.array([[0.5, 1.0], [1.5, 3.0]]))
        assert np.allclose(acc.reduce(), [1.0, 2.0])


class TestDistributionAccumulator:
    """Tests for the exposure distribution accumulator."""

    def test_worked_scenario(self) -> None:
        """Exposures {10, 0, 20} give CDF {1/3, 2/3, 1} and PFE(0.95) = 20."""
        acc = DistributionAccumulator(1)
        for e in (10.0, 0.0, 20.0):
            acc.accumulate(0, 1.0, 1.0, e, 0.0)
        (dist,) = acc.reduce()
        assert np.allclose(dist.values, [0.0, 10.0, 20.0])
        assert np.allclose(dist.cdf, [1 / 3, 2 / 3, 1.0])
        assert dist.quantile(0.95) == 20.0
        assert dist.quantile(0.5) == 10.0

    def test_zero_weight_discarded(self) -> None:
        """Samples with zero weight do not enter the normalizer."""
        acc = DistributionAccumulator(1)
        acc.accumulate(0, 0.0, 1.0, 100.0, 0.0)
        acc.accumulate(0, 1.0, 1.0, 5.0, 0.0)
        assert acc.norm[0] == 1.0
        assert acc.n_stored == 1

    def test_per_date_matches_vectorised(self) -> None:
        """Per-date and whole-path updates build the same distribution."""
        rng = np.random.default_rng(3)
        e = np.maximum(rng.normal(size=(40, 3)), 0.0)
        w, df, c = rng.random((3, 40, 3))
        a, b = DistributionAccumulator(3), DistributionAccumulator(3)
        for i in range(40):
            for d in range(3):
                a.accumulate(d, w[i, d], df[i, d], e[i, d], c[i, d])
        b.accumulate_path(w, df, e, c)
        for da, db in zip(a.reduce(), b.reduce()):
            assert np.allclose(da.values, db.values)
            assert np.allclose(da.cdf, db.cdf)
            assert np.allclose(da.collateral, db.collateral)

    def test_reduce_releases_samples(self) -> None:
        """Raw samples are dropped once reduced."""
        acc = DistributionAccumulator(2)
        acc.accumulate_path(np.ones((3, 2)), np.ones((3, 2)), np.ones((3, 2)), np.zeros((3, 2)))
        assert acc.n_stored == 6
        acc.reduce()
        assert acc.n_stored == 0

    def test_no_paths_degenerate(self) -> None:
        """A date without samples reduces to a point mass at zero."""
        (dist,) = DistributionAccumulator(1).reduce()
        assert dist.quantile(0.99) == 0.0


class TestMerge:
    """Tests for merge compatibility checks."""

    def test_merge_with_self_rejected(self) -> None:
        """An accumulator cannot absorb itself."""
        acc = RatioAccumulator(2)
        with pytest.raises(IncompatibleMergeError):
            acc.merge(acc)

    def test_merge_different_variant_rejected(self) -> None:
        """Variants cannot be mixed."""
        with pytest.raises(IncompatibleMergeError):
            RatioAccumulator(2).merge(VarianceAccumulator(2))

    def test_merge_different_configuration_rejected(self) -> None:
        """Discounting and date count must match."""
        with pytest.raises(IncompatibleMergeError):
            RatioAccumulator(2).merge(RatioAccumulator(2, discounted=True))
        with pytest.raises(IncompatibleMergeError):
            RatioAccumulator(2).merge(RatioAccumulator(3))

    def test_new_accumulator(self) -> None:
        """Factory returns the tagged variant."""
        acc = new_accumulator(AccumulatorKind.DISTRIBUTION, 4, discounted=True)
        assert isinstance(acc, DistributionAccumulator)
        assert acc.discounted
        assert isinstance(new_accumulator(AccumulatorKind.DENSITY, 1), DensityAccumulator)

    def test_empty_like(self) -> None:
        """Fresh copy keeps the configuration but not the statistics."""
        acc = SpreadProductAccumulator(3, discounted=True)
        acc.accumulate(1, 1.0, 1.0, 5.0, 0.01)
        fresh = acc.empty_like()
        assert fresh.discounted and fresh.n_dates == 3
        assert np.array_equal(fresh.weighted_exposure, np.zeros(3))


class TestReduceOnce:
    """Tests for the reduced state of accumulators."""

    def test_accumulate_after_reduce_rejected(self) -> None:
        """A reduced distribution keeps its result and refuses new samples."""
        acc = DistributionAccumulator(1)
        for e in (10.0, 0.0, 20.0):
            acc.accumulate(0, 1.0, 1.0, e, 0.0)
        (dist,) = acc.reduce()
        assert dist.quantile(0.95) == 20.0
        with pytest.raises(AccumulatorStateError):
            acc.accumulate(0, 1.0, 1.0, 30.0, 0.0)
        with pytest.raises(AccumulatorStateError):
            acc.accumulate_path(np.ones(1), np.ones(1), np.array([30.0]), np.zeros(1))
        assert acc.norm[0] == 3.0

    @pytest.mark.parametrize("kind", list(AccumulatorKind))
    def test_second_reduce_rejected(self, kind: AccumulatorKind) -> None:
        acc = new_accumulator(kind, 2)
        acc.reduce()
        assert acc.reduced
        with pytest.raises(AccumulatorStateError):
            acc.reduce()

    def test_merge_reduced_rejected(self) -> None:
        """Neither side of a merge may be reduced."""
        open_acc, closed = VarianceAccumulator(2), VarianceAccumulator(2)
        closed.reduce()
        with pytest.raises(AccumulatorStateError):
            open_acc.merge(closed)
        with pytest.raises(AccumulatorStateError):
            closed.merge(open_acc)

    def test_empty_like_is_open(self) -> None:
        acc = RatioAccumulator(2)
        acc.reduce()
        fresh = acc.empty_like()
        fresh.accumulate(0, 1.0, 1.0, 4.0)
        assert np.allclose(fresh.reduce(), [4.0, 0.0])


class TestExposureDistribution:
    """Tests for ExposureDistribution."""

    def test_cdf_monotone(self) -> None:
        """CDF is non-decreasing and ends at 1."""
        rng = np.random.default_rng(4)
        values = rng.exponential(size=200)
        weights = rng.random(200)
        dist = ExposureDistribution.from_samples(
            values, np.zeros(200), weights, float(weights.sum()) * 1.25
        )
        assert np.all(np.diff(dist.cdf) >= 0)
        assert np.isclose(dist.cdf[-1], 1.0)
        assert dist.values[0] == 0.0
        assert dist.quantile(0.99) >= dist.quantile(0.5)

    def test_equal_values_merge(self) -> None:
        """Equal samples share one knot carrying the first sample's collateral."""
        dist = ExposureDistribution.from_samples(
            np.array([5.0, 5.0, 3.0]),
            np.array([1.0, 2.0, 7.0]),
            np.ones(3),
            3.0,
        )
        assert np.allclose(dist.values, [3.0, 5.0])
        assert np.allclose(dist.cdf, [1 / 3, 1.0])
        assert np.allclose(dist.collateral, [7.0, 1.0])

    def test_collateral_quantile(self) -> None:
        """Collateral is read at the exposure quantile knot."""
        dist = ExposureDistribution.from_samples(
            np.array([10.0, 20.0]), np.array([2.0, 4.0]), np.ones(2), 2.0
        )
        assert dist.collateral_quantile(0.9) == 4.0
        assert dist.collateral_quantile(0.4) == 2.0

    def test_expectation(self) -> None:
        """Mean of the step distribution."""
        dist = ExposureDistribution.from_samples(
            np.array([10.0, 20.0]), np.zeros(2), np.ones(2), 3.0
        )
        assert np.isclose(dist.expectation(), 10.0)

    def test_zero_norm_degenerate(self) -> None:
        """A non-positive normalizer gives the zero point mass."""
        dist = ExposureDistribution.from_samples(np.zeros(0), np.zeros(0), np.zeros(0), 0.0)
        assert dist.quantile(0.5) == 0.0

    def test_invalid_level(self) -> None:
        """Quantile levels outside (0, 1] are rejected."""
        with pytest.raises(ValueError):
            ExposureDistribution.degenerate().quantile(0.0)

    def test_length_mismatch(self) -> None:
        """Knot arrays must align."""
        with pytest.raises(ValueError, match="equal length"):
            ExposureDistribution(np.ones(2), np.ones(1), np.ones(2))
