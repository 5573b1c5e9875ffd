"""
Tests for the Kerr metric terms and their memoization
"""

import math

import pytest
import numpy as np
from kerrpic.metric import MetricTerms, kerr_terms, horizon_radius


class TestMetricValues:
    """Test metric scalars against closed forms."""

    def test_schwarzschild_limit(self):
        """Test a = 0 reduces to alpha^2 = gammarr = 1 - rg/r."""
        metric = MetricTerms(a=0.0, rg=2.0, theta=math.pi / 2)

        for r in [3.0, 10.0, 50.0]:
            assert metric.alpha(r) == pytest.approx(math.sqrt(1.0 - 2.0 / r))
            assert metric.gammarr(r) == pytest.approx(1.0 - 2.0 / r)

    def test_gamma_p_at_rest(self):
        """Test a particle at rest has gamma = 1 / alpha."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        assert metric.gamma_p(10.0, 0.0) == pytest.approx(1.0 / metric.alpha(10.0))

    def test_gamma_p_moving(self):
        """Test gamma from the radial momentum."""
        metric = MetricTerms(0.9, 2.0, 0.5236)
        grr = metric.gammarr(6.0)

        expected = math.sqrt(1.0 + grr * 4.0) / metric.alpha(6.0)
        assert metric.gamma_p(6.0, -2.0) == pytest.approx(expected)

    def test_lapse_approaches_one(self):
        """Test asymptotic flatness."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        assert metric.alpha(1.0e6) == pytest.approx(1.0, abs=1e-5)
        assert metric.gammarr(1.0e6) == pytest.approx(1.0, abs=1e-5)

    @pytest.mark.parametrize("theta", [math.pi / 2, 0.5236, 0.1])
    @pytest.mark.parametrize("r", [2.5, 4.0, 10.0, 40.0])
    def test_dr_alpha_finite_difference(self, r, theta):
        """Test the lapse derivative against a central difference."""
        metric = MetricTerms(0.9, 2.0, theta)
        h = 1.0e-5

        fd = (metric.alpha(r + h) - metric.alpha(r - h)) / (2.0 * h)

        assert metric.dr_alpha(r) == pytest.approx(fd, rel=1e-6, abs=1e-10)

    @pytest.mark.parametrize("theta", [math.pi / 2, 0.5236])
    @pytest.mark.parametrize("r", [2.5, 4.0, 10.0, 40.0])
    def test_dr_gammarr_finite_difference(self, r, theta):
        """Test the radial metric factor derivative against a central difference."""
        metric = MetricTerms(0.9, 2.0, theta)
        h = 1.0e-5

        fd = (metric.gammarr(r + h) - metric.gammarr(r - h)) / (2.0 * h)

        assert metric.dr_gammarr(r) == pytest.approx(fd, rel=1e-6, abs=1e-10)

    def test_sqrt_gamma_schwarzschild(self):
        """Test the volume element for a = 0 on the equator."""
        metric = MetricTerms(a=0.0, rg=2.0, theta=math.pi / 2)

        for r in [3.0, 10.0]:
            assert metric.sqrt_gamma(r) == pytest.approx(r * r / math.sqrt(1.0 - 2.0 / r))

    def test_horizon_radius(self):
        """Test the outer horizon."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        assert metric.r_horizon == pytest.approx(1.0 + math.sqrt(0.19))
        assert horizon_radius(0.0, 2.0) == pytest.approx(2.0)

    def test_inside_horizon_raises(self):
        """Test evaluating at or inside the horizon is rejected."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        with pytest.raises(ValueError, match="horizon"):
            metric.alpha(1.2)
        with pytest.raises(ValueError, match="horizon"):
            metric.alpha(metric.r_horizon)

    def test_overspin_raises(self):
        """Test spins beyond the extremal value."""
        with pytest.raises(ValueError, match="extremal"):
            MetricTerms(a=1.1, rg=2.0)

    def test_profile_matches_scalar(self):
        """Test the vectorized profile against memoized evaluation."""
        metric = MetricTerms(0.9, 2.0, 0.5236)
        r = np.linspace(2.0, 30.0, 15)

        alpha, gammarr = metric.profile(r)

        for i in range(len(r)):
            assert alpha[i] == pytest.approx(metric.alpha(r[i]), rel=1e-12)
            assert gammarr[i] == pytest.approx(metric.gammarr(r[i]), rel=1e-12)


class TestMetricMemo:
    """Test the single-slot metric memo."""

    def test_repeated_radius_is_bit_identical(self):
        """Test two evaluations at the same radius give the same bits."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        first = metric.alpha(10.0)
        second = metric.alpha(10.0)

        assert first == second
        assert metric.n_evaluations == 1

    def test_all_evaluators_share_one_evaluation(self):
        """Test every evaluator reuses the bundle at the same radius."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        metric.alpha(10.0)
        metric.gammarr(10.0)
        metric.gamma_p(10.0, 1.5)
        metric.dr_alpha(10.0)
        metric.dr_gammarr(10.0)
        metric.sqrt_gamma(10.0)

        assert metric.n_evaluations == 1

    def test_within_tolerance_reuses(self):
        """Test radii closer than the tolerance reuse the cached bundle."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        first = metric.alpha(10.0)
        second = metric.alpha(10.0 + 0.99e-10)

        assert second == first
        assert metric.n_evaluations == 1

    def test_beyond_tolerance_recomputes(self):
        """Test radii further than the tolerance recompute."""
        metric = MetricTerms(0.9, 2.0, 0.5236)

        metric.alpha(10.0)
        metric.alpha(10.0 + 1.01e-10)

        assert metric.n_evaluations == 2

    def test_interleaved_radii_never_mix(self):
        """Test that alternating radii return values of the requested radius."""
        metric = MetricTerms(0.9, 2.0, 0.5236)
        a2, rg, sin2, cos2 = metric.params()

        for r in [5.0, 10.0, 5.0, 3.0, 10.0]:
            alpha, _, _, gammarr = kerr_terms(r, a2, rg, sin2, cos2)
            assert metric.gammarr(r) == gammarr
            assert metric.alpha(r) == alpha

    def test_difference_equal_to_tolerance_recomputes(self):
        """Test the reuse condition is strict at the tolerance itself."""
        metric = MetricTerms(0.9, 2.0, 0.5236)
        # Exactly representable offset so r + eps - r == eps
        metric.tolerance = 2.0 ** -33
        r = 8.0

        metric.alpha(r)
        metric.alpha(r + 2.0 ** -33)
        assert metric.n_evaluations == 2

        metric.alpha(r + 2.0 ** -33 + 2.0 ** -34)
        assert metric.n_evaluations == 2
