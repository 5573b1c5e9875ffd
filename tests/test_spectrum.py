"""
Tests for inverse Compton photon sampling and photon free paths
"""

import math

import pytest
import numpy as np
from scipy import integrate, stats
from kerrpic.radiation.spectrum import (
    compute_A1,
    compute_A2,
    f_inv1,
    f_inv2,
    sample_e1p,
    sample_ep,
    conversion_rate,
    sample_freepath,
)
from kerrpic.radiation.photons import Photons
from kerrpic.constants import PairCreationParams

ALPHA = 2.0
E_S = 0.2
E_MIN = 1.0e-3
GAMMA_LOW = 50.0     # Below e_s / (2 e_min) = 100
GAMMA_HIGH = 500.0


def pdf_low(e, gamma):
    """Rest-frame target photon spectrum, low-gamma regime."""
    er = 2.0 * gamma * E_MIN
    A1 = compute_A1(er, ALPHA, E_S)
    if e < er:
        return A1 * e / er
    if e < E_S:
        return A1 * (e / er) ** (-ALPHA - 1.0)
    return A1 * (E_S / er) * (e / er) ** (-ALPHA - 2.0)


def pdf_high(e, gamma):
    """Rest-frame target photon spectrum, high-gamma regime."""
    er = 2.0 * gamma * E_MIN
    et = er / (2.0 * er + 1.0)
    A2 = compute_A2(er, et, ALPHA)
    if e < et:
        return A2 * e / er
    if e < er:
        return A2 * et / e
    return A2 * (et / er) * (e / er) ** (-ALPHA - 2.0)


def cdf_low(e, gamma):
    er = 2.0 * gamma * E_MIN
    A1 = compute_A1(er, ALPHA, E_S)
    e = np.asarray(e, dtype=np.float64)
    low = A1 * e * e / (2.0 * er)
    mid = A1 * er * (1.0 / ALPHA + 0.5 - (e / er) ** (-ALPHA) / ALPHA)
    tail = 1.0 - A1 * E_S * (e / er) ** (-(ALPHA + 1.0)) / (1.0 + ALPHA)
    return np.where(e < er, low, np.where(e < E_S, mid, tail))


def cdf_high(e, gamma):
    er = 2.0 * gamma * E_MIN
    et = er / (2.0 * er + 1.0)
    A2 = compute_A2(er, et, ALPHA)
    e = np.asarray(e, dtype=np.float64)
    low = A2 * e * e / (2.0 * er)
    mid = A2 * et * (np.log(e / et) + et / (2.0 * er))
    tail = 1.0 - A2 * et * (e / er) ** (-(ALPHA + 1.0)) / (1.0 + ALPHA)
    return np.where(e < et, low, np.where(e < er, mid, tail))


class TestSpectrumNormalisation:
    """Test the normalisation constants against direct integration."""

    def test_low_gamma_pdf_integrates_to_one(self):
        """Test A1 normalises the low-gamma spectrum."""
        er = 2.0 * GAMMA_LOW * E_MIN
        pieces = [(0.0, er), (er, E_S), (E_S, np.inf)]

        total = sum(integrate.quad(pdf_low, a, b, args=(GAMMA_LOW,))[0] for a, b in pieces)

        assert total == pytest.approx(1.0, rel=1e-8)

    def test_high_gamma_pdf_integrates_to_one(self):
        """Test A2 normalises the high-gamma spectrum."""
        er = 2.0 * GAMMA_HIGH * E_MIN
        et = er / (2.0 * er + 1.0)
        pieces = [(0.0, et), (et, er), (er, np.inf)]

        total = sum(integrate.quad(pdf_high, a, b, args=(GAMMA_HIGH,))[0] for a, b in pieces)

        assert total == pytest.approx(1.0, rel=1e-8)

    @pytest.mark.parametrize("e", [0.05, 0.1, 0.15, 0.3, 1.0])
    def test_low_gamma_cdf_matches_integral(self, e):
        """Test the closed-form CDF used below against quadrature."""
        er = 2.0 * GAMMA_LOW * E_MIN
        edges = [0.0] + [b for b in (er, E_S) if b < e] + [e]

        integral = sum(
            integrate.quad(pdf_low, a, b, args=(GAMMA_LOW,))[0] for a, b in zip(edges[:-1], edges[1:])
        )

        assert float(cdf_low(e, GAMMA_LOW)) == pytest.approx(integral, rel=1e-8)

    @pytest.mark.parametrize("e", [0.2, 0.45, 0.8, 3.0])
    def test_high_gamma_cdf_matches_integral(self, e):
        """Test the closed-form CDF used below against quadrature."""
        er = 2.0 * GAMMA_HIGH * E_MIN
        et = er / (2.0 * er + 1.0)
        edges = [0.0] + [b for b in (et, er) if b < e] + [e]

        integral = sum(
            integrate.quad(pdf_high, a, b, args=(GAMMA_HIGH,))[0] for a, b in zip(edges[:-1], edges[1:])
        )

        assert float(cdf_high(e, GAMMA_HIGH)) == pytest.approx(integral, rel=1e-8)


class TestInverseCDF:
    """Test the piecewise inverse CDFs."""

    def test_low_gamma_distribution(self):
        """Test samples follow the low-gamma spectrum (KS test)."""
        rng = np.random.default_rng(42)
        u = rng.random(20000)

        samples = np.array([f_inv1(ui, GAMMA_LOW, ALPHA, E_S, E_MIN) for ui in u])

        result = stats.kstest(samples, lambda e: cdf_low(e, GAMMA_LOW))
        assert result.statistic < 0.02, f"KS statistic {result.statistic:.4f}"

    def test_high_gamma_distribution(self):
        """Test samples follow the high-gamma spectrum (KS test)."""
        rng = np.random.default_rng(43)
        u = rng.random(20000)

        samples = np.array([f_inv2(ui, GAMMA_HIGH, ALPHA, E_MIN) for ui in u])

        result = stats.kstest(samples, lambda e: cdf_high(e, GAMMA_HIGH))
        assert result.statistic < 0.02, f"KS statistic {result.statistic:.4f}"

    @pytest.mark.parametrize("gamma", [12.0, GAMMA_LOW, 99.0])
    def test_f_inv1_monotonic(self, gamma):
        """Test the low-gamma inverse is increasing across its break points."""
        u = np.linspace(0.0, 0.999, 4000)

        e = np.array([f_inv1(ui, gamma, ALPHA, E_S, E_MIN) for ui in u])

        assert np.all(np.diff(e) > 0.0)
        assert e[0] == 0.0

    @pytest.mark.parametrize("gamma", [100.0, GAMMA_HIGH, 1.0e4])
    def test_f_inv2_monotonic(self, gamma):
        """Test the high-gamma inverse is increasing across its break points."""
        u = np.linspace(0.0, 0.999, 4000)

        e = np.array([f_inv2(ui, gamma, ALPHA, E_MIN) for ui in u])

        assert np.all(np.diff(e) > 0.0)

    def test_regime_selection(self):
        """Test sample_e1p switches regime at gamma = e_s / (2 e_min)."""
        u = 0.63

        assert sample_e1p(u, GAMMA_LOW, ALPHA, E_S, E_MIN) == f_inv1(u, GAMMA_LOW, ALPHA, E_S, E_MIN)
        assert sample_e1p(u, GAMMA_HIGH, ALPHA, E_S, E_MIN) == f_inv2(u, GAMMA_HIGH, ALPHA, E_MIN)


class TestScatteredEnergy:
    """Test the rest-frame energy after scattering."""

    @pytest.mark.parametrize("gamma", [20.0, 200.0, 2000.0])
    @pytest.mark.parametrize("e1p", [0.01, 0.1, 0.3, 0.45])
    def test_kinematic_limits(self, gamma, e1p):
        """Test e1p <= ep <= e1p / (1 - 2 e1p), so the angle cosine is physical."""
        e_lim = e1p / (1.0 - 2.0 * e1p)

        for u in np.linspace(0.0, 0.999, 200):
            ep = sample_ep(u, e1p, gamma, ALPHA, E_MIN)
            assert e1p * (1.0 - 1e-12) <= ep <= e_lim * (1.0 + 1e-9), f"u={u}, ep={ep}"

            u1p = 1.0 - 1.0 / e1p + 1.0 / ep
            assert -1.0 - 1e-9 <= u1p <= 1.0 + 1e-12

    def test_no_upper_limit_above_half(self):
        """Test e1p >= 0.5 has no kinematic cutoff."""
        ep = sample_ep(0.999, 0.8, 2000.0, ALPHA, E_MIN)

        assert ep > 0.8
        assert math.isfinite(ep)


class TestFreePath:
    """Test photon free path sampling."""

    def test_rate_continuous(self):
        """Test the conversion rate is continuous at E e_min = 2."""
        E_break = 2.0 / E_MIN

        below = conversion_rate(E_break * (1.0 - 1e-9), ALPHA, E_MIN)
        above = conversion_rate(E_break * (1.0 + 1e-9), ALPHA, E_MIN)

        assert below == pytest.approx(above, rel=1e-6)
        assert above == pytest.approx(1.0, rel=1e-6)

    def test_rate_regimes(self):
        """Test the power law below and the 1/E decline above the break."""
        assert conversion_rate(1000.0, ALPHA, E_MIN) == pytest.approx(0.25)
        assert conversion_rate(8000.0, ALPHA, E_MIN) == pytest.approx(0.25)

    def test_freepath_zero_draw(self):
        """Test u = 0 gives zero distance."""
        assert sample_freepath(0.0, 500.0, 1.0, ALPHA, E_MIN) == 0.0

    @pytest.mark.parametrize("E_ph", [200.0, 2000.0, 6000.0])
    def test_mean_freepath(self, E_ph):
        """Test the mean free path equals photon_path / rate."""
        params = PairCreationParams(photon_path=0.5)
        photons = Photons(10, params=params, rng=np.random.default_rng(7))

        paths = np.array([photons.draw_photon_freepath(E_ph) for _ in range(20000)])

        expected = params.photon_path / conversion_rate(E_ph, ALPHA, E_MIN)
        assert np.all(paths >= 0.0)
        assert np.mean(paths) == pytest.approx(expected, rel=0.03)
