"""
Inverse-CDF Sampling of Inverse Compton Photons

A lepton with Lorentz factor gamma scatters soft background photons with a
broken power-law spectrum (index alpha, minimum energy e_min, saturation
energy e_s). In the lepton rest frame the target photon energy is at most
er = 2 gamma e_min. Two regimes exist:

    gamma <  e_s / (2 e_min):  Thomson-like, f_inv1, normalisation A1
    gamma >= e_s / (2 e_min):  Klein-Nishina-like, f_inv2, normalisation A2

Each inverse CDF is piecewise over three sub-intervals of the uniform draw
u, and maps u in [0, 1) onto the rest-frame energy e1p. The CDFs are
normalised to unity by A1 and A2.

The free path of a photon of energy E before it converts into a pair is
exponential with a rate following a pair-production cross-section
approximation: (E e_min / 2)^alpha below E e_min = 2, 2 / (E e_min) above.
"""

import math

from numba import njit


# ==================== NORMALISATION ====================


@njit
def compute_A1(er, alpha, e_s):
    """Normalisation of the gamma < e_s / (2 e_min) spectrum."""
    return 1.0 / (er * (0.5 + 1.0 / alpha - (1.0 / (alpha * (alpha + 1.0))) * (er / e_s) ** alpha))


@njit
def compute_A2(er, et, alpha):
    """Normalisation of the gamma >= e_s / (2 e_min) spectrum."""
    return 1.0 / (et * (et * 0.5 / er + math.log(er / et) + 1.0 / (1.0 + alpha)))


# ==================== INVERSE CDFs ====================


@njit
def f_inv1(u, gamma, alpha, e_s, e_min):
    """
    Rest-frame photon energy for uniform u, low-gamma regime.

    Args:
        u: Uniform draw in [0, 1)
        gamma: Lepton Lorentz factor
        alpha, e_s, e_min: Background spectrum parameters

    Returns:
        e1p: Rest-frame photon energy
    """
    er = 2.0 * gamma * e_min
    A1 = compute_A1(er, alpha, e_s)
    if u < A1 * er * 0.5:
        return math.sqrt(2.0 * u * er / A1)
    elif u < 1.0 - A1 * er * (e_s / er) ** (-alpha) / (1.0 + alpha):
        return er * (alpha * (1.0 / alpha + 0.5 - u / (A1 * er))) ** (-1.0 / alpha)
    else:
        return er * ((1.0 - u) * (1.0 + alpha) / (A1 * e_s)) ** (-1.0 / (alpha + 1.0))


@njit
def f_inv2(u, gamma, alpha, e_min):
    """
    Rest-frame photon energy for uniform u, high-gamma regime.

    Args:
        u: Uniform draw in [0, 1)
        gamma: Lepton Lorentz factor
        alpha, e_min: Background spectrum parameters

    Returns:
        e1p: Rest-frame photon energy
    """
    er = 2.0 * gamma * e_min
    et = er / (2.0 * er + 1.0)
    A2 = compute_A2(er, et, alpha)
    if u < A2 * et * et * 0.5 / er:
        return math.sqrt(2.0 * u * er / A2)
    elif u < 1.0 - A2 * et / (1.0 + alpha):
        return et * math.exp(u / (A2 * et) - et * 0.5 / er)
    else:
        return er * ((1.0 - u) * (1.0 + alpha) / (A2 * et)) ** (-1.0 / (alpha + 1.0))


@njit
def sample_e1p(u, gamma, alpha, e_s, e_min):
    """Select the regime by gamma and invert the CDF at u."""
    if gamma < e_s * 0.5 / e_min:
        return f_inv1(u, gamma, alpha, e_s, e_min)
    return f_inv2(u, gamma, alpha, e_min)


@njit
def sample_ep(u, e1p, gamma, alpha, e_min):
    """
    Rest-frame energy after scattering for a given e1p.

    Three cases depending on e1p relative to er = 2 gamma e_min and on the
    kinematic limit e1p / (1 - 2 e1p).

    Args:
        u: Uniform draw in [0, 1)
        e1p: Rest-frame incident energy
        gamma: Lepton Lorentz factor
        alpha, e_min: Background spectrum parameters

    Returns:
        ep: Rest-frame scattered energy
    """
    gemin2 = 2.0 * gamma * e_min
    if e1p < 0.5 and e1p / (1.0 - 2.0 * e1p) <= gemin2:
        e_lim = e1p / (1.0 - 2.0 * e1p)
        a1 = (gemin2 * gemin2 * (alpha + 2.0)) / (gamma * (e_lim * e_lim - e1p * e1p))
        return math.sqrt(u * (alpha + 2.0) * gemin2 * gemin2 / (a1 * gamma) + e1p * e1p)
    elif e1p > gemin2:
        a2 = (alpha * (alpha + 2.0) * 0.5 / gamma) * (e1p / gemin2) ** alpha
        if e1p < 0.5:
            a2 /= (1.0 - (1.0 - 2.0 * e1p) ** alpha)
        return gemin2 * ((gemin2 / e1p) ** alpha - u * alpha * (alpha + 2.0) / (2.0 * gamma * a2)) ** (-1.0 / alpha)
    else:
        G = 0.0
        if e1p < 0.5:
            G = ((1.0 - 2.0 * e1p) * gemin2 / e1p) ** alpha
        U_0 = (gemin2 * gemin2 - e1p * e1p) * gamma / (gemin2 * gemin2 * (alpha + 2.0))
        a3 = 1.0 / (U_0 + (1.0 - G) * 2.0 * gamma / (alpha * (alpha + 2.0)))
        if u < U_0 * a3:
            return math.sqrt(u * (alpha + 2.0) * gemin2 * gemin2 / (a3 * gamma) + e1p * e1p)
        return gemin2 * (1.0 - (u - a3 * U_0) * alpha * (alpha + 2.0) / (2.0 * a3 * gamma)) ** (-1.0 / alpha)


# ==================== FREE PATH ====================


@njit
def conversion_rate(E_ph, alpha, e_min):
    """Relative pair conversion rate of a photon of energy E_ph."""
    x = E_ph * e_min
    if x < 2.0:
        return (0.5 * x) ** alpha
    return 2.0 / x


@njit
def sample_freepath(u, E_ph, photon_path, alpha, e_min):
    """Exponential free path -l_ph ln(1 - u) / rate."""
    return -photon_path * math.log(1.0 - u) / conversion_rate(E_ph, alpha, e_min)
