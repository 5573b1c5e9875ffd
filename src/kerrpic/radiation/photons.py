"""
Photon Emission and Pair Production

Photons is both the photon pool (an SoA arena like the charged species) and
the stochastic machinery that fills and drains it:

    emit_photons:  leptons above gamma_thr scatter background photons
                   (inverse Compton) and either create a photon or, when
                   photons are not traced, a pair on the spot
    move:          free-streaming photons advance and age; photons that
                   cannot convert before leaving the domain are censored
    convert_pairs: photons whose free path is used up become pairs

Photon life cycle:
    free (path_left > 0) -> converting (path_left < 0) -> pair, removed
    free -> censored (would exit before converting), removed

The random generator is owned by the instance and passed in explicitly, so
runs are reproducible from a seed.
"""

import logging
import math

import numba
import numpy as np

from ..constants import (
    FLAG_EMPTY,
    FLAG_TRACKED,
    PairCreationParams,
    pair_momentum,
)
from ..metric import lorentz_factor_gr
from ..particles import ParticleBase
from .spectrum import sample_e1p, sample_ep, sample_freepath

logger = logging.getLogger(__name__)


def zero_flow(x):
    """Default background flow profile: no aberration."""
    return 0.0


# ==================== MOVE KERNEL ====================


@numba.njit
def move_photons_1d(cell, x1, p1, path_left, flag, n_photons, dx, guard, length, dt):
    """
    Advance photons at the speed of light and age their free paths.

    A photon whose remaining path exceeds its distance to the domain edge
    (in the direction of travel) can never convert inside the box and is
    erased.

    Args:
        cell, x1, p1, path_left, flag: Photon arrays (modified in-place)
        n_photons: Number of used slots
        dx, guard, length: Mesh geometry
        dt: Timestep

    Returns:
        n_censored: Number of photons erased
    """
    n_censored = 0

    for idx in range(n_photons):
        if flag[idx] & FLAG_EMPTY:
            continue

        p = p1[idx]
        dist = (cell[idx] - guard + x1[idx]) * dx

        if (p < 0.0 and path_left[idx] > dist) or (p > 0.0 and path_left[idx] > length - dist):
            flag[idx] = flag[idx] | FLAG_EMPTY
            n_censored += 1
            continue

        if p > 0.0:
            x1[idx] += dt / dx
        elif p < 0.0:
            x1[idx] -= dt / dx
        path_left[idx] -= dt

        delta_cell = math.floor(x1[idx])
        cell[idx] += delta_cell
        x1[idx] -= delta_cell
        if x1[idx] >= 1.0:
            x1[idx] -= 1.0
            cell[idx] += 1

    return n_censored


# ==================== PHOTONS ====================


class Photons(ParticleBase):
    """
    Photon pool with emission, propagation and pair conversion.

    Attributes:
        cell: Cell index [int64]
        x1: Fractional position in [0, 1)
        p1: Signed photon energy, the sign is the direction of travel
        path_left: Remaining free path before conversion
        path: Free path drawn at emission (diagnostic)
        params: PairCreationParams
        rng: numpy Generator used for every draw
        beta_phi: Background flow profile beta(x), x the absolute position
                  divided by the domain length
        metric: MetricTerms of a Kerr run, None in flat space
    """

    _fields = (
        ("cell", np.int64),
        ("x1", np.float64),
        ("p1", np.float64),
        ("path_left", np.float64),
        ("path", np.float64),
    )

    def __init__(self, max_photons: int, params=None, rng=None, beta_phi=None, metric=None):
        """
        Args:
            max_photons: Capacity of the pool
            params: PairCreationParams (default parameters if None)
            rng: numpy.random.Generator (fresh default_rng() if None)
            beta_phi: Callable beta_phi(x) (zero flow if None)
            metric: MetricTerms; lepton energies are then set through the
                    metric Lorentz factor instead of sqrt(1 + p^2)
        """
        super().__init__(max_photons)
        self.params = params if params is not None else PairCreationParams()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.beta_phi = beta_phi if beta_phi is not None else zero_flow
        self.metric = metric

        logger.info("Photon conversion probability is %g", self.params.p_ph)
        logger.info("emin is %g", self.params.e_min)
        logger.info("IC probability is %g", self.params.p_ic)

    # ==================== STORAGE ====================

    def put(self, pos, x1, p1, path_left, cell, flag=0):
        """Write a photon into slot ``pos``."""
        pos = self._claim_position(pos)
        self._write(pos, x1, p1, path_left, cell, flag)
        return pos

    def append(self, x1, p1, path_left, cell, flag=0):
        """
        Insert a photon, reusing a free slot when possible.

        Raises:
            ValueError: If the pool is full
        """
        pos = self._claim_slot()
        self._write(pos, x1, p1, path_left, cell, flag)
        return pos

    def _write(self, pos, x1, p1, path_left, cell, flag):
        self.cell[pos] = cell
        self.x1[pos] = x1
        self.p1[pos] = p1
        self.path_left[pos] = path_left
        self.path[pos] = path_left
        self.flag[pos] = flag & ~FLAG_EMPTY

    # ==================== SAMPLING ====================

    def draw_photon_e1p(self, gamma):
        """Rest-frame energy of the scattered background photon."""
        prm = self.params
        u = self.rng.random()
        return sample_e1p(u, float(gamma), prm.spectral_alpha, prm.e_s, prm.e_min)

    def draw_photon_ep(self, e1p, gamma):
        """Rest-frame energy after scattering."""
        prm = self.params
        u = self.rng.random()
        return sample_ep(u, float(e1p), float(gamma), prm.spectral_alpha, prm.e_min)

    def draw_photon_u1p(self, e1p, gamma):
        """Rest-frame scattering angle cosine from the energy change."""
        ep = self.draw_photon_ep(e1p, gamma)
        return 1.0 - 1.0 / e1p + 1.0 / ep

    def draw_photon_energy(self, gamma, p, x):
        """
        Lab-frame energy of an emitted photon.

        Args:
            gamma: Lepton Lorentz factor
            p: Lepton momentum (signed)
            x: Absolute position over domain length, passed to beta_phi

        Returns:
            E_ph: Signed photon energy; the sign is the direction of travel,
                  which may be opposite to the lepton's
        """
        e1p = self.draw_photon_e1p(gamma)
        u1p = self.draw_photon_u1p(e1p, gamma)

        beta = self.beta_phi(x)
        v = ((-1.0 if beta < 0.0 else 1.0) * p / gamma + beta * beta) / (1.0 + beta * beta)
        if beta < 0.0:
            v = -v
        return math.copysign(1.0, v) * (gamma + abs(p) * (-u1p)) * e1p

    def draw_photon_freepath(self, E_ph):
        """Distance a photon of energy E_ph travels before converting."""
        prm = self.params
        u = self.rng.random()
        return sample_freepath(u, float(E_ph), prm.photon_path, prm.spectral_alpha, prm.e_min)

    def _draw_tracked(self, flag_bit):
        return flag_bit if self.rng.random() < self.params.track_percent else 0

    # ==================== EMISSION ====================

    def emit_photons(self, electrons, positrons, mesh):
        """
        Let electrons and positrons above threshold emit photons.

        Args:
            electrons: ParticleArray of electrons (momenta modified)
            positrons: ParticleArray of positrons (momenta modified)
            mesh: Mesh1D instance

        Returns:
            n_emitted: Number of accepted emission events
        """
        if not self.params.create_pairs:
            return 0

        logger.debug("Processing Pair Creation...")
        # Secondaries appended during this call do not emit until the next step
        emitters = [(emitter, np.flatnonzero(emitter.live_mask())) for emitter in (electrons, positrons)]
        n_emitted = 0
        for emitter, live in emitters:
            n_emitted += self._emit_from(emitter, live, electrons, positrons, mesh)

        logger.debug("There are now %d photons in the pool", self.n_particles)
        return n_emitted

    def _emit_from(self, emitter, live, electrons, positrons, mesh):
        prm = self.params
        p_ic = prm.p_ic
        n_emitted = 0

        for n in live:
            gamma = emitter.gamma[n]
            if gamma <= prm.gamma_thr:
                continue

            r = mesh.pos(emitter.cell[n], emitter.x1[n])
            if self.metric is not None and r <= self.metric.r_horizon:
                continue

            e_p = gamma * prm.e_min
            prob = p_ic if e_p < 0.1 else p_ic * 0.1 / e_p
            if self.rng.random() > prob:
                continue
            n_emitted += 1

            E_ph = self.draw_photon_energy(gamma, emitter.p1[n], r / mesh.length)

            gamma_f = gamma - abs(E_ph)
            if gamma_f < 1.0:
                logger.error(
                    "Photon energy exceeds particle energy! gamma is %g, Eph is %g",
                    gamma, E_ph,
                )
            if gamma_f < prm.gamma_floor:
                gamma_f = min(prm.gamma_floor, gamma)
            self._set_lepton_energy(emitter, n, r, gamma_f)

            l_photon = self.draw_photon_freepath(abs(E_ph))
            if l_photon > mesh.length or abs(E_ph) < prm.e_ph_min:
                continue

            x1 = emitter.x1[n]
            cell = emitter.cell[n]
            if not prm.trace_photons:
                p_sec = math.copysign(pair_momentum(E_ph), emitter.p1[n])
                self._add_pair(
                    electrons, positrons, x1, p_sec, cell,
                    self._draw_tracked(FLAG_TRACKED), self._draw_tracked(FLAG_TRACKED), r,
                )
            else:
                self.append(x1, E_ph, l_photon, cell, self._draw_tracked(FLAG_TRACKED))

        return n_emitted

    def _set_lepton_energy(self, particles, idx, r, gamma_f):
        """
        Rescale a lepton's momentum to the Lorentz factor gamma_f.

        Flat space: |p| = sqrt(gamma_f^2 - 1). With a metric the relation
        gamma = sqrt(1 + gammarr p^2) / alpha is inverted at r; a target
        below the rest energy 1/alpha leaves the lepton at rest.
        """
        p_i = abs(particles.p1[idx])
        if self.metric is None:
            if p_i > 0.0:
                particles.p1[idx] *= math.sqrt(gamma_f * gamma_f - 1.0) / p_i
            particles.gamma[idx] = gamma_f
            return

        b = self.metric.evaluate(r)
        u2 = (b.alpha * b.alpha * gamma_f * gamma_f - 1.0) / b.gammarr
        p = math.copysign(math.sqrt(u2), particles.p1[idx]) if u2 > 0.0 else 0.0
        particles.p1[idx] = p
        particles.gamma[idx] = lorentz_factor_gr(b.alpha, b.gammarr, p)

    def _add_pair(self, electrons, positrons, x1, p, cell, flag_e, flag_p, r=None):
        """Append an electron and a positron with equal momentum at one position."""
        i_e = electrons.append(x1, p, cell, flag_e)
        i_p = positrons.append(x1, p, cell, flag_p)
        if self.metric is not None and r is not None and r > self.metric.r_horizon:
            gamma = self.metric.gamma_p(r, p)
            electrons.gamma[i_e] = gamma
            positrons.gamma[i_p] = gamma

    # ==================== CONVERSION ====================

    def convert_pairs(self, electrons, positrons, mesh=None):
        """
        Turn photons with exhausted free path into pairs.

        Each pair shares the photon energy equally and keeps its direction;
        the tracked flag is inherited.

        Args:
            electrons: ParticleArray receiving the electrons
            positrons: ParticleArray receiving the positrons
            mesh: Mesh1D locating the pairs for the metric Lorentz factor
                  (needed only when a metric is set)

        Returns:
            n_converted: Number of photons converted
        """
        prm = self.params
        if not prm.create_pairs or not prm.trace_photons:
            return 0
        if self.n_particles <= 0:
            return 0

        n_converted = 0
        for idx in range(self.n_particles):
            if self.is_empty(idx) or self.path_left[idx] >= 0.0:
                continue

            E_ph = self.p1[idx]
            p_sec = math.copysign(pair_momentum(abs(E_ph)), E_ph)
            flag = FLAG_TRACKED if self.check_flag(idx, FLAG_TRACKED) else 0

            r = mesh.pos(self.cell[idx], self.x1[idx]) if mesh is not None else None
            self._add_pair(electrons, positrons, self.x1[idx], p_sec, self.cell[idx], flag, flag, r)
            self.erase(idx)
            n_converted += 1

        return n_converted

    # ==================== PROPAGATION ====================

    def move(self, mesh, dt):
        """
        Advance all photons one timestep.

        Args:
            mesh: Mesh1D instance
            dt: Timestep

        Returns:
            n_censored: Photons removed because they escape unconverted
        """
        if self.n_particles == 0:
            return 0

        n_censored = move_photons_1d(
            self.cell, self.x1, self.p1, self.path_left, self.flag,
            self.n_particles, mesh.dx, mesh.guard, mesh.length, dt,
        )
        if n_censored > 0:
            self.rebuild_free_list()
        return n_censored
