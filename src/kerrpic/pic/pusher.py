"""
Particle Pusher for Flat and Kerr Spacetime

Implements:
- Geodesic push: gravitational momentum correction plus electromagnetic kick
  in the Kerr equatorial background, gamma taken from the metric
- Flat push: relativistic electromagnetic kick, gamma = sqrt(1 + p^2)
- Position update in cell units with cell reassignment
- Guard-cell boundary handling (periodic wrap or absorption)

The metric model is chosen once at construction (METRIC_FLAT or
METRIC_KERR) and every call dispatches on it.
"""

import logging
import math

import numba

from ..constants import FLAG_EMPTY, FLAG_IGNORE_EM, ABSORB_MARGIN
from ..metric import kerr_terms, lorentz_factor_gr, kerr_dr_alpha, kerr_dr_gammarr
from .interpolation import Interpolator, interpolate_field

logger = logging.getLogger(__name__)

METRIC_FLAT = "flat"
METRIC_KERR = "kerr"


# ==================== POSITION UPDATE ====================


@numba.njit
def advance_position(cell, x1, dx1, idx, v, dt, dx):
    """
    Move one particle by v * dt and reassign its cell.

    After the call x1[idx] lies in [0, 1) and cell[idx] + x1[idx] equals
    the continuous position in cell units.

    Args:
        cell, x1, dx1: Particle arrays (modified in-place)
        idx: Particle index
        v: Coordinate velocity
        dt: Timestep
        dx: Cell width
    """
    dx1[idx] = v * dt / dx
    x1[idx] += dx1[idx]

    delta_cell = math.floor(x1[idx])
    cell[idx] += delta_cell
    x1[idx] -= delta_cell

    # x1 just below zero rounds up to exactly 1.0 after the shift
    if x1[idx] >= 1.0:
        x1[idx] -= 1.0
        cell[idx] += 1


# ==================== PUSH KERNELS ====================


@numba.njit
def push_species_kerr(
    cell, x1, dx1, p1, gamma, flag, n_particles, E, q_over_m, mass,
    a2, rg, sin2, cos2, r_horizon, x_min, dx, guard, length, order, g0, dt
):
    """
    Geodesic + electromagnetic push of one species.

    Per particle, with r the radius before the push:
        gamma = sqrt(1 + gammarr p^2) / alpha
        p    -= dt * (dr_alpha * alpha * gamma + p^2 * dr_gammarr / (2 gamma))
        p    += dt * alpha * (q/m) * E_x / gammarr        (unless ignore-EM)
        gamma = sqrt(1 + gammarr p^2) / alpha
        v     = gammarr * p / gamma

    Particles at or inside the horizon are erased.

    Args:
        cell, x1, dx1, p1, gamma, flag: Particle arrays (modified in-place)
        n_particles: Number of used slots
        E: Radial electric field [dims]
        q_over_m: Charge-to-mass ratio
        mass: Macro-particle mass (extra force only)
        a2, rg, sin2, cos2: Metric parameters
        r_horizon: Outer horizon radius
        x_min, dx, guard, length: Mesh geometry
        order: Interpolation order for E
        g0: Extra force amplitude (0 disables), evaluated at the radius r
        dt: Timestep

    Returns:
        n_swallowed: Particles erased at the horizon
    """
    n_swallowed = 0

    for idx in range(n_particles):
        if flag[idx] & FLAG_EMPTY:
            continue

        c = cell[idx]
        r = x_min + (c - guard + x1[idx]) * dx
        if r <= r_horizon:
            flag[idx] = flag[idx] | FLAG_EMPTY
            n_swallowed += 1
            continue

        alpha, Sigma, rho2, gammarr = kerr_terms(r, a2, rg, sin2, cos2)

        # Geodesic momentum correction
        p = p1[idx]
        g = lorentz_factor_gr(alpha, gammarr, p)
        dra = kerr_dr_alpha(r, a2, rg, sin2, alpha, Sigma, rho2)
        drg = kerr_dr_gammarr(r, rg, rho2, gammarr)
        p -= dt * (dra * alpha * g + p * p * drg / (2.0 * g))

        if not (flag[idx] & FLAG_IGNORE_EM):
            E_x = interpolate_field(E, c, x1[idx], order)
            p += dt * alpha * q_over_m * E_x / gammarr

        if g0 != 0.0:
            p += g0 * (2.0 * r / length - 1.3) * mass * dt

        p1[idx] = p
        g = lorentz_factor_gr(alpha, gammarr, p)
        gamma[idx] = g

        advance_position(cell, x1, dx1, idx, gammarr * p / g, dt, dx)

    return n_swallowed


@numba.njit
def push_species_flat(
    cell, x1, dx1, p1, gamma, flag, n_particles, E, q_over_m, mass,
    x_min, guard, dx, length, order, g0, dt
):
    """
    Flat-space relativistic push of one species.

        p    += (q/m) * E_x * dt        (unless ignore-EM)
        gamma = sqrt(1 + p^2)
        v     = p / gamma

    Args:
        cell, x1, dx1, p1, gamma, flag: Particle arrays (modified in-place)
        n_particles: Number of used slots
        E: Electric field [dims]
        q_over_m: Charge-to-mass ratio
        mass: Macro-particle mass (extra force only)
        x_min, guard, dx, length: Mesh geometry
        order: Interpolation order for E
        g0: Extra force amplitude (0 disables), evaluated at the absolute
            position x = x_min + (cell - guard + x1) dx
        dt: Timestep
    """
    for idx in range(n_particles):
        if flag[idx] & FLAG_EMPTY:
            continue

        c = cell[idx]
        p = p1[idx]
        if not (flag[idx] & FLAG_IGNORE_EM):
            p += q_over_m * interpolate_field(E, c, x1[idx], order) * dt

        if g0 != 0.0:
            x = x_min + (c - guard + x1[idx]) * dx
            p += g0 * (2.0 * x / length - 1.3) * mass * dt

        p1[idx] = p
        g = math.sqrt(1.0 + p * p)
        gamma[idx] = g

        advance_position(cell, x1, dx1, idx, p / g, dt, dx)


# ==================== BOUNDARY CONDITIONS ====================


@numba.njit
def apply_guard_bc_1d(cell, flag, n_particles, guard, dims, reduced_dim, periodic, margin):
    """
    Handle particles that ended up in guard cells.

    Periodic: shift the cell by the interior width.
    Absorbing: erase if cell <= margin or cell >= dims - 1 - margin.

    Args:
        cell, flag: Particle arrays (modified in-place)
        n_particles: Number of used slots
        guard, dims, reduced_dim: Mesh geometry
        periodic: Periodic boundaries
        margin: Absorption margin in cells

    Returns:
        n_absorbed: Number of particles erased
    """
    n_absorbed = 0

    for idx in range(n_particles):
        if flag[idx] & FLAG_EMPTY:
            continue

        c = cell[idx]
        if c >= guard and c < dims - guard:
            continue

        if periodic:
            if c < guard:
                cell[idx] = c + reduced_dim
            else:
                cell[idx] = c - reduced_dim
        elif c <= margin or c >= dims - 1 - margin:
            flag[idx] = flag[idx] | FLAG_EMPTY
            n_absorbed += 1

    return n_absorbed


# ==================== PUSHER ====================


class ParticlePusher:
    """
    Pushes every charged species of a SimData one timestep.

    Attributes:
        metric: MetricTerms for the Kerr model, None for flat space
        model: METRIC_FLAT or METRIC_KERR
        interp: Interpolator used to sample E
        extra_force_g0: Amplitude of the optional linear extra force
    """

    def __init__(self, metric=None, interp_order: int = 1, extra_force_g0: float = 0.0):
        """
        Args:
            metric: MetricTerms instance (Kerr) or None (flat)
            interp_order: Shape function order for field sampling
            extra_force_g0: Extra force g = g0 * (2x/L - 1.3) at the absolute
                position x, 0 disables
        """
        self.metric = metric
        self.model = METRIC_FLAT if metric is None else METRIC_KERR
        self.interp = Interpolator(interp_order)
        self.extra_force_g0 = extra_force_g0

        logger.info("Particle pusher: model=%s, %s", self.model, self.interp)

    def push(self, data, dt):
        """
        Push all species one timestep.

        Args:
            data: SimData instance (particles modified in-place)
            dt: Timestep

        Returns:
            diagnostics: dict with n_pushed and n_swallowed
        """
        mesh = data.mesh
        E = data.E[0]
        n_pushed = 0
        n_swallowed = 0

        for particles in data.particles:
            n = particles.n_particles
            if n == 0:
                continue

            q_over_m = particles.charge / particles.mass

            if self.model == METRIC_KERR:
                a2, rg, sin2, cos2 = self.metric.params()
                swallowed = push_species_kerr(
                    particles.cell, particles.x1, particles.dx1, particles.p1,
                    particles.gamma, particles.flag, n, E, q_over_m, particles.mass,
                    a2, rg, sin2, cos2, self.metric.r_horizon,
                    mesh.x_min, mesh.dx, mesh.guard, mesh.length,
                    self.interp.order, self.extra_force_g0, dt,
                )
                if swallowed > 0:
                    particles.rebuild_free_list()
                    logger.debug("%d %s particles crossed the horizon", swallowed, particles.name)
                n_swallowed += swallowed
            else:
                push_species_flat(
                    particles.cell, particles.x1, particles.dx1, particles.p1,
                    particles.gamma, particles.flag, n, E, q_over_m, particles.mass,
                    mesh.x_min, mesh.guard, mesh.dx, mesh.length,
                    self.interp.order, self.extra_force_g0, dt,
                )

            n_pushed += n

        logger.debug("Pushed %d particle slots", n_pushed)
        return {"n_pushed": n_pushed, "n_swallowed": n_swallowed}

    def handle_boundary(self, data):
        """
        Wrap or absorb particles and photons in guard cells.

        Charged particles are erased within ABSORB_MARGIN cells of the array
        edge; photons in any guard cell are erased.

        Args:
            data: SimData instance

        Returns:
            diagnostics: dict with n_absorbed and n_photons_absorbed
        """
        mesh = data.mesh
        n_absorbed = 0

        for particles in data.particles:
            if particles.n_particles == 0:
                continue
            absorbed = apply_guard_bc_1d(
                particles.cell, particles.flag, particles.n_particles,
                mesh.guard, mesh.dims, mesh.reduced_dim, mesh.periodic, ABSORB_MARGIN,
            )
            if absorbed > 0:
                particles.rebuild_free_list()
            n_absorbed += absorbed

        n_photons_absorbed = 0
        photons = data.photons
        if photons is not None and photons.n_particles > 0:
            n_photons_absorbed = apply_guard_bc_1d(
                photons.cell, photons.flag, photons.n_particles,
                mesh.guard, mesh.dims, mesh.reduced_dim, mesh.periodic, mesh.guard - 1,
            )
            if n_photons_absorbed > 0:
                photons.rebuild_free_list()

        return {"n_absorbed": n_absorbed, "n_photons_absorbed": n_photons_absorbed}
