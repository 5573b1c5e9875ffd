"""
Deposition and Population Diagnostics

Provides:
    - Total charge and discrete continuity residual (charge conservation check)
    - Live / tracked population counts
    - Cell-averaged bulk velocity of a species
"""

import numba
import numpy as np

from ..constants import FLAG_EMPTY
from .interpolation import interp_cell


def total_charge(rho):
    """Sum of a charge density field over all cells."""
    return float(np.sum(rho))


def continuity_residual(rho_old, rho_new, J, dx, dt):
    """
    Per-cell residual of the discrete continuity equation.

        R[i] = (rho_new[i] - rho_old[i]) / dt + (J[i] - J[i-1]) / dx

    with J[-1] taken as zero. For a charge-conserving deposition R vanishes
    to round-off wherever the particle stencils were not clipped.

    Args:
        rho_old: Charge density before the step [dims]
        rho_new: Charge density after the step [dims]
        J: Scanned current of the same species [dims]
        dx: Cell width
        dt: Timestep

    Returns:
        residual: Array [dims]
    """
    div_J = np.diff(J, prepend=0.0) / dx
    return (rho_new - rho_old) / dt + div_J


def count_population(data):
    """
    Live and tracked counts for every container in a SimData.

    Returns:
        counts: dict keyed by species name (and 'photons')
    """
    counts = {}
    for particles in data.particles:
        counts[particles.name] = particles.count_live()
        counts[f"{particles.name}_tracked"] = particles.count_tracked()
    if data.photons is not None:
        counts["photons"] = data.photons.count_live()
        counts["photons_tracked"] = data.photons.count_tracked()
    return counts


@numba.njit
def _accumulate_velocity(cell, x1, p1, gamma, flag, n_particles, order, weight_sum, v_sum):
    dims = weight_sum.shape[0]
    support = order + 1
    radius = (order + 1) // 2
    for n in range(n_particles):
        if flag[n] & FLAG_EMPTY:
            continue
        c = cell[n]
        v = p1[n] / gamma[n]
        for i in range(c - radius - 1, c + support - radius + 1):
            if i < 0 or i >= dims:
                continue
            s = interp_cell(x1[n], c, i, order)
            weight_sum[i] += s
            v_sum[i] += v * s


def bulk_velocity(particles, mesh, order=1, density_floor=1.0e-5):
    """
    Shape-weighted mean velocity p1/gamma per cell.

    Args:
        particles: ParticleArray
        mesh: Mesh1D
        order: Interpolation order
        density_floor: Cells with less total weight report zero

    Returns:
        V: Array [dims]
    """
    weight_sum = mesh.zeros()
    v_sum = mesh.zeros()
    if particles.n_particles > 0:
        _accumulate_velocity(
            particles.cell, particles.x1, particles.p1, particles.gamma,
            particles.flag, particles.n_particles, order, weight_sum, v_sum,
        )
    V = np.zeros_like(v_sum)
    mask = weight_sum > density_floor
    V[mask] = v_sum[mask] / weight_sum[mask]
    return V
