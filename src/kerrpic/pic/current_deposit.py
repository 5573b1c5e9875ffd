"""
Charge-Conserving Current Deposition (Esirkepov Scheme)

For each particle the shape function is evaluated at its old and new
positions. The weight difference gives the charge that left or entered
every cell during the step:

    J_s[i] += -q * (s1[i] - s0[i]) * dx / dt
    Rho[i] += q * s1[i]

A left-to-right prefix sum then turns the per-cell differences into the
current through each face, so that

    (Rho_new[i] - Rho_old[i]) / dt + (J[i] - J[i-1]) / dx = 0

holds exactly in every cell, however many cells a particle crossed.

Reference:
    Esirkepov (2001), Comput. Phys. Commun. 135, 144
"""

import logging
import math

import numba

from ..constants import FLAG_EMPTY, FLAG_IGNORE_CURRENT
from .interpolation import Interpolator, interp_cell

logger = logging.getLogger(__name__)


# ==================== DEPOSITION KERNELS ====================


@numba.njit
def split_delta_rho_1d(
    cell, x1, dx1, flag, n_particles, charge, order, dx, dt, J_s, rho, periodic, reduced_dim
):
    """
    Deposit one species' charge density and per-cell flux differences.

    The old position is rebuilt from the stored displacement:
        x_p = x1 - dx1, c_p = cell + floor(x_p), x_p -= c_p - cell

    Args:
        cell, x1, dx1, flag: Particle arrays
        n_particles: Number of used slots
        charge: Macro-particle charge
        order: Interpolation order
        dx: Cell width
        dt: Timestep
        J_s: Scratch current [dims] (accumulated in-place)
        rho: Charge density [dims] (accumulated in-place)
        periodic: Wrap stencil cells beyond the array by reduced_dim;
                  otherwise they are dropped
        reduced_dim: Interior cells
    """
    dims = rho.shape[0]
    support = order + 1
    radius = (order + 1) // 2

    for n in range(n_particles):
        if flag[n] & FLAG_EMPTY:
            continue

        c = cell[n]
        x = x1[n]
        x_p = x - dx1[n]
        shift = math.floor(x_p)
        c_p = c + shift
        x_p -= shift

        deposit_current = not (flag[n] & FLAG_IGNORE_CURRENT)

        # Union of the old and new stencils
        lo = min(c, c_p) - radius - 1
        hi = max(c, c_p) + support - radius
        for i in range(lo, hi + 1):
            j = i
            if j < 0 or j >= dims:
                if not periodic:
                    continue
                while j < 0:
                    j += reduced_dim
                while j >= dims:
                    j -= reduced_dim
            s1 = interp_cell(x, c, i, order)
            if deposit_current:
                s0 = interp_cell(x_p, c_p, i, order)
                J_s[j] += -charge * (s1 - s0) * dx / dt
            rho[j] += charge * s1


@numba.njit
def scan_current(J):
    """Prefix sum J[i] += J[i-1], left to right, in-place."""
    for i in range(1, J.shape[0]):
        J[i] += J[i - 1]


def fold_guard_cells(field, guard, dims, reduced_dim):
    """
    Add periodic guard-cell contributions to their interior images.

    Args:
        field: 1D array [dims] (modified in-place, guard cells zeroed)
        guard: Guard depth
        dims: Total cells
        reduced_dim: Interior cells
    """
    for i in range(guard):
        field[i + reduced_dim] += field[i]
        field[i] = 0.0
        field[2 * guard - 1 - i] += field[dims - 1 - i]
        field[dims - 1 - i] = 0.0


# ==================== DEPOSITER ====================


class CurrentDepositer:
    """
    Esirkepov current depositer for 1D.

    Attributes:
        interp: Interpolator defining the shape function
        comm_rho: Optional callback, called with each species' Rho after
                  local deposition (multi-process reduction)
        comm_J: Optional callback, called with J after the scan
    """

    def __init__(self, interp_order: int = 1, comm_rho=None, comm_J=None):
        """
        Args:
            interp_order: Shape function order (must match the pusher's)
            comm_rho: Rho reduction callback or None
            comm_J: J reduction callback or None
        """
        self.interp = Interpolator(interp_order)
        self.comm_rho = comm_rho
        self.comm_J = comm_J

    def set_comm_rho(self, callback):
        self.comm_rho = callback

    def set_comm_J(self, callback):
        self.comm_J = callback

    def deposit(self, data, dt):
        """
        Deposit Rho and J from the displacement of the last push.

        Sequence:
            1. Per species: deposit Rho and flux differences into J_s
            2. Periodic: fold guard cells of Rho and J_s
            3. comm_rho on each Rho
            4. Scan each J_s
            5. J = sum of J_s; comm_J on J
            6. Periodic: fold guard cells of J

        Args:
            data: SimData instance (J, J_s, Rho overwritten)
            dt: Timestep
        """
        logger.debug("Depositing current")
        mesh = data.mesh
        data.reset_sources()

        for particles, rho, j_s in zip(data.particles, data.Rho, data.J_s):
            if particles.n_particles == 0:
                continue
            split_delta_rho_1d(
                particles.cell, particles.x1, particles.dx1, particles.flag,
                particles.n_particles, particles.charge, self.interp.order,
                mesh.dx, dt, j_s[0], rho, mesh.periodic, mesh.reduced_dim,
            )

        if mesh.periodic:
            for rho, j_s in zip(data.Rho, data.J_s):
                fold_guard_cells(rho, mesh.guard, mesh.dims, mesh.reduced_dim)
                fold_guard_cells(j_s[0], mesh.guard, mesh.dims, mesh.reduced_dim)

        if self.comm_rho is not None:
            for rho in data.Rho:
                self.comm_rho(rho)

        for j_s in data.J_s:
            scan_current(j_s[0])
            data.J[0] += j_s[0]

        if self.comm_J is not None:
            self.comm_J(data.J)

        if mesh.periodic:
            fold_guard_cells(data.J[0], mesh.guard, mesh.dims, mesh.reduced_dim)
            data.J[0, mesh.guard - 1] = data.J[0, mesh.reduced_dim + mesh.guard - 1]
