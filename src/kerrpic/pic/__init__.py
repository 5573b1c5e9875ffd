"""
Particle-in-Cell Module

Components:
- interpolation: B-spline shape functions (NGP, CIC, TSC, cubic)
- pusher: flat and Kerr geodesic particle pusher, guard-cell boundaries
- current_deposit: Esirkepov charge-conserving current deposition
- diagnostics: continuity residual, population counts, bulk velocity
"""

from .interpolation import Interpolator, interp_cell, interpolate_field, shape_weight
from .pusher import (
    ParticlePusher,
    METRIC_FLAT,
    METRIC_KERR,
    push_species_kerr,
    push_species_flat,
    apply_guard_bc_1d,
)
from .current_deposit import CurrentDepositer, split_delta_rho_1d, scan_current
from .diagnostics import total_charge, continuity_residual, count_population, bulk_velocity

__all__ = [
    # Interpolation
    "Interpolator",
    "interp_cell",
    "interpolate_field",
    "shape_weight",
    # Pusher
    "ParticlePusher",
    "METRIC_FLAT",
    "METRIC_KERR",
    "push_species_kerr",
    "push_species_flat",
    "apply_guard_bc_1d",
    # Deposition
    "CurrentDepositer",
    "split_delta_rho_1d",
    "scan_current",
    # Diagnostics
    "total_charge",
    "continuity_residual",
    "count_population",
    "bulk_velocity",
]
