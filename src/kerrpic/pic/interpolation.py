"""
Shape Functions and Grid Interpolation

B-spline shape functions of order 0-3 centred on cell centres:

    order 0: Nearest Grid Point (NGP)
    order 1: Cloud-In-Cell (CIC)
    order 2: Triangular-Shaped Cloud (TSC)
    order 3: Cubic spline

A particle at (c, x) with x in [0, 1) sits at c + x in cell units; its
weight on cell i is W(|i + 0.5 - (c + x)|). For every order the weights
sum to 1 over the stencil.

Reference:
    Birdsall & Langdon (2004), "Plasma Physics via Computer Simulation",
    Section 8.8
"""

import numba
import numpy as np

MAX_ORDER = 3


# ==================== SHAPE FUNCTIONS ====================


@numba.njit
def shape_weight(distance, order):
    """
    Shape function value at a distance from the cell centre.

    Args:
        distance: |x_cell - x_particle| in cell units (>= 0)
        order: Interpolation order 0-3

    Returns:
        weight: Shape function value
    """
    if order == 0:
        if distance < 0.5:
            return 1.0
        return 0.0
    elif order == 1:
        if distance < 1.0:
            return 1.0 - distance
        return 0.0
    elif order == 2:
        if distance < 0.5:
            return 0.75 - distance * distance
        elif distance < 1.5:
            d = 1.5 - distance
            return 0.5 * d * d
        return 0.0
    else:
        if distance < 1.0:
            return 2.0 / 3.0 - distance * distance + 0.5 * distance * distance * distance
        elif distance < 2.0:
            d = 2.0 - distance
            return d * d * d / 6.0
        return 0.0


@numba.njit
def interp_cell(x, c, i, order):
    """
    Weight of a particle at (c, x) on cell i.

    Args:
        x: Fractional position in cell c
        c: Particle cell index
        i: Target cell index
        order: Interpolation order

    Returns:
        weight: Shape function value at cell i
    """
    return shape_weight(abs(i + 0.5 - (c + x)), order)


@numba.njit
def stencil_support(order):
    return order + 1


@numba.njit
def stencil_radius(order):
    return (order + 1) // 2


@numba.njit
def interpolate_field(field, c, x, order):
    """
    Sample a cell-centred field at a particle position.

    Args:
        field: Field values [dims]
        c: Particle cell index
        x: Fractional position in the cell
        order: Interpolation order

    Returns:
        value: Interpolated field value (stencil cells outside the array
               contribute nothing)
    """
    dims = field.shape[0]
    radius = stencil_radius(order)
    support = stencil_support(order)

    value = 0.0
    for i in range(c - radius - 1, c + support - radius + 1):
        if i < 0 or i >= dims:
            continue
        value += field[i] * interp_cell(x, c, i, order)
    return value


# ==================== PYTHON INTERFACE ====================


class Interpolator:
    """
    Interpolation order and the stencil it implies.

    Attributes:
        order: Shape function order (0-3)
        support: Number of cells a shape function can touch, order + 1
        radius: Cells the stencil reaches below the particle cell
    """

    def __init__(self, order: int = 1):
        if order < 0 or order > MAX_ORDER:
            raise ValueError(f"Interpolation order must be 0-{MAX_ORDER}, got {order}")
        self.order = order
        self.support = order + 1
        self.radius = (order + 1) // 2

    def interp_cell(self, x, c, i):
        return interp_cell(float(x), int(c), int(i), self.order)

    def stencil(self, x, c):
        """
        Cell indices and weights of a particle's shape function.

        Args:
            x: Fractional position in cell c
            c: Particle cell index

        Returns:
            indices: Cell indices of the window
            weights: Weights (sum = 1.0)
        """
        indices = np.arange(c - self.radius - 1, c + self.support - self.radius + 1)
        weights = np.array([self.interp_cell(x, c, i) for i in indices])
        return indices, weights

    def __repr__(self):
        return f"Interpolator(order={self.order}, support={self.support}, radius={self.radius})"
