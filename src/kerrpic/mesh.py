"""
1D Mesh with Guard Cells

Uniform radial grid used by the pusher, the current depositer and the
photon mover. Positions are stored per particle as (cell, x1) where cell is
a grid-local index that includes the guard cells and x1 is the fractional
offset inside the cell.

Grid layout (n_cells = 4, guard = 2):

    Cell:   0   1 | 2   3   4   5 | 6   7
            guard |   interior    | guard
                  x_min           x_max

In 1D the flat cell index equals the leading (radial) coordinate.
"""

import numpy as np

from .constants import DEFAULT_GUARD


class Mesh1D:
    """
    Uniform 1D mesh with guard cells.

    Attributes:
        x_min: Start of the interior domain
        x_max: End of the interior domain
        n_cells: Number of interior cells (reduced dimension)
        guard: Number of guard cells on each side
        dims: Total number of cells, n_cells + 2 * guard
        dx: Cell width
        length: Interior domain length
        periodic: Periodic (True) or absorbing (False) boundaries
        cell_centers: Cell center positions [dims]
    """

    def __init__(self, x_min: float, x_max: float, n_cells: int,
                 guard: int = DEFAULT_GUARD, periodic: bool = False):
        """
        Initialize uniform 1D mesh.

        Args:
            x_min: Domain minimum
            x_max: Domain maximum
            n_cells: Number of interior cells
            guard: Guard cells on each side (default: 3)
            periodic: Periodic boundaries (default: False)
        """
        if n_cells <= 0:
            raise ValueError(f"n_cells must be positive, got {n_cells}")
        if guard < 1:
            raise ValueError(f"guard must be at least 1, got {guard}")
        if x_max <= x_min:
            raise ValueError(f"x_max ({x_max}) must exceed x_min ({x_min})")

        self.x_min = x_min
        self.x_max = x_max
        self.n_cells = n_cells
        self.guard = guard
        self.dims = n_cells + 2 * guard
        self.length = x_max - x_min
        self.dx = self.length / n_cells
        self.periodic = periodic

        self.cell_centers = x_min + (np.arange(self.dims) - guard + 0.5) * self.dx

    @property
    def reduced_dim(self):
        """Number of interior cells (periodic wrap size)."""
        return self.n_cells

    def pos(self, cell, x1):
        """
        Absolute coordinate of a (cell, x1) pair.

        Args:
            cell: Cell index (guard cells included)
            x1: Fractional position in the cell

        Returns:
            x: Coordinate
        """
        return self.x_min + (cell - self.guard + x1) * self.dx

    def find_cell(self, x):
        """
        Split an absolute coordinate into (cell, x1).

        Args:
            x: Coordinate

        Returns:
            cell: Cell index (guard cells included)
            x1: Fractional position in [0, 1)
        """
        s = (x - self.x_min) / self.dx
        c = int(np.floor(s))
        return c + self.guard, s - c

    def is_guard(self, cell):
        """True if the cell index lies in either guard region."""
        return cell < self.guard or cell >= self.dims - self.guard

    def zeros(self, components=None):
        """
        Allocate a field on this mesh.

        Args:
            components: None for a scalar field, else number of components

        Returns:
            field: Zeroed array of shape (dims,) or (components, dims)
        """
        if components is None:
            return np.zeros(self.dims, dtype=np.float64)
        return np.zeros((components, self.dims), dtype=np.float64)

    def __repr__(self):
        return (
            f"Mesh1D(n_cells={self.n_cells}, guard={self.guard}, "
            f"dx={self.dx:.4g}, domain=[{self.x_min:.4g}, {self.x_max:.4g}], "
            f"periodic={self.periodic})"
        )
