"""
Particle Data Structures

Structure-of-Arrays (SoA) storage with tombstone deletion. Every container
is a fixed-capacity arena: slots 0..n_particles-1 are in use, erased slots
carry FLAG_EMPTY and are kept on a free list for reuse by append().
"""

import heapq
import logging

import numpy as np

from .constants import SPECIES, FLAG_EMPTY, FLAG_TRACKED

logger = logging.getLogger(__name__)


class ParticleBase:
    """
    Fixed-capacity SoA arena shared by charged particles and photons.

    Subclasses list their per-slot arrays in ``_fields`` as (name, dtype)
    pairs; the ``flag`` array is always present.

    Attributes:
        flag: Bit flags [max_particles] (int32)
        n_particles: High-water mark of used slots (live or empty)
        max_particles: Capacity; never grows
    """

    _fields = ()

    def __init__(self, max_particles: int):
        """
        Allocate the arena.

        Args:
            max_particles: Maximum number of slots to allocate
        """
        self.max_particles = max_particles
        self.n_particles = 0

        for name, dtype in self._fields:
            setattr(self, name, np.zeros(max_particles, dtype=dtype))
        self.flag = np.zeros(max_particles, dtype=np.int32)

        # Min-heap of reusable slot indices
        self._free = []

    # ==================== SLOT MANAGEMENT ====================

    def _claim_slot(self):
        """Return the lowest free slot, or extend the used range by one."""
        if self._free:
            return heapq.heappop(self._free)

        if self.n_particles >= self.max_particles:
            raise ValueError(
                f"Cannot add particle to {type(self).__name__}: "
                f"would exceed max capacity {self.max_particles}"
            )
        pos = self.n_particles
        self.n_particles += 1
        return pos

    def _claim_position(self, pos):
        """Claim a specific slot for put()."""
        if pos < 0 or pos >= self.max_particles:
            raise ValueError(
                f"Cannot put particle at slot {pos}: "
                f"would exceed max capacity {self.max_particles}"
            )

        if pos < self.n_particles:
            if pos in self._free:
                self._free.remove(pos)
                heapq.heapify(self._free)
            return pos

        # Slots skipped over become tombstones
        for gap in range(self.n_particles, pos):
            self.flag[gap] = FLAG_EMPTY
            heapq.heappush(self._free, gap)
        self.n_particles = pos + 1
        return pos

    def erase(self, idx):
        """
        Mark a slot as empty.

        Args:
            idx: Slot index
        """
        if self.flag[idx] & FLAG_EMPTY:
            return
        self.flag[idx] |= FLAG_EMPTY
        heapq.heappush(self._free, int(idx))

    def rebuild_free_list(self):
        """
        Re-derive the free list from the FLAG_EMPTY bits.

        Compiled kernels set FLAG_EMPTY directly on the flag array; call this
        afterwards so append() can reuse those slots.
        """
        empty = np.flatnonzero(self.flag[:self.n_particles] & FLAG_EMPTY)
        # flatnonzero is sorted, which is already a valid heap
        self._free = [int(i) for i in empty]

    def is_empty(self, idx):
        return bool(self.flag[idx] & FLAG_EMPTY)

    def check_flag(self, idx, flag):
        return bool(self.flag[idx] & flag)

    def live_mask(self):
        """
        Boolean mask of live slots.

        Returns:
            mask: Array of shape (n_particles,)
        """
        return (self.flag[:self.n_particles] & FLAG_EMPTY) == 0

    def count_live(self):
        return int(np.sum(self.live_mask()))

    def count_tracked(self):
        mask = self.live_mask() & ((self.flag[:self.n_particles] & FLAG_TRACKED) != 0)
        return int(np.sum(mask))

    def sort(self):
        """
        Compact live slots to the front, ordered by cell.

        This is O(n) plus a sort, so should be done infrequently.
        After sorting there are no tombstones and the free list is empty.
        """
        if self.n_particles == 0:
            return

        live = np.flatnonzero(self.live_mask())
        order = live[np.argsort(self.cell[live], kind="stable")]
        n_live = len(order)

        for name, _ in self._fields:
            arr = getattr(self, name)
            arr[:n_live] = arr[order]
        self.flag[:n_live] = self.flag[order]

        self.n_particles = n_live
        self._free = []

    def __len__(self):
        """Return number of used slots (including empty ones)."""
        return self.n_particles

    def __repr__(self):
        return (f"{type(self).__name__}(n_particles={self.n_particles}, "
                f"live={self.count_live()}, max={self.max_particles})")


class ParticleArray(ParticleBase):
    """
    Charged macro-particle species in 1-D.

    Attributes:
        cell: Grid-local cell index (guard cells included) [int64]
        x1: Fractional position inside the cell, in [0, 1)
        dx1: Displacement of the last push, in cell units
        p1: Radial momentum [m_e c]
        gamma: Cached Lorentz factor
        charge: Macro-particle charge
        mass: Macro-particle mass
        name: Species name
    """

    _fields = (
        ("cell", np.int64),
        ("x1", np.float64),
        ("dx1", np.float64),
        ("p1", np.float64),
        ("gamma", np.float64),
    )

    def __init__(self, max_particles: int, charge: float = -1.0, mass: float = 1.0, name: str = "e-"):
        super().__init__(max_particles)
        self.charge = charge
        self.mass = mass
        self.name = name

    @classmethod
    def from_species(cls, name, max_particles):
        """
        Create an array for a species from the SPECIES table.

        Args:
            name: Species key, e.g. 'e-' or 'e+'
            max_particles: Capacity

        Returns:
            particles: ParticleArray instance
        """
        data = SPECIES[name]
        return cls(max_particles, charge=data.charge, mass=data.mass, name=name)

    def put(self, pos, x1, p1, cell, flag=0):
        """Write a particle into slot ``pos``."""
        pos = self._claim_position(pos)
        self._write(pos, x1, p1, cell, flag)
        return pos

    def append(self, x1, p1, cell, flag=0):
        """
        Insert a particle, reusing a free slot when possible.

        Args:
            x1: Fractional position in [0, 1)
            p1: Momentum [m_e c]
            cell: Cell index
            flag: Initial flag bits (FLAG_EMPTY is cleared)

        Returns:
            idx: Slot index

        Raises:
            ValueError: If the array is full
        """
        pos = self._claim_slot()
        self._write(pos, x1, p1, cell, flag)
        return pos

    def _write(self, pos, x1, p1, cell, flag):
        self.cell[pos] = cell
        self.x1[pos] = x1
        self.dx1[pos] = 0.0
        self.p1[pos] = p1
        self.gamma[pos] = np.sqrt(1.0 + p1 * p1)
        self.flag[pos] = flag & ~FLAG_EMPTY

    def add_particles(self, x1, p1, cell, flag=0):
        """
        Append several particles.

        Args:
            x1: Fractional positions, shape (n,) or scalar
            p1: Momenta, shape (n,) or scalar
            cell: Cell indices, shape (n,) or scalar
            flag: Flag bits for all particles

        Returns:
            indices: Slot indices of the added particles
        """
        x1, p1, cell = np.broadcast_arrays(
            np.atleast_1d(x1), np.atleast_1d(p1), np.atleast_1d(cell)
        )
        n_add = x1.shape[0]
        if self.n_particles - len(self._free) + n_add > self.max_particles:
            raise ValueError(
                f"Cannot add {n_add} particles: "
                f"would exceed max capacity {self.max_particles}"
            )
        return np.array(
            [self.append(float(x1[i]), float(p1[i]), int(cell[i]), flag) for i in range(n_add)],
            dtype=np.int64,
        )

    def kinetic_energy(self):
        """
        Total kinetic energy (gamma - 1) * m of live particles.

        Returns:
            KE: Kinetic energy [code units]
        """
        mask = self.live_mask()
        return float(np.sum(self.gamma[:self.n_particles][mask] - 1.0) * self.mass)

    def momentum(self):
        """Total radial momentum of live particles."""
        mask = self.live_mask()
        return float(np.sum(self.p1[:self.n_particles][mask]) * self.mass)

    def summary(self):
        """Log summary statistics."""
        logger.info(
            "%s: %d live / %d used / %d max, KE=%.3e, p=%.3e",
            self.name, self.count_live(), self.n_particles, self.max_particles,
            self.kinetic_energy(), self.momentum(),
        )
