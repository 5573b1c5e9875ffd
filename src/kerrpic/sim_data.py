"""
Simulation State Container

Owns the field arrays and holds references to the particle containers that
the pusher, the current depositer and the photon module mutate in-place.
"""

from .particles import ParticleArray


class SimData:
    """
    Fields and particle containers for one 1D domain.

    Vector fields have shape (3, dims); only component 0 (radial) is used
    in 1D. Scalar fields have shape (dims,).

    Attributes:
        mesh: Mesh1D instance
        E: Electric field (read-only to the core)
        B: Magnetic field (read-only to the core)
        J: Total current
        Rho: Charge density per species
        J_s: Scratch current per species
        particles: Charged species, electrons first, positrons second
        photons: Photons pool or None
    """

    def __init__(self, mesh, particles=None, photons=None, max_particles=100_000):
        """
        Args:
            mesh: Mesh1D instance
            particles: List of ParticleArray (default: empty e-, e+ arrays)
            photons: Photons instance or None
            max_particles: Capacity of the default species arrays
        """
        self.mesh = mesh
        if particles is None:
            particles = [
                ParticleArray.from_species('e-', max_particles),
                ParticleArray.from_species('e+', max_particles),
            ]
        self.particles = particles
        self.photons = photons

        self.E = mesh.zeros(3)
        self.B = mesh.zeros(3)
        self.J = mesh.zeros(3)
        self.Rho = [mesh.zeros() for _ in particles]
        self.J_s = [mesh.zeros(3) for _ in particles]

    @property
    def electrons(self):
        return self.particles[0]

    @property
    def positrons(self):
        return self.particles[1]

    def reset_sources(self):
        """Zero J, J_s and Rho before a deposition."""
        self.J[:] = 0.0
        for rho, j_s in zip(self.Rho, self.J_s):
            rho[:] = 0.0
            j_s[:] = 0.0

    def __repr__(self):
        species = ", ".join(f"{p.name}={p.count_live()}" for p in self.particles)
        n_ph = self.photons.count_live() if self.photons is not None else 0
        return f"SimData({self.mesh}, {species}, photons={n_ph})"
