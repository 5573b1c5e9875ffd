"""
Timestep Driver

Runs the core in the order the data dependencies require:

    1. Push all charged species
    2. Emit photons / pairs from the pushed leptons
    3. Deposit Rho and J from the displacement of step 1
    4. Move photons
    5. Convert photons with exhausted free path into pairs
    6. Wrap or absorb particles and photons in guard cells
"""

import logging

logger = logging.getLogger(__name__)


def advance_timestep(data, pusher, depositer, dt, sort_every=0, step=0):
    """
    Advance a SimData by one timestep.

    Args:
        data: SimData instance (modified in-place)
        pusher: ParticlePusher
        depositer: CurrentDepositer
        dt: Timestep
        sort_every: Compact and sort all containers every N steps (0: never)
        step: Index of this step (used for periodic sorting)

    Returns:
        diagnostics: dict merging the pusher, photon and boundary counters
    """
    diagnostics = pusher.push(data, dt)

    photons = data.photons
    n_emitted = 0
    n_censored = 0
    n_converted = 0

    if photons is not None:
        n_emitted = photons.emit_photons(data.electrons, data.positrons, data.mesh)

    depositer.deposit(data, dt)

    if photons is not None:
        n_censored = photons.move(data.mesh, dt)
        n_converted = photons.convert_pairs(data.electrons, data.positrons, data.mesh)

    diagnostics.update(pusher.handle_boundary(data))
    diagnostics["n_emitted"] = n_emitted
    diagnostics["n_censored"] = n_censored
    diagnostics["n_converted"] = n_converted

    if sort_every > 0 and step % sort_every == 0:
        for particles in data.particles:
            particles.sort()
        if photons is not None:
            photons.sort()

    logger.debug("Step %d: %s", step, diagnostics)
    return diagnostics
