"""
Code Units, Particle Flags and Default Parameters

All quantities are in code units: lengths in units of the gravitational
radius scale chosen by the caller, momenta in m_e*c, energies in m_e*c^2,
charges in units of the macro-particle charge.
"""

import numpy as np

# ==================== PARTICLE FLAGS ====================

# Bit flags stored per slot in an int32 array
FLAG_TRACKED = 1          # Subsampled for diagnostics, no effect on physics
FLAG_IGNORE_CURRENT = 2   # Contributes to Rho but not to J
FLAG_IGNORE_EM = 4        # Skips the electromagnetic kick
FLAG_EMPTY = 8            # Tombstone: slot is logically absent

# ==================== SPECIES DATABASE ====================

class SpeciesData:
    """
    Macro-particle species properties.

    Attributes:
        charge: Macro-particle charge [code units]
        mass: Macro-particle mass [code units]
    """

    def __init__(self, charge, mass):
        self.charge = charge
        self.mass = mass


SPECIES = {
    'e-': SpeciesData(charge=-1.0, mass=1.0),
    'e+': SpeciesData(charge=1.0, mass=1.0),
}

# ==================== METRIC DEFAULTS ====================

DEFAULT_SPIN = 0.9        # Kerr spin parameter a
DEFAULT_RG = 2.0          # Gravitational radius r_g
DEFAULT_THETA = 0.5236    # Polar angle of the slice [rad]

# Radii closer than this reuse the memoized metric bundle
METRIC_TOLERANCE = 1.0e-10

# ==================== BOUNDARY DEFAULTS ====================

DEFAULT_GUARD = 3
# Absorbing boundary: charged particles are erased within this many cells
# of either array edge. Photons in guard cells are always erased.
ABSORB_MARGIN = 2

# ==================== PAIR CREATION ====================

class PairCreationParams:
    """
    Photon emission and pair production parameters.

    Attributes:
        create_pairs: Enable emission and conversion at all
        trace_photons: Track photons explicitly (False: convert on emission)
        gamma_thr: Lorentz factor threshold for emission
        photon_path: Mean free path scale l_ph of emitted photons
        ic_path: Inverse Compton scattering mean free path
        delta_t: Timestep used to turn path lengths into probabilities
        track_percent: Probability that a secondary is flagged tracked
        spectral_alpha: Spectral index of the soft photon background
        e_s: Saturation energy of the background spectrum
        e_min: Minimum energy of the background spectrum
        e_ph_min: Photons softer than this are never materialized
        gamma_floor: Minimum Lorentz factor left to an emitting lepton
    """

    def __init__(
        self,
        create_pairs=True,
        trace_photons=True,
        gamma_thr=10.0,
        photon_path=1.0,
        ic_path=1.0,
        delta_t=0.01,
        track_percent=0.0,
        spectral_alpha=2.0,
        e_s=0.2,
        e_min=1.0e-3,
        e_ph_min=10.0,
        gamma_floor=2.0,
    ):
        self.create_pairs = create_pairs
        self.trace_photons = trace_photons
        self.gamma_thr = gamma_thr
        self.photon_path = photon_path
        self.ic_path = ic_path
        self.delta_t = delta_t
        self.track_percent = track_percent
        self.spectral_alpha = spectral_alpha
        self.e_s = e_s
        self.e_min = e_min
        self.e_ph_min = e_ph_min
        self.gamma_floor = gamma_floor

    @property
    def p_ph(self):
        """Photon conversion probability per timestep."""
        return self.delta_t / self.photon_path

    @property
    def p_ic(self):
        """Inverse Compton scattering probability per timestep."""
        return self.delta_t / self.ic_path

    def __repr__(self):
        return (
            f"PairCreationParams(create_pairs={self.create_pairs}, "
            f"trace_photons={self.trace_photons}, gamma_thr={self.gamma_thr}, "
            f"alpha={self.spectral_alpha}, e_s={self.e_s}, e_min={self.e_min})"
        )


# ==================== HELPER FUNCTIONS ====================

def lorentz_factor(p1):
    """
    Flat-space Lorentz factor of a 1-D momentum.

    Args:
        p1: Momentum [m_e c], scalar or array

    Returns:
        gamma: sqrt(1 + p1^2)
    """
    return np.sqrt(1.0 + np.square(p1))


def pair_momentum(E_ph):
    """
    Momentum magnitude of each lepton of a pair created by a photon.

    The photon energy is shared equally: p = sqrt(0.25 * E_ph^2 - 1).

    Args:
        E_ph: Photon energy [m_e c^2] (sign ignored)

    Returns:
        p_sec: Secondary momentum magnitude [m_e c]
    """
    return np.sqrt(0.25 * E_ph * E_ph - 1.0)
