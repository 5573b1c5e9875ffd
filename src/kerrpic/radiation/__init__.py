"""
Radiation Module

Inverse Compton photon emission, photon propagation and photon-to-pair
conversion.
"""

from .photons import Photons
from .spectrum import f_inv1, f_inv2, sample_e1p, sample_ep, sample_freepath, conversion_rate

__all__ = [
    "Photons",
    "f_inv1",
    "f_inv2",
    "sample_e1p",
    "sample_ep",
    "sample_freepath",
    "conversion_rate",
]
