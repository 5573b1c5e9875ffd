"""
KerrPIC: Particle-in-Cell Kernel for the Kerr Equatorial Plane

One-dimensional relativistic PIC core combining a geodesic particle pusher,
charge-conserving Esirkepov current deposition and stochastic photon
emission / pair production.
"""

__version__ = "0.1.0"

from .constants import *
from .particles import ParticleBase, ParticleArray
from .mesh import Mesh1D
from .metric import MetricTerms, MetricBundle
from .sim_data import SimData
from .simulation import advance_timestep
from .logging_config import setup_logging

__all__ = [
    "ParticleBase",
    "ParticleArray",
    "Mesh1D",
    "MetricTerms",
    "MetricBundle",
    "SimData",
    "advance_timestep",
    "setup_logging",
]
