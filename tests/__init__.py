"""
KerrPIC Test Suite

Tests organized by:
- test_particles.py: Particle arena (slots, free list, sorting)
- test_interpolation.py: Mesh geometry and shape functions
- test_metric.py: Kerr metric terms and memoization
- test_pusher.py: Geodesic and flat push, guard-cell boundaries
- test_current_deposit.py: Esirkepov deposition and charge conservation
- test_spectrum.py: Inverse Compton sampling and free paths
- test_photons.py: Emission, propagation and pair conversion
- test_simulation.py: Full timesteps and diagnostics
"""
