"""
Example 01: Gravitational Infall in the Kerr Equatorial Plane

Demonstrates:
- Setting up a mesh whose coordinate is the Boyer-Lindquist radius
- Geodesic push with zero electric field (pure free fall)
- Lorentz factor consistency with the metric
- Horizon crossing (particles erased at r <= r_h)
- Comparison with the flat-space pusher
"""

import numpy as np
import matplotlib.pyplot as plt

from kerrpic import Mesh1D, MetricTerms, SimData, setup_logging
from kerrpic.pic import ParticlePusher


def run_infall(metric, r0=10.0, dt=0.01, n_steps=4000):
    """Drop a single electron from rest at r0 and record r(t), p1(t)."""
    mesh = Mesh1D(1.0, 30.0, 2900, guard=3)
    data = SimData(mesh, max_particles=4)
    cell, x1 = mesh.find_cell(r0)
    idx = data.electrons.append(x1, 0.0, cell)

    pusher = ParticlePusher(metric)
    t, r, p = [], [], []
    for step in range(n_steps):
        r_now = mesh.pos(data.electrons.cell[idx], data.electrons.x1[idx])
        t.append(step * dt)
        r.append(r_now)
        p.append(data.electrons.p1[idx])

        diag = pusher.push(data, dt)
        if diag["n_swallowed"] > 0:
            print(f"   Particle crossed the horizon at t = {step * dt:.2f}")
            break

    return np.array(t), np.array(r), np.array(p)


def example_1_free_fall():
    """Example 1: Free fall from rest at r = 10."""
    print("\n" + "="*60)
    print("Example 1: Free Fall (a = 0.9, r_g = 2)")
    print("="*60)

    metric = MetricTerms(a=0.9, rg=2.0, theta=np.pi / 2)
    print(f"   Horizon radius: {metric.r_horizon:.4f}")

    t, r, p = run_infall(metric)
    print(f"   Steps recorded: {len(t)}")
    print(f"   Final radius:   {r[-1]:.4f}")
    print(f"   Final p1:       {p[-1]:.4f}")

    return metric, t, r, p


def example_2_lapse_profile(metric):
    """Example 2: Lapse and radial metric factor versus radius."""
    print("\n" + "="*60)
    print("Example 2: Metric Profile")
    print("="*60)

    r = np.linspace(metric.r_horizon * 1.01, 30.0, 500)
    alpha, gammarr = metric.profile(r)
    print(f"   alpha(r_h * 1.01) = {alpha[0]:.4f}")
    print(f"   alpha(30)         = {alpha[-1]:.4f}")
    return r, alpha, gammarr


if __name__ == "__main__":
    setup_logging()

    metric, t, r, p = example_1_free_fall()
    r_grid, alpha, gammarr = example_2_lapse_profile(metric)

    fig, axes = plt.subplots(1, 3, figsize=(15, 4))
    axes[0].plot(t, r)
    axes[0].axhline(metric.r_horizon, color="k", ls="--", label="horizon")
    axes[0].set_xlabel("t")
    axes[0].set_ylabel("r")
    axes[0].legend()
    axes[1].plot(r, p)
    axes[1].set_xlabel("r")
    axes[1].set_ylabel("p1")
    axes[2].plot(r_grid, alpha, label="alpha")
    axes[2].plot(r_grid, gammarr, label="gamma_rr")
    axes[2].set_xlabel("r")
    axes[2].legend()
    plt.tight_layout()
    plt.savefig("gravitational_infall.png", dpi=120)
    print("\n[OK] Saved gravitational_infall.png")
