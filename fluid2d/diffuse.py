"""
diffuse.py — Implicit Diffusion
================================
Diffusion makes fluids spread out over time.
  - High diffusion  → density spreads fast (watercolor bleed)
  - Low diffusion   → density stays tight (thin smoke filament)
  - High viscosity  → thick fluid (honey)
  - Low viscosity   → thin fluid (air, water)

The math: solve the implicit heat equation

  (I - a·∇²) x_new = x_old,   a = dt * rate * N²

Why implicit? Explicit diffusion (adding the Laplacian each step) is only
stable when dt is tiny. The implicit form is stable for any dt, and the
Gauss-Seidel relaxation in linsolve.py solves it well enough in 20 sweeps.
The N² factor accounts for working in grid-index space instead of [0, 1].
"""

import numpy as np

from .boundary import BoundaryKind
from .linsolve import SOLVER_ITERATIONS, lin_solve


def diffuse(kind: BoundaryKind, x: np.ndarray, x0: np.ndarray, rate: float,
            dt: float, N: int, iterations: int = SOLVER_ITERATIONS):
    """
    Diffuse `x0` into `x` at the given rate.

    Args:
        kind       : Boundary rule for the field being diffused
        x          : Destination buffer (also the solver's initial guess)
        x0         : Field values before diffusion
        rate       : Diffusion coefficient (viscosity for velocity)
        dt         : Timestep
        N          : Interior resolution
        iterations : Gauss-Seidel sweeps
    """
    a = dt * rate * N * N
    lin_solve(kind, x, x0, a, 1.0 + 4.0 * a, N, iterations)


def diffuse_velocity(vx: np.ndarray, vy: np.ndarray, vx0: np.ndarray, vy0: np.ndarray,
                     viscosity: float, dt: float, N: int, iterations: int = SOLVER_ITERATIONS):
    """
    Viscous diffusion of both velocity components.

    Each component keeps its own boundary rule so the wall-normal part is
    reflected and the tangential part slides.
    """
    diffuse(BoundaryKind.VELOCITY_X, vx, vx0, viscosity, dt, N, iterations)
    diffuse(BoundaryKind.VELOCITY_Y, vy, vy0, viscosity, dt, N, iterations)


def diffuse_density(d: np.ndarray, d0: np.ndarray, diffusion: float,
                    dt: float, N: int, iterations: int = SOLVER_ITERATIONS):
    """Spread density to neighbouring cells."""
    diffuse(BoundaryKind.SCALAR, d, d0, diffusion, dt, N, iterations)
