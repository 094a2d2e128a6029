"""
solver.py — Pressure Projection
================================
The pressure projection step enforces INCOMPRESSIBILITY:
  div(v) = 0 everywhere

After diffusion or advection the velocity field is generally NOT
divergence-free (fluid "piles up" in some cells). We fix this by:
  1. Computing divergence of the current velocity field
  2. Solving the Poisson equation for pressure: ∇²p = div(v)
  3. Subtracting the pressure gradient from velocity: v = v - ∇p

This is the Helmholtz-Hodge decomposition: any vector field is a
divergence-free part plus a curl-free part (a gradient). We keep the
divergence-free part.

Velocities, pressure and divergence are all collocated at cell centres and
use central differences, so the grid spacing h = 1/N shows up as the
0.5/N and 0.5*N factors below.

The Poisson solve runs a fixed number of Gauss-Seidel sweeps, so the
remaining divergence is bounded by the iteration count, not driven to an
exact zero.
"""

import numpy as np

from .boundary import BoundaryKind, set_boundary
from .linsolve import SOLVER_ITERATIONS, lin_solve


def _as_grid(buf: np.ndarray, N: int) -> np.ndarray:
    """2D (row = j, column = i) view of a flat buffer; writes go through."""
    return buf.reshape(N + 2, N + 2)


def _central_divergence(U: np.ndarray, V: np.ndarray, N: int) -> np.ndarray:
    return -0.5 * ((U[1:-1, 2:] - U[1:-1, :-2]) +
                   (V[2:, 1:-1] - V[:-2, 1:-1])) / N


def compute_divergence(vx: np.ndarray, vy: np.ndarray, N: int) -> np.ndarray:
    """
    Discrete divergence of a velocity pair at every interior cell.

    Uses the same scaling as the projection's right-hand side,
    div = -0.5 * (Δvx + Δvy) / N, so values are directly comparable with
    what the pressure solve sees.

    Returns: (N, N) array indexed [j-1, i-1].
    """
    return _central_divergence(_as_grid(vx, N), _as_grid(vy, N), N)


def project(vx: np.ndarray, vy: np.ndarray, p: np.ndarray, div: np.ndarray,
            N: int, iterations: int = SOLVER_ITERATIONS):
    """
    Remove the divergent component of (vx, vy) in-place.

    Args:
        vx, vy     : Flat velocity buffers, corrected in-place
        p, div     : Flat scratch buffers (overwritten), must not alias vx/vy
        N          : Interior resolution
        iterations : Gauss-Seidel sweeps for the Poisson solve
    """
    U = _as_grid(vx, N)
    V = _as_grid(vy, N)
    P = _as_grid(p, N)
    D = _as_grid(div, N)

    # Step 1: divergence, zeroed pressure
    D[1:-1, 1:-1] = _central_divergence(U, V, N)
    P[:] = 0.0
    set_boundary(BoundaryKind.SCALAR, div, N)
    set_boundary(BoundaryKind.SCALAR, p, N)

    # Step 2: Poisson solve, pure (no time-dependent term)
    lin_solve(BoundaryKind.SCALAR, p, div, 1.0, 4.0, N, iterations)

    # Step 3: subtract the pressure gradient
    U[1:-1, 1:-1] -= 0.5 * N * (P[1:-1, 2:] - P[1:-1, :-2])
    V[1:-1, 1:-1] -= 0.5 * N * (P[2:, 1:-1] - P[:-2, 1:-1])
    set_boundary(BoundaryKind.VELOCITY_X, vx, N)
    set_boundary(BoundaryKind.VELOCITY_Y, vy, N)
