"""
advect.py — Semi-Lagrangian Advection
======================================
This is what makes fluid look like it's *actually flowing*.

The algorithm (per interior cell):
  1. Look at the current cell centre position.
  2. Trace BACKWARD along the velocity field by one timestep (dt).
     → "Where did the stuff in this cell come FROM?"
  3. Sample the source field at that back-traced position using
     bilinear interpolation (it'll land between grid cells).
  4. That sampled value becomes the new value for this cell.

Why "Semi-Lagrangian"?
  - Pure Lagrangian: track particles → complex, needs re-meshing
  - Pure Eulerian: push values forward → unstable for large dt
  - Semi-Lagrangian: fixed grid, but trace backward. Every new value is a
    convex blend of four old ones, so no new extrema can appear and the
    scheme is stable for any dt. The price is extra numerical smoothing.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np

from .boundary import BoundaryKind, set_boundary


def _bilinear_interpolate(field: np.ndarray, x: np.ndarray, y: np.ndarray, N: int) -> np.ndarray:
    """
    Bilinear interpolation of a (N+2, N+2) field at fractional positions.

    Positions are clamped to [0.5, N + 0.5] first, which keeps all four
    corners inside the buffer (boundary ring included). A NaN position
    (from a non-finite velocity) yields NaN, so the bad state stays visible
    to FluidGrid.check_finite() instead of turning into a garbage index.

    Args:
        field : 2D array indexed [j, i]
        x, y  : Query positions in index space (same shape)

    Returns:
        Interpolated values, same shape as x/y
    """
    lost = np.isnan(x) | np.isnan(y)
    x = np.clip(np.nan_to_num(x, nan=0.5, posinf=N + 0.5, neginf=0.5), 0.5, N + 0.5)
    y = np.clip(np.nan_to_num(y, nan=0.5, posinf=N + 0.5, neginf=0.5), 0.5, N + 0.5)

    i0 = np.floor(x).astype(np.int64)
    j0 = np.floor(y).astype(np.int64)
    i1 = i0 + 1
    j1 = j0 + 1

    s1 = x - i0
    s0 = 1.0 - s1
    t1 = y - j0
    t0 = 1.0 - t1

    values = (s0 * (t0 * field[j0, i0] + t1 * field[j1, i0]) +
              s1 * (t0 * field[j0, i1] + t1 * field[j1, i1]))
    values[lost] = np.nan
    return values


def advect(kind: BoundaryKind, d: np.ndarray, d0: np.ndarray,
           vx: np.ndarray, vy: np.ndarray, dt: float, N: int):
    """
    Carry `d0` along (vx, vy) for one timestep, writing the result into `d`.

    Args:
        kind   : Boundary rule for the destination field
        d      : Flat destination buffer (interior overwritten, ring rebuilt)
        d0     : Flat source buffer, must not alias `d`
        vx, vy : Flat velocity buffers used for the back-trace
        dt     : Timestep
        N      : Interior resolution
    """
    shape = (N + 2, N + 2)
    D = d.reshape(shape)
    D0 = d0.reshape(shape)
    U = vx.reshape(shape)
    V = vy.reshape(shape)

    # dt scaled into grid-index space
    dt0 = dt * N

    j, i = np.meshgrid(
        np.arange(1, N + 1, dtype=np.float64),
        np.arange(1, N + 1, dtype=np.float64),
        indexing="ij"
    )

    x_back = i - dt0 * U[1:-1, 1:-1]
    y_back = j - dt0 * V[1:-1, 1:-1]

    D[1:-1, 1:-1] = _bilinear_interpolate(D0, x_back, y_back, N)
    set_boundary(kind, d, N)
