"""
boundary.py — Reflective Boundary Conditions
=============================================
Every buffer carries a one-cell ring around the N x N interior.
After a stage writes interior values the ring has to be rebuilt from the
interior so that fluid bounces off the walls instead of leaking out.

The rule depends on what the buffer *means* at that moment, not on which
buffer it is (the same array is a velocity at one stage and a pressure
scratch at another), so the caller always passes the kind explicitly:

  SCALAR      : edges copy their interior neighbour (Neumann)
  VELOCITY_X  : left/right walls negate, top/bottom copy
  VELOCITY_Y  : top/bottom walls negate, left/right copy

Corners are the average of their two adjacent edge cells.

The kernel works on the flat buffer, index(i, j) = i + j*(N+2), and is
compiled with numba so the Gauss-Seidel sweep can call it once per sweep.
"""

from enum import IntEnum

import numpy as np
from numba import njit


class BoundaryKind(IntEnum):
    SCALAR = 0
    VELOCITY_X = 1
    VELOCITY_Y = 2


@njit
def _set_boundary_kernel(kind: int, x: np.ndarray, N: int):
    stride = N + 2
    last = N + 1

    for k in range(1, N + 1):
        row = k * stride
        # Vertical walls (i = 0 and i = N+1)
        if kind == 1:
            x[row] = -x[row + 1]
            x[row + last] = -x[row + N]
        else:
            x[row] = x[row + 1]
            x[row + last] = x[row + N]

        # Horizontal walls (j = 0 and j = N+1)
        if kind == 2:
            x[k] = -x[k + stride]
            x[k + last * stride] = -x[k + N * stride]
        else:
            x[k] = x[k + stride]
            x[k + last * stride] = x[k + N * stride]

    x[0] = 0.5 * (x[1] + x[stride])
    x[last * stride] = 0.5 * (x[1 + last * stride] + x[N * stride])
    x[last] = 0.5 * (x[N] + x[last + stride])
    x[last + last * stride] = 0.5 * (x[N + last * stride] + x[last + N * stride])


def set_boundary(kind: BoundaryKind, x: np.ndarray, N: int):
    """
    Overwrite the boundary ring of flat buffer `x` from its interior.

    Args:
        kind : BoundaryKind describing the physical role of `x` right now
        x    : Flat float64 buffer of length (N+2)², modified in-place
        N    : Interior resolution
    """
    _set_boundary_kernel(int(kind), x, N)
