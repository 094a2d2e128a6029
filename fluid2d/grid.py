"""
grid.py — Collocated 2D Grid with Double-Buffered Fields
=========================================================
The foundation of the entire simulation.

Layout:
  - N x N interior cells plus a one-cell boundary ring → (N+2)² values
  - Every field is a FLAT float64 array addressed by index(i, j) = i + j*(N+2)
    (i = column / x, j = row / y). Stages that vectorise use a reshaped
    (N+2, N+2) view indexed [j, i]; reshape of a contiguous array is a view,
    so writes land in the flat buffer.

Fields come in pairs (velocity-x, velocity-y, density), each pair holding a
"current" and a "previous" buffer. The stepper rotates roles with swap()
instead of copying, and the projection borrows the velocity pair's previous
buffers as pressure/divergence scratch, so nothing is allocated after
construction.

Nothing outside the package gets a mutable reference to a buffer: callers
inject one-shot sources with add_density()/add_velocity() (or the
splat_density()/apply_impulse()/apply_wind() helpers) and read back through the
sampling accessors or copies (snapshot(), density_image()).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .linsolve import SOLVER_ITERATIONS
from .solver import compute_divergence

logger = logging.getLogger(__name__)


class GridParameterError(ValueError):
    """Invalid construction parameters for a FluidGrid."""


class NonFiniteStateError(RuntimeError):
    """One or more buffers hold NaN or ±Inf."""

    def __init__(self, fields):
        self.fields = tuple(fields)
        super().__init__(f"non-finite values in: {', '.join(self.fields)}")


class Field(Enum):
    VELOCITY_X = "velocity_x"
    VELOCITY_Y = "velocity_y"
    DENSITY = "density"


class StepPhase(Enum):
    """Where a grid is inside the per-frame pipeline."""
    IDLE = "idle"
    VELOCITY_SOURCED = "velocity_sourced"
    VELOCITY_DIFFUSED = "velocity_diffused"
    VELOCITY_PROJECTED = "velocity_projected"
    VELOCITY_ADVECTED = "velocity_advected"
    VELOCITY_PROJECTED_2 = "velocity_projected_2"
    DENSITY_DIFFUSED = "density_diffused"
    DENSITY_ADVECTED = "density_advected"


@dataclass(frozen=True)
class GridParams:
    N: int = 64               # interior resolution (N x N cells)
    diffusion: float = 0.0001 # how fast density spreads
    viscosity: float = 0.0001 # fluid thickness
    dt: float = 0.1           # timestep
    iterations: int = SOLVER_ITERATIONS  # Gauss-Seidel sweeps per solve

    def __post_init__(self):
        if isinstance(self.N, bool) or not isinstance(self.N, (int, np.integer)):
            raise GridParameterError(f"resolution must be an integer, got {self.N!r}")
        if self.N <= 0:
            raise GridParameterError(f"resolution must be positive, got {self.N}")
        for name in ("dt", "diffusion", "viscosity"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value >= 0):
                raise GridParameterError(f"{name} must be finite and non-negative, got {value}")
        if self.iterations < 1:
            raise GridParameterError(f"iterations must be at least 1, got {self.iterations}")


def _clamp_to_cell(coord: float, N: int) -> int:
    """Interior index 1..N of the cell containing `coord`, clamped in float space."""
    if math.isnan(coord):
        return 1
    return int(math.floor(min(max(coord, 0.0), N - 1.0))) + 1


class FieldPair:
    """Two equally sized flat buffers whose current/previous roles rotate."""

    __slots__ = ("_buffers", "_front")

    def __init__(self, size: int):
        self._buffers = (np.zeros(size, dtype=np.float64),
                         np.zeros(size, dtype=np.float64))
        self._front = 0

    @property
    def current(self) -> np.ndarray:
        return self._buffers[self._front]

    @property
    def previous(self) -> np.ndarray:
        return self._buffers[1 - self._front]

    def swap(self):
        self._front ^= 1

    def fill(self, value: float = 0.0):
        for buf in self._buffers:
            buf.fill(value)


class FluidGrid:
    """
    N x N simulation state: three double-buffered fields plus parameters.

    Parameters are fixed at construction; buffers keep their length for the
    grid's whole lifetime and are released by destroy().
    """

    def __init__(self, N: int = 64, diffusion: float = 0.0001, viscosity: float = 0.0001,
                 dt: float = 0.1, iterations: int = SOLVER_ITERATIONS):
        """
        Args:
            N          : Interior resolution (64 means 64 x 64 cells)
            diffusion  : How fast density spreads (0 = no spreading)
            viscosity  : Fluid thickness (0 = inviscid like air, high = honey)
            dt         : Timestep
            iterations : Gauss-Seidel sweeps per linear solve

        Raises:
            GridParameterError: resolution <= 0, negative dt/diffusion/viscosity,
                                or iterations < 1
        """
        self.params = GridParams(N=N, diffusion=diffusion, viscosity=viscosity,
                                 dt=dt, iterations=iterations)
        self.size = (N + 2) * (N + 2)
        self.phase = StepPhase.IDLE

        self._u = FieldPair(self.size)
        self._v = FieldPair(self.size)
        self._density = FieldPair(self.size)
        self._alive = True

        logger.debug("Allocated %dx%d grid (%d values per buffer)", N, N, self.size)

    # ── Parameters (read-only) ─────────────────────────────────────────────
    @property
    def N(self) -> int:
        return self.params.N

    @property
    def dt(self) -> float:
        return self.params.dt

    @property
    def diffusion(self) -> float:
        return self.params.diffusion

    @property
    def viscosity(self) -> float:
        return self.params.viscosity

    @property
    def iterations(self) -> int:
        return self.params.iterations

    @property
    def alive(self) -> bool:
        return self._alive

    # ── Addressing ─────────────────────────────────────────────────────────
    def index(self, i: int, j: int) -> int:
        return i + j * (self.N + 2)

    def _require_alive(self):
        if not self._alive:
            raise RuntimeError("FluidGrid has been destroyed")

    def _pair(self, field: Field) -> FieldPair:
        self._require_alive()
        if field is Field.VELOCITY_X:
            return self._u
        if field is Field.VELOCITY_Y:
            return self._v
        if field is Field.DENSITY:
            return self._density
        raise ValueError(f"Unknown field: {field!r}")

    def _interior(self, field: Field) -> np.ndarray:
        """(N, N) view of the interior of a field's current buffer, [j-1, i-1]."""
        N = self.N
        return self._pair(field).current.reshape(N + 2, N + 2)[1:-1, 1:-1]

    def _cell(self, x: float, y: float) -> tuple[int, int]:
        """
        Interior cell (i, j) containing continuous position (x, y).
        Positions outside [0, N), infinities included, clamp to the nearest
        interior cell; NaN lands in the first cell.
        """
        return _clamp_to_cell(x, self.N), _clamp_to_cell(y, self.N)

    def _check_bounds(self, i: int, j: int):
        last = self.N + 1
        if not (0 <= i <= last and 0 <= j <= last):
            raise IndexError(f"cell ({i}, {j}) outside 0..{last}")

    def get(self, field: Field, i: int, j: int) -> float:
        """Raw value of `field` at buffer cell (i, j), boundary ring included."""
        buf = self._pair(field).current
        self._check_bounds(i, j)
        return float(buf[self.index(i, j)])

    def set(self, field: Field, i: int, j: int, value: float):
        """Overwrite `field` at buffer cell (i, j). No boundary rule is applied."""
        buf = self._pair(field).current
        self._check_bounds(i, j)
        buf[self.index(i, j)] = value

    # ── Sources ────────────────────────────────────────────────────────────
    def add_density(self, x: float, y: float, amount: float):
        """
        Add `amount` of density to the cell containing (x, y).
        Sources are one-shot: they are consumed by the next step().
        """
        self._require_alive()
        i, j = self._cell(x, y)
        self._density.current[self.index(i, j)] += amount

    def add_velocity(self, x: float, y: float, dvx: float, dvy: float):
        """Add a velocity impulse (dvx, dvy) to the cell containing (x, y)."""
        self._require_alive()
        i, j = self._cell(x, y)
        idx = self.index(i, j)
        self._u.current[idx] += dvx
        self._v.current[idx] += dvy

    def splat_density(self, x: float, y: float, amount: float, radius: int = 2):
        """
        Inject density into a small square so the source looks smooth,
        not a single pixel.

        Args:
            x, y   : Centre position
            amount : Density added to every cell in the square
            radius : Half-width of the square in cells (0 = single cell)
        """
        N = self.N
        ci, cj = self._cell(x, y)
        # interior view is offset by one: cell i lives at column i-1
        i0, i1 = max(1, ci - radius) - 1, min(N, ci + radius)
        j0, j1 = max(1, cj - radius) - 1, min(N, cj + radius)
        self._interior(Field.DENSITY)[j0:j1, i0:i1] += amount

    def apply_impulse(self, x: float, y: float, fx: float, fy: float, radius: int = 3):
        """
        Apply a localized force impulse (a fan, an explosion, a mouse drag).
        Strength falls off linearly with distance from the centre cell.

        Args:
            x, y   : Centre of the impulse
            fx, fy : Force components
            radius : Influence radius in cells
        """
        N = self.N
        ci, cj = self._cell(x, y)
        j, i = np.meshgrid(np.arange(1, N + 1), np.arange(1, N + 1), indexing="ij")
        dist = np.sqrt((i - ci) ** 2 + (j - cj) ** 2)
        mask = dist < radius
        falloff = self.dt * (1 - dist[mask] / radius)
        self._interior(Field.VELOCITY_X)[mask] += fx * falloff
        self._interior(Field.VELOCITY_Y)[mask] += fy * falloff

    def apply_wind(self, direction: tuple = (1.0, 0.0), strength: float = 0.5):
        """
        Push the entire domain in one direction.
        Useful for testing: blow smoke in a consistent direction.

        Args:
            direction : (dx, dy) direction of the wind
            strength  : Wind speed magnitude
        """
        dx, dy = direction
        self._interior(Field.VELOCITY_X)[:] += strength * dx * self.dt
        self._interior(Field.VELOCITY_Y)[:] += strength * dy * self.dt

    # ── Read access ────────────────────────────────────────────────────────
    def sample_density(self, x: float, y: float) -> float:
        self._require_alive()
        i, j = self._cell(x, y)
        return float(self._density.current[self.index(i, j)])

    def sample_velocity(self, x: float, y: float) -> tuple[float, float]:
        self._require_alive()
        i, j = self._cell(x, y)
        idx = self.index(i, j)
        return float(self._u.current[idx]), float(self._v.current[idx])

    def density_image(self) -> np.ndarray:
        """
        Copy of the interior density as an (N, N) image, row = y, column = x.
        This is what a renderer should draw.
        """
        return self._interior(Field.DENSITY).copy()

    def velocity_image(self) -> tuple[np.ndarray, np.ndarray]:
        """Copies of the interior velocity components as (N, N) images."""
        return (self._interior(Field.VELOCITY_X).copy(),
                self._interior(Field.VELOCITY_Y).copy())

    def snapshot(self) -> dict:
        """
        Copies of all six flat buffers.

        Keys: 'velocity_x', 'velocity_x_prev', 'velocity_y', 'velocity_y_prev',
              'density', 'density_prev'
        """
        self._require_alive()
        state = {}
        for field in Field:
            pair = self._pair(field)
            state[field.value] = pair.current.copy()
            state[f"{field.value}_prev"] = pair.previous.copy()
        return state

    def compute_divergence(self) -> np.ndarray:
        """
        Divergence of the current velocity field at every interior cell.
        For an incompressible fluid this should be ~0 everywhere.

        Returns: (N, N) array.
        """
        self._require_alive()
        return compute_divergence(self._u.current, self._v.current, self.N)

    def total_density(self) -> float:
        """Sum of density over interior cells."""
        return float(self._interior(Field.DENSITY).sum())

    # ── Health ─────────────────────────────────────────────────────────────
    def is_finite(self) -> bool:
        self._require_alive()
        return all(np.isfinite(buf).all() for buf in self._buffers())

    def check_finite(self):
        """
        Raise NonFiniteStateError if any buffer holds NaN or ±Inf.

        This is not called from step(); the owner decides how often to pay
        for it (see FluidSimulation.finite_check_every).
        """
        self._require_alive()
        bad = [name for name, buf in self.snapshot().items() if not np.isfinite(buf).all()]
        if bad:
            raise NonFiniteStateError(bad)

    def reset(self):
        """Zero out all fields. The only recovery from a non-finite state."""
        self._require_alive()
        for pair in (self._u, self._v, self._density):
            pair.fill(0.0)

    def _buffers(self):
        for pair in (self._u, self._v, self._density):
            yield pair.current
            yield pair.previous

    # ── Lifecycle ──────────────────────────────────────────────────────────
    def destroy(self):
        """Release all buffers. Safe to call more than once."""
        if not self._alive:
            return
        self._u = self._v = self._density = None
        self._alive = False
        logger.debug("Released %dx%d grid", self.N, self.N)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.destroy()

    def __repr__(self):
        if not self._alive:
            return f"FluidGrid(N={self.N}, dt={self.dt}, destroyed)"
        max_div = np.abs(self.compute_divergence()).max()
        u, v = self.velocity_image()
        max_vel = float(np.sqrt(u * u + v * v).max())
        density = self._interior(Field.DENSITY)
        return (
            f"FluidGrid(N={self.N}, dt={self.dt})\n"
            f"  density   : max={density.max():.4f}, sum={density.sum():.2f}\n"
            f"  velocity  : max_magnitude={max_vel:.4f}\n"
            f"  divergence: max={max_div:.6f} (target: ~0)"
        )


def create(N: int, diffusion: float, viscosity: float, dt: float,
           iterations: int = SOLVER_ITERATIONS) -> FluidGrid:
    """Allocate a zero-initialised grid. Raises GridParameterError on bad parameters."""
    return FluidGrid(N=N, diffusion=diffusion, viscosity=viscosity, dt=dt, iterations=iterations)


def destroy(grid: FluidGrid):
    grid.destroy()
