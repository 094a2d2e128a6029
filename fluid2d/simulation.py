"""
simulation.py — Per-Frame Physics Pipeline
===========================================
One call to `step(grid)` advances the fluid by dt.

Physics pipeline per frame (sources were injected before the call):
  1. Diffuse velocity (viscosity)
  2. Project velocity (enforce incompressibility)
  3. Advect velocity (self-advection)
  4. Project again (clean up after advection)
  5. Diffuse density (smoke spreading)
  6. Advect density (smoke movement)

This follows the "Stable Fluids" paper by Jos Stam. Each stage reads a
pair's previous buffer and writes its current one; the pair is swapped
just before the stage so the freshest values become the stage's input.

FluidSimulation wraps a grid with the bookkeeping a real-time driver wants:
frame counter, per-stage timings, and periodic non-finite recovery.
"""

import logging
import time
from collections import deque
from contextlib import contextmanager
from typing import Optional

import numpy as np

from .advect import advect
from .boundary import BoundaryKind
from .diffuse import diffuse_density, diffuse_velocity
from .grid import FluidGrid, NonFiniteStateError, StepPhase
from .linsolve import SOLVER_ITERATIONS
from .solver import project

logger = logging.getLogger(__name__)


PERF_LOG_SIZE = 1000


@contextmanager
def _stage(grid: FluidGrid, phase: StepPhase, timings: Optional[dict]):
    t0 = time.perf_counter()
    yield
    grid.phase = phase
    if timings is not None:
        timings[phase.value] = (time.perf_counter() - t0) * 1000


def step(grid: FluidGrid, timings: Optional[dict] = None):
    """
    Advance `grid` by one timestep, in-place.

    Args:
        grid    : The FluidGrid to advance
        timings : Optional dict that receives wall time (ms) per stage,
                  keyed by StepPhase value

    Raises:
        RuntimeError: the grid is destroyed, or already inside a step
    """
    grid._require_alive()
    if grid.phase is not StepPhase.IDLE:
        raise RuntimeError(f"step() is not re-entrant (grid is in phase {grid.phase.value})")

    N, dt, iters = grid.N, grid.dt, grid.iterations
    u, v, dens = grid._u, grid._v, grid._density

    try:
        grid.phase = StepPhase.VELOCITY_SOURCED

        # ── Diffuse velocity: previous = sourced velocity ──────────────────
        with _stage(grid, StepPhase.VELOCITY_DIFFUSED, timings):
            u.swap()
            v.swap()
            diffuse_velocity(u.current, v.current, u.previous, v.previous,
                             grid.viscosity, dt, N, iters)

        # ── Project: previous buffers are free, use them as scratch ────────
        with _stage(grid, StepPhase.VELOCITY_PROJECTED, timings):
            project(u.current, v.current, u.previous, v.previous, N, iters)

        # ── Self-advection along the projected field ───────────────────────
        with _stage(grid, StepPhase.VELOCITY_ADVECTED, timings):
            u.swap()
            v.swap()
            advect(BoundaryKind.VELOCITY_X, u.current, u.previous,
                   u.previous, v.previous, dt, N)
            advect(BoundaryKind.VELOCITY_Y, v.current, v.previous,
                   u.previous, v.previous, dt, N)

        with _stage(grid, StepPhase.VELOCITY_PROJECTED_2, timings):
            project(u.current, v.current, u.previous, v.previous, N, iters)

        # ── Density rides on the final velocity ────────────────────────────
        with _stage(grid, StepPhase.DENSITY_DIFFUSED, timings):
            dens.swap()
            diffuse_density(dens.current, dens.previous, grid.diffusion, dt, N, iters)

        with _stage(grid, StepPhase.DENSITY_ADVECTED, timings):
            dens.swap()
            advect(BoundaryKind.SCALAR, dens.current, dens.previous,
                   u.current, v.current, dt, N)
    finally:
        grid.phase = StepPhase.IDLE


class FluidSimulation:
    """
    A grid plus the bookkeeping a real-time driver needs.

    Usage:
        sim = FluidSimulation(N=64)
        for frame in range(100):
            sim.add_smoke_source(32, 4)     # one-shot, re-inject every frame
            sim.step()
            image = sim.grid.density_image()  # hand to a renderer
    """

    def __init__(self, N: int = 64, dt: float = 0.1, diffusion: float = 0.00005,
                 viscosity: float = 0.00001, iterations: int = SOLVER_ITERATIONS,
                 finite_check_every: int = 10):
        """
        Args:
            N                  : Grid resolution (64 → 64 x 64 cells)
            dt                 : Timestep. 0.1 = 10 FPS physics update
            diffusion          : Smoke spreading rate (keep small for clean smoke)
            viscosity          : Fluid thickness (keep very small for air-like smoke)
            iterations         : Gauss-Seidel sweeps per linear solve
            finite_check_every : Check for NaN/Inf every this many frames (0 = never)
        """
        self.grid = FluidGrid(N=N, diffusion=diffusion, viscosity=viscosity,
                              dt=dt, iterations=iterations)
        self.frame = 0
        self.finite_check_every = finite_check_every
        self.resets = 0
        self.perf_log = deque(maxlen=PERF_LOG_SIZE)

    def add_smoke_source(self, x: float, y: float, density_rate: float = 5.0,
                         velocity: tuple = (0.0, 2.0), radius: int = 2):
        """
        Inject a puff of smoke with an initial push.
        Call this before every step() that should see the source.

        Args:
            x, y         : Source position (cell coordinates)
            density_rate : Density added to each cell of the splat
            velocity     : (fx, fy) impulse at the centre, falling off with distance
            radius       : Splat half-width in cells
        """
        self.grid.splat_density(x, y, density_rate, radius=radius)
        self.grid.apply_impulse(x, y, *velocity, radius=radius + 1)

    def recover(self):
        """Zero every buffer after the state went non-finite."""
        self.grid.reset()
        self.resets += 1

    def step(self) -> dict:
        """
        Advance simulation by one timestep.

        Returns a metrics dict (per-stage timings in ms, divergence, density
        total, and whether this frame triggered a non-finite reset).
        """
        t_total_start = time.perf_counter()
        g = self.grid

        timings = {}
        step(g, timings)
        self.frame += 1

        recovered = False
        if self.finite_check_every and self.frame % self.finite_check_every == 0:
            try:
                g.check_finite()
            except NonFiniteStateError as exc:
                logger.warning("Frame %d: %s; zeroing all buffers", self.frame, exc)
                self.recover()
                recovered = True

        div = np.abs(g.compute_divergence())
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame"            : self.frame,
            "total_ms"         : t_total,
            "fps"              : 1000.0 / t_total if t_total > 0 else 0,
            "diffuse_vel_ms"   : timings[StepPhase.VELOCITY_DIFFUSED.value],
            "project1_ms"      : timings[StepPhase.VELOCITY_PROJECTED.value],
            "advect_vel_ms"    : timings[StepPhase.VELOCITY_ADVECTED.value],
            "project2_ms"      : timings[StepPhase.VELOCITY_PROJECTED_2.value],
            "diffuse_den_ms"   : timings[StepPhase.DENSITY_DIFFUSED.value],
            "advect_den_ms"    : timings[StepPhase.DENSITY_ADVECTED.value],
            "divergence_max"   : float(div.max()),
            "divergence_mean"  : float(div.mean()),
            "density_total"    : g.total_density(),
            "recovered"        : recovered,
        }
        self.perf_log.append(metrics)
        return metrics

    def close(self):
        self.grid.destroy()

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        div = g.compute_divergence()
        u, v = g.velocity_image()
        density = g.density_image()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Resets: {self.resets}")
        print(f"  Density   : max={density.max():.4f}, total={density.sum():.2f}")
        print(f"  Velocity  : max_u={np.abs(u).max():.4f}, max_v={np.abs(v).max():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
