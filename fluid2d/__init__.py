"""
fluid2d/ — Stable Fluids on a 2D Grid
======================================
Exports the interfaces a driver, renderer or input layer needs.

Core lifecycle : create() → add_density()/add_velocity() → step() → sample_*() → destroy()
Driver         : FluidSimulation (timings, recovery, smoke sources)
"""

from .boundary import BoundaryKind, set_boundary
from .grid import (Field, FluidGrid, GridParameterError, GridParams,
                   NonFiniteStateError, StepPhase, create, destroy)
from .simulation import FluidSimulation, step

__all__ = [
    "BoundaryKind", "set_boundary",
    "Field", "FluidGrid", "GridParameterError", "GridParams",
    "NonFiniteStateError", "StepPhase", "create", "destroy",
    "FluidSimulation", "step",
]
