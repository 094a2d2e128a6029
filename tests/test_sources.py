import math

import pytest

from fluid2d import Field, FluidGrid


def test_splat_density_fills_square():
    grid = FluidGrid(N=16)
    grid.splat_density(8, 8, 2.0, radius=1)
    assert grid.total_density() == pytest.approx(9 * 2.0)
    assert grid.get(Field.DENSITY, 8, 8) == 2.0
    assert grid.get(Field.DENSITY, 10, 10) == 2.0
    assert grid.get(Field.DENSITY, 11, 9) == 0.0


def test_splat_density_clips_at_walls():
    grid = FluidGrid(N=16)
    grid.splat_density(0, 0, 1.0, radius=2)
    # only the 3 x 3 corner of the 5 x 5 square is inside
    assert grid.total_density() == pytest.approx(9.0)
    assert grid.get(Field.DENSITY, 0, 0) == 0.0


def test_splat_density_at_infinity_lands_in_corner_cell():
    grid = FluidGrid(N=16)
    grid.splat_density(math.inf, -math.inf, 1.0, radius=0)
    assert grid.total_density() == pytest.approx(1.0)
    assert grid.get(Field.DENSITY, 16, 1) == 1.0


def test_impulse_falls_off_with_distance():
    grid = FluidGrid(N=16, dt=0.5)
    grid.apply_impulse(8, 8, 4.0, -2.0, radius=3)

    assert grid.sample_velocity(8, 8) == pytest.approx((2.0, -1.0))
    near = grid.sample_velocity(9, 8)
    assert near == pytest.approx((4.0 * 0.5 * (1 - 1 / 3), -2.0 * 0.5 * (1 - 1 / 3)))
    assert grid.sample_velocity(11, 8) == (0.0, 0.0)


def test_wind_adds_everywhere_inside():
    grid = FluidGrid(N=8, dt=0.2)
    grid.apply_wind(direction=(1.0, 0.5), strength=2.0)
    u, v = grid.velocity_image()
    assert u == pytest.approx(0.4)
    assert v == pytest.approx(0.2)
    # the boundary ring is left to the next stage
    assert grid.get(Field.VELOCITY_X, 0, 3) == 0.0


def test_helpers_refuse_destroyed_grid():
    grid = FluidGrid(N=8)
    grid.destroy()
    with pytest.raises(RuntimeError):
        grid.splat_density(4, 4, 1.0)
    with pytest.raises(RuntimeError):
        grid.apply_wind()
