"""Gauss-Seidel relaxation and implicit diffusion."""

import numpy as np
import pytest

from fluid2d import BoundaryKind
from fluid2d.diffuse import diffuse, diffuse_density, diffuse_velocity
from fluid2d.linsolve import lin_solve


def _reference_boundary(kind, X, N):
    sx = -1.0 if kind is BoundaryKind.VELOCITY_X else 1.0
    sy = -1.0 if kind is BoundaryKind.VELOCITY_Y else 1.0
    for k in range(1, N + 1):
        X[k, 0] = sx * X[k, 1]
        X[k, N + 1] = sx * X[k, N]
        X[0, k] = sy * X[1, k]
        X[N + 1, k] = sy * X[N, k]
    X[0, 0] = 0.5 * (X[0, 1] + X[1, 0])
    X[N + 1, 0] = 0.5 * (X[N + 1, 1] + X[N, 0])
    X[0, N + 1] = 0.5 * (X[0, N] + X[1, N + 1])
    X[N + 1, N + 1] = 0.5 * (X[N + 1, N] + X[N, N + 1])


def _reference_sweeps(kind, x, x0, a, c, N, iterations):
    X = x.reshape(N + 2, N + 2)
    X0 = x0.reshape(N + 2, N + 2)
    for _ in range(iterations):
        for j in range(1, N + 1):
            for i in range(1, N + 1):
                X[j, i] = (X0[j, i] + a * (X[j, i - 1] + X[j, i + 1] +
                                           X[j - 1, i] + X[j + 1, i])) / c
        _reference_boundary(kind, X, N)


@pytest.mark.parametrize("kind", list(BoundaryKind))
def test_sweep_order_matches_in_place_row_major(kind):
    N = 5
    rng = np.random.default_rng(7)
    x0 = rng.normal(size=(N + 2) ** 2)
    guess = rng.normal(size=(N + 2) ** 2)

    expected = guess.copy()
    _reference_sweeps(kind, expected, x0, 0.7, 1 + 4 * 0.7, N, 3)

    x = guess.copy()
    lin_solve(kind, x, x0, 0.7, 1 + 4 * 0.7, N, iterations=3)
    np.testing.assert_allclose(x, expected, rtol=1e-12, atol=1e-12)


def test_source_buffer_is_not_modified():
    N = 6
    rng = np.random.default_rng(2)
    x0 = rng.normal(size=(N + 2) ** 2)
    original = x0.copy()
    lin_solve(BoundaryKind.SCALAR, np.zeros_like(x0), x0, 1.0, 4.0, N)
    np.testing.assert_array_equal(x0, original)


def test_zero_coupling_copies_interior():
    N = 8
    rng = np.random.default_rng(4)
    x0 = rng.uniform(0, 1, size=(N + 2) ** 2)
    x = np.full_like(x0, 99.0)
    lin_solve(BoundaryKind.SCALAR, x, x0, 0.0, 1.0, N, iterations=1)
    np.testing.assert_array_equal(x.reshape(N + 2, N + 2)[1:-1, 1:-1],
                                  x0.reshape(N + 2, N + 2)[1:-1, 1:-1])


def test_converged_solution_satisfies_system():
    N = 8
    a = 0.25
    rng = np.random.default_rng(5)
    x0 = rng.uniform(-1, 1, size=(N + 2) ** 2)
    x = np.zeros_like(x0)
    lin_solve(BoundaryKind.SCALAR, x, x0, a, 1 + 4 * a, N, iterations=200)

    X = x.reshape(N + 2, N + 2)
    neighbours = X[1:-1, :-2] + X[1:-1, 2:] + X[:-2, 1:-1] + X[2:, 1:-1]
    residual = (1 + 4 * a) * X[1:-1, 1:-1] - a * neighbours - x0.reshape(N + 2, N + 2)[1:-1, 1:-1]
    assert np.abs(residual).max() < 1e-10


def test_density_diffusion_conserves_mass():
    N = 16
    rng = np.random.default_rng(11)
    d0 = np.zeros((N + 2) ** 2)
    d0.reshape(N + 2, N + 2)[1:-1, 1:-1] = rng.uniform(0, 1, size=(N, N))
    d = np.zeros_like(d0)

    diffuse_density(d, d0, diffusion=0.0005, dt=0.1, N=N)

    before = d0.reshape(N + 2, N + 2)[1:-1, 1:-1].sum()
    after = d.reshape(N + 2, N + 2)[1:-1, 1:-1].sum()
    assert after == pytest.approx(before, rel=1e-8)


def test_diffusion_smooths_a_spike():
    N = 16
    d0 = np.zeros((N + 2) ** 2)
    centre = 8 + 8 * (N + 2)
    d0[centre] = 10.0
    d = np.zeros_like(d0)

    diffuse(BoundaryKind.SCALAR, d, d0, rate=0.001, dt=0.1, N=N)

    assert 0.0 < d[centre] < 10.0
    assert d[centre + 1] > 0.0
    assert d[centre + 1] == pytest.approx(d[centre - (N + 2)])


def test_zero_viscosity_leaves_velocity_unchanged():
    N = 8
    rng = np.random.default_rng(9)
    vx0 = rng.uniform(-1, 1, size=(N + 2) ** 2)
    vy0 = rng.uniform(-1, 1, size=(N + 2) ** 2)
    vx = np.zeros_like(vx0)
    vy = np.zeros_like(vy0)

    diffuse_velocity(vx, vy, vx0, vy0, viscosity=0.0, dt=0.1, N=N)

    inner = (slice(1, -1), slice(1, -1))
    np.testing.assert_array_equal(vx.reshape(N + 2, N + 2)[inner], vx0.reshape(N + 2, N + 2)[inner])
    np.testing.assert_array_equal(vy.reshape(N + 2, N + 2)[inner], vy0.reshape(N + 2, N + 2)[inner])
    # wall-normal components are reflected
    assert vx[N + 2] == -vx[N + 3]
    assert vy[1] == -vy[1 + N + 2]
