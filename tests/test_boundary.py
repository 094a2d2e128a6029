import numpy as np
import pytest

from fluid2d import BoundaryKind, set_boundary


def _random_field(N, seed=0):
    rng = np.random.default_rng(seed)
    return rng.uniform(-5.0, 5.0, size=(N + 2) ** 2)


@pytest.mark.parametrize("kind", list(BoundaryKind))
@pytest.mark.parametrize("N", [1, 5, 16])
def test_edges_follow_kind_rule(kind, N):
    x = _random_field(N)
    set_boundary(kind, x, N)
    X = x.reshape(N + 2, N + 2)  # [j, i]

    sx = -1.0 if kind is BoundaryKind.VELOCITY_X else 1.0
    sy = -1.0 if kind is BoundaryKind.VELOCITY_Y else 1.0

    inner = slice(1, N + 1)
    np.testing.assert_array_equal(X[inner, 0], sx * X[inner, 1])
    np.testing.assert_array_equal(X[inner, N + 1], sx * X[inner, N])
    np.testing.assert_array_equal(X[0, inner], sy * X[1, inner])
    np.testing.assert_array_equal(X[N + 1, inner], sy * X[N, inner])


@pytest.mark.parametrize("kind", list(BoundaryKind))
def test_corners_average_adjacent_edges(kind):
    N = 6
    x = _random_field(N, seed=3)
    set_boundary(kind, x, N)
    X = x.reshape(N + 2, N + 2)
    last = N + 1

    assert X[0, 0] == pytest.approx(0.5 * (X[0, 1] + X[1, 0]))
    assert X[0, last] == pytest.approx(0.5 * (X[0, N] + X[1, last]))
    assert X[last, 0] == pytest.approx(0.5 * (X[last, 1] + X[N, 0]))
    assert X[last, last] == pytest.approx(0.5 * (X[last, N] + X[N, last]))


def test_interior_is_untouched():
    N = 8
    x = _random_field(N, seed=1)
    before = x.reshape(N + 2, N + 2)[1:-1, 1:-1].copy()
    set_boundary(BoundaryKind.VELOCITY_Y, x, N)
    np.testing.assert_array_equal(x.reshape(N + 2, N + 2)[1:-1, 1:-1], before)


def test_scalar_corner_of_uniform_field():
    N = 4
    x = np.zeros((N + 2) ** 2)
    x.reshape(N + 2, N + 2)[1:-1, 1:-1] = 3.0
    set_boundary(BoundaryKind.SCALAR, x, N)
    np.testing.assert_array_equal(x, 3.0)


def test_velocity_x_uniform_field_reflects():
    N = 4
    x = np.zeros((N + 2) ** 2)
    X = x.reshape(N + 2, N + 2)
    X[1:-1, 1:-1] = 2.0
    set_boundary(BoundaryKind.VELOCITY_X, x, N)
    np.testing.assert_array_equal(X[1:-1, 0], -2.0)
    np.testing.assert_array_equal(X[0, 1:-1], 2.0)
    # corner mixes a negated wall with a copied wall
    assert X[0, 0] == 0.0
