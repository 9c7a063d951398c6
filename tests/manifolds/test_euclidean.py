"""Tests for the Euclidean space."""

import jax
import jax.numpy as jnp
import pytest

import riemannsolve as rs


@pytest.fixture
def plane():
    """R^2."""
    return rs.Euclidean(2)


@pytest.fixture
def matrices():
    """The space of 2x3 matrices."""
    return rs.Euclidean(2, 3)


def test_initialization(matrices):
    """Shape and dimension of a matrix space."""
    assert matrices.shape == (2, 3)
    assert matrices.dimension == 6
    assert repr(matrices) == "Euclidean(2, 3)"


@pytest.mark.parametrize("shape", [(), (0,), (3, -1)])
def test_invalid_shapes(shape):
    """Empty or non-positive shapes are rejected."""
    with pytest.raises(ValueError):
        rs.Euclidean(*shape)


def test_linear_geometry(plane):
    """exp, log, retr and dist are the linear operations."""
    x = jnp.array([1.0, 2.0])
    y = jnp.array([4.0, 6.0])
    v = jnp.array([0.5, -0.25])
    assert jnp.array_equal(plane.exp(x, v), x + v)
    assert jnp.array_equal(plane.retr(x, v), x + v)
    assert jnp.array_equal(plane.log(x, y), y - x)
    assert plane.dist(x, y) == 5.0
    assert plane.inner(x, v, v) == 0.3125
    assert jnp.array_equal(plane.transp(x, y, v), v)
    assert jnp.array_equal(plane.proj(x, v), v)


def test_retract_by_zero_vector_returns_point(plane):
    """Retracting along the zero vector does not move."""
    x = jnp.array([1.0, 2.0])
    assert jnp.array_equal(plane.retract(x, plane.zero_vector(x)), x)
    assert jnp.array_equal(plane.retract(x, jnp.array([3.0, 4.0]), 0.0), x)


def test_matrix_basis_and_coordinates(matrices):
    """The standard basis is reshaped to the point shape."""
    x = jnp.zeros((2, 3))
    v = jnp.arange(6.0).reshape(2, 3)
    basis = matrices.get_basis(x)
    assert basis.shape == (6, 2, 3)
    assert jnp.array_equal(matrices.get_coordinates(x, v), jnp.arange(6.0))
    assert jnp.array_equal(matrices.get_coordinates(x, v, basis), jnp.arange(6.0))
    assert jnp.array_equal(matrices.get_vector(x, jnp.arange(6.0)), v)
    assert jnp.array_equal(matrices.get_vector(x, jnp.arange(6.0), basis), v)
    assert len(matrices.get_vectors(x, basis)) == 6


def test_random_points_and_validation(matrices):
    """Random points have the point shape and validate."""
    x = matrices.random_point(jax.random.key(0))
    assert x.shape == (2, 3)
    assert matrices.validate_point(x)
    assert matrices.validate_tangent(x, matrices.random_tangent(jax.random.key(1), x))
    assert not matrices.validate_point(jnp.zeros(6))
    assert not matrices.validate_point(jnp.full((2, 3), jnp.nan))
