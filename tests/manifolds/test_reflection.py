"""Tests for the reflection of points at points."""

import jax.numpy as jnp
import numpy as np

import riemannsolve as rs
from riemannsolve.manifolds import RetractionMethod


def test_euclidean_reflection_at_point():
    """In flat space the reflection of x at p is 2p - x."""
    M = rs.Euclidean(2)
    result = rs.reflect(M, jnp.array([1.0, 0.0]), jnp.array([0.0, 0.0]))
    assert jnp.array_equal(result, jnp.array([2.0, 0.0]))


def test_reflection_at_function_value():
    """A callable center is evaluated at the reflected point."""
    M = rs.Euclidean(2)
    x = jnp.array([4.0, -2.0])
    result = rs.reflect(M, lambda y: 0.5 * y, x)
    assert jnp.array_equal(result, jnp.zeros(2))


def test_reflection_fixes_center():
    """Reflecting the center at itself returns the center."""
    M = rs.Euclidean(3)
    p = jnp.array([1.0, 2.0, 3.0])
    assert jnp.array_equal(rs.reflect(M, p, p), p)


def test_sphere_reflection_preserves_distance():
    """On the sphere the reflection mirrors along the great circle through p and x."""
    sphere = rs.Sphere(2)
    p = jnp.array([0.0, 0.0, 1.0])
    x = sphere.exp(p, jnp.array([0.3, 0.0, 0.0]))
    result = rs.reflect(sphere, p, x)
    np.testing.assert_allclose(result, sphere.exp(p, jnp.array([-0.3, 0.0, 0.0])), atol=1e-12)
    np.testing.assert_allclose(sphere.dist(p, result), sphere.dist(p, x), atol=1e-10)


def test_sphere_reflection_with_projection_retraction():
    """The retraction method is passed through."""
    sphere = rs.Sphere(2)
    p = jnp.array([0.0, 0.0, 1.0])
    x = sphere.exp(p, jnp.array([0.0, 0.5, 0.0]))
    result = rs.reflect(sphere, p, x, retraction_method=RetractionMethod.PROJECTION)
    np.testing.assert_allclose(result, sphere.retr(p, -sphere.log(p, x)), atol=1e-12)
