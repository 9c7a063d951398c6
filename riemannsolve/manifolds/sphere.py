"""The unit sphere S^n in R^(n+1).

Geodesics are great circles, so the exponential and logarithmic maps and the
parallel transport have closed forms. Distances and logarithms use ``arctan2``
of the tangential and normal components of y at x, which stays accurate for
nearby points where ``arccos`` of the inner product loses half the digits.
"""

import jax.numpy as jnp
import jax.random as jr
from jax import lax
from jaxtyping import Array

from ..core.constants import NumericalConstants
from ..core.jit_decorator import jit_optimized
from ..core.type_system import ManifoldPoint, TangentVector
from .base import Manifold, RetractionMethod


class Sphere(Manifold):
    """Unit vectors of R^(n+1) with the metric induced by the embedding.

    Tangent vectors at x are the ambient vectors orthogonal to x.

    Examples:
        >>> S2 = Sphere(2)
        >>> S2.dist(jnp.array([1.0, 0.0, 0.0]), jnp.array([0.0, 1.0, 0.0]))
        Array(1.5707964, dtype=float32)
    """

    def __init__(self, n: int = 2):
        """Create S^n.

        Args:
            n: Intrinsic dimension, the points live in R^(n+1).

        Raises:
            ValueError: If n is smaller than one.
        """
        if n < 1:
            raise ValueError(f"Sphere dimension must be positive, got {n}")
        self._n = n
        self._ambient_dim = n + 1

    @jit_optimized(static_args=(0,))
    def proj(self, x: Array, v: Array) -> Array:
        """Remove the component of v along x."""
        return v - jnp.sum(x * v, axis=-1, keepdims=True) * x

    @jit_optimized(static_args=(0,))
    def exp(self, x: Array, v: Array) -> Array:
        """Walk along the great circle through x with initial velocity v."""
        angle = jnp.linalg.norm(v)
        safe_angle = jnp.maximum(angle, NumericalConstants.EPSILON)
        moved = jnp.cos(safe_angle) * x + jnp.sin(safe_angle) * (v / safe_angle)
        return jnp.where(angle < NumericalConstants.EPSILON, x + v, moved)

    @jit_optimized(static_args=(0,))
    def log(self, x: Array, y: Array) -> Array:
        """Initial velocity of the shortest great circle arc from x to y."""
        tangential = y - jnp.dot(x, y) * x
        sin_angle = jnp.linalg.norm(tangential)
        angle = jnp.arctan2(sin_angle, jnp.dot(x, y))
        scaled = angle * tangential / jnp.maximum(sin_angle, NumericalConstants.EPSILON)
        return jnp.where(sin_angle < NumericalConstants.EPSILON, tangential, scaled)

    @jit_optimized(static_args=(0,))
    def retr(self, x: Array, v: Array) -> Array:
        """Projection retraction, x + v scaled back to unit length."""
        y = x + v
        return y / jnp.linalg.norm(y)

    @jit_optimized(static_args=(0,))
    def transp(self, x: Array, y: Array, v: Array) -> Array:
        """Parallel transport of v along the great circle arc from x to y.

        Not defined for antipodal points, where the arc is not unique.
        """
        close = self.dist(x, y) < NumericalConstants.EPSILON

        def nearby() -> Array:
            return self.proj(y, v)

        def along_arc() -> Array:
            return v - (jnp.dot(y, v) / (1.0 + jnp.dot(x, y))) * (x + y)

        return lax.cond(close, nearby, along_arc)

    @jit_optimized(static_args=(0,))
    def inner(self, x: Array, u: Array, v: Array) -> Array:
        """Ambient dot product of u and v."""
        return jnp.dot(u, v)

    @jit_optimized(static_args=(0,))
    def dist(self, x: Array, y: Array) -> Array:
        """Great circle distance, the angle between x and y."""
        return jnp.arctan2(jnp.linalg.norm(y - jnp.dot(x, y) * x), jnp.dot(x, y))

    @jit_optimized(static_args=(0,))
    def get_basis(self, x: Array) -> Array:
        """Orthonormal basis of the tangent space at x.

        The Householder reflection H mapping the last unit vector e to x is
        orthogonal and symmetric, so its first n rows are orthonormal and
        orthogonal to x = He.
        """
        e = jnp.zeros_like(x).at[-1].set(1.0)
        w = x - e
        ww = jnp.dot(w, w)
        identity = jnp.eye(self._ambient_dim, dtype=x.dtype)
        householder = identity - 2.0 * jnp.outer(w, w) / jnp.maximum(ww, NumericalConstants.EPSILON)
        reflection = jnp.where(ww < NumericalConstants.EPSILON, identity, householder)
        return reflection[: self._n]

    def random_point(self, key: Array, *shape: int) -> Array:
        """Uniformly distributed point(s), normalized Gaussian samples."""
        samples = jr.normal(key, shape or (self._ambient_dim,))
        return samples / jnp.linalg.norm(samples, axis=-1, keepdims=True)

    def random_tangent(self, key: Array, x: Array, *shape: int) -> Array:
        """Gaussian tangent vector(s) at x."""
        return self.proj(x, jr.normal(key, shape or x.shape))

    def validate_point(self, x: ManifoldPoint, atol: float = 1e-6) -> bool:
        """Whether x has unit length."""
        return bool(jnp.abs(jnp.linalg.norm(x) - 1.0) <= atol)

    def validate_tangent(self, x: ManifoldPoint, v: TangentVector, atol: float = 1e-6) -> bool:
        """Whether x is a point and v is orthogonal to it."""
        return self.validate_point(x, atol) and bool(jnp.abs(jnp.dot(x, v)) <= atol)

    @property
    def default_retraction_method(self) -> RetractionMethod:
        """Geodesic steps by default."""
        return RetractionMethod.EXPONENTIAL

    @property
    def dimension(self) -> int:
        """Intrinsic dimension n."""
        return self._n

    @property
    def ambient_dimension(self) -> int:
        """Dimension n + 1 of the embedding space."""
        return self._ambient_dim

    def __repr__(self) -> str:
        """String representation of the manifold."""
        return f"Sphere({self._n})"
