"""Implementation of the flat Euclidean space R^(n1 x n2 x ...)."""

import math

import jax.numpy as jnp
import jax.random as jr
from jaxtyping import Array

from ..core.jit_decorator import jit_optimized
from ..core.type_system import ManifoldPoint, TangentVector
from .base import Manifold


class Euclidean(Manifold):
    """Euclidean space of arrays with a fixed shape and the Frobenius metric.

    All geometric operations are the linear ones: the exponential map and the
    projection retraction both reduce to ``x + v`` and every transport is the
    identity.
    """

    def __init__(self, *shape: int):
        """Initialize Euclidean space.

        Args:
            *shape: Shape of the points, e.g. ``Euclidean(3)`` for R^3.

        Raises:
            ValueError: If no shape is given or a size is not positive.
        """
        if not shape:
            raise ValueError("Euclidean space needs at least one dimension")
        if any(n < 1 for n in shape):
            raise ValueError(f"Euclidean dimensions must be positive, got {shape}")
        self._shape = tuple(shape)

    @jit_optimized(static_args=(0,))
    def proj(self, x: Array, v: Array) -> Array:
        """Every vector is tangent, the projection is the identity."""
        return jnp.asarray(v)

    @jit_optimized(static_args=(0,))
    def exp(self, x: Array, v: Array) -> Array:
        """Exponential map ``x + v``."""
        return x + v

    @jit_optimized(static_args=(0,))
    def log(self, x: Array, y: Array) -> Array:
        """Logarithmic map ``y - x``."""
        return y - x

    @jit_optimized(static_args=(0,))
    def retr(self, x: Array, v: Array) -> Array:
        """Retraction, identical to the exponential map."""
        return x + v

    @jit_optimized(static_args=(0,))
    def transp(self, x: Array, y: Array, v: Array) -> Array:
        """Parallel transport is the identity in flat space."""
        return jnp.asarray(v)

    @jit_optimized(static_args=(0,))
    def inner(self, x: Array, u: Array, v: Array) -> Array:
        """Frobenius inner product."""
        return jnp.sum(u * v)

    @jit_optimized(static_args=(0,))
    def dist(self, x: Array, y: Array) -> Array:
        """Frobenius distance."""
        return jnp.linalg.norm(jnp.ravel(y - x))

    def get_basis(self, x: Array) -> Array:
        """Standard basis, reshaped to the point shape."""
        n = self.dimension
        return jnp.eye(n, dtype=jnp.result_type(x, float)).reshape((n, *self._shape))

    def get_coordinates(self, x: Array, v: Array, basis: Array | None = None) -> Array:
        """Coordinates in the standard basis are the flattened entries."""
        if basis is None:
            return jnp.ravel(v)
        return super().get_coordinates(x, v, basis)

    def get_vector(self, x: Array, c: Array, basis: Array | None = None) -> Array:
        """Reshape coordinates in the standard basis back to the point shape."""
        if basis is None:
            return jnp.reshape(c, self._shape)
        return super().get_vector(x, c, basis)

    def random_point(self, key: Array, *shape: int) -> Array:
        """Sample standard normal point(s)."""
        return jr.normal(key, shape or self._shape)

    def random_tangent(self, key: Array, x: Array, *shape: int) -> Array:
        """Sample standard normal tangent vector(s)."""
        return jr.normal(key, shape or x.shape)

    def validate_point(self, x: ManifoldPoint, atol: float = 1e-6) -> bool:
        """Any finite array of the right shape is a point."""
        x = jnp.asarray(x)
        return x.shape == self._shape and bool(jnp.all(jnp.isfinite(x)))

    def validate_tangent(self, x: ManifoldPoint, v: TangentVector, atol: float = 1e-6) -> bool:
        """Any finite array of the right shape is a tangent vector."""
        return self.validate_point(v, atol)

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the points."""
        return self._shape

    @property
    def dimension(self) -> int:
        """Number of entries of a point."""
        return math.prod(self._shape)

    def __repr__(self) -> str:
        """String representation of the manifold."""
        return f"Euclidean{self._shape}"
