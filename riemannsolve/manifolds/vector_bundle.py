"""Vector bundles over manifolds, the codomains of bundle maps.

A bundle map ``F: M -> E`` assigns to every point p an element of the fiber
``E_p``. Newton's method on vector bundles needs, per fiber, coordinates with
respect to a basis and a transport between fibers over different base points.
"""

import math

import jax.numpy as jnp
from jaxtyping import Array

from ..core.type_system import BundlePoint, Coordinates, ManifoldPoint
from .base import Manifold, VectorTransportMethod
from .errors import UnsupportedMethodError


class VectorBundle:
    """Abstract vector bundle over a base manifold."""

    def __init__(self, manifold: Manifold):
        """Initialize the bundle over ``manifold``."""
        self.manifold = manifold

    @property
    def fiber_dimension(self) -> int:
        """Dimension of every fiber."""
        raise NotImplementedError("Subclasses must define the fiber dimension")

    def zero_vector(self, p: ManifoldPoint) -> BundlePoint:
        """Zero element of the fiber over p."""
        raise NotImplementedError("Subclasses must implement fiber zero vectors")

    def get_basis(self, p: ManifoldPoint) -> Array:
        """Basis of the fiber over p, stacked along the leading axis."""
        raise NotImplementedError("Subclasses must implement fiber bases")

    def get_coordinates(self, p: ManifoldPoint, v: BundlePoint, basis: Array | None = None) -> Coordinates:
        """Coordinates of the fiber element v over p."""
        raise NotImplementedError("Subclasses must implement fiber coordinates")

    def get_vector(self, p: ManifoldPoint, c: Coordinates, basis: Array | None = None) -> BundlePoint:
        """Fiber element over p with coordinates c."""
        raise NotImplementedError("Subclasses must implement fiber vectors")

    def norm(self, p: ManifoldPoint, v: BundlePoint) -> Array:
        """Norm of the fiber element v over p."""
        raise NotImplementedError("Subclasses must implement fiber norms")

    def vector_transport(
        self,
        p: ManifoldPoint,
        q: ManifoldPoint,
        v: BundlePoint,
        method: VectorTransportMethod | None = None,
    ) -> BundlePoint:
        """Move the fiber element v over p to the fiber over q."""
        raise NotImplementedError("Subclasses must implement fiber transports")

    @property
    def default_vector_transport_method(self) -> VectorTransportMethod:
        """Transport used when a solver is not configured otherwise."""
        return VectorTransportMethod.PARALLEL

    def __repr__(self) -> str:
        """String representation of the bundle."""
        return f"{self.__class__.__name__}({self.manifold!r})"


class TangentBundle(VectorBundle):
    """Tangent bundle TM, every fiber is the tangent space of the base manifold."""

    @property
    def fiber_dimension(self) -> int:
        """Dimension of the base manifold."""
        return self.manifold.dimension

    def zero_vector(self, p: ManifoldPoint) -> BundlePoint:
        """Zero tangent vector at p."""
        return self.manifold.zero_vector(p)

    def get_basis(self, p: ManifoldPoint) -> Array:
        """Orthonormal tangent space basis at p."""
        return self.manifold.get_basis(p)

    def get_coordinates(self, p: ManifoldPoint, v: BundlePoint, basis: Array | None = None) -> Coordinates:
        """Tangent space coordinates of v."""
        return self.manifold.get_coordinates(p, v, basis)

    def get_vector(self, p: ManifoldPoint, c: Coordinates, basis: Array | None = None) -> BundlePoint:
        """Tangent vector with coordinates c."""
        return self.manifold.get_vector(p, c, basis)

    def norm(self, p: ManifoldPoint, v: BundlePoint) -> Array:
        """Riemannian norm of v."""
        return self.manifold.norm(p, v)

    def vector_transport(
        self,
        p: ManifoldPoint,
        q: ManifoldPoint,
        v: BundlePoint,
        method: VectorTransportMethod | None = None,
    ) -> BundlePoint:
        """Vector transport of the base manifold."""
        return self.manifold.vector_transport(p, q, v, method)

    @property
    def default_vector_transport_method(self) -> VectorTransportMethod:
        """The base manifold's default transport."""
        return self.manifold.default_vector_transport_method


class TrivialBundle(VectorBundle):
    """Product bundle ``M x R^(fiber_shape)`` with identical fibers everywhere.

    Fiber elements do not depend on the base point, so transport is the identity.
    """

    def __init__(self, manifold: Manifold, *fiber_shape: int):
        """Initialize the bundle with fibers of shape ``fiber_shape``.

        Raises:
            ValueError: If no fiber shape is given or a size is not positive.
        """
        super().__init__(manifold)
        if not fiber_shape or any(n < 1 for n in fiber_shape):
            raise ValueError(f"Fiber shape must be non-empty and positive, got {fiber_shape}")
        self.fiber_shape = tuple(fiber_shape)

    @property
    def fiber_dimension(self) -> int:
        """Number of entries of a fiber element."""
        return math.prod(self.fiber_shape)

    def zero_vector(self, p: ManifoldPoint) -> BundlePoint:
        """Zero array of the fiber shape."""
        return jnp.zeros(self.fiber_shape, dtype=jnp.result_type(p, float))

    def get_basis(self, p: ManifoldPoint) -> Array:
        """Standard basis of the fiber."""
        n = self.fiber_dimension
        return jnp.eye(n, dtype=jnp.result_type(p, float)).reshape((n, *self.fiber_shape))

    def get_coordinates(self, p: ManifoldPoint, v: BundlePoint, basis: Array | None = None) -> Coordinates:
        """Flattened entries of v."""
        if basis is None:
            return jnp.ravel(v)
        return basis.reshape(basis.shape[0], -1) @ jnp.ravel(v)

    def get_vector(self, p: ManifoldPoint, c: Coordinates, basis: Array | None = None) -> BundlePoint:
        """Reshape coordinates to the fiber shape."""
        if basis is None:
            return jnp.reshape(c, self.fiber_shape)
        return jnp.tensordot(c, basis, axes=1)

    def norm(self, p: ManifoldPoint, v: BundlePoint) -> Array:
        """Euclidean norm of the entries."""
        return jnp.linalg.norm(jnp.ravel(v))

    def vector_transport(
        self,
        p: ManifoldPoint,
        q: ManifoldPoint,
        v: BundlePoint,
        method: VectorTransportMethod | None = None,
    ) -> BundlePoint:
        """Fibers are identified, transport is the identity."""
        if method not in (None, VectorTransportMethod.PARALLEL, VectorTransportMethod.PROJECTION):
            raise UnsupportedMethodError(
                f"Unsupported vector transport method {method!r}", method=method, manifold_type="TrivialBundle"
            )
        return jnp.asarray(v)

    def __repr__(self) -> str:
        """String representation of the bundle."""
        return f"TrivialBundle({self.manifold!r}, {self.fiber_shape})"
