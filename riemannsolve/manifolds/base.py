"""Abstract base classes for Riemannian manifold implementations.

This module defines the capability interface the solvers consume: moving
along the manifold (retractions), transporting and measuring tangent
vectors, and reducing tangent vectors to coordinates in an orthonormal basis.
Solvers never assume more about a point than what is listed here.
"""

from enum import Enum

import jax.numpy as jnp
from jaxtyping import Array, Float, PRNGKeyArray

from ..core.type_system import Coordinates, ManifoldPoint, TangentVector
from .errors import UnsupportedMethodError, validate_dimensions_match



class RetractionMethod(Enum):
    """Retractions a manifold may provide."""

    EXPONENTIAL = "exponential"
    PROJECTION = "projection"


class VectorTransportMethod(Enum):
    """Vector transports a manifold may provide."""

    PARALLEL = "parallel"
    PROJECTION = "projection"


class Manifold:
    """Abstract base class for Riemannian manifolds.

    This class defines the essential operations required for optimization on
    Riemannian manifolds, including tangent space projections, exponential/logarithmic
    maps and orthonormal tangent space bases.

    Tangent space bases are returned as a single array whose leading axis
    enumerates the basis vectors. The default coordinate conversions assume the
    basis is orthonormal with respect to the metric induced by the embedding.
    """

    def __init__(self) -> None:
        """Initialize manifold base class."""
        pass

    def proj(self, x: ManifoldPoint, v: Float[Array, "..."]) -> TangentVector:
        """Project a vector from ambient space to the tangent space at point x.

        Args:
            x: Point on the manifold.
            v: Vector in the ambient space to be projected.

        Returns:
            The projection of v onto the tangent space at x.
        """
        raise NotImplementedError("Subclasses must implement projection operation")

    def exp(self, x: ManifoldPoint, v: TangentVector) -> ManifoldPoint:
        """Apply the exponential map to move from point x along tangent vector v.

        Args:
            x: Point on the manifold.
            v: Tangent vector at x.

        Returns:
            The point reached by following the geodesic from x in direction v.
        """
        raise NotImplementedError("Subclasses must implement exponential map")

    def log(self, x: ManifoldPoint, y: ManifoldPoint) -> TangentVector:
        """Apply the logarithmic map to find the tangent vector that maps x to y.

        Args:
            x: Starting point on the manifold.
            y: Target point on the manifold.

        Returns:
            The tangent vector v at x such that exp(x, v) = y.
        """
        raise NotImplementedError("Subclasses must implement logarithmic map")

    def retr(self, x: ManifoldPoint, v: TangentVector) -> ManifoldPoint:
        """Apply the projection retraction to move from point x along tangent vector v.

        Args:
            x: Point on the manifold.
            v: Tangent vector at x.

        Returns:
            The point reached by the retraction from x in direction v.
        """
        raise NotImplementedError("Subclasses must implement retraction")

    def transp(self, x: ManifoldPoint, y: ManifoldPoint, v: TangentVector) -> TangentVector:
        """Parallel transport vector v from tangent space at x to tangent space at y.

        Args:
            x: Starting point on the manifold.
            y: Target point on the manifold.
            v: Tangent vector at x to be transported.

        Returns:
            The transported vector in the tangent space at y.
        """
        raise NotImplementedError("Subclasses must implement parallel transport")

    def inner(self, x: ManifoldPoint, u: TangentVector, v: TangentVector) -> Array:
        """Compute the Riemannian inner product between tangent vectors u and v at point x.

        Args:
            x: Point on the manifold.
            u: First tangent vector at x.
            v: Second tangent vector at x.

        Returns:
            The inner product <u, v>_x in the Riemannian metric.
        """
        raise NotImplementedError("Subclasses must implement Riemannian inner product")

    def get_basis(self, x: ManifoldPoint) -> Array:
        """Compute an orthonormal basis of the tangent space at x.

        Args:
            x: Point on the manifold.

        Returns:
            Array of shape ``(dimension, *x.shape)`` whose rows are the basis vectors.
        """
        raise NotImplementedError("Subclasses must implement tangent space bases")

    def dist(self, x: ManifoldPoint, y: ManifoldPoint) -> Array:
        """Compute the Riemannian distance between points x and y on the manifold."""
        v = self.log(x, y)
        return jnp.sqrt(self.inner(x, v, v))

    def norm(self, x: ManifoldPoint, v: TangentVector) -> Array:
        """Compute the norm of tangent vector v at point x."""
        return jnp.sqrt(self.inner(x, v, v))

    def zero_vector(self, x: ManifoldPoint) -> TangentVector:
        """Return the zero tangent vector at x."""
        return jnp.zeros_like(x)

    def copy(self, x: ManifoldPoint) -> ManifoldPoint:
        """Return an independent copy of the point (or tangent vector) x."""
        return jnp.array(x, copy=True)

    def copyto(self, dst: ManifoldPoint, src: ManifoldPoint) -> ManifoldPoint:
        """Copy ``src`` into the storage of ``dst``.

        JAX arrays are immutable, so the copy is returned and the caller rebinds
        ``dst`` to it. The shapes of both arguments must agree.
        """
        validate_dimensions_match([jnp.asarray(dst), jnp.asarray(src)], "copyto")
        return self.copy(src)

    def retract(
        self,
        x: ManifoldPoint,
        v: TangentVector,
        scale: float | Array = 1.0,
        method: RetractionMethod | None = None,
    ) -> ManifoldPoint:
        """Retract from x along the scaled tangent vector ``scale * v``.

        Args:
            x: Point on the manifold.
            v: Tangent vector at x.
            scale: Factor applied to v before retracting.
            method: Retraction to use, defaults to ``default_retraction_method``.

        Returns:
            The retracted point.

        Raises:
            UnsupportedMethodError: If the method is unknown to this manifold.
        """
        method = self.default_retraction_method if method is None else method
        if method is RetractionMethod.EXPONENTIAL:
            return self.exp(x, scale * v)
        if method is RetractionMethod.PROJECTION:
            return self.retr(x, scale * v)
        raise UnsupportedMethodError(
            f"Unsupported retraction method {method!r}", method=method, manifold_type=type(self).__name__
        )

    def vector_transport(
        self,
        x: ManifoldPoint,
        y: ManifoldPoint,
        v: TangentVector,
        method: VectorTransportMethod | None = None,
    ) -> TangentVector:
        """Transport v from the tangent space at x to the tangent space at y.

        Raises:
            UnsupportedMethodError: If the method is unknown to this manifold.
        """
        method = self.default_vector_transport_method if method is None else method
        if method is VectorTransportMethod.PARALLEL:
            return self.transp(x, y, v)
        if method is VectorTransportMethod.PROJECTION:
            return self.proj(y, v)
        raise UnsupportedMethodError(
            f"Unsupported vector transport method {method!r}", method=method, manifold_type=type(self).__name__
        )

    def get_vectors(self, x: ManifoldPoint, basis: Array) -> list[TangentVector]:
        """Split a basis returned by ``get_basis`` into its tangent vectors."""
        return [basis[i] for i in range(basis.shape[0])]

    def get_coordinates(self, x: ManifoldPoint, v: TangentVector, basis: Array | None = None) -> Coordinates:
        """Compute the coordinates of v with respect to an orthonormal basis at x."""
        basis = self.get_basis(x) if basis is None else basis
        return basis.reshape(basis.shape[0], -1) @ jnp.ravel(v)

    def get_vector(self, x: ManifoldPoint, c: Coordinates, basis: Array | None = None) -> TangentVector:
        """Assemble the tangent vector at x with coordinates c."""
        basis = self.get_basis(x) if basis is None else basis
        return jnp.tensordot(c, basis, axes=1)

    @property
    def default_retraction_method(self) -> RetractionMethod:
        """Retraction used when a solver is not configured otherwise."""
        return RetractionMethod.EXPONENTIAL

    @property
    def default_vector_transport_method(self) -> VectorTransportMethod:
        """Vector transport used when a solver is not configured otherwise."""
        return VectorTransportMethod.PARALLEL

    def random_point(self, key: PRNGKeyArray, *shape: int) -> ManifoldPoint:
        """Generate random point(s) on the manifold."""
        raise NotImplementedError("Subclasses must implement random point generation")

    def random_tangent(self, key: PRNGKeyArray, x: ManifoldPoint, *shape: int) -> TangentVector:
        """Generate random tangent vector(s) at point x."""
        raise NotImplementedError("Subclasses must implement random tangent generation")

    def validate_point(self, x: ManifoldPoint, atol: float = 1e-6) -> bool:
        """Validate that x is a valid point on the manifold."""
        raise NotImplementedError("Point validation not implemented")

    def validate_tangent(self, x: ManifoldPoint, v: TangentVector, atol: float = 1e-6) -> bool:
        """Validate that v is a valid tangent vector at point x."""
        proj_v = self.proj(x, v)
        return bool(jnp.allclose(v, proj_v, atol=atol))

    @property
    def dimension(self) -> int:
        """Intrinsic dimension of the manifold."""
        raise NotImplementedError("Subclasses must define manifold dimension")

    def __repr__(self) -> str:
        """String representation of the manifold."""
        return f"{self.__class__.__name__}()"
