"""Type aliases for riemannsolve.

Points, tangent vectors and bundle points are JAX arrays; the aliases below
document which role an array plays in a signature.
"""

from jaxtyping import Array, Float

ManifoldPoint = Float[Array, "..."]
"""Type alias for points on a Riemannian manifold."""

TangentVector = Float[Array, "..."]
"""Type alias for tangent vectors on a Riemannian manifold."""

BundlePoint = Float[Array, "..."]
"""Type alias for points of a vector bundle, i.e. elements of a fiber."""

Coordinates = Float[Array, " dim"]
"""Type alias for coordinates of a tangent vector with respect to a basis."""


def is_scalar(value: object) -> bool:
    """Return whether ``value`` is a plain real number rather than an array.

    Examples:
        >>> import jax.numpy as jnp
        >>> is_scalar(1.5)
        True
        >>> is_scalar(jnp.array([1.5]))
        False
    """
    return isinstance(value, (int, float)) and not isinstance(value, bool)
