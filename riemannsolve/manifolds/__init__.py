"""Riemannian manifold implementations consumed by the solvers."""

from .base import Manifold, RetractionMethod, VectorTransportMethod
from .errors import DimensionError, ManifoldError, NumericalStabilityError, UnsupportedMethodError
from .euclidean import Euclidean
from .reflection import reflect
from .sphere import Sphere
from .vector_bundle import TangentBundle, TrivialBundle, VectorBundle


def create_sphere(n: int = 2) -> Sphere:
    """Create a sphere manifold S^n with dimension validation.

    Args:
        n: The dimension of the sphere (default: 2 for S^2)

    Returns:
        Sphere: A sphere manifold instance

    Raises:
        ValueError: If dimension is not a positive integer
        TypeError: If n is not an integer

    Examples:
        >>> sphere = create_sphere(3)  # Creates S^3
        >>> sphere = create_sphere()   # Creates S^2 (default)
    """
    if not isinstance(n, int):
        raise TypeError(f"Sphere dimension must be an integer, got {type(n)}")
    if n <= 0:
        raise ValueError(f"Sphere dimension must be positive, got {n}")
    return Sphere(n=n)


def create_euclidean(*shape: int) -> Euclidean:
    """Create a Euclidean space with shape validation.

    Args:
        *shape: Shape of the points

    Returns:
        Euclidean: A Euclidean space instance

    Raises:
        ValueError: If no shape is given or a size is not positive
        TypeError: If a size is not an integer

    Examples:
        >>> space = create_euclidean(3)     # R^3
        >>> space = create_euclidean(2, 4)  # 2x4 matrices
    """
    if not all(isinstance(n, int) for n in shape):
        raise TypeError(f"Euclidean dimensions must be integers, got {shape}")
    return Euclidean(*shape)


__all__ = [
    "DimensionError",
    "Euclidean",
    "Manifold",
    "ManifoldError",
    "NumericalStabilityError",
    "RetractionMethod",
    "Sphere",
    "TangentBundle",
    "TrivialBundle",
    "UnsupportedMethodError",
    "VectorBundle",
    "VectorTransportMethod",
    "create_euclidean",
    "create_sphere",
    "reflect",
]
