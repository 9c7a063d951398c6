"""Reflection of points at other points of a manifold.

The reflection of x at p is the point reached by walking from p in the
direction opposite to x, ``refl_p(x) = retr_p(-log_p(x))``. It is the basic
building block of splitting schemes such as Douglas-Rachford.
"""

from collections.abc import Callable

from ..core.type_system import ManifoldPoint
from .base import Manifold, RetractionMethod


def reflect(
    manifold: Manifold,
    p: ManifoldPoint | Callable[[ManifoldPoint], ManifoldPoint],
    x: ManifoldPoint,
    retraction_method: RetractionMethod | None = None,
) -> ManifoldPoint:
    """Reflect the point x at p.

    Args:
        manifold: The manifold both points live on.
        p: Point to reflect at, or a function ``f: M -> M`` in which case x is
            reflected at ``f(x)``.
        x: Point to reflect.
        retraction_method: Retraction used to walk away from p.

    Returns:
        The reflected point.

    Examples:
        >>> M = Euclidean(2)
        >>> reflect(M, jnp.array([1.0, 0.0]), jnp.array([0.0, 0.0]))
        Array([2., 0.], dtype=float32)
    """
    center = p(x) if callable(p) else p
    return manifold.retract(center, manifold.log(center, x), scale=-1.0, method=retraction_method)
