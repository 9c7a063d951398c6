"""Evaluation conventions of user supplied callbacks.

A callback either allocates its result (``f(M, p) -> X``) or fills a buffer
supplied by the caller (``f(M, X, p) -> X``). JAX arrays are immutable, so an
in-place callback must return the filled buffer; the solvers never hand out
mutable buffers.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

import jax.numpy as jnp
from jaxtyping import Array


class EvaluationType(Enum):
    """How a callback hands back its result."""

    ALLOCATING = "allocating"
    INPLACE = "inplace"


def inplace_result(fn: Callable[..., Any], result: Any) -> Array:
    """Check the value returned by an in-place callback.

    Raises:
        TypeError: If the callback returned ``None`` instead of the filled buffer.
    """
    if result is None:
        name = getattr(fn, "__name__", repr(fn))
        raise TypeError(
            f"In-place callback {name} returned None; JAX arrays are immutable, "
            "return the filled buffer, e.g. out.at[:].set(value)"
        )
    return jnp.asarray(result)


def evaluate(fn: Callable[..., Any], evaluation: EvaluationType, manifold: Any, point: Array, out: Array) -> Array:
    """Evaluate ``fn`` at ``point`` following ``evaluation``.

    Args:
        fn: The callback.
        evaluation: Calling convention of ``fn``.
        manifold: First argument passed to ``fn``.
        point: Point the callback is evaluated at.
        out: Buffer for the in-place convention. Ignored for allocating callbacks.

    Returns:
        The value of the callback as a JAX array.

    Raises:
        TypeError: If an in-place callback does not return its buffer.
    """
    if evaluation is EvaluationType.ALLOCATING:
        return jnp.asarray(fn(manifold, point))
    return inplace_result(fn, fn(manifold, out, point))
