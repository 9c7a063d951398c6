"""Objectives bundling the user supplied callbacks of a solver.

Each objective fixes the evaluation convention of its callbacks once, at
construction, so the solvers never inspect a callback's signature.
"""

from collections.abc import Callable
from typing import Any

import jax.numpy as jnp
from jaxtyping import Array

from ..core.evaluation import EvaluationType, evaluate
from ..core.type_system import BundlePoint, ManifoldPoint, TangentVector

LinearOperator = Callable[[TangentVector], BundlePoint] | Array
"""A derivative ``F'(p)``: either its action or its matrix on flattened vectors."""


def apply_linear_operator(operator: LinearOperator, v: TangentVector) -> BundlePoint:
    """Apply a linear operator given as action or as matrix to v.

    A matrix acts on the flattened vector; the result keeps the shape of v when
    the matrix is square, otherwise it is returned flat.
    """
    if callable(operator):
        return jnp.asarray(operator(v))
    matrix = jnp.asarray(operator)
    result = matrix @ jnp.ravel(v)
    if matrix.shape[0] == matrix.shape[1]:
        return result.reshape(jnp.shape(v))
    return result


class SubgradientObjective:
    """Cost function and subgradient of a nonsmooth objective.

    The subgradient callback returns one element of the (possibly set-valued)
    subdifferential at p; which element is up to the callback and need not be
    deterministic.

    Attributes:
        cost: ``f(M, p) -> float``.
        subgradient: ``df(M, p) -> X`` or, in place, ``df(M, X, p)``.
        evaluation: Calling convention of ``subgradient``.
    """

    def __init__(
        self,
        cost: Callable[[Any, ManifoldPoint], Any],
        subgradient: Callable[..., Any],
        evaluation: EvaluationType = EvaluationType.ALLOCATING,
    ):
        """Initialize the objective."""
        self.cost = cost
        self.subgradient = subgradient
        self.evaluation = evaluation

    def get_cost(self, manifold: Any, p: ManifoldPoint) -> float:
        """Evaluate the cost at p."""
        return float(self.cost(manifold, p))

    def get_subgradient(self, manifold: Any, p: ManifoldPoint) -> TangentVector:
        """Evaluate a subgradient at p into newly allocated memory."""
        return evaluate(self.subgradient, self.evaluation, manifold, p, manifold.zero_vector(p))

    def get_subgradient_into(self, manifold: Any, X: TangentVector, p: ManifoldPoint) -> TangentVector:
        """Evaluate a subgradient at p reusing the buffer X for in-place callbacks."""
        return evaluate(self.subgradient, self.evaluation, manifold, p, X)


class VectorbundleObjective:
    """Bundle map, its derivative and the connection map of a Newton problem.

    Attributes:
        bundle_map: ``F(M, p) -> F(p)`` in the fiber over p, or in place ``F(M, Y, p)``.
        derivative: ``dF(M, p) -> F'(p)``, a linear operator (callable or matrix).
        connection_map: ``Q(E, q) -> Q(q)``, maps a bundle element back to the
            fiber over its base point.
        evaluation: Calling convention of ``bundle_map``.
        scaling: Factor applied to the Newton equation's right hand side.
    """

    def __init__(
        self,
        bundle_map: Callable[..., Any],
        derivative: Callable[[Any, ManifoldPoint], LinearOperator],
        connection_map: Callable[[Any, BundlePoint], BundlePoint],
        evaluation: EvaluationType = EvaluationType.ALLOCATING,
        scaling: float = 1.0,
    ):
        """Initialize the objective."""
        self.bundle_map = bundle_map
        self.derivative = derivative
        self.connection_map = connection_map
        self.evaluation = evaluation
        self.scaling = scaling

    def get_bundle_map(self, manifold: Any, vectorbundle: Any, p: ManifoldPoint) -> BundlePoint:
        """Evaluate F at p."""
        return evaluate(self.bundle_map, self.evaluation, manifold, p, vectorbundle.zero_vector(p))

    def get_derivative(self, manifold: Any, p: ManifoldPoint) -> LinearOperator:
        """Evaluate the derivative F'(p)."""
        return self.derivative(manifold, p)

    def get_connection_map(self, vectorbundle: Any, q: BundlePoint) -> BundlePoint:
        """Apply the connection map to the bundle element q."""
        return jnp.asarray(self.connection_map(vectorbundle, q))
