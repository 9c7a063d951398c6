"""Problem definitions: a manifold together with an objective.

A problem is created once per solve and never mutated; solver states hold
everything that changes during the iteration.
"""

import dataclasses

from ..core.type_system import BundlePoint, ManifoldPoint, TangentVector
from ..manifolds.base import Manifold
from ..manifolds.vector_bundle import VectorBundle
from .objectives import LinearOperator, SubgradientObjective, VectorbundleObjective


@dataclasses.dataclass(frozen=True)
class ManifoldProblem:
    """Minimization problem for a subgradient objective on a manifold.

    Attributes:
        manifold: Domain of the cost function.
        objective: Cost and subgradient callbacks.
    """

    manifold: Manifold
    objective: SubgradientObjective

    def get_cost(self, p: ManifoldPoint) -> float:
        """Cost at p."""
        return self.objective.get_cost(self.manifold, p)

    def get_subgradient(self, p: ManifoldPoint) -> TangentVector:
        """One subgradient at p."""
        return self.objective.get_subgradient(self.manifold, p)

    def get_subgradient_into(self, X: TangentVector, p: ManifoldPoint) -> TangentVector:
        """One subgradient at p, reusing the buffer X."""
        return self.objective.get_subgradient_into(self.manifold, X, p)


@dataclasses.dataclass(frozen=True)
class VectorbundleProblem:
    """Root finding problem ``F(p) = 0`` for a bundle map ``F: M -> E``.

    Attributes:
        manifold: Domain manifold M.
        vectorbundle: Range vector bundle E over M.
        objective: Bundle map, derivative and connection map.
    """

    manifold: Manifold
    vectorbundle: VectorBundle
    objective: VectorbundleObjective

    def get_bundle_map(self, p: ManifoldPoint) -> BundlePoint:
        """F(p) in the fiber over p."""
        return self.objective.get_bundle_map(self.manifold, self.vectorbundle, p)

    def get_derivative(self, p: ManifoldPoint) -> LinearOperator:
        """The derivative F'(p)."""
        return self.objective.get_derivative(self.manifold, p)

    def get_connection_map(self, q: BundlePoint) -> BundlePoint:
        """Connection map applied to q."""
        return self.objective.get_connection_map(self.vectorbundle, q)
