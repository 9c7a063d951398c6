"""Problem and objective definitions for the solvers."""

from .base import ManifoldProblem, VectorbundleProblem
from .objectives import LinearOperator, SubgradientObjective, VectorbundleObjective, apply_linear_operator

__all__ = [
    "LinearOperator",
    "ManifoldProblem",
    "SubgradientObjective",
    "VectorbundleObjective",
    "VectorbundleProblem",
    "apply_linear_operator",
]
