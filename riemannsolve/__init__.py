"""riemannsolve: JAX-native nonsmooth optimization and root finding on manifolds.

Two iterative solvers share one driver loop:

- **Subgradient method**: minimizes a nonsmooth cost on a manifold, stepping
  against one subgradient per iteration and keeping the best iterate.
- **Vector bundle Newton method**: finds a zero of a bundle map ``F: M -> E``
  with affine covariant damping; the Newton equation is solved by a
  configurable sub-solver.

Quick start:
    >>> import jax.numpy as jnp
    >>> import riemannsolve as rs
    >>>
    >>> sphere = rs.create_sphere(2)
    >>> target = jnp.array([0.0, 0.0, 1.0])
    >>> f = lambda M, p: M.dist(p, target)
    >>> def df(M, p):
    ...     d = M.dist(p, target)
    ...     return jnp.where(d > 0, -M.log(p, target) / d, M.zero_vector(p))
    >>> p0 = jnp.array([jnp.sin(1.0), 0.0, jnp.cos(1.0)])
    >>> p_star = rs.subgradient_method(sphere, f, df, p0, stepsize=rs.ConstantStepsize(0.1))

Newton's method with the coordinate sub-solver:
    >>> M = rs.create_euclidean(3)
    >>> F = lambda M, p: p - target
    >>> dF = lambda M, p: jnp.eye(3)
    >>> Q = lambda E, q: q
    >>> p = rs.vectorbundle_newton(
    ...     M, rs.TangentBundle(M), F, dF, Q, jnp.zeros(3),
    ...     sub_problem=rs.newton_direction, sub_state=rs.EvaluationType.ALLOCATING,
    ... )
"""

__version__ = "0.1.0"
__author__ = "riemannsolve Contributors"

from .core import EvaluationType, NumericalConstants, SolverDefaults, clear_jit_cache
from .manifolds import (
    Euclidean,
    Manifold,
    RetractionMethod,
    Sphere,
    TangentBundle,
    TrivialBundle,
    VectorBundle,
    VectorTransportMethod,
    create_euclidean,
    create_sphere,
    reflect,
)
from .problems import ManifoldProblem, SubgradientObjective, VectorbundleObjective, VectorbundleProblem
from .solvers import (
    AffineCovariantStepsize,
    ConstantStepsize,
    CoordinateLinearSolverState,
    DecreasingStepsize,
    NewtonEquationSubproblem,
    Recorder,
    StopAfterIteration,
    StopWhenAll,
    StopWhenAny,
    StopWhenChangeLess,
    StopWhenSubgradientNormLess,
    SubGradientMethodState,
    SubProblemMode,
    VectorbundleNewtonState,
    newton_direction,
    newton_direction_into,
    solve,
    solve_newton_equation,
    subgradient_method,
    subgradient_method_objective,
    vectorbundle_newton,
    vectorbundle_newton_objective,
)

__all__ = [
    "AffineCovariantStepsize",
    "ConstantStepsize",
    "CoordinateLinearSolverState",
    "DecreasingStepsize",
    "Euclidean",
    "EvaluationType",
    "Manifold",
    "ManifoldProblem",
    "NewtonEquationSubproblem",
    "NumericalConstants",
    "Recorder",
    "RetractionMethod",
    "SolverDefaults",
    "Sphere",
    "StopAfterIteration",
    "StopWhenAll",
    "StopWhenAny",
    "StopWhenChangeLess",
    "StopWhenSubgradientNormLess",
    "SubGradientMethodState",
    "SubProblemMode",
    "SubgradientObjective",
    "TangentBundle",
    "TrivialBundle",
    "VectorBundle",
    "VectorTransportMethod",
    "VectorbundleNewtonState",
    "VectorbundleObjective",
    "VectorbundleProblem",
    "__version__",
    "clear_jit_cache",
    "create_euclidean",
    "create_sphere",
    "newton_direction",
    "newton_direction_into",
    "reflect",
    "solve",
    "solve_newton_equation",
    "subgradient_method",
    "subgradient_method_objective",
    "vectorbundle_newton",
    "vectorbundle_newton_objective",
]
