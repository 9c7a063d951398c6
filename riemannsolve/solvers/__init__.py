"""Solver implementations for nonsmooth optimization and root finding on manifolds.

Components:
- Generic driver loop (solve), solver states, stopping criteria, stepsizes
- Riemannian subgradient method
- Newton's method for bundle maps into vector bundles, with its Newton
  equation sub-solvers
"""

from .errors import DampingFailedError, NumericalDegeneracyError, SolverConfigurationError, SolverError
from .newton_subsolver import (
    CoordinateLinearSolverState,
    NewtonEquationSubproblem,
    assemble_newton_system,
    newton_direction,
    newton_direction_into,
    newton_right_hand_side,
    solve_newton_equation,
)
from .record import Recorder
from .solve import solve
from .state import SolverState, get_solver_return
from .stepsize import AffineCovariantStepsize, ConstantStepsize, DecreasingStepsize, Stepsize
from .stopping import (
    StopAfterIteration,
    StoppingCriterion,
    StopWhenAll,
    StopWhenAny,
    StopWhenChangeLess,
    StopWhenSubgradientNormLess,
)
from .subgradient import SubGradientMethodState, subgradient_method, subgradient_method_objective
from .vectorbundle_newton import (
    SubProblemMode,
    VectorbundleNewtonState,
    vectorbundle_newton,
    vectorbundle_newton_objective,
)

__all__ = [
    "AffineCovariantStepsize",
    "ConstantStepsize",
    "CoordinateLinearSolverState",
    "DampingFailedError",
    "DecreasingStepsize",
    "NewtonEquationSubproblem",
    "NumericalDegeneracyError",
    "Recorder",
    "SolverConfigurationError",
    "SolverError",
    "SolverState",
    "StopAfterIteration",
    "StopWhenAll",
    "StopWhenAny",
    "StopWhenChangeLess",
    "StopWhenSubgradientNormLess",
    "StoppingCriterion",
    "Stepsize",
    "SubGradientMethodState",
    "SubProblemMode",
    "VectorbundleNewtonState",
    "assemble_newton_system",
    "get_solver_return",
    "newton_direction",
    "newton_direction_into",
    "newton_right_hand_side",
    "solve",
    "solve_newton_equation",
    "subgradient_method",
    "subgradient_method_objective",
    "vectorbundle_newton",
    "vectorbundle_newton_objective",
]
