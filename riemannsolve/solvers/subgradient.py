"""Riemannian subgradient method.

The method minimizes a possibly nonsmooth cost f on a manifold by stepping
against one subgradient per iteration::

    p_{k+1} = retr_{p_k}(-s_k X_k),  X_k in the subdifferential of f at p_k

Subgradient steps need not decrease the cost, so the state keeps the best
iterate seen so far and returns it as the result.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

import jax
import jax.numpy as jnp

from ..core.constants import SolverDefaults
from ..core.evaluation import EvaluationType, inplace_result
from ..core.type_system import ManifoldPoint, TangentVector, is_scalar
from ..manifolds.base import Manifold, RetractionMethod
from ..problems.base import ManifoldProblem
from ..problems.objectives import SubgradientObjective
from .record import Recorder
from .solve import solve
from .state import SolverState, get_solver_return
from .stepsize import ConstantStepsize, Stepsize
from .stopping import StopAfterIteration, StoppingCriterion

logger = logging.getLogger(__name__)


class SubGradientMethodState(SolverState):
    """State of the subgradient method.

    Attributes:
        p: Current iterate.
        p_star: Best iterate seen so far, the result of the method.
        cost_star: Cost at ``p_star``.
        X: Subgradient evaluated in the last step.
        p_subgradient: Point X was evaluated at, the iterate before the last step.
        stepsize: Stepsize strategy.
        retraction_method: Retraction used for the steps.
    """

    name = "Subgradient Method"

    def __init__(
        self,
        manifold: Manifold,
        p: ManifoldPoint,
        stopping_criterion: StoppingCriterion | None = None,
        stepsize: Stepsize | None = None,
        X: TangentVector | None = None,
        retraction_method: RetractionMethod | None = None,
    ):
        """Initialize the state at the start point p.

        Args:
            manifold: Manifold the method runs on.
            p: Start point.
            stopping_criterion: Defaults to 5000 iterations.
            stepsize: Defaults to a constant stepsize of 1.
            X: Buffer for the subgradient, defaults to the zero vector at p.
            retraction_method: Defaults to the manifold's default retraction.
        """
        if stopping_criterion is None:
            stopping_criterion = StopAfterIteration(SolverDefaults.SUBGRADIENT_MAX_ITERATIONS)
        super().__init__(stopping_criterion)
        self.p = jnp.asarray(p)
        self.p_star = manifold.copy(self.p)
        self.cost_star: float | None = None
        self.p_subgradient = manifold.copy(self.p)
        self.X = manifold.zero_vector(self.p) if X is None else jnp.asarray(X)
        self.stepsize = ConstantStepsize(1.0) if stepsize is None else stepsize
        self.retraction_method = manifold.default_retraction_method if retraction_method is None else retraction_method

    def initialize(self, problem: ManifoldProblem) -> "SubGradientMethodState":
        """Reset the best point to the start point and zero the subgradient."""
        manifold = problem.manifold
        self.p_star = manifold.copy(self.p)
        self.cost_star = problem.get_cost(self.p_star)
        self.p_subgradient = manifold.copy(self.p)
        self.X = manifold.zero_vector(self.p)
        self.last_stepsize = None
        return self

    def step(self, problem: ManifoldProblem, k: int) -> "SubGradientMethodState":
        """Step against a subgradient and update the best point."""
        manifold = problem.manifold
        self.p_subgradient = manifold.copy(self.p)
        self.X = problem.get_subgradient_into(self.X, self.p)
        self.last_stepsize = self.stepsize(problem, self, k)
        self.p = manifold.retract(self.p, self.X, -self.last_stepsize, self.retraction_method)
        cost = problem.get_cost(self.p)
        if cost < self.cost_star:
            self.p_star = manifold.copy(self.p)
            self.cost_star = cost
        return self

    def get_iterate(self) -> ManifoldPoint:
        """Current iterate."""
        return self.p

    def set_iterate(self, manifold: Manifold, p: ManifoldPoint) -> "SubGradientMethodState":
        """Replace the current iterate."""
        self.p = manifold.copyto(self.p, p)
        return self

    def get_subgradient(self) -> TangentVector:
        """Subgradient evaluated in the last step."""
        return self.X

    def get_subgradient_point(self) -> ManifoldPoint:
        """Point the last subgradient was evaluated at."""
        return self.p_subgradient

    def get_direction(self) -> TangentVector:
        """The subgradient, steps move against it."""
        return self.X

    def get_solver_result(self) -> ManifoldPoint:
        """Best iterate seen so far."""
        return self.p_star

    def parameter_summary(self) -> list[str]:
        """Stepsize and retraction."""
        return [f"stepsize: {self.stepsize!r}", f"retraction method: {self.retraction_method.name}"]


def _wrap_scalar(
    cost: Callable[..., Any], subgradient: Callable[..., Any], evaluation: EvaluationType
) -> tuple[Callable[..., Any], Callable[..., Any]]:
    """Lift callbacks on real numbers to callbacks on one element arrays."""

    def cost_(manifold: Any, p: Any) -> Any:
        return cost(manifold, p[0])

    if evaluation is EvaluationType.ALLOCATING:

        def subgradient_(manifold: Any, p: Any) -> Any:
            return jnp.atleast_1d(subgradient(manifold, p[0]))

    else:

        def subgradient_(manifold: Any, p: Any) -> Any:
            return jnp.atleast_1d(inplace_result(subgradient, subgradient(manifold, 0.0 * p[0], p[0])))

    return cost_, subgradient_


def subgradient_method(
    manifold: Manifold,
    cost: Callable[..., Any],
    subgradient: Callable[..., Any],
    p: ManifoldPoint | float | None = None,
    *,
    evaluation: EvaluationType = EvaluationType.ALLOCATING,
    key: jax.Array | None = None,
    **kwargs: Any,
) -> Any:
    """Minimize ``cost`` with the Riemannian subgradient method.

    Args:
        manifold: Manifold to optimize on.
        cost: ``f(M, p) -> float``.
        subgradient: ``df(M, p) -> X`` or, in place, ``df(M, X, p)``.
        p: Start point. A plain real number is supported for one dimensional
            problems and a real number is returned then. Drawn at random from
            ``key`` when omitted.
        evaluation: Calling convention of ``subgradient``.
        key: PRNG key for a random start point.
        **kwargs: Passed to :func:`subgradient_method_objective`.

    Returns:
        The best point found, or the whole state with ``return_state=True``.

    Example:
        >>> sphere = Sphere(2)
        >>> p_star = subgradient_method(sphere, f, df, p0, stepsize=ConstantStepsize(0.1))
    """
    if p is None:
        p = manifold.random_point(jax.random.PRNGKey(0) if key is None else key)
    if is_scalar(p):
        cost_, subgradient_ = _wrap_scalar(cost, subgradient, evaluation)
        objective = SubgradientObjective(cost_, subgradient_, EvaluationType.ALLOCATING)
        result = subgradient_method_objective(manifold, objective, jnp.array([float(p)]), **kwargs)
        if isinstance(result, SolverState):
            return result
        return float(result[0])
    objective = SubgradientObjective(cost, subgradient, evaluation)
    return subgradient_method_objective(manifold, objective, p, **kwargs)


def subgradient_method_objective(
    manifold: Manifold,
    objective: SubgradientObjective,
    p: ManifoldPoint,
    *,
    stopping_criterion: StoppingCriterion | None = None,
    stepsize: Stepsize | None = None,
    X: TangentVector | None = None,
    retraction_method: RetractionMethod | None = None,
    record: Sequence[str] | None = None,
    return_state: bool = False,
) -> Any:
    """Run the subgradient method for an already assembled objective.

    Args:
        manifold: Manifold to optimize on.
        objective: Cost and subgradient.
        p: Start point, not modified.
        stopping_criterion: Defaults to 5000 iterations.
        stepsize: Defaults to a constant stepsize of 1.
        X: Buffer for the subgradient.
        retraction_method: Defaults to the manifold's default retraction.
        record: Fields to record in every iteration, see :class:`Recorder`.
        return_state: Return the state instead of the best point.

    Returns:
        The best point found, or the whole state with ``return_state=True``.
    """
    problem = ManifoldProblem(manifold, objective)
    state = SubGradientMethodState(
        manifold,
        manifold.copy(jnp.asarray(p)),
        stopping_criterion=stopping_criterion,
        stepsize=stepsize,
        X=X,
        retraction_method=retraction_method,
    )
    recorder = Recorder(record) if record is not None else None
    solve(problem, state, recorder=recorder)
    logger.debug(f"Subgradient method finished with cost {state.cost_star}")
    return get_solver_return(state, return_state)
