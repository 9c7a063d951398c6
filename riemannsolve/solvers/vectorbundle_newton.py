"""Newton's method for bundle maps into vector bundles.

Given a bundle map ``F: M -> E`` into a vector bundle E over M, the method
searches a zero of F. Every iteration solves the Newton equation::

    F'(p_k)[X_k] = -Q(F(p_k))

for a tangent vector ``X_k`` at ``p_k`` and retracts along the damped
direction, ``p_{k+1} = retr_{p_k}(alpha_k X_k)``. The Newton equation is
delegated to a sub-solver, given either as a sub-problem/sub-state pair run
by :func:`solve` or as a callback.

References:
    P. Deuflhard, Newton Methods for Nonlinear Problems, Springer 2011, for
    the affine covariant damping.
"""

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

import jax.numpy as jnp

from ..core.constants import SolverDefaults
from ..core.evaluation import EvaluationType, inplace_result
from ..core.type_system import ManifoldPoint, TangentVector
from ..manifolds.base import Manifold, RetractionMethod, VectorTransportMethod
from ..manifolds.vector_bundle import VectorBundle
from ..problems.base import VectorbundleProblem
from ..problems.objectives import VectorbundleObjective
from .errors import SolverConfigurationError
from .record import Recorder
from .solve import solve
from .state import SolverState, get_solver_return
from .stepsize import AffineCovariantStepsize, Stepsize
from .stopping import StopAfterIteration, StoppingCriterion

logger = logging.getLogger(__name__)


class SubProblemMode(Enum):
    """How the Newton direction is obtained from the sub-solver.

    ``SOLVER`` runs a sub-problem/sub-state pair with :func:`solve`,
    ``ALLOCATING`` calls ``sub_problem(problem, state, k) -> X`` and
    ``INPLACE`` calls ``sub_problem(problem, X, state, k)`` filling X.
    """

    SOLVER = "solver"
    ALLOCATING = "allocating"
    INPLACE = "inplace"


def _sub_problem_mode(sub_problem: Any, sub_state: Any) -> SubProblemMode:
    if sub_problem is None:
        raise SolverConfigurationError(
            "sub_problem", None, "a sub-problem computing the Newton direction is required"
        )
    if sub_state is None:
        raise SolverConfigurationError(
            "sub_state", None, "a sub-solver state or an evaluation type for the sub-problem is required"
        )
    if isinstance(sub_state, EvaluationType):
        if not callable(sub_problem):
            raise SolverConfigurationError("sub_problem", sub_problem, "must be callable for closed form sub-problems")
        if sub_state is EvaluationType.INPLACE:
            return SubProblemMode.INPLACE
        return SubProblemMode.ALLOCATING
    if isinstance(sub_state, SolverState):
        if not hasattr(sub_problem, "linearize_at"):
            raise SolverConfigurationError(
                "sub_problem", sub_problem, "must provide linearize_at(problem, state) when solved by a sub-state"
            )
        return SubProblemMode.SOLVER
    raise SolverConfigurationError("sub_state", sub_state, "must be a SolverState or an EvaluationType")


class VectorbundleNewtonState(SolverState):
    """State of the vector bundle Newton method.

    Attributes:
        p: Current iterate.
        X: Current Newton direction, a tangent vector at ``p``.
        p_trial: Trial point of the damping search.
        is_same: Whether the residual is evaluated at ``p`` rather than ``p_trial``.
        alpha: Damping factor of the current damping search.
        theta: Contraction estimate of the current damping search.
        sub_problem: Sub-problem computing the Newton direction.
        sub_state: Sub-solver state, or the evaluation type of a callback sub-problem.
        sub_problem_mode: How ``sub_problem`` and ``sub_state`` are used.
        stepsize: Damping strategy.
        retraction_method: Retraction used for the steps.
        vector_transport_method: Transport moving residuals between fibers.
    """

    name = "Vector bundle Newton method"

    def __init__(
        self,
        manifold: Manifold,
        vectorbundle: VectorBundle,
        p: ManifoldPoint,
        sub_problem: Any,
        sub_state: SolverState | EvaluationType | None,
        X: TangentVector | None = None,
        retraction_method: RetractionMethod | None = None,
        stopping_criterion: StoppingCriterion | None = None,
        stepsize: Stepsize | None = None,
        vector_transport_method: VectorTransportMethod | None = None,
    ):
        """Initialize the state at the start point p.

        Args:
            manifold: Domain manifold M.
            vectorbundle: Range vector bundle E.
            p: Start point.
            sub_problem: Either a sub-problem with ``linearize_at`` solved by
                ``sub_state``, or a callback computing the Newton direction.
            sub_state: A :class:`SolverState` for the sub-problem, or the
                :class:`EvaluationType` of the callback.
            X: Buffer for the Newton direction, the zero vector at p by default.
            retraction_method: Defaults to the manifold's default retraction.
            stopping_criterion: Defaults to 1000 iterations.
            stepsize: Defaults to :class:`AffineCovariantStepsize`.
            vector_transport_method: Defaults to the bundle's default transport.

        Raises:
            SolverConfigurationError: If the sub-problem or the sub-state is
                missing or they do not fit together.
        """
        self.sub_problem_mode = _sub_problem_mode(sub_problem, sub_state)
        if stopping_criterion is None:
            stopping_criterion = StopAfterIteration(SolverDefaults.NEWTON_MAX_ITERATIONS)
        super().__init__(stopping_criterion)
        self.p = jnp.asarray(p)
        self.p_trial = manifold.copy(self.p)
        self.X = manifold.zero_vector(self.p) if X is None else jnp.asarray(X)
        self.is_same = True
        self.alpha = 1.0
        self.theta = SolverDefaults.THETA_INITIAL
        self.sub_problem = sub_problem
        self.sub_state = sub_state
        self.stepsize = AffineCovariantStepsize() if stepsize is None else stepsize
        self.retraction_method = manifold.default_retraction_method if retraction_method is None else retraction_method
        if vector_transport_method is None:
            vector_transport_method = vectorbundle.default_vector_transport_method
        self.vector_transport_method = vector_transport_method

    @property
    def evaluation_point(self) -> ManifoldPoint:
        """Point the residual of the Newton equation is evaluated at."""
        return self.p if self.is_same else self.p_trial

    def compute_direction(self, problem: VectorbundleProblem, k: int) -> TangentVector:
        """Solve the Newton equation at ``p`` with the residual at ``evaluation_point``.

        The derivative is always taken at ``p``; with ``is_same`` unset this is
        the simplified Newton direction of the trial point.
        """
        if self.sub_problem_mode is SubProblemMode.SOLVER:
            self.sub_problem.linearize_at(problem, self)
            self.sub_state.set_iterate(self.sub_problem.manifold, problem.manifold.zero_vector(self.p))
            solve(self.sub_problem, self.sub_state)
            return jnp.asarray(self.sub_state.get_solver_result())
        if self.sub_problem_mode is SubProblemMode.ALLOCATING:
            return jnp.asarray(self.sub_problem(problem, self, k))
        buffer = self.X if self.is_same else problem.manifold.zero_vector(self.p)
        return inplace_result(self.sub_problem, self.sub_problem(problem, buffer, self, k))

    def initialize(self, problem: VectorbundleProblem) -> "VectorbundleNewtonState":
        """Reset the trial point and the damping scratch values."""
        self.p_trial = problem.manifold.copy(self.p)
        self.is_same = True
        self.alpha = 1.0
        self.theta = SolverDefaults.THETA_INITIAL
        self.last_stepsize = None
        return self

    def step(self, problem: VectorbundleProblem, k: int) -> "VectorbundleNewtonState":
        """Compute the Newton direction, damp it and retract."""
        manifold = problem.manifold
        self.is_same = True
        self.X = self.compute_direction(problem, k)
        self.last_stepsize = self.stepsize(problem, self, k)
        logger.debug(f"Iteration {k}: damping {self.last_stepsize:.3e}, theta {self.theta:.3e}")
        self.p = manifold.retract(self.p, self.X, self.last_stepsize, self.retraction_method)
        self.p_trial = manifold.copy(self.p)
        self.is_same = True
        return self

    def get_iterate(self) -> ManifoldPoint:
        """Current iterate."""
        return self.p

    def set_iterate(self, manifold: Manifold, p: ManifoldPoint) -> "VectorbundleNewtonState":
        """Replace the current iterate."""
        self.p = manifold.copyto(self.p, p)
        return self

    def get_direction(self) -> TangentVector:
        """Current Newton direction."""
        return self.X

    def parameter_summary(self) -> list[str]:
        """Transport, retraction, stepsize and sub-solver."""
        return [
            f"retraction method: {self.retraction_method.name}",
            f"vector transport: {self.vector_transport_method.name}",
            f"step size: {self.stepsize!r}",
            f"sub-problem: {self.sub_problem_mode.value}",
        ]


def vectorbundle_newton(
    manifold: Manifold,
    vectorbundle: VectorBundle,
    bundle_map: Callable[..., Any],
    derivative: Callable[[Any, ManifoldPoint], Any],
    connection_map: Callable[[Any, Any], Any],
    p: ManifoldPoint,
    *,
    evaluation: EvaluationType = EvaluationType.ALLOCATING,
    scaling: float = 1.0,
    **kwargs: Any,
) -> Any:
    """Find a zero of the bundle map F with Newton's method.

    Args:
        manifold: Domain manifold M.
        vectorbundle: Range vector bundle E.
        bundle_map: ``F(M, p)`` or, in place, ``F(M, Y, p)``.
        derivative: ``dF(M, p)``, the linear operator ``F'(p)`` as callable or matrix.
        connection_map: ``Q(E, q)``.
        p: Start point, not modified.
        evaluation: Calling convention of ``bundle_map``.
        scaling: Factor applied to the right hand side of the Newton equation.
        **kwargs: Passed to :func:`vectorbundle_newton_objective`; ``sub_problem``
            and ``sub_state`` are required.

    Returns:
        The last iterate, or the whole state with ``return_state=True``.

    Example:
        >>> p_star = vectorbundle_newton(
        ...     M, TangentBundle(M), F, dF, Q, p0,
        ...     sub_problem=newton_direction, sub_state=EvaluationType.ALLOCATING,
        ... )
    """
    objective = VectorbundleObjective(bundle_map, derivative, connection_map, evaluation=evaluation, scaling=scaling)
    return vectorbundle_newton_objective(manifold, vectorbundle, objective, p, **kwargs)


def vectorbundle_newton_objective(
    manifold: Manifold,
    vectorbundle: VectorBundle,
    objective: VectorbundleObjective,
    p: ManifoldPoint,
    *,
    sub_problem: Any = None,
    sub_state: SolverState | EvaluationType | None = None,
    X: TangentVector | None = None,
    retraction_method: RetractionMethod | None = None,
    stopping_criterion: StoppingCriterion | None = None,
    stepsize: Stepsize | None = None,
    vector_transport_method: VectorTransportMethod | None = None,
    record: Sequence[str] | None = None,
    return_state: bool = False,
) -> Any:
    """Run the vector bundle Newton method for an assembled objective.

    Raises:
        SolverConfigurationError: If ``sub_problem`` or ``sub_state`` is missing.
    """
    problem = VectorbundleProblem(manifold, vectorbundle, objective)
    state = VectorbundleNewtonState(
        manifold,
        vectorbundle,
        manifold.copy(jnp.asarray(p)),
        sub_problem,
        sub_state,
        X=X,
        retraction_method=retraction_method,
        stopping_criterion=stopping_criterion,
        stepsize=stepsize,
        vector_transport_method=vector_transport_method,
    )
    recorder = Recorder(record) if record is not None else None
    solve(problem, state, recorder=recorder)
    return get_solver_return(state, return_state)
