"""Solvers for the Newton equation of the vector bundle Newton method.

The Newton equation at a base point p reads::

    F'(p)[X] = -Q(F(q))

for a tangent vector X at p, where q is either p itself or a trial point
(simplified Newton step). A residual over q is moved to the fiber over p by
vector transport. With bases of the tangent space at p and of the fiber over
p the equation becomes a square linear system in coordinates.

Three ways to use this module as a Newton sub-solver:

* :func:`newton_direction` as an allocating sub-problem callback,
* :func:`newton_direction_into` as an in-place sub-problem callback,
* :class:`NewtonEquationSubproblem` with :class:`CoordinateLinearSolverState`
  as a sub-problem and sub-state driven by :func:`solve`.
"""

import logging
from typing import Any, Literal

import jax.numpy as jnp
from jax.scipy.sparse.linalg import bicgstab, gmres
from jaxtyping import Array, Float

from ..core.constants import NumericalConstants
from ..core.type_system import Coordinates, ManifoldPoint, TangentVector
from ..manifolds.base import Manifold, VectorTransportMethod
from ..manifolds.errors import DimensionError, check_numerical_stability
from ..manifolds.euclidean import Euclidean
from ..problems.base import VectorbundleProblem
from ..problems.objectives import apply_linear_operator
from .errors import NumericalDegeneracyError, SolverConfigurationError, SolverError
from .state import SolverState
from .stopping import StopAfterIteration, StoppingCriterion

logger = logging.getLogger(__name__)

LinearSolverMethod = Literal["direct", "bicgstab", "gmres"]


def newton_right_hand_side(
    problem: VectorbundleProblem,
    base_point: ManifoldPoint,
    residual_point: ManifoldPoint | None = None,
    vector_transport_method: VectorTransportMethod | None = None,
) -> Any:
    """Right hand side ``-scaling * Q(F(q))`` in the fiber over the base point.

    Args:
        problem: The Newton problem.
        base_point: Point p the equation is linearized at.
        residual_point: Point q the residual is evaluated at, p when omitted.
        vector_transport_method: Transport moving the residual from q to p.
    """
    q = base_point if residual_point is None else residual_point
    residual = problem.get_connection_map(problem.get_bundle_map(q))
    if residual_point is not None:
        residual = problem.vectorbundle.vector_transport(q, base_point, residual, vector_transport_method)
    return -problem.objective.scaling * residual


def assemble_newton_system(
    problem: VectorbundleProblem,
    base_point: ManifoldPoint,
    residual_point: ManifoldPoint | None = None,
    vector_transport_method: VectorTransportMethod | None = None,
) -> tuple[Float[Array, "n n"], Coordinates, Array]:
    """Reduce the Newton equation at the base point to coordinates.

    Column i of the matrix holds the fiber coordinates of ``F'(p)[b_i]`` for
    the tangent basis vectors ``b_i`` at p.

    Returns:
        The coordinate matrix, the coordinates of the right hand side and the
        tangent space basis at p.

    Raises:
        DimensionError: If the fiber and the manifold have different dimensions.
    """
    manifold = problem.manifold
    vectorbundle = problem.vectorbundle
    if vectorbundle.fiber_dimension != manifold.dimension:
        raise DimensionError(
            "Newton equation needs fibers of the manifold's dimension",
            expected=manifold.dimension,
            actual=vectorbundle.fiber_dimension,
        )
    p = base_point
    basis = manifold.get_basis(p)
    fiber_basis = vectorbundle.get_basis(p)
    operator = problem.get_derivative(p)
    columns = [
        vectorbundle.get_coordinates(p, apply_linear_operator(operator, b), fiber_basis)
        for b in manifold.get_vectors(p, basis)
    ]
    matrix = jnp.stack(columns, axis=1)
    rhs = newton_right_hand_side(problem, p, residual_point, vector_transport_method)
    return matrix, vectorbundle.get_coordinates(p, rhs, fiber_basis), basis


def _solve_coordinates(
    matrix: Array,
    rhs: Coordinates,
    method: LinearSolverMethod = "direct",
    x0: Coordinates | None = None,
    tol: float = NumericalConstants.RTOL,
) -> Coordinates:
    if method == "direct":
        solution = jnp.linalg.solve(matrix, rhs)
    elif method == "bicgstab":
        solution, _ = bicgstab(matrix, rhs, x0=x0, tol=tol)
    elif method == "gmres":
        solution, _ = gmres(matrix, rhs, x0=x0, tol=tol)
    else:
        raise SolverConfigurationError("method", method, "must be 'direct', 'bicgstab' or 'gmres'")
    if not bool(jnp.all(jnp.isfinite(solution))):
        raise NumericalDegeneracyError("The Newton equation has no finite solution, the derivative is singular")
    return solution


def solve_newton_equation(
    problem: VectorbundleProblem,
    base_point: ManifoldPoint,
    residual_point: ManifoldPoint | None = None,
    vector_transport_method: VectorTransportMethod | None = None,
    check_condition: bool = False,
    max_condition: float = NumericalConstants.MAX_CONDITION,
) -> TangentVector:
    """Solve the Newton equation at the base point directly.

    Args:
        problem: The Newton problem.
        base_point: Point p the derivative is evaluated at.
        residual_point: Point q the residual is evaluated at, p when omitted.
        vector_transport_method: Transport moving the residual from q to p.
        check_condition: Reject ill-conditioned systems before solving.
        max_condition: Largest condition number accepted by the check.

    Returns:
        The Newton direction, a tangent vector at p.

    Raises:
        NumericalStabilityError: If ``check_condition`` is set and the system
            is ill-conditioned.
        NumericalDegeneracyError: If the solution is not finite.
    """
    matrix, rhs, basis = assemble_newton_system(problem, base_point, residual_point, vector_transport_method)
    if check_condition:
        check_numerical_stability(matrix, "solve_newton_equation", max_condition)
    return problem.manifold.get_vector(base_point, _solve_coordinates(matrix, rhs), basis)


def newton_direction(problem: VectorbundleProblem, state: Any, k: int) -> TangentVector:
    """Allocating sub-problem callback solving the Newton equation for a Newton state."""
    residual_point = None if state.is_same else state.p_trial
    return solve_newton_equation(problem, state.p, residual_point, state.vector_transport_method)


def newton_direction_into(problem: VectorbundleProblem, X: TangentVector, state: Any, k: int) -> TangentVector:
    """In-place sub-problem callback, returns the filled buffer X."""
    return problem.manifold.copyto(X, newton_direction(problem, state, k))


class NewtonEquationSubproblem:
    """Newton equation at the current base point, posed for an inner solver.

    The outer Newton method calls :meth:`linearize_at` before every solve, which
    assembles the coordinate system at the state's iterate. The inner iterate is
    a tangent vector at that point; the tangent space is treated as the
    Euclidean space of the ambient shape.

    Args:
        check_condition: Reject ill-conditioned systems on linearization.
        max_condition: Largest condition number accepted by the check.
    """

    def __init__(self, check_condition: bool = False, max_condition: float = NumericalConstants.MAX_CONDITION):
        """Initialize an unlinearized sub-problem."""
        self.check_condition = check_condition
        self.max_condition = max_condition
        self.problem: VectorbundleProblem | None = None
        self.base_point: ManifoldPoint | None = None
        self.matrix: Array | None = None
        self.rhs: Coordinates | None = None
        self.basis: Array | None = None

    def linearize_at(self, problem: VectorbundleProblem, state: Any) -> "NewtonEquationSubproblem":
        """Assemble the Newton equation at ``state.p`` with residual at the state's evaluation point."""
        residual_point = None if state.is_same else state.p_trial
        self.problem = problem
        self.base_point = state.p
        self.matrix, self.rhs, self.basis = assemble_newton_system(
            problem, state.p, residual_point, state.vector_transport_method
        )
        if self.check_condition:
            check_numerical_stability(self.matrix, "NewtonEquationSubproblem", self.max_condition)
        return self

    def _require_linearized(self) -> None:
        if self.matrix is None:
            raise SolverError("NewtonEquationSubproblem used before linearize_at was called")

    @property
    def manifold(self) -> Manifold:
        """The tangent space at the base point as a Euclidean space."""
        self._require_linearized()
        return Euclidean(*jnp.shape(self.base_point))

    def get_coordinates(self, X: TangentVector) -> Coordinates:
        """Coordinates of a tangent vector at the base point."""
        self._require_linearized()
        return self.problem.manifold.get_coordinates(self.base_point, X, self.basis)

    def get_vector(self, c: Coordinates) -> TangentVector:
        """Tangent vector at the base point with coordinates c."""
        self._require_linearized()
        return self.problem.manifold.get_vector(self.base_point, c, self.basis)

    def residual_norm(self, X: TangentVector) -> float:
        """Euclidean norm of the coordinate residual of X."""
        self._require_linearized()
        return float(jnp.linalg.norm(self.matrix @ self.get_coordinates(X) - self.rhs))


class CoordinateLinearSolverState(SolverState):
    """Inner solver state for :class:`NewtonEquationSubproblem`.

    Every step solves the coordinate system once, warm started from the current
    iterate for the Krylov methods. A direct solve is exact, so the default
    stopping criterion allows a single step.

    Args:
        method: ``"direct"``, ``"bicgstab"`` or ``"gmres"``.
        stopping_criterion: Defaults to one iteration.
        tol: Relative tolerance of the Krylov methods.
    """

    name = "Newton equation solver"
    termination_log_level = logging.DEBUG

    def __init__(
        self,
        method: LinearSolverMethod = "direct",
        stopping_criterion: StoppingCriterion | None = None,
        tol: float = NumericalConstants.RTOL,
    ):
        """Initialize the inner solver."""
        if method not in ("direct", "bicgstab", "gmres"):
            raise SolverConfigurationError("method", method, "must be 'direct', 'bicgstab' or 'gmres'")
        super().__init__(StopAfterIteration(1) if stopping_criterion is None else stopping_criterion)
        self.method = method
        self.tol = tol
        self.X: TangentVector | None = None

    def step(self, problem: NewtonEquationSubproblem, k: int) -> "CoordinateLinearSolverState":
        """Solve the coordinate system starting from the current iterate."""
        x0 = None if self.X is None else problem.get_coordinates(self.X)
        c = _solve_coordinates(problem.matrix, problem.rhs, self.method, x0=x0, tol=self.tol)
        self.X = problem.get_vector(c)
        logger.debug(f"Newton equation residual after step {k}: {problem.residual_norm(self.X):.3e}")
        return self

    def get_iterate(self) -> TangentVector:
        """Current tangent vector."""
        return self.X

    def set_iterate(self, manifold: Manifold, p: TangentVector) -> "CoordinateLinearSolverState":
        """Replace the current tangent vector."""
        if self.X is None or jnp.shape(self.X) != jnp.shape(p):
            self.X = manifold.copy(p)
        else:
            self.X = manifold.copyto(self.X, p)
        return self

    def get_direction(self) -> TangentVector:
        """The current tangent vector."""
        return self.X

    def parameter_summary(self) -> list[str]:
        """Linear solver method."""
        return [f"method: {self.method}", f"tolerance: {self.tol}"]
