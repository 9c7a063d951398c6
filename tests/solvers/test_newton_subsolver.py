"""Tests for the Newton equation sub-solvers."""

import jax.numpy as jnp
import numpy as np
import pytest

import riemannsolve as rs
from riemannsolve.manifolds import DimensionError, NumericalStabilityError
from riemannsolve.solvers import (
    NumericalDegeneracyError,
    SolverConfigurationError,
    SolverError,
    assemble_newton_system,
    newton_right_hand_side,
)

A = jnp.array([[2.0, 1.0], [0.0, 3.0]])
B = jnp.array([1.0, 3.0])


def identity_connection(E, q):
    """Connection map of a tangent bundle of a flat space."""
    return q


@pytest.fixture
def plane():
    """R^2."""
    return rs.Euclidean(2)


@pytest.fixture
def linear_problem(plane):
    """F(p) = A p - B on R^2, its zero is (0, 1)."""
    objective = rs.VectorbundleObjective(lambda M, p: A @ p - B, lambda M, p: A, identity_connection)
    return rs.VectorbundleProblem(plane, rs.TangentBundle(plane), objective)


@pytest.fixture
def sphere_problem():
    """Tangential part of a constant field on S^2, F(p) = proj_p(a)."""
    sphere = rs.Sphere(2)
    a = jnp.array([0.6, 0.0, 0.8])
    objective = rs.VectorbundleObjective(
        lambda M, p: M.proj(p, a),
        lambda M, p: (lambda X: -jnp.dot(a, p) * X),
        identity_connection,
    )
    return rs.VectorbundleProblem(sphere, rs.TangentBundle(sphere), objective)


def newton_state(problem, p, sub_problem=rs.newton_direction, sub_state=rs.EvaluationType.ALLOCATING):
    """Newton state at p for the given problem."""
    return rs.VectorbundleNewtonState(problem.manifold, problem.vectorbundle, p, sub_problem, sub_state)


class TestAssembly:
    """Reduction of the Newton equation to coordinates."""

    def test_euclidean_matrix_is_the_derivative(self, linear_problem):
        """In the standard basis the coordinate matrix is the derivative matrix."""
        matrix, rhs, basis = assemble_newton_system(linear_problem, jnp.zeros(2))
        np.testing.assert_allclose(matrix, A)
        np.testing.assert_allclose(rhs, B)
        np.testing.assert_allclose(basis, jnp.eye(2))

    def test_scaling_enters_right_hand_side(self, plane):
        """The right hand side is scaled by the objective's scaling."""
        objective = rs.VectorbundleObjective(lambda M, p: A @ p - B, lambda M, p: A, identity_connection, scaling=0.5)
        problem = rs.VectorbundleProblem(plane, rs.TangentBundle(plane), objective)
        np.testing.assert_allclose(newton_right_hand_side(problem, jnp.zeros(2)), 0.5 * B)

    def test_sphere_system_in_tangent_coordinates(self, sphere_problem):
        """On S^2 the system has the manifold's dimension."""
        matrix, rhs, _ = assemble_newton_system(sphere_problem, jnp.array([0.0, 0.0, 1.0]))
        assert matrix.shape == (2, 2)
        np.testing.assert_allclose(matrix, -0.8 * jnp.eye(2), atol=1e-12)
        np.testing.assert_allclose(rhs, jnp.array([-0.6, 0.0]), atol=1e-12)

    def test_fiber_dimension_must_match(self, plane):
        """Fibers of another dimension cannot give a square system."""
        objective = rs.VectorbundleObjective(lambda M, p: jnp.zeros(3), lambda M, p: jnp.ones((3, 2)), identity_connection)
        problem = rs.VectorbundleProblem(plane, rs.TrivialBundle(plane, 3), objective)
        with pytest.raises(DimensionError):
            assemble_newton_system(problem, jnp.zeros(2))

    def test_residual_is_transported_from_trial_point(self, sphere_problem):
        """A residual at another point is moved into the fiber over the base point."""
        sphere = sphere_problem.manifold
        p = jnp.array([0.0, 0.0, 1.0])
        q = sphere.exp(p, jnp.array([0.3, 0.1, 0.0]))
        rhs = newton_right_hand_side(sphere_problem, p, q)
        expected = -sphere.transp(q, p, sphere.proj(q, jnp.array([0.6, 0.0, 0.8])))
        np.testing.assert_allclose(rhs, expected, atol=1e-12)
        assert sphere.validate_tangent(p, rhs)


class TestSolveNewtonEquation:
    """Direct solution of the Newton equation."""

    def test_linear_problem(self, linear_problem):
        """The Newton direction of an affine map points to its zero."""
        X = rs.solve_newton_equation(linear_problem, jnp.zeros(2))
        np.testing.assert_allclose(X, jnp.array([0.0, 1.0]), atol=1e-12)

    def test_sphere_direction(self, sphere_problem):
        """The direction on S^2 is tangent and solves -0.8 X = -proj_p(a)."""
        p = jnp.array([0.0, 0.0, 1.0])
        X = rs.solve_newton_equation(sphere_problem, p)
        np.testing.assert_allclose(X, jnp.array([0.75, 0.0, 0.0]), atol=1e-12)

    def test_residual_point(self, linear_problem):
        """The residual at q with the derivative at p gives a simplified direction."""
        X = rs.solve_newton_equation(linear_problem, jnp.zeros(2), jnp.array([0.0, 1.0]))
        np.testing.assert_allclose(X, jnp.zeros(2), atol=1e-12)

    def test_condition_check_rejects_singular_systems(self, plane):
        """An ill-conditioned system is rejected before solving."""
        singular = jnp.array([[1.0, 2.0], [2.0, 4.0]])
        objective = rs.VectorbundleObjective(lambda M, p: p - 1.0, lambda M, p: singular, identity_connection)
        problem = rs.VectorbundleProblem(plane, rs.TangentBundle(plane), objective)
        with pytest.raises(NumericalStabilityError):
            rs.solve_newton_equation(problem, jnp.zeros(2), check_condition=True)

    def test_zero_derivative_gives_no_finite_solution(self, plane):
        """A vanishing derivative is reported as numerical degeneracy."""
        objective = rs.VectorbundleObjective(
            lambda M, p: p - 1.0, lambda M, p: jnp.zeros((2, 2)), identity_connection
        )
        problem = rs.VectorbundleProblem(plane, rs.TangentBundle(plane), objective)
        with pytest.raises(NumericalDegeneracyError):
            rs.solve_newton_equation(problem, jnp.zeros(2))


class TestDirectionCallbacks:
    """Sub-problem callbacks for the Newton method."""

    def test_allocating_callback_uses_state_points(self, linear_problem):
        """The callback evaluates the residual at the trial point when it differs."""
        state = newton_state(linear_problem, jnp.zeros(2))
        np.testing.assert_allclose(rs.newton_direction(linear_problem, state, 1), jnp.array([0.0, 1.0]), atol=1e-12)
        state.p_trial = jnp.array([0.0, 1.0])
        state.is_same = False
        np.testing.assert_allclose(rs.newton_direction(linear_problem, state, 1), jnp.zeros(2), atol=1e-12)

    def test_inplace_callback_returns_filled_buffer(self, linear_problem):
        """The in-place callback returns the buffer holding the direction."""
        state = newton_state(
            linear_problem, jnp.zeros(2), rs.newton_direction_into, rs.EvaluationType.INPLACE
        )
        X = rs.newton_direction_into(linear_problem, jnp.ones(2), state, 1)
        np.testing.assert_allclose(X, jnp.array([0.0, 1.0]), atol=1e-12)


class TestNewtonEquationSubproblem:
    """Sub-problem and sub-state pair solved by the driver loop."""

    def test_unlinearized_use_raises(self):
        """Nothing can be asked before the first linearization."""
        sub_problem = rs.NewtonEquationSubproblem()
        with pytest.raises(SolverError):
            sub_problem.manifold
        with pytest.raises(SolverError):
            sub_problem.get_coordinates(jnp.zeros(2))

    def test_linearization(self, linear_problem):
        """Linearizing stores the system at the state's iterate."""
        sub_problem = rs.NewtonEquationSubproblem()
        state = newton_state(linear_problem, jnp.zeros(2), sub_problem, rs.CoordinateLinearSolverState())
        assert sub_problem.linearize_at(linear_problem, state) is sub_problem
        assert sub_problem.manifold.shape == (2,)
        np.testing.assert_allclose(sub_problem.matrix, A)
        assert sub_problem.residual_norm(jnp.array([0.0, 1.0])) == pytest.approx(0.0, abs=1e-12)

    def test_condition_check_on_linearization(self, plane):
        """The sub-problem can reject ill-conditioned systems."""
        singular = jnp.array([[1.0, 2.0], [2.0, 4.0]])
        objective = rs.VectorbundleObjective(lambda M, p: p, lambda M, p: singular, identity_connection)
        problem = rs.VectorbundleProblem(plane, rs.TangentBundle(plane), objective)
        sub_problem = rs.NewtonEquationSubproblem(check_condition=True)
        state = newton_state(problem, jnp.zeros(2), sub_problem, rs.CoordinateLinearSolverState())
        with pytest.raises(NumericalStabilityError):
            sub_problem.linearize_at(problem, state)

    @pytest.mark.parametrize("method", ["direct", "bicgstab", "gmres"])
    def test_inner_solve(self, linear_problem, method):
        """All linear solvers find the Newton direction."""
        sub_problem = rs.NewtonEquationSubproblem()
        sub_state = rs.CoordinateLinearSolverState(method)
        state = newton_state(linear_problem, jnp.zeros(2), sub_problem, sub_state)
        sub_problem.linearize_at(linear_problem, state)
        sub_state.set_iterate(sub_problem.manifold, jnp.zeros(2))
        rs.solve(sub_problem, sub_state)
        assert sub_state.iteration == 1
        np.testing.assert_allclose(sub_state.get_solver_result(), jnp.array([0.0, 1.0]), atol=1e-6)

    def test_unknown_method_rejected(self):
        """Only the supported linear solvers can be chosen."""
        with pytest.raises(SolverConfigurationError):
            rs.CoordinateLinearSolverState("cholesky")

    def test_set_iterate_adapts_shape(self):
        """Iterates of another shape replace the stored buffer."""
        sub_state = rs.CoordinateLinearSolverState()
        sub_state.set_iterate(rs.Euclidean(2), jnp.ones(2))
        sub_state.set_iterate(rs.Euclidean(3), jnp.zeros(3))
        assert sub_state.get_iterate().shape == (3,)
        assert "method: direct" in repr(sub_state)
