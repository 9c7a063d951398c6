"""Tests for the generic driver loop and the recorder."""

import logging

import jax.numpy as jnp
import pytest

import riemannsolve as rs
from riemannsolve.solvers import SolverConfigurationError, SolverState


class CountingState(SolverState):
    """Moves one unit along the first axis per step and logs the calls it receives."""

    name = "Counting solver"

    def __init__(self, stop, p):
        super().__init__(stop)
        self.p = p
        self.X = jnp.zeros_like(p)
        self.calls = []

    def initialize(self, problem):
        self.calls.append("initialize")
        return self

    def step(self, problem, k):
        self.calls.append(k)
        self.X = jnp.zeros_like(self.p).at[0].set(1.0)
        self.p = self.p + self.X
        self.last_stepsize = 1.0
        return self

    def get_iterate(self):
        return self.p

    def set_iterate(self, manifold, p):
        self.p = manifold.copyto(self.p, p)
        return self

    def get_direction(self):
        return self.X


class FailingState(CountingState):
    """Raises in the third step."""

    def step(self, problem, k):
        if k == 3:
            raise FloatingPointError("callback failed")
        return super().step(problem, k)


@pytest.fixture
def problem():
    """A problem on R^2 with the squared norm as cost."""
    return rs.ManifoldProblem(rs.Euclidean(2), rs.SubgradientObjective(lambda M, p: jnp.sum(p**2), lambda M, p: 2 * p))


def test_driver_initializes_once_and_counts_from_one(problem):
    """initialize runs first, steps are numbered 1, 2, ..."""
    state = CountingState(rs.StopAfterIteration(3), jnp.zeros(2))
    result = rs.solve(problem, state)
    assert result is state
    assert state.calls == ["initialize", 1, 2, 3]
    assert state.iteration == 3
    assert jnp.array_equal(state.get_solver_result(), jnp.array([3.0, 0.0]))


def test_zero_budget_performs_no_step(problem):
    """A criterion firing at k = 0 stops before the first step."""
    state = CountingState(rs.StopAfterIteration(0), jnp.zeros(2))
    rs.solve(problem, state)
    assert state.calls == ["initialize"]
    assert state.iteration == 0


def test_errors_propagate_and_keep_state(problem):
    """Errors of a step abort the solve, the last completed step is kept."""
    state = FailingState(rs.StopAfterIteration(10), jnp.zeros(2))
    with pytest.raises(FloatingPointError, match="callback failed"):
        rs.solve(problem, state)
    assert state.iteration == 2
    assert jnp.array_equal(state.p, jnp.array([2.0, 0.0]))


def test_termination_is_logged(problem, caplog):
    """The stopping reason is logged at INFO, iterations at DEBUG."""
    state = CountingState(rs.StopAfterIteration(2), jnp.zeros(2))
    with caplog.at_level(logging.DEBUG, logger="riemannsolve.solvers.solve"):
        rs.solve(problem, state)
    records = [r for r in caplog.records if r.name == "riemannsolve.solvers.solve"]
    info = [r for r in records if r.levelno == logging.INFO]
    debug = [r for r in records if r.levelno == logging.DEBUG]
    assert len(info) == 1
    assert "Counting solver stopped after 2 iterations" in info[0].getMessage()
    assert len(debug) == 2


def test_status_summary_after_solve(problem):
    """The state's representation reports iterations and the stopping criterion."""
    state = CountingState(rs.StopAfterIteration(2), jnp.zeros(2))
    rs.solve(problem, state)
    summary = repr(state)
    assert "# Solver state for the Counting solver" in summary
    assert "After 2 iterations" in summary
    assert "Max Iteration 2: reached" in summary
    assert "This indicates convergence: No" in summary


class TestRecorder:
    """Test recording of per-iteration values."""

    def test_records_requested_fields(self, problem):
        """Every iteration appends one value per field."""
        state = CountingState(rs.StopAfterIteration(3), jnp.zeros(2))
        recorder = rs.Recorder(["iteration", "iterate", "change", "cost", "stepsize", "direction_norm"])
        rs.solve(problem, state, recorder=recorder)
        assert len(recorder) == 3
        assert state.get_record("iteration") == [1, 2, 3]
        assert state.get_record("change") == [1.0, 1.0, 1.0]
        assert state.get_record("cost") == [1.0, 4.0, 9.0]
        assert state.get_record("stepsize") == [1.0, 1.0, 1.0]
        assert state.get_record("direction_norm") == [1.0, 1.0, 1.0]
        assert jnp.array_equal(state.get_record("iterate")[1], jnp.array([2.0, 0.0]))

    def test_single_field_string(self, problem):
        """A single field may be given as a string."""
        recorder = rs.Recorder("cost")
        assert recorder.fields == ("cost",)

    def test_records_are_cleared_on_restart(self, problem):
        """Solving again starts new records."""
        state = CountingState(rs.StopAfterIteration(2), jnp.zeros(2))
        recorder = rs.Recorder(["iteration"])
        rs.solve(problem, state, recorder=recorder)
        rs.solve(problem, state)
        assert state.get_record("iteration") == [1, 2]

    def test_unknown_field_is_rejected(self):
        """Only known fields can be recorded."""
        with pytest.raises(SolverConfigurationError):
            rs.Recorder(["gradient"])

    def test_missing_records(self, problem):
        """Asking for unrecorded values raises KeyError."""
        state = CountingState(rs.StopAfterIteration(1), jnp.zeros(2))
        with pytest.raises(KeyError):
            state.get_record("cost")
        rs.solve(problem, state, recorder=rs.Recorder(["cost"]))
        with pytest.raises(KeyError):
            state.get_record("change")
