"""Generic driver loop shared by all solvers."""

import logging
from typing import Any

from .record import Recorder
from .state import SolverState

logger = logging.getLogger(__name__)


def solve(problem: Any, state: SolverState, recorder: Recorder | None = None) -> SolverState:
    """Run a solver until its stopping criterion fires.

    The state is initialized, then the stopping criterion is asked before every
    iteration, starting with ``k = 0`` which also resets it. Each iteration
    calls ``state.step(problem, k)`` with ``k`` counted from 1.

    Args:
        problem: Problem the state is solved for.
        state: Solver state, modified in place.
        recorder: Optional recorder attached to the state for this run.

    Returns:
        The state after the solver stopped. Errors raised by a step propagate
        unchanged and leave the state as it was at that moment.
    """
    if recorder is not None:
        state.recorder = recorder
    state.initialize(problem)
    state.iteration = 0
    if state.recorder is not None:
        state.recorder.start(problem, state)

    k = 0
    while not state.stop(problem, state, k):
        k += 1
        state.step(problem, k)
        state.iteration = k
        if state.recorder is not None:
            state.recorder.record(problem, state, k)
        logger.debug(f"{state.name} iteration {k}: stepsize={state.last_stepsize}")

    logger.log(state.termination_log_level, f"{state.name} stopped after {k} iterations: {state.stop.reason}")
    return state
