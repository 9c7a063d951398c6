"""Base class of all solver states.

A solver state owns everything that changes while a solver runs: the current
iterate, directions, scratch points, the stopping criterion and recorded
values. The driver loop in :mod:`riemannsolve.solvers.solve` only talks to a
state through ``initialize``, ``step``, its stopping criterion and
``get_solver_result``, so any state implementing these can be solved.
"""

import logging
from typing import TYPE_CHECKING, Any

from ..core.type_system import ManifoldPoint, TangentVector

if TYPE_CHECKING:
    from .record import Recorder
    from .stopping import StoppingCriterion


class SolverState:
    """Mutable state of an iterative solver.

    Attributes:
        stop: Stopping criterion deciding when the driver loop terminates.
        iteration: Number of completed steps.
        recorder: Optional recorder snapshotting the state after every step.
        last_stepsize: Step length used by the most recent step.
        termination_log_level: Level of the driver loop's termination message.
    """

    name: str = "Solver"
    termination_log_level: int = logging.INFO

    def __init__(self, stop: "StoppingCriterion"):
        """Initialize the common solver bookkeeping."""
        self.stop = stop
        self.iteration = 0
        self.recorder: Recorder | None = None
        self.last_stepsize: float | None = None

    def initialize(self, problem: Any) -> "SolverState":
        """Prepare the state before the first step."""
        return self

    def step(self, problem: Any, k: int) -> "SolverState":
        """Perform iteration k (counted from 1)."""
        raise NotImplementedError("Subclasses must implement the solver step")

    def get_iterate(self) -> ManifoldPoint:
        """Current iterate."""
        raise NotImplementedError("Subclasses must expose their iterate")

    def set_iterate(self, manifold: Any, p: ManifoldPoint) -> "SolverState":
        """Replace the current iterate by p."""
        raise NotImplementedError("Subclasses must allow setting their iterate")

    def get_direction(self) -> TangentVector:
        """Tangent vector the most recent step moved along."""
        raise NotImplementedError("Subclasses must expose their search direction")

    def get_solver_result(self) -> ManifoldPoint:
        """Point returned to the caller once the solver stopped."""
        return self.get_iterate()

    def get_record(self, field: str) -> list[Any]:
        """Values recorded for ``field``, one per iteration.

        Raises:
            KeyError: If nothing was recorded for ``field``.
        """
        if self.recorder is None:
            raise KeyError(f"No recorder attached to {self.name} state")
        return self.recorder.get(field)

    def parameter_summary(self) -> list[str]:
        """Lines describing the solver parameters, used by ``__repr__``."""
        return []

    def status_summary(self) -> str:
        """Human readable status of the solver."""
        lines = [f"# Solver state for the {self.name}"]
        if self.iteration > 0:
            lines.append(f"After {self.iteration} iterations")
        lines.append("")
        lines.append("## Parameters")
        lines.extend(f"* {line}" for line in self.parameter_summary())
        lines.append("")
        lines.append("## Stopping criterion")
        lines.append("")
        lines.append(self.stop.status_summary())
        lines.append(f"This indicates convergence: {'Yes' if self.stop.indicates_convergence() else 'No'}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        """String representation of the state."""
        return self.status_summary()


def get_solver_return(state: SolverState, return_state: bool = False) -> Any:
    """Return either the whole state or only its result point."""
    return state if return_state else state.get_solver_result()
