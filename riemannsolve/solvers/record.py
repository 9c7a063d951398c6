"""Recording of per-iteration values of a solver run."""

from collections.abc import Callable, Sequence
from typing import Any

from .errors import SolverConfigurationError


def _record_iteration(problem: Any, state: Any, k: int, previous: Any) -> int:
    return k


def _record_iterate(problem: Any, state: Any, k: int, previous: Any) -> Any:
    return problem.manifold.copy(state.get_iterate())


def _record_change(problem: Any, state: Any, k: int, previous: Any) -> float:
    return float(problem.manifold.dist(previous, state.get_iterate()))


def _record_cost(problem: Any, state: Any, k: int, previous: Any) -> float:
    return problem.get_cost(state.get_iterate())


def _record_stepsize(problem: Any, state: Any, k: int, previous: Any) -> float | None:
    return state.last_stepsize


def _record_direction_norm(problem: Any, state: Any, k: int, previous: Any) -> float:
    # the direction of step k lives at the iterate before the step
    return float(problem.manifold.norm(previous, state.get_direction()))


RECORDABLE_FIELDS: dict[str, Callable[[Any, Any, int, Any], Any]] = {
    "iteration": _record_iteration,
    "iterate": _record_iterate,
    "change": _record_change,
    "cost": _record_cost,
    "stepsize": _record_stepsize,
    "direction_norm": _record_direction_norm,
}


class Recorder:
    """Collects selected quantities after every iteration.

    Supported fields are ``"iteration"``, ``"iterate"``, ``"change"`` (distance
    to the previous iterate), ``"cost"`` (problems with a cost only),
    ``"stepsize"`` and ``"direction_norm"``.

    Example:
        >>> state = solve(problem, state, recorder=Recorder(["cost", "change"]))
        >>> costs = state.get_record("cost")
    """

    def __init__(self, fields: Sequence[str]):
        """Initialize the recorder.

        Raises:
            SolverConfigurationError: If a field is not recordable.
        """
        fields = [fields] if isinstance(fields, str) else list(fields)
        unknown = [f for f in fields if f not in RECORDABLE_FIELDS]
        if unknown:
            raise SolverConfigurationError("record", unknown, f"fields must be among {sorted(RECORDABLE_FIELDS)}")
        self.fields = tuple(fields)
        self.records: dict[str, list[Any]] = {f: [] for f in self.fields}
        self._previous: Any = None

    def start(self, problem: Any, state: Any) -> None:
        """Clear previous records and remember the initial iterate."""
        self.records = {f: [] for f in self.fields}
        self._previous = problem.manifold.copy(state.get_iterate())

    def record(self, problem: Any, state: Any, k: int) -> None:
        """Append the values of iteration k."""
        for field in self.fields:
            self.records[field].append(RECORDABLE_FIELDS[field](problem, state, k, self._previous))
        self._previous = problem.manifold.copy(state.get_iterate())

    def get(self, field: str) -> list[Any]:
        """Recorded values of ``field``.

        Raises:
            KeyError: If ``field`` was not recorded.
        """
        if field not in self.records:
            raise KeyError(f"Field '{field}' was not recorded, recorded fields are {list(self.fields)}")
        return self.records[field]

    def __len__(self) -> int:
        """Number of recorded iterations."""
        if not self.fields:
            return 0
        return len(self.records[self.fields[0]])

    def __repr__(self) -> str:
        """String representation of the recorder."""
        return f"Recorder({list(self.fields)})"
