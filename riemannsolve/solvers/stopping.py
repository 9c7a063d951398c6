"""Stopping criteria for the iterative solvers.

A stopping criterion is called as ``criterion(problem, state, k)`` before
every iteration, starting with ``k = 0`` before the first step. The call with
``k = 0`` resets the criterion, so a criterion instance can be reused across
solves. Once a criterion fires it stores a human readable ``reason``.

Criteria compose with ``|`` (stop when any fires) and ``&`` (stop when all
fire). Whether the stop means the solver converged, rather than ran out of
budget, is answered by ``indicates_convergence``.
"""

import logging
from typing import Any

from ..core.type_system import ManifoldPoint
from .errors import SolverConfigurationError

logger = logging.getLogger(__name__)


class StoppingCriterion:
    """Base class of all stopping criteria.

    Attributes:
        reason: Why the criterion fired, empty while it has not.
        at_iteration: Iteration the criterion fired at, -1 while it has not.
    """

    def __init__(self) -> None:
        """Initialize an unfired criterion."""
        self.reason = ""
        self.at_iteration = -1

    def __call__(self, problem: Any, state: Any, k: int) -> bool:
        """Return whether the solver should stop before iteration k + 1."""
        raise NotImplementedError("Subclasses must implement the stopping check")

    def reset(self) -> None:
        """Forget a previous firing."""
        self.reason = ""
        self.at_iteration = -1

    def _fire(self, k: int, reason: str) -> bool:
        self.at_iteration = k
        self.reason = reason
        logger.debug(f"{self.__class__.__name__} fired at iteration {k}")
        return True

    def indicates_convergence(self) -> bool:
        """Whether a firing of this criterion means the solver converged."""
        return False

    def status_summary(self) -> str:
        """One line summary of the criterion and whether it fired."""
        mark = "reached" if self.at_iteration >= 0 else "not reached"
        return f"{self.__class__.__name__}: {mark}"

    def __or__(self, other: "StoppingCriterion") -> "StopWhenAny":
        """Stop when either criterion fires."""
        return StopWhenAny(self, other)

    def __and__(self, other: "StoppingCriterion") -> "StopWhenAll":
        """Stop when both criteria fire."""
        return StopWhenAll(self, other)


class StopAfterIteration(StoppingCriterion):
    """Stop once a fixed number of iterations has been performed."""

    def __init__(self, max_iterations: int):
        """Initialize the iteration budget.

        Raises:
            SolverConfigurationError: If the budget is negative.
        """
        super().__init__()
        if max_iterations < 0:
            raise SolverConfigurationError("max_iterations", max_iterations, "must be non-negative")
        self.max_iterations = max_iterations

    def __call__(self, problem: Any, state: Any, k: int) -> bool:
        """Fire when k reaches the budget."""
        if k == 0:
            self.reset()
        if k >= self.max_iterations:
            return self._fire(k, f"The algorithm reached its maximal number of iterations ({self.max_iterations}).")
        return False

    def status_summary(self) -> str:
        """One line summary with the budget."""
        mark = "reached" if self.at_iteration >= 0 else "not reached"
        return f"Max Iteration {self.max_iterations}: {mark}"


class StopWhenChangeLess(StoppingCriterion):
    """Stop when two successive iterates are closer than a tolerance.

    The distance is measured with the problem's manifold.
    """

    def __init__(self, tolerance: float):
        """Initialize the tolerance.

        Raises:
            SolverConfigurationError: If the tolerance is not positive.
        """
        super().__init__()
        if tolerance <= 0:
            raise SolverConfigurationError("tolerance", tolerance, "must be positive")
        self.tolerance = tolerance
        self.last_change: float | None = None
        self._previous: ManifoldPoint | None = None

    def __call__(self, problem: Any, state: Any, k: int) -> bool:
        """Fire when the last step moved less than the tolerance."""
        manifold = problem.manifold
        current = state.get_iterate()
        if k == 0:
            self.reset()
            self.last_change = None
            self._previous = manifold.copy(current)
            return False
        self.last_change = float(manifold.dist(self._previous, current))
        self._previous = manifold.copy(current)
        if self.last_change < self.tolerance:
            return self._fire(
                k, f"At iteration {k} the algorithm performed a step with a change ({self.last_change}) less than {self.tolerance}."
            )
        return False

    def indicates_convergence(self) -> bool:
        """Small steps indicate convergence."""
        return True

    def status_summary(self) -> str:
        """One line summary with the tolerance."""
        mark = "reached" if self.at_iteration >= 0 else "not reached"
        return f"|Δp| < {self.tolerance}: {mark}"


class StopWhenSubgradientNormLess(StoppingCriterion):
    """Stop when the norm of the last evaluated subgradient is below a tolerance.

    The norm is taken in the tangent space the subgradient lives in, at the
    iterate before the last step.
    """

    def __init__(self, tolerance: float):
        """Initialize the tolerance.

        Raises:
            SolverConfigurationError: If the tolerance is not positive.
        """
        super().__init__()
        if tolerance <= 0:
            raise SolverConfigurationError("tolerance", tolerance, "must be positive")
        self.tolerance = tolerance

    def __call__(self, problem: Any, state: Any, k: int) -> bool:
        """Fire when the subgradient stored on the state is small."""
        if k == 0:
            self.reset()
            return False
        norm = float(problem.manifold.norm(state.get_subgradient_point(), state.get_subgradient()))
        if norm < self.tolerance:
            return self._fire(k, f"The subgradient norm ({norm}) is less than {self.tolerance}.")
        return False

    def indicates_convergence(self) -> bool:
        """A vanishing subgradient indicates a critical point."""
        return True

    def status_summary(self) -> str:
        """One line summary with the tolerance."""
        mark = "reached" if self.at_iteration >= 0 else "not reached"
        return f"|∂f| < {self.tolerance}: {mark}"


class StopWhenAny(StoppingCriterion):
    """Stop when at least one of several criteria fires.

    Every criterion is evaluated in each iteration so that criteria tracking
    previous iterates stay up to date.
    """

    def __init__(self, *criteria: StoppingCriterion):
        """Initialize from the criteria to combine, flattening nested StopWhenAny."""
        super().__init__()
        flat: list[StoppingCriterion] = []
        for criterion in criteria:
            flat.extend(criterion.criteria if isinstance(criterion, StopWhenAny) else (criterion,))
        self.criteria = tuple(flat)

    def __call__(self, problem: Any, state: Any, k: int) -> bool:
        """Fire when any criterion fires."""
        if k == 0:
            self.reset()
        fired = [criterion(problem, state, k) for criterion in self.criteria]
        if any(fired):
            reason = "".join(c.reason + "\n" for c, f in zip(self.criteria, fired, strict=True) if f)
            return self._fire(k, reason.rstrip("\n"))
        return False

    def indicates_convergence(self) -> bool:
        """Whether a fired criterion indicates convergence."""
        return any(c.indicates_convergence() for c in self.criteria if c.at_iteration >= 0)

    def status_summary(self) -> str:
        """Summary of all combined criteria."""
        mark = "reached" if self.at_iteration >= 0 else "not reached"
        lines = [f"Stop When _one_ of the following are fulfilled: {mark}"]
        lines.extend(f"    {c.status_summary()}" for c in self.criteria)
        return "\n".join(lines)


class StopWhenAll(StoppingCriterion):
    """Stop when all of several criteria fire in the same iteration."""

    def __init__(self, *criteria: StoppingCriterion):
        """Initialize from the criteria to combine, flattening nested StopWhenAll."""
        super().__init__()
        flat: list[StoppingCriterion] = []
        for criterion in criteria:
            flat.extend(criterion.criteria if isinstance(criterion, StopWhenAll) else (criterion,))
        self.criteria = tuple(flat)

    def __call__(self, problem: Any, state: Any, k: int) -> bool:
        """Fire when every criterion fires."""
        if k == 0:
            self.reset()
        fired = [criterion(problem, state, k) for criterion in self.criteria]
        if all(fired):
            return self._fire(k, "\n".join(c.reason for c in self.criteria))
        return False

    def indicates_convergence(self) -> bool:
        """Whether any of the combined criteria indicates convergence."""
        return any(c.indicates_convergence() for c in self.criteria)

    def status_summary(self) -> str:
        """Summary of all combined criteria."""
        mark = "reached" if self.at_iteration >= 0 else "not reached"
        lines = [f"Stop When _all_ of the following are fulfilled: {mark}"]
        lines.extend(f"    {c.status_summary()}" for c in self.criteria)
        return "\n".join(lines)
