"""Exception classes raised by the solvers.

Configuration errors are raised while a solver state is built. Numerical
failures are raised from inside a step and abort the solve; errors of user
callbacks and manifold operations are never wrapped.
"""

from typing import Any


class SolverError(Exception):
    """Base exception class for all solver errors."""

    pass


class SolverConfigurationError(SolverError):
    """Raised when a solver cannot be set up from the given arguments.

    This error is raised when:
    - The Newton method is given no sub-problem or no sub-state
    - A stepsize or stopping parameter violates its constraint
    """

    def __init__(self, parameter_name: str, parameter_value: Any, constraint: str):
        """Initialize SolverConfigurationError with detailed information.

        Args:
            parameter_name: Name of the invalid parameter
            parameter_value: Value that failed validation
            constraint: Description of the constraint that was violated
        """
        message = f"Parameter '{parameter_name}' with value {parameter_value!r} violates constraint: {constraint}."
        super().__init__(message)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value
        self.constraint = constraint


class NumericalDegeneracyError(SolverError):
    """Raised when a step runs into a degenerate numerical situation."""

    def __init__(self, message: str, iteration: int | None = None, value: float | None = None):
        """Initialize NumericalDegeneracyError.

        Args:
            message: Error description.
            iteration: Outer iteration the degeneracy occurred in.
            value: The offending quantity, e.g. a norm or a damping factor.
        """
        super().__init__(message)
        self.iteration = iteration
        self.value = value


class DampingFailedError(NumericalDegeneracyError):
    """Raised when the affine covariant damping does not reach the acceptance bound."""

    def __init__(
        self,
        message: str,
        iteration: int | None = None,
        alpha: float | None = None,
        theta: float | None = None,
        trials: int | None = None,
    ):
        """Initialize DampingFailedError with the last trial values."""
        super().__init__(message, iteration=iteration, value=alpha)
        self.alpha = alpha
        self.theta = theta
        self.trials = trials
