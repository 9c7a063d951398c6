"""Configuration constants for the riemannsolve library.

This module defines numerical constants and solver defaults used throughout
the library to ensure consistent behavior and eliminate magic numbers.
"""


class NumericalConstants:
    """Numerical constants for stability and tolerance in mathematical operations.

    These constants are used throughout the library for numerical comparisons,
    convergence criteria, and stability checks in manifold operations.
    """

    EPSILON: float = 1e-10
    """Numerical stability threshold for small value detection."""

    RTOL: float = 1e-8
    """Relative tolerance for numerical comparisons."""

    ATOL: float = 1e-10
    """Absolute tolerance for numerical comparisons."""

    MACHINE_EPSILON: float = 2.220446049250313e-16
    """Machine epsilon of float64, guards the normalization of stepsizes."""

    MAX_CONDITION: float = 1e12
    """Largest acceptable condition number of a reduced Newton system."""

    VALIDATION_TOLERANCE: float = 1e-6
    """Tolerance for validating points on manifolds."""


class SolverDefaults:
    """Default parameters of the iterative solvers.

    The affine covariant values follow Deuflhard's damping strategy: the trial
    contraction starts above the acceptance bound so that at least one trial
    step is always evaluated.
    """

    SUBGRADIENT_MAX_ITERATIONS: int = 5000
    """Iteration budget of the subgradient method."""

    NEWTON_MAX_ITERATIONS: int = 1000
    """Iteration budget of the vector bundle Newton method."""

    THETA_INITIAL: float = 1.3
    """Contraction estimate each damping search starts from."""

    THETA_DESIRED: float = 0.5
    """Desired contraction of the simplified Newton correction."""

    THETA_ACCEPT_FACTOR: float = 1.1
    """Acceptance bound as a multiple of the desired contraction."""

    MAX_DAMPING_TRIALS: int = 50
    """Maximal number of trial steps per damping search."""

    MIN_DAMPING: float = 1e-15
    """Damping factors below this value are reported as failure."""
