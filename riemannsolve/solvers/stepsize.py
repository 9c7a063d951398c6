"""Stepsize strategies.

A stepsize is called as ``stepsize(problem, state, k)`` after the search
direction of iteration k has been stored on the state, and returns the step
length used by the retraction. Stepsize objects hold configuration only;
anything a strategy needs to remember between trials lives on the solver
state.
"""

import logging
from typing import Any, Literal

from ..core.constants import NumericalConstants, SolverDefaults
from .errors import DampingFailedError, SolverConfigurationError

logger = logging.getLogger(__name__)

StepsizeType = Literal["relative", "absolute"]
"""``"absolute"`` divides the step by the norm of the search direction."""


def _validate_type(step_type: str) -> None:
    if step_type not in ("relative", "absolute"):
        raise SolverConfigurationError("type", step_type, "must be 'relative' or 'absolute'")


def _normalize(step: float, problem: Any, state: Any) -> float:
    """Divide step by the norm of the state's direction unless that norm vanishes."""
    norm = float(problem.manifold.norm(state.get_iterate(), state.get_direction()))
    if norm > NumericalConstants.MACHINE_EPSILON:
        return step / norm
    return step


class Stepsize:
    """Base class of all stepsize strategies."""

    def __call__(self, problem: Any, state: Any, k: int) -> float:
        """Step length for iteration k."""
        raise NotImplementedError("Subclasses must implement the stepsize rule")

    def initial_stepsize(self) -> float:
        """Step length before any iteration, used for display."""
        return 1.0


class ConstantStepsize(Stepsize):
    """A fixed step length.

    Args:
        length: The step length.
        type: ``"relative"`` uses ``length`` as is, ``"absolute"`` divides it
            by the norm of the search direction so the iterate moves by
            ``length`` measured along the retraction curve.
    """

    def __init__(self, length: float = 1.0, type: StepsizeType = "relative"):  # noqa: A002
        """Initialize the constant stepsize.

        Raises:
            SolverConfigurationError: If the length is negative or the type unknown.
        """
        if length < 0:
            raise SolverConfigurationError("length", length, "must be non-negative")
        _validate_type(type)
        self.length = float(length)
        self.type = type

    def __call__(self, problem: Any, state: Any, k: int) -> float:
        """Return the configured length, normalized for absolute steps."""
        if self.type == "absolute":
            return _normalize(self.length, problem, state)
        return self.length

    def initial_stepsize(self) -> float:
        """The configured length."""
        return self.length

    def __repr__(self) -> str:
        """String representation of the stepsize."""
        return f"ConstantStepsize({self.length}, type={self.type!r})"


class DecreasingStepsize(Stepsize):
    """Step lengths that shrink with the iteration count.

    In iteration k the step length is::

        (length - k * subtrahend) * factor**k / (k + shift)**exponent

    Args:
        length: Initial length.
        factor: Geometric decay per iteration.
        subtrahend: Linear decay per iteration.
        exponent: Power of the harmonic decay.
        shift: Offset of k in the harmonic decay.
        type: ``"relative"`` or ``"absolute"``, see :class:`ConstantStepsize`.
    """

    def __init__(
        self,
        length: float = 1.0,
        factor: float = 1.0,
        subtrahend: float = 0.0,
        exponent: float = 1.0,
        shift: int = 0,
        type: StepsizeType = "relative",  # noqa: A002
    ):
        """Initialize the decreasing stepsize.

        Raises:
            SolverConfigurationError: If a parameter is out of range.
        """
        if length < 0:
            raise SolverConfigurationError("length", length, "must be non-negative")
        if factor <= 0:
            raise SolverConfigurationError("factor", factor, "must be positive")
        if shift < 0:
            raise SolverConfigurationError("shift", shift, "must be non-negative")
        _validate_type(type)
        self.length = float(length)
        self.factor = float(factor)
        self.subtrahend = float(subtrahend)
        self.exponent = float(exponent)
        self.shift = shift
        self.type = type

    def __call__(self, problem: Any, state: Any, k: int) -> float:
        """Return the step length of iteration k."""
        step = (self.length - k * self.subtrahend) * self.factor**k / (k + self.shift) ** self.exponent
        if self.type == "absolute":
            return _normalize(step, problem, state)
        return step

    def initial_stepsize(self) -> float:
        """The initial length."""
        return self.length

    def __repr__(self) -> str:
        """String representation of the stepsize."""
        return (
            f"DecreasingStepsize(length={self.length}, factor={self.factor}, subtrahend={self.subtrahend}, "
            f"exponent={self.exponent}, shift={self.shift}, type={self.type!r})"
        )


class AffineCovariantStepsize(Stepsize):
    """Affine covariant damping of Newton steps following Deuflhard.

    Starting from a full step, a trial point is retracted along the Newton
    direction and the simplified Newton direction at the trial point is
    computed with the derivative frozen at the current iterate. Their ratio
    estimates the contraction ``theta``; the damping is shrunk to
    ``alpha * theta_des / theta`` until ``theta`` drops to ``theta_acc``.

    The damping factor, contraction estimate and trial point are kept on the
    solver state (``alpha``, ``theta``, ``p_trial``, ``is_same``), so one
    instance can be shared between solvers.

    Args:
        theta_des: Desired contraction.
        theta_acc: Acceptance bound, defaults to ``1.1 * theta_des``.
        max_trials: Trial steps allowed per search before it fails.
        min_alpha: Smallest damping factor tried before the search fails.
    """

    def __init__(
        self,
        theta_des: float = SolverDefaults.THETA_DESIRED,
        theta_acc: float | None = None,
        max_trials: int = SolverDefaults.MAX_DAMPING_TRIALS,
        min_alpha: float = SolverDefaults.MIN_DAMPING,
    ):
        """Initialize the damping parameters.

        Raises:
            SolverConfigurationError: If a parameter is out of range.
        """
        if theta_acc is None:
            theta_acc = SolverDefaults.THETA_ACCEPT_FACTOR * theta_des
        if theta_des <= 0:
            raise SolverConfigurationError("theta_des", theta_des, "must be positive")
        if theta_acc < theta_des:
            raise SolverConfigurationError("theta_acc", theta_acc, f"must be at least theta_des={theta_des}")
        if max_trials < 1:
            raise SolverConfigurationError("max_trials", max_trials, "must be at least 1")
        if min_alpha <= 0:
            raise SolverConfigurationError("min_alpha", min_alpha, "must be positive")
        self.theta_des = float(theta_des)
        self.theta_acc = float(theta_acc)
        self.max_trials = max_trials
        self.min_alpha = float(min_alpha)

    def __call__(self, problem: Any, state: Any, k: int) -> float:
        """Search the damping factor for the Newton direction stored on state.

        Raises:
            DampingFailedError: If the acceptance bound is not reached within
                ``max_trials`` trials or the damping drops below ``min_alpha``.
        """
        manifold = problem.manifold
        state.alpha = 1.0
        state.theta = SolverDefaults.THETA_INITIAL
        direction_norm = float(manifold.norm(state.p, state.X))
        if direction_norm <= NumericalConstants.EPSILON:
            state.theta = 0.0
            state.is_same = True
            logger.debug(f"Iteration {k}: Newton direction vanishes, taking a full step")
            return state.alpha

        alpha_new = 1.0
        trials = 0
        while state.theta > self.theta_acc:
            if trials >= self.max_trials or alpha_new < self.min_alpha:
                state.is_same = True
                logger.warning(f"Iteration {k}: damping search stopped after {trials} trials, theta={state.theta:.3e}")
                raise DampingFailedError(
                    f"Affine covariant damping failed in iteration {k}: theta={state.theta:.3e} "
                    f"after {trials} trials with alpha={alpha_new:.3e}",
                    iteration=k,
                    alpha=alpha_new,
                    theta=state.theta,
                    trials=trials,
                )
            trials += 1
            state.alpha = alpha_new
            state.p_trial = manifold.retract(state.p, state.X, state.alpha, state.retraction_method)
            state.is_same = False
            simplified = state.compute_direction(problem, k)
            state.theta = float(manifold.norm(state.p, simplified)) / direction_norm
            if state.theta > 0:
                alpha_new = min(1.0, state.alpha * self.theta_des / state.theta)
        state.is_same = True
        logger.debug(f"Iteration {k}: accepted damping alpha={state.alpha:.3e} (theta={state.theta:.3e}, {trials} trials)")
        return state.alpha

    def __repr__(self) -> str:
        """String representation of the stepsize."""
        return f"AffineCovariantStepsize(theta_des={self.theta_des}, theta_acc={self.theta_acc})"
