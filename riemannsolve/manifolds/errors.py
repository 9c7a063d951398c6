"""Manifold error hierarchy and numerical checks.

This module provides the exceptions raised by manifold operations and the
conditioning check applied to linear systems reduced to tangent space
coordinates.
"""

import jax.numpy as jnp
from jaxtyping import Array


class ManifoldError(Exception):
    """Base exception for manifold-related errors."""

    pass


class DimensionError(ManifoldError):
    """Exception for dimension mismatches in manifold operations."""

    def __init__(self, message: str, expected: int | tuple | None = None, actual: int | tuple | None = None):
        """Initialize DimensionError with dimension information."""
        super().__init__(message)
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        """Return string representation with dimension information."""
        base_msg = super().__str__()
        if self.expected is not None and self.actual is not None:
            return f"{base_msg} (expected={self.expected}, actual={self.actual})"
        return base_msg


class NumericalStabilityError(ManifoldError):
    """Exception for numerical stability issues in manifold computations."""

    def __init__(
        self,
        message: str,
        condition_number: float | None = None,
        matrix_norm: float | None = None,
        recommended_action: str | None = None,
    ):
        """Initialize NumericalStabilityError with numerical diagnostics."""
        super().__init__(message)
        self.condition_number = condition_number
        self.matrix_norm = matrix_norm
        self.recommended_action = recommended_action


class UnsupportedMethodError(ManifoldError):
    """Exception for retraction or transport methods a manifold does not provide."""

    def __init__(self, message: str, method: object = None, manifold_type: str | None = None):
        """Initialize UnsupportedMethodError with the offending method."""
        super().__init__(message)
        self.method = method
        self.manifold_type = manifold_type


def check_numerical_stability(matrix: Array, operation: str, max_condition: float = 1e12) -> None:
    """Check numerical stability of a matrix for a given operation.

    Args:
        matrix: Matrix to check
        operation: Name of operation for error reporting
        max_condition: Maximum acceptable condition number

    Raises:
        NumericalStabilityError: If matrix is numerically unstable
    """
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return

    condition_number = jnp.linalg.cond(matrix)
    # Singular matrices report inf or nan depending on the backend
    if jnp.isinf(condition_number) or jnp.isnan(condition_number):
        condition_number = jnp.inf
    condition_number = float(jnp.real(condition_number))

    if condition_number > max_condition:
        raise NumericalStabilityError(
            f"Matrix is ill-conditioned for operation '{operation}'",
            condition_number=condition_number,
            matrix_norm=float(jnp.linalg.norm(matrix)),
            recommended_action=f"Check the derivative passed to {operation} or regularize the system",
        )


def validate_dimensions_match(arrays: list[Array], operation: str) -> None:
    """Validate that arrays have identical shapes for an operation.

    Args:
        arrays: List of arrays to check
        operation: Name of operation for error reporting

    Raises:
        DimensionError: If shapes don't match
    """
    if len(arrays) < 2:
        return

    reference_shape = arrays[0].shape
    for i, array in enumerate(arrays[1:], 1):
        if array.shape != reference_shape:
            raise DimensionError(
                f"Shape mismatch in {operation} at array {i}", expected=reference_shape, actual=array.shape
            )
