"""Tests for the manifold error hierarchy and numerical checks."""

import jax.numpy as jnp
import pytest

from riemannsolve.manifolds.errors import (
    DimensionError,
    ManifoldError,
    NumericalStabilityError,
    UnsupportedMethodError,
    check_numerical_stability,
    validate_dimensions_match,
)


class TestManifoldErrorHierarchy:
    """Test manifold error hierarchy."""

    def test_manifold_error_is_base_exception(self):
        """Test that ManifoldError is the base exception."""
        error = ManifoldError("Test error")
        assert isinstance(error, Exception)
        assert str(error) == "Test error"

    def test_dimension_error_inheritance(self):
        """Test DimensionError inherits from ManifoldError."""
        error = DimensionError("Dimension mismatch", expected=3, actual=2)
        assert isinstance(error, ManifoldError)
        assert error.expected == 3
        assert error.actual == 2
        assert "expected=3" in str(error)
        assert "actual=2" in str(error)

    def test_dimension_error_without_dimensions(self):
        """Test DimensionError message without dimension details."""
        assert str(DimensionError("Dimension mismatch")) == "Dimension mismatch"

    def test_numerical_stability_error_attributes(self):
        """Test NumericalStabilityError keeps its diagnostics."""
        error = NumericalStabilityError("Ill-conditioned", condition_number=1e15, matrix_norm=2.0)
        assert isinstance(error, ManifoldError)
        assert error.condition_number == 1e15
        assert error.matrix_norm == 2.0

    def test_unsupported_method_error_attributes(self):
        """Test UnsupportedMethodError keeps the method and manifold type."""
        error = UnsupportedMethodError("Unsupported", method="cayley", manifold_type="Sphere")
        assert isinstance(error, ManifoldError)
        assert error.method == "cayley"
        assert error.manifold_type == "Sphere"


class TestNumericalChecks:
    """Test the numerical stability and shape checks."""

    def test_well_conditioned_matrix_passes(self):
        """The identity is perfectly conditioned."""
        check_numerical_stability(jnp.eye(3), "test")

    def test_singular_matrix_raises(self):
        """A singular matrix has infinite condition number."""
        with pytest.raises(NumericalStabilityError) as exc_info:
            check_numerical_stability(jnp.array([[1.0, 2.0], [2.0, 4.0]]), "newton")
        assert exc_info.value.condition_number > 1e12
        assert "newton" in str(exc_info.value)

    def test_custom_condition_bound(self):
        """The bound on the condition number is configurable."""
        matrix = jnp.diag(jnp.array([1.0, 100.0]))
        check_numerical_stability(matrix, "test", max_condition=1e3)
        with pytest.raises(NumericalStabilityError):
            check_numerical_stability(matrix, "test", max_condition=10.0)

    def test_non_square_matrix_is_skipped(self):
        """Only square matrices are checked."""
        check_numerical_stability(jnp.zeros((2, 3)), "test")

    def test_validate_dimensions_match(self):
        """Shapes must agree."""
        validate_dimensions_match([jnp.zeros(3), jnp.ones(3)], "test")
        with pytest.raises(DimensionError):
            validate_dimensions_match([jnp.zeros(3), jnp.ones(2)], "test")
