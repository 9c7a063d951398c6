"""Test module for JIT decorator functionality."""

import jax.numpy as jnp
from jax import Array

from riemannsolve.core.jit_decorator import JITOptimizer, clear_jit_cache, get_cache_info, jit_optimized
from riemannsolve.manifolds import Sphere


class TestJITOptimizer:
    """Test JIT optimizer class."""

    def test_jit_optimizer_default_cache_size(self):
        """Test JITOptimizer uses default cache size of 128."""
        optimizer = JITOptimizer()
        assert optimizer.cache_size == 128

    def test_compile_function_with_static_args(self):
        """Test compiling a function with static arguments."""
        optimizer = JITOptimizer()

        def multiply_by_scalar(x: Array, scalar: float) -> Array:
            return x * scalar

        compiled_fn = optimizer.compile(multiply_by_scalar, static_args=(1,))
        result = compiled_fn(jnp.array([1.0, 2.0, 3.0]), 2.0)
        assert jnp.allclose(result, jnp.array([2.0, 4.0, 6.0]))

    def test_cache_reuses_compiled_function(self):
        """Test that the same function is cached and reused."""
        optimizer = JITOptimizer()

        def negate(x: Array) -> Array:
            return -x

        assert optimizer.compile(negate) is optimizer.compile(negate)
        assert len(optimizer._cache) == 1

    def test_cache_evicts_least_recently_used(self):
        """Test LRU eviction once the capacity is exceeded."""
        optimizer = JITOptimizer(cache_size=1)

        def first(x: Array) -> Array:
            return x + 1

        def second(x: Array) -> Array:
            return x + 2

        optimizer.compile(first)
        optimizer.compile(second)
        assert len(optimizer._cache) == 1
        assert next(iter(optimizer._cache))[0].endswith("second")

    def test_clear_cache(self):
        """Test clearing the cache."""
        optimizer = JITOptimizer()

        def square(x: Array) -> Array:
            return x * x

        optimizer.compile(square)
        optimizer.clear_cache()
        assert len(optimizer._cache) == 0


class TestJitOptimizedDecorator:
    """Test the jit_optimized decorator on manifold methods."""

    def test_decorated_method_keeps_metadata(self):
        """The wrapper exposes the original function and its static arguments."""
        assert Sphere.exp._static_args == (0,)
        assert Sphere.exp.__name__ == "exp"

    def test_decorated_function_computes(self):
        """A decorated function returns the same values as the original."""

        @jit_optimized()
        def add_one(x: Array) -> Array:
            return x + 1.0

        assert jnp.array_equal(add_one(jnp.array([1.0])), jnp.array([2.0]))

    def test_global_cache_info_and_clear(self):
        """Calling a manifold method fills the global cache, clearing empties it."""
        sphere = Sphere(2)
        sphere.exp(jnp.array([0.0, 0.0, 1.0]), jnp.array([0.1, 0.0, 0.0]))
        info = get_cache_info()
        assert info["cache_size"] >= 1
        assert any(name.startswith("Sphere.exp") for name, _ in info["cached_functions"])

        clear_jit_cache()
        assert get_cache_info()["cache_size"] == 0
