"""Core utilities of riemannsolve: constants, types, JIT and callback conventions."""

from .constants import NumericalConstants, SolverDefaults
from .evaluation import EvaluationType, evaluate
from .jit_decorator import clear_jit_cache, get_cache_info, jit_optimized

__all__ = [
    "EvaluationType",
    "NumericalConstants",
    "SolverDefaults",
    "clear_jit_cache",
    "evaluate",
    "get_cache_info",
    "jit_optimized",
]
