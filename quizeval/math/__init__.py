"""
Math-mode answer support: normalization, the algebra back end and
symbolic equivalence.
"""

from .backend import SympyBackend, get_backend, load_backend
from .normalize import (
    has_bare_function,
    insert_implicit_multiplication,
    latex_to_natural,
    looks_like_markup,
    normalize_expression,
    normalize_superscripts,
    repair_syntax,
)
from .symbolic import (
    SymbolicComparator,
    compare_math_expressions,
    evaluate_expression,
    format_expression,
)

__all__ = [
    "SympyBackend",
    "get_backend",
    "load_backend",
    "normalize_expression",
    "latex_to_natural",
    "normalize_superscripts",
    "insert_implicit_multiplication",
    "has_bare_function",
    "repair_syntax",
    "looks_like_markup",
    "SymbolicComparator",
    "compare_math_expressions",
    "evaluate_expression",
    "format_expression",
]
