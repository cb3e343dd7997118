"""
Symbolic equivalence of math-mode answers.

Decides whether a learner's expression is the same as a reference answer
(``2(x+1)`` vs ``2x+2``) using, in order: string equality, independent
numeric evaluation, and a fixed ladder of algebraic strategies on the
parsed expressions. The first strategy that succeeds wins.

Without an algebra back end the comparison degrades to exact equality of
the normalized strings.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterator

from quizeval.core.config import get_settings
from quizeval.core.errors import UnparsableExpressionError
from quizeval.core.logging import get_logger

from .backend import SympyBackend, get_backend
from .normalize import (
    has_bare_function,
    latex_to_natural,
    looks_like_markup,
    normalize_expression,
    normalize_superscripts,
)

logger = get_logger(__name__)

_ZERO_STRINGS = frozenset({"0", "+0", "-0"})

# Imaginary parts below this are treated as rounding noise
_IMAGINARY_EPSILON = 1e-12


def _prenormalize(raw: Any) -> str:
    """Trim and resolve markup and superscripts, leaving multiplication as written."""
    if raw is None:
        return ""
    text = (raw if isinstance(raw, str) else str(raw)).strip()
    if looks_like_markup(text):
        text = latex_to_natural(text)
    return normalize_superscripts(text).strip()


def _parse_candidates(text: str, backend: SympyBackend) -> Iterator[str]:
    """Texts to hand the back end: as written, then fully normalized."""
    if has_bare_function(text):
        # The back end reads "sinx" as s*i*n*x
        yield normalize_expression(text, backend)
        yield text
        return
    yield text
    yield normalize_expression(text, backend)


def evaluate_expression(expr: Any, backend: SympyBackend | None) -> float | None:
    """
    Evaluate an expression to a finite real number.

    Plain numerals are read directly. Anything else needs the back end and
    must be closed (no free symbols): ``"2^3"`` -> ``8.0``, ``"pi/2"`` ->
    ``1.5707...``, ``"x+1"`` -> ``None``. A numeral prefix followed by text
    (``"3abc"``) is not a number.

    Returns:
        Finite float, or None
    """
    text = _prenormalize(expr)
    if not text:
        return None

    try:
        value = float(text)
    except ValueError:
        value = None
    if value is not None:
        return value if math.isfinite(value) else None

    if backend is None:
        return None

    for candidate in _parse_candidates(text, backend):
        try:
            parsed = backend.parse(candidate)
        except UnparsableExpressionError:
            continue
        number = backend.numeric_value(parsed)
        if number is None:
            return None
        if abs(number.imag) > _IMAGINARY_EPSILON * max(1.0, abs(number.real)):
            return None
        return number.real
    return None


class SymbolicComparator:
    """
    Equivalence checker for math expressions.

    Args:
        backend: Algebra back end, or None for degraded (string) comparison
    """

    def __init__(self, backend: SympyBackend | None):
        self.backend = backend

    @classmethod
    def default(cls) -> SymbolicComparator:
        """Comparator bound to the process-wide back end."""
        return cls(get_backend())

    @property
    def degraded(self) -> bool:
        return self.backend is None

    def equivalent(self, user: Any, correct: Any, tolerance: float = 0.0001) -> bool:
        """
        Check whether two expressions are mathematically equivalent.

        Args:
            user: Learner expression
            correct: Reference expression
            tolerance: Absolute tolerance for numeric comparison

        Returns:
            True if equivalent; unparsable input is never equivalent
        """
        user_text = _prenormalize(user)
        correct_text = _prenormalize(correct)
        if not user_text or not correct_text:
            return False

        if user_text.lower() == correct_text.lower():
            return True

        user_value = evaluate_expression(user_text, self.backend)
        correct_value = evaluate_expression(correct_text, self.backend)
        if user_value is not None and correct_value is not None:
            if abs(user_value - correct_value) < tolerance:
                return True

        if self.backend is None:
            return normalize_expression(user_text) == normalize_expression(correct_text)

        user_expr = self._parse(user_text)
        correct_expr = self._parse(correct_text)
        if user_expr is None or correct_expr is None:
            return False

        for strategy in self._strategies(user_expr, correct_expr):
            if self._attempt(strategy, user_expr, correct_expr, tolerance):
                return True
        return False

    def _strategies(self, user: Any, correct: Any) -> tuple[Callable[[Any, Any, float], bool], ...]:
        """
        Strategies to try, in order.

        Expanding a high power of a many-term sum is unbounded work, so
        when the estimated expansion is too large only the strategies that
        leave the expressions unexpanded remain.
        """
        size = self.backend.expansion_size(user, correct)
        if size > self.backend.max_expansion_terms:
            logger.debug(
                "Expansion too large; skipping expanding strategies",
                extra_data={"expansion_size": size, "limit": self.backend.max_expansion_terms}
            )
            return (
                self._numeric_difference_is_negligible,
                self._collected_forms_match,
            )

        return (
            self._simplified_difference_is_zero,
            self._expanded_difference_is_zero,
            self._numeric_difference_is_negligible,
            self._expanded_forms_match,
            self._collected_forms_match,
            self._expanded_collected_forms_match,
        )

    def _parse(self, text: str) -> Any | None:
        failure = None
        for candidate in _parse_candidates(text, self.backend):
            try:
                return self.backend.parse(candidate)
            except UnparsableExpressionError as e:
                failure = e
        logger.debug("Unparsable expression", extra_data=failure.details)
        return None

    def _attempt(self, strategy: Callable[[Any, Any, float], bool], user: Any, correct: Any, tolerance: float) -> bool:
        try:
            return strategy(user, correct, tolerance)
        except Exception as e:
            # SymPy may raise from deep inside simplification; a failed strategy is a non-match
            logger.debug(
                "Comparison strategy failed",
                extra_data={"strategy": strategy.__name__, "error": str(e)}
            )
            return False

    def _simplified_difference_is_zero(self, user: Any, correct: Any, tolerance: float) -> bool:
        difference = self.backend.simplify(user - correct)
        return self.backend.to_string(difference) in _ZERO_STRINGS

    def _expanded_difference_is_zero(self, user: Any, correct: Any, tolerance: float) -> bool:
        difference = self.backend.expand(user - correct)
        return self.backend.to_string(difference) in _ZERO_STRINGS

    def _numeric_difference_is_negligible(self, user: Any, correct: Any, tolerance: float) -> bool:
        value = self.backend.numeric_value(user - correct)
        return value is not None and abs(value) < tolerance

    def _expanded_forms_match(self, user: Any, correct: Any, tolerance: float) -> bool:
        backend = self.backend
        return backend.to_string(backend.expand(user)) == backend.to_string(backend.expand(correct))

    def _collected_forms_match(self, user: Any, correct: Any, tolerance: float) -> bool:
        backend = self.backend
        symbols = backend.free_symbols(user, correct)
        return (
            backend.to_string(backend.collect(user, symbols))
            == backend.to_string(backend.collect(correct, symbols))
        )

    def _expanded_collected_forms_match(self, user: Any, correct: Any, tolerance: float) -> bool:
        backend = self.backend
        symbols = backend.free_symbols(user, correct)
        return (
            backend.to_string(backend.collect(backend.expand(user), symbols))
            == backend.to_string(backend.collect(backend.expand(correct), symbols))
        )


def format_expression(expr: Any, backend: SympyBackend | None) -> str:
    """
    Render an expression as LaTeX for display.

    Returns the input unchanged when there is no back end or it cannot be parsed.
    """
    text = "" if expr is None else str(expr)
    if backend is None or not text.strip():
        return text

    try:
        parsed = backend.parse(normalize_expression(text, backend))
    except UnparsableExpressionError:
        return text
    return backend.to_latex(parsed)


def compare_math_expressions(user: Any, correct: Any, tolerance: float | None = None) -> bool:
    """
    Compare two expressions using the process-wide back end.

    Args:
        user: Learner expression
        correct: Reference expression
        tolerance: Numeric tolerance (defaults to ``DEFAULT_MATH_TOLERANCE``)
    """
    if tolerance is None:
        tolerance = get_settings().DEFAULT_MATH_TOLERANCE
    return SymbolicComparator.default().equivalent(user, correct, tolerance)
