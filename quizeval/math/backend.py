"""
Algebra back end for symbolic answer comparison.

Wraps SymPy behind a small surface (parse, simplify, expand, collect,
numeric evaluation, printing). SymPy is imported when the back end is
constructed by :func:`load_backend`; :func:`get_backend` memoizes the
outcome so loading happens at most once per process and a failed load
degrades every later comparison to normalized-string equality.

Learner input is untrusted: parsing runs against a restricted namespace
(SymPy functions and constants only, no Python builtins) after rejecting
anything outside the math alphabet.
"""

from __future__ import annotations

import cmath
import math
import re
from functools import lru_cache
from typing import Any

from quizeval.core.config import Settings, get_settings
from quizeval.core.errors import BackendUnavailableError, UnparsableExpressionError
from quizeval.core.logging import get_logger

logger = get_logger(__name__)


_ALLOWED_CHARACTERS = re.compile(r"^[0-9A-Za-z_\s+\-*/^().,!\[\]]*$")
_ATTRIBUTE_ACCESS = re.compile(r"\.\s*[A-Za-z_]")
_EXPONENT_LITERAL = re.compile(r"(?:\^|\*\*)[\s(]*[+-]?\s*(\d+)")
_POWER_TOWER = re.compile(r"(?:\^|\*\*)[\s(]*\d[\d.]*[\s)]*(?:\^|\*\*)")
_FACTORIAL_LITERAL = re.compile(r"(\d+)\s*!")

# Learner-facing name -> SymPy attribute
_FUNCTIONS = {
    "sin": "sin", "cos": "cos", "tan": "tan",
    "cot": "cot", "sec": "sec", "csc": "csc",
    "asin": "asin", "acos": "acos", "atan": "atan",
    "acot": "acot", "asec": "asec", "acsc": "acsc",
    "arcsin": "asin", "arccos": "acos", "arctan": "atan",
    "sinh": "sinh", "cosh": "cosh", "tanh": "tanh",
    "coth": "coth", "sech": "sech", "csch": "csch",
    "asinh": "asinh", "acosh": "acosh", "atanh": "atanh",
    "exp": "exp", "log": "log", "ln": "log",
    "sqrt": "sqrt", "abs": "Abs", "root": "root",
    "floor": "floor", "ceiling": "ceiling",
}
_CONSTANTS = {"pi": "pi", "e": "E", "E": "E"}

# Names the parser transformations emit into generated code
_PARSER_NAMES = (
    "Integer", "Float", "Rational", "Symbol", "Function",
    "Add", "Mul", "Pow", "factorial", "factorial2",
)


class SympyBackend:
    """
    SymPy-backed algebra engine.

    Expressions returned by :meth:`parse` are SymPy ``Expr`` objects; the
    remaining methods accept those objects.
    """

    name = "sympy"

    def __init__(
        self,
        max_expression_length: int = 500,
        max_exponent: int = 100,
        max_power_digits: int = 1000,
        max_expansion_terms: int = 5000,
    ):
        import sympy
        from sympy.core.function import AppliedUndef
        from sympy.parsing.sympy_parser import (
            convert_xor,
            implicit_multiplication_application,
            parse_expr,
            standard_transformations,
        )

        self.sp = sympy
        self.version = sympy.__version__
        self.max_expression_length = max_expression_length
        self.max_exponent = max_exponent
        self.max_power_digits = max_power_digits
        self.max_expansion_terms = max_expansion_terms

        self._applied_undef = AppliedUndef
        self._parse_expr = parse_expr
        self._transformations = standard_transformations + (
            convert_xor,
            implicit_multiplication_application,
        )
        self._namespace = self._build_namespace()

    def _build_namespace(self) -> dict[str, Any]:
        namespace: dict[str, Any] = {"__builtins__": {}}
        for name in _PARSER_NAMES:
            namespace[name] = getattr(self.sp, name)
        for alias, target in _FUNCTIONS.items():
            namespace[alias] = getattr(self.sp, target)
        for alias, target in _CONSTANTS.items():
            namespace[alias] = getattr(self.sp, target)
        return namespace

    def _check_input(self, expression: str) -> str:
        """Reject input that is not plain math notation or would be unbounded to evaluate."""
        text = expression.strip()
        if not text:
            raise UnparsableExpressionError(expression, "empty expression")
        if len(text) > self.max_expression_length:
            raise UnparsableExpressionError(expression, "expression too long")
        if not _ALLOWED_CHARACTERS.match(text):
            raise UnparsableExpressionError(expression, "unsupported characters")
        if "__" in text or _ATTRIBUTE_ACCESS.search(text) or "factorial" in text:
            raise UnparsableExpressionError(expression, "unsupported syntax")
        if _POWER_TOWER.search(text):
            raise UnparsableExpressionError(expression, "nested powers are not supported")

        for match in _EXPONENT_LITERAL.finditer(text):
            if int(match.group(1)) > self.max_exponent:
                raise UnparsableExpressionError(expression, "exponent too large")
        for match in _FACTORIAL_LITERAL.finditer(text):
            if int(match.group(1)) > self.max_exponent:
                raise UnparsableExpressionError(expression, "factorial too large")

        return text.replace("[", "(").replace("]", ")")

    def parse(self, expression: str) -> Any:
        """
        Parse an expression string into a SymPy expression.

        Raises:
            UnparsableExpressionError: If the input is rejected or SymPy cannot parse it
        """
        text = self._check_input(expression)

        # The unevaluated tree is checked before SymPy computes any power
        self._check_tree(expression, self._run_parser(expression, text, evaluate=False))
        parsed = self._run_parser(expression, text, evaluate=True)

        if not isinstance(parsed, self.sp.Expr):
            raise UnparsableExpressionError(expression, "not an algebraic expression")
        if parsed.atoms(self._applied_undef):
            raise UnparsableExpressionError(expression, "undefined function application")
        return parsed

    def _run_parser(self, expression: str, text: str, evaluate: bool) -> Any:
        try:
            return self._parse_expr(
                text,
                local_dict={"e": self.sp.E, "E": self.sp.E, "pi": self.sp.pi},
                global_dict=dict(self._namespace),
                transformations=self._transformations,
                evaluate=evaluate,
            )
        except Exception as e:
            # SymPy surfaces tokenizer, syntax, name and type errors alike
            raise UnparsableExpressionError(expression, str(e) or e.__class__.__name__) from e

    def _magnitude(self, expr: Any) -> float | None:
        """Absolute numeric value of a closed subexpression, or None."""
        if expr.free_symbols:
            return None
        try:
            return abs(complex(expr.evalf()))
        except (TypeError, ValueError, ArithmeticError):
            return None

    def _check_tree(self, expression: str, tree: Any) -> None:
        """
        Reject powers and factorials whose value would be unbounded to compute.

        Walks the unevaluated tree innermost first, so every exponent is
        known to be small before it is evaluated.
        """
        if not isinstance(tree, self.sp.Basic):
            raise UnparsableExpressionError(expression, "not an algebraic expression")

        for node in self.sp.postorder_traversal(tree):
            if isinstance(node, self.sp.Pow):
                base, exponent = node.args
                exponent_size = self._magnitude(exponent)
                if exponent_size is None:
                    continue
                if exponent_size > self.max_exponent:
                    raise UnparsableExpressionError(expression, "exponent too large")
                base_size = self._magnitude(base)
                if base_size and base_size > 1 and exponent_size * math.log10(base_size) > self.max_power_digits:
                    raise UnparsableExpressionError(expression, "power too large")
            elif isinstance(node, (self.sp.factorial, self.sp.factorial2)):
                argument = self._magnitude(node.args[0])
                if argument is not None and argument > self.max_exponent:
                    raise UnparsableExpressionError(expression, "factorial too large")

    def expansion_degree(self, expr: Any) -> int:
        """Total degree ``expr`` reaches once every integer power is multiplied out."""
        if expr.is_Symbol:
            return 1
        if not expr.args:
            return 0
        if expr.is_Pow:
            base, exponent = expr.args
            if exponent.is_Integer:
                return self.expansion_degree(base) * abs(int(exponent))
            return self.expansion_degree(base)
        degrees = [self.expansion_degree(arg) for arg in expr.args]
        return sum(degrees) if expr.is_Mul else max(degrees)

    def expansion_size(self, *exprs: Any) -> int:
        """
        Upper bound on the number of terms expanding ``exprs`` can produce.

        ``(a+b+c+d+f)^100`` -> ``C(105, 5)``, about 96 million.
        """
        degree = max((self.expansion_degree(expr) for expr in exprs), default=0)
        return math.comb(degree + len(self.free_symbols(*exprs)), degree)

    def can_parse(self, expression: str) -> bool:
        """Return True when :meth:`parse` accepts the expression."""
        try:
            self.parse(expression)
        except UnparsableExpressionError:
            return False
        return True

    def simplify(self, expr: Any) -> Any:
        return self.sp.simplify(expr)

    def expand(self, expr: Any) -> Any:
        return self.sp.expand(expr)

    def collect(self, expr: Any, symbols: list[Any] | None = None) -> Any:
        """Collect like terms with respect to ``symbols`` (default: the expression's free symbols)."""
        symbols = symbols if symbols is not None else self.free_symbols(expr)
        if not symbols:
            return expr
        return self.sp.collect(expr, symbols)

    def free_symbols(self, *exprs: Any) -> list[Any]:
        """Free symbols of all expressions, in a stable order."""
        found: set[Any] = set()
        for expr in exprs:
            found |= expr.free_symbols
        return sorted(found, key=str)

    def numeric_value(self, expr: Any) -> complex | None:
        """
        Evaluate a closed expression numerically.

        Returns:
            Finite complex value, or None when the expression has free
            symbols or does not evaluate to a finite number
        """
        if expr.free_symbols:
            return None
        try:
            value = complex(expr.evalf())
        except (TypeError, ValueError, ArithmeticError):
            return None
        if not cmath.isfinite(value):
            return None
        return value

    def to_string(self, expr: Any) -> str:
        return self.sp.sstr(expr)

    def to_latex(self, expr: Any) -> str:
        return self.sp.latex(expr)


def load_backend(settings: Settings | None = None) -> SympyBackend:
    """
    Construct the algebra back end.

    Args:
        settings: Settings to honor (defaults to the process settings)

    Returns:
        Ready-to-use back end

    Raises:
        BackendUnavailableError: If disabled by configuration or SymPy cannot be imported
    """
    settings = settings or get_settings()

    if not settings.SYMBOLIC_BACKEND_ENABLED:
        raise BackendUnavailableError("disabled by configuration")

    try:
        backend = SympyBackend(
            max_expression_length=settings.MAX_EXPRESSION_LENGTH,
            max_exponent=settings.MAX_EXPONENT,
            max_power_digits=settings.MAX_POWER_DIGITS,
            max_expansion_terms=settings.MAX_EXPANSION_TERMS,
        )
    except ImportError as e:
        raise BackendUnavailableError(f"sympy could not be imported: {e}") from e

    logger.info(
        "Symbolic back end loaded",
        extra_data={"backend": backend.name, "version": backend.version}
    )
    return backend


@lru_cache(maxsize=1)
def get_backend() -> SympyBackend | None:
    """
    Process-wide back end, loaded once.

    Returns:
        The back end, or None when it is unavailable (degraded mode)
    """
    try:
        return load_backend()
    except BackendUnavailableError as e:
        logger.warning(
            "Symbolic back end unavailable; math answers fall back to normalized string comparison",
            extra_data=e.details
        )
        return None
