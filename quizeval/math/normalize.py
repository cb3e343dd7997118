"""
Expression normalization for math-mode answers.

Rewrites raw learner or reference input (plain text, Unicode superscripts,
or LaTeX produced by a math input field) into a string the algebra back end
can parse:

- LaTeX markup is rewritten to natural notation (``\\frac{a}{b}`` -> ``(a)/(b)``)
- Unicode superscripts become caret powers (``x²`` -> ``x^2``)
- Implicit multiplication is made explicit (``12x`` -> ``12*x``, ``xy`` -> ``x*y``)
- Doubled operators are repaired when the back end rejects the input
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .backend import SympyBackend


_SUPERSCRIPT_TABLE = str.maketrans("⁰¹²³⁴⁵⁶⁷⁸⁹⁻", "0123456789-")
_SUPERSCRIPT_RUN = re.compile(r"[⁰¹²³⁴⁵⁶⁷⁸⁹⁻]+")

# Names that must survive implicit-multiplication splitting
FUNCTION_NAMES = frozenset({
    "sin", "cos", "tan", "cot", "sec", "csc",
    "asin", "acos", "atan", "acot", "asec", "acsc",
    "arcsin", "arccos", "arctan",
    "sinh", "cosh", "tanh", "coth", "sech", "csch",
    "asinh", "acosh", "atanh",
    "exp", "log", "ln", "sqrt", "abs", "root", "floor", "ceiling",
})
CONSTANT_NAMES = frozenset({"pi"})
GREEK_NAMES = frozenset({
    "alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta", "theta",
    "iota", "kappa", "mu", "nu", "xi", "omicron", "rho", "sigma", "tau",
    "upsilon", "phi", "chi", "psi", "omega",
})
_KNOWN_NAMES = sorted(FUNCTION_NAMES | CONSTANT_NAMES | GREEK_NAMES, key=len, reverse=True)

_TOKEN = re.compile(
    r"\s*(?:(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z]+)"
    r"|(?P<other>\S))"
)

# Applied in order until the string stops changing
SYNTAX_REPAIRS: tuple[tuple[str, str], ...] = (
    ("++", "+"),
    ("--", "-"),
    ("**", "*"),
    ("//", "/"),
    ("+-", "-"),
    ("-+", "-"),
)

_SIMPLE_REPLACEMENTS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\\cdot(?![A-Za-z])"), "*"),
    (re.compile(r"\\times(?![A-Za-z])"), "*"),
    (re.compile(r"\\div(?![A-Za-z])"), "/"),
)
_TEXT_WRAPPERS = re.compile(r"\\(?:operatorname|mathrm|mathit|text)\s*\{([^{}]*)\}")
_GROUP_POWER = re.compile(r"\{([^{}]+)\}\^\{([^{}]+)\}")
_NUMERIC_EXPONENT = re.compile(r"\^\{(\d+)\}")
_GROUP_EXPONENT = re.compile(r"\^\{([^{}]+)\}")
_BARE_GROUP = re.compile(r"\{([^{}]*)\}")
_DELIMITER_SIZING = re.compile(r"\\(?:left|right|big|Big|bigg|Bigg)(?![A-Za-z])\s*")
_SPACING = re.compile(r"\\(?:q?quad(?![A-Za-z])|[,;:! ])")
_COMMAND = re.compile(r"\\([A-Za-z]+)")


def looks_like_markup(text: str) -> bool:
    """Return True when the input appears to be LaTeX rather than plain notation."""
    return "\\" in text or ("{" in text and "}" in text)


def normalize_superscripts(text: str) -> str:
    """Map runs of Unicode superscripts to caret notation (``x¹⁰`` -> ``x^10``)."""
    return _SUPERSCRIPT_RUN.sub(
        lambda match: "^" + match.group(0).translate(_SUPERSCRIPT_TABLE), text
    )


def _read_group(text: str, start: int) -> tuple[str, int] | None:
    """Read the brace group opening at ``start``; return (contents, end index)."""
    if start >= len(text) or text[start] != "{":
        return None

    depth = 0
    for pos in range(start, len(text)):
        char = text[pos]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start + 1:pos], pos + 1
    return None


def _skip_spaces(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _rewrite_command(text: str, command: str, arity: int, template: str) -> str:
    """
    Rewrite ``\\command{a}{b}...`` using ``template``.

    Groups may nest; their contents are rewritten recursively, so
    ``\\frac{\\frac{1}{2}}{3}`` becomes ``((1)/(2))/(3)``.
    """
    out: list[str] = []
    pos = 0
    while True:
        idx = text.find(command, pos)
        if idx < 0:
            out.append(text[pos:])
            break

        after = idx + len(command)
        if after < len(text) and text[after].isalpha():
            # Longer command sharing the prefix (e.g. \fracs)
            out.append(text[pos:after])
            pos = after
            continue

        groups: list[str] = []
        cursor = after
        for _ in range(arity):
            group = _read_group(text, _skip_spaces(text, cursor))
            if group is None:
                break
            groups.append(group[0])
            cursor = group[1]

        if len(groups) < arity:
            out.append(text[pos:after])
            pos = after
            continue

        out.append(text[pos:idx])
        out.append(template.format(
            *(_rewrite_command(group, command, arity, template) for group in groups)
        ))
        pos = cursor

    return "".join(out)


def _rewrite_roots(text: str) -> str:
    """Rewrite ``\\sqrt[n]{a}`` to ``root(a,n)`` and ``\\sqrt{a}`` to ``sqrt(a)``."""
    text = re.sub(
        r"\\sqrt\s*\[([^\[\]]+)\]\s*\{([^{}]*)\}",
        lambda m: f"root({m.group(2)},{m.group(1)})",
        text,
    )
    return _rewrite_command(text, "\\sqrt", 1, "sqrt({0})")


def _substitute_until_stable(pattern: re.Pattern, replacement: str, text: str) -> str:
    while True:
        updated = pattern.sub(replacement, text)
        if updated == text:
            return updated
        text = updated


def latex_to_natural(latex: str) -> str:
    """
    Convert LaTeX markup to natural math notation.

    Examples:
        >>> latex_to_natural(r"2\\cdot10^{5}")
        '2*10^5'
        >>> latex_to_natural(r"\\frac{x+1}{2}")
        '(x+1)/(2)'
    """
    if not latex:
        return ""

    result = latex
    for pattern, replacement in _SIMPLE_REPLACEMENTS:
        result = pattern.sub(replacement, result)

    result = _substitute_until_stable(_TEXT_WRAPPERS, r"\1", result)
    result = _rewrite_command(result, "\\frac", 2, "({0})/({1})")
    result = _rewrite_command(result, "\\dfrac", 2, "({0})/({1})")
    result = _rewrite_roots(result)

    # Innermost groups first: {base}^{exp}, then ^{n}, then ^{expr}
    while True:
        updated = _GROUP_POWER.sub(r"(\1)^(\2)", result)
        updated = _NUMERIC_EXPONENT.sub(r"^\1", updated)
        updated = _GROUP_EXPONENT.sub(r"^(\1)", updated)
        if updated == result:
            break
        result = updated

    result = _substitute_until_stable(_BARE_GROUP, r"\1", result)
    result = _DELIMITER_SIZING.sub("", result)
    result = _SPACING.sub("", result)
    result = _COMMAND.sub(r"\1", result)
    return result


def _split_name(name: str) -> list[tuple[str, str]]:
    """
    Split a letter run into known names and single-letter symbols.
    At each position the longest known name wins.

    ``"xsin"`` -> ``[("name", "x"), ("function", "sin")]``
    """
    parts: list[tuple[str, str]] = []
    pos = 0
    while pos < len(name):
        for known in _KNOWN_NAMES:
            if name.startswith(known, pos):
                kind = "function" if known in FUNCTION_NAMES else "name"
                parts.append((kind, known))
                pos += len(known)
                break
        else:
            parts.append(("name", name[pos]))
            pos += 1
    return parts


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    for match in _TOKEN.finditer(text):
        if match.group("number") is not None:
            tokens.append(("number", match.group("number")))
        elif match.group("name") is not None:
            tokens.extend(_split_name(match.group("name")))
        elif match.group("other") is not None:
            tokens.append(("other", match.group("other")))
    return tokens


def _needs_star(left: tuple[str, str], right: tuple[str, str]) -> bool:
    left_kind, left_text = left
    right_kind, right_text = right

    ends_operand = left_kind in ("number", "name") or left_text == ")"
    starts_operand = right_kind in ("number", "name", "function") or right_text == "("

    if not (ends_operand and starts_operand):
        return False
    # 2 3 stays a single numeral
    return not (left_kind == "number" and right_kind == "number")


def insert_implicit_multiplication(text: str) -> str:
    """
    Make implicit multiplication explicit.

    Function names are kept whole (``2sin(x)`` -> ``2*sin(x)``); other letter
    runs are treated as products of single-letter symbols (``xy`` -> ``x*y``).
    A function name written directly before a symbol or number applies to
    that one token (``2sinx`` -> ``2*sin(x)``, ``sin2x`` -> ``sin(2)*x``).
    Whitespace is dropped from the result.
    """
    tokens = _apply_bare_functions(_tokenize(text))
    if not tokens:
        return ""

    pieces = [tokens[0][1]]
    for previous, current in zip(tokens, tokens[1:]):
        if _needs_star(previous, current):
            pieces.append("*")
        pieces.append(current[1])
    return "".join(pieces)


def has_bare_function(text: str) -> bool:
    """True when a function name is written without parentheses (``sinx``, ``ln 2``)."""
    tokens = _tokenize(text or "")
    return any(
        kind == "function" and following[0] in ("number", "name")
        for (kind, _), following in zip(tokens, tokens[1:])
    )


def _apply_bare_functions(tokens: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Wrap the operand of a function written without parentheses."""
    applied: list[tuple[str, str]] = []
    pos = 0
    while pos < len(tokens):
        kind, text = tokens[pos]
        if kind == "function" and pos + 1 < len(tokens) and tokens[pos + 1][0] in ("number", "name"):
            operand = tokens[pos + 1][1]
            applied.extend([(kind, text), ("other", "("), (tokens[pos + 1][0], operand), ("other", ")")])
            pos += 2
            continue
        applied.append((kind, text))
        pos += 1
    return applied


def repair_syntax(text: str) -> str:
    """Collapse doubled operators (``++``, ``--``, ``**``, ``//``, ``+-``, ``-+``)."""
    while True:
        repaired = text
        for broken, fixed in SYNTAX_REPAIRS:
            repaired = repaired.replace(broken, fixed)
        if repaired == text:
            return repaired
        text = repaired


def normalize_expression(raw: Any, backend: SympyBackend | None = None) -> str:
    """
    Rewrite a raw expression into a canonical, back-end-parsable string.

    Never raises: when a step fails the trimmed input is returned, and when
    the back end still rejects the repaired string the best-effort rewrite
    is returned unchanged.

    Args:
        raw: Learner or reference expression (non-strings are stringified)
        backend: Optional algebra back end used to validate the result

    Returns:
        Normalized expression string
    """
    if raw is None:
        return ""
    text = raw if isinstance(raw, str) else str(raw)

    try:
        normalized = text.strip()
        if looks_like_markup(normalized):
            normalized = latex_to_natural(normalized)
        normalized = normalize_superscripts(normalized)
        normalized = insert_implicit_multiplication(normalized)
        normalized = re.sub(r"\s+", "", normalized)
    except (re.error, ValueError, IndexError):
        return text.strip()

    if backend is None or backend.can_parse(normalized):
        return normalized

    repaired = repair_syntax(normalized)
    if repaired != normalized and backend.can_parse(repaired):
        return repaired
    return normalized
