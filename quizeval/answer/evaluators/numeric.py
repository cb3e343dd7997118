"""
Numeric answer evaluator.

Handles plain numbers compared with an absolute tolerance.
"""

from __future__ import annotations

import math
from typing import Any

from quizeval.core.config import get_settings

from ..evaluator import AnswerEvaluator, register_evaluator
from ..models import QuestionType


def parse_number(value: Any) -> float | None:
    """
    Read a plain number.

    The whole value must be numeric: ``"3.5"`` parses, ``"3.5cm"`` does not.

    Returns:
        Finite float, or None
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


@register_evaluator
class NumberEvaluator(AnswerEvaluator):
    """
    Evaluator for number questions.

    Correct when ``|user - correct| <= tolerance``; a question without a
    tolerance uses ``DEFAULT_NUMBER_TOLERANCE``.
    """

    question_type = QuestionType.NUMBER

    @property
    def tolerance(self) -> float:
        if self.question.tolerance is not None:
            return self.question.tolerance
        return get_settings().DEFAULT_NUMBER_TOLERANCE

    def score(self, answer: list[Any]) -> float:
        if not answer:
            return 0.0

        user_value = parse_number(answer[0])
        correct_value = parse_number(self.question.correct_answer)
        if user_value is None or correct_value is None:
            return 0.0

        if abs(user_value - correct_value) <= self.tolerance:
            return self.max_points
        return 0.0
