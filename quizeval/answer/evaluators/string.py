"""
Text answer evaluator.
"""

from __future__ import annotations

from typing import Any

from ..evaluator import AnswerEvaluator, register_evaluator
from ..models import QuestionType


@register_evaluator
class TextEvaluator(AnswerEvaluator):
    """Case-insensitive match of the trimmed answer text."""

    question_type = QuestionType.TEXT

    def score(self, answer: list[Any]) -> float:
        correct = self.question.correct_answer
        if correct is None:
            return 0.0

        first = answer[0] if answer else None
        user_text = "" if first is None else str(first)

        if user_text.strip().lower() == str(correct).strip().lower():
            return self.max_points
        return 0.0
