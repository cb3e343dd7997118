"""
Essay evaluator.

Essays are graded by an instructor through
:func:`quizeval.answer.graders.regrade_question`; until then they earn
nothing and are flagged as pending review.
"""

from __future__ import annotations

from typing import Any

from ..evaluator import AnswerEvaluator, register_evaluator
from ..models import QuestionType


@register_evaluator
class EssayEvaluator(AnswerEvaluator):
    question_type = QuestionType.ESSAY
    pending_review = True

    def score(self, answer: list[Any]) -> float:
        return 0.0

    def is_correct(self, points: float) -> bool:
        return False
