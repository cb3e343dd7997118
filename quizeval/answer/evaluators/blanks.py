"""
Fill-in-the-blank evaluator.

Each blank reads the learner's value at ``blank.index`` in the answer list
and earns an equal share of the question's points. A blank matches when its
value matches any accepted answer under the blank's mode:

- math + algebra: symbolic equivalence within the blank tolerance
- math only: numeric comparison when both sides are plain numbers, else
  case-insensitive text
- text: exact text, honoring ``caseSensitive``
"""

from __future__ import annotations

from typing import Any

from quizeval.math.symbolic import SymbolicComparator

from ..evaluator import AnswerEvaluator, register_evaluator
from ..models import Blank, QuestionType
from .numeric import parse_number


def blank_value(answer: list[Any], index: int) -> str:
    """Trimmed learner value for the blank at ``index``; empty when absent."""
    if index < 0 or index >= len(answer):
        return ""
    value = answer[index]
    return "" if value is None else str(value).strip()


@register_evaluator
class FillInTheBlankEvaluator(AnswerEvaluator):
    question_type = QuestionType.FILL_IN_THE_BLANK

    def _comparator(self) -> SymbolicComparator:
        if self.comparator is None:
            self.comparator = SymbolicComparator.default()
        return self.comparator

    def blank_matches(self, blank: Blank, value: str) -> bool:
        for accepted in blank.correct_answers:
            correct = accepted.strip()

            if blank.math_mode and blank.algebra_mode:
                if self._comparator().equivalent(value, correct, blank.tolerance):
                    return True
                continue

            if blank.math_mode:
                user_number = parse_number(value)
                correct_number = parse_number(correct)
                if user_number is not None and correct_number is not None:
                    if abs(user_number - correct_number) <= blank.tolerance:
                        return True
                elif value.lower() == correct.lower():
                    return True
                continue

            if blank.case_sensitive:
                if value == correct:
                    return True
            elif value.lower() == correct.lower():
                return True

        return False

    def score(self, answer: list[Any]) -> float:
        blanks = self.question.blanks or []
        if not blanks:
            return 0.0

        matched = sum(1 for blank in blanks if self.blank_matches(blank, blank_value(answer, blank.index)))
        return matched / len(blanks) * self.max_points
