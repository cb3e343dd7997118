"""
Choice question evaluators.

Option indices are compared 1-based. A question may declare the base of
its stored indices (``indexBase``); without it, an index <= 0 is read as
0-based and shifted by one. Learner selections are 1-based under the same
rule.
"""

from __future__ import annotations

from typing import Any, Optional

from ..evaluator import AnswerEvaluator, register_evaluator
from ..models import QuestionType


def to_option_index(value: Any, index_base: Optional[int] = None) -> int | None:
    """
    Normalize a stored or submitted option index to 1-based.

    Args:
        value: Index as int, integral float, or numeric string
        index_base: 0 or 1 when known; None applies the <= 0 rule

    Returns:
        1-based index, or None when ``value`` is not an integer index
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        index = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        index = int(value)
    elif isinstance(value, str):
        try:
            index = int(value.strip())
        except ValueError:
            return None
    else:
        return None

    if index_base == 0:
        return index + 1
    if index_base == 1:
        return index
    return index + 1 if index <= 0 else index


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@register_evaluator
class MultipleChoiceEvaluator(AnswerEvaluator):
    """Single selection; full credit when it is the correct option."""

    question_type = QuestionType.MULTIPLE_CHOICE

    def score(self, answer: list[Any]) -> float:
        if not answer:
            return 0.0

        correct = self.question.correct_answer
        if isinstance(correct, list) and len(correct) == 1:
            correct = correct[0]

        selected = to_option_index(answer[0])
        expected = to_option_index(correct, self.question.index_base)
        if selected is None or expected is None:
            return 0.0
        return self.max_points if selected == expected else 0.0


@register_evaluator
class MultipleSelectEvaluator(AnswerEvaluator):
    """All-or-nothing: the selected set must equal the correct set."""

    question_type = QuestionType.MULTIPLE_SELECT

    def score(self, answer: list[Any]) -> float:
        expected = {
            to_option_index(value, self.question.index_base)
            for value in _as_list(self.question.correct_answer)
        }
        selected = {to_option_index(value) for value in answer}

        if not expected or None in expected or None in selected:
            return 0.0
        return self.max_points if selected == expected else 0.0


@register_evaluator
class ComplexMultipleChoiceEvaluator(AnswerEvaluator):
    """
    Penalty-weighted multiple selection.

    With ``N`` correct options, ``c`` correct and ``i`` incorrect distinct
    selections, the question earns ``max(0, c/N - i/N)``. Any credit counts
    as correct.
    """

    question_type = QuestionType.COMPLEX_MULTIPLE_CHOICE

    def correct_options(self) -> set[int]:
        question = self.question
        source = question.correct_answers if question.correct_answers is not None else question.correct_answer
        indices = {to_option_index(value, question.index_base) for value in _as_list(source)}
        indices.discard(None)
        return indices

    def score(self, answer: list[Any]) -> float:
        correct = self.correct_options()
        n = len(correct)
        if n == 0:
            return 0.0

        selections = [to_option_index(value) for value in answer]
        distinct = {index for index in selections if index is not None}
        # Unreadable selections are wrong selections
        unreadable = sum(1 for index in selections if index is None)

        hits = len(distinct & correct)
        misses = len(distinct - correct) + unreadable

        points = max(0.0, hits / n - misses / n)
        return points * self.max_points

    def is_correct(self, points: float) -> bool:
        return points > 0
