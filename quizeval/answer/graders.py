"""
Quiz graders: per-question results combined into a quiz score.

:func:`score_quiz` evaluates a submission; :func:`recompute_aggregates`
rebuilds the totals from stored per-question detail alone, which is what
:func:`regrade_question` does after an instructor grades an essay.
Rounding happens once, on the final percentage.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from quizeval.core.errors import InvalidGradeError, QuizValidationError
from quizeval.core.logging import get_logger
from quizeval.math.symbolic import SymbolicComparator

from .evaluator import evaluate_question
from .models import Question, QuestionResult, QuizResult, SubmittedAnswer

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input (``2.5`` -> ``3``)."""
    return int(math.floor(value + 0.5))


def _validate_all(model: type, items: Iterable[Any], what: str) -> list[Any]:
    if items is None:
        return []
    validated = []
    for position, item in enumerate(items):
        if isinstance(item, model):
            validated.append(item)
            continue
        try:
            validated.append(model.model_validate(item))
        except ValidationError as e:
            raise QuizValidationError(
                f"Invalid {what} at position {position}",
                errors=e.errors(include_url=False, include_context=False),
            ) from e
    return validated


def load_questions(questions: Iterable[Question | dict]) -> list[Question]:
    """
    Validate question definitions.

    Raises:
        QuizValidationError: If a question is malformed
    """
    return _validate_all(Question, questions, "question")


def load_answers(answers: Iterable[SubmittedAnswer | dict]) -> list[SubmittedAnswer]:
    """
    Validate submitted answers.

    Raises:
        QuizValidationError: If an answer is malformed
    """
    return _validate_all(SubmittedAnswer, answers, "answer")


def load_results(detailed_results: Iterable[QuestionResult | dict]) -> list[QuestionResult]:
    """
    Validate stored per-question results.

    Raises:
        QuizValidationError: If a result is malformed
    """
    return _validate_all(QuestionResult, detailed_results, "question result")


def aggregate(results: Sequence[QuestionResult], time_spent: int = 0) -> QuizResult:
    """Combine per-question results into quiz totals."""
    earned = sum(result.points for result in results)
    available = sum(result.max_points for result in results)

    correct = sum(1 for result in results if result.is_correct)
    pending = sum(1 for result in results if result.pending_review and not result.is_correct)

    percentage = round_half_up(earned / available * 100) if available > 0 else 0

    return QuizResult(
        score=earned,
        total_questions=len(results),
        correct_answers=correct,
        incorrect_answers=len(results) - correct - pending,
        pending_review=pending,
        percentage=min(100, max(0, percentage)),
        time_spent=max(0, int(time_spent or 0)),
        detailed_results=list(results),
    )


def score_quiz(
    questions: Iterable[Question | dict],
    answers: Iterable[SubmittedAnswer | dict],
    time_spent: int = 0,
    comparator: SymbolicComparator | None = None,
) -> QuizResult:
    """
    Score a quiz submission.

    The answer to the question at position ``p`` is the first submitted
    answer whose ``questionId`` is ``p``. Results keep question order.

    Args:
        questions: Question definitions (models or plain dicts)
        answers: Submitted answers (models or plain dicts)
        time_spent: Seconds spent on the attempt
        comparator: Symbolic comparator for math-mode blanks

    Returns:
        QuizResult

    Raises:
        QuizValidationError: If a question or answer is malformed
    """
    question_models = load_questions(questions)
    answer_models = load_answers(answers)

    answers_by_position: dict[int, SubmittedAnswer] = {}
    for submitted in answer_models:
        answers_by_position.setdefault(submitted.question_id, submitted)

    results = [
        evaluate_question(question, answers_by_position.get(position), comparator)
        for position, question in enumerate(question_models)
    ]

    result = aggregate(results, time_spent)
    logger.debug(
        "Quiz scored",
        extra_data={
            "total_questions": result.total_questions,
            "correct_answers": result.correct_answers,
            "pending_review": result.pending_review,
            "percentage": result.percentage,
        }
    )
    return result


def recompute_aggregates(
    detailed_results: Iterable[QuestionResult | dict],
    time_spent: int = 0,
) -> QuizResult:
    """
    Rebuild quiz totals from stored per-question results without re-evaluating.

    Raises:
        QuizValidationError: If a stored result is malformed
    """
    return aggregate(load_results(detailed_results), time_spent)


def _grade_value(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidGradeError(f"{name} must be a number", **{name: value})
    number = float(value)
    if not math.isfinite(number):
        raise InvalidGradeError(f"{name} must be finite", **{name: value})
    return number


def regrade_question(
    detailed_results: Iterable[QuestionResult | dict],
    question_index: int,
    points: float,
    max_points: float,
    time_spent: int = 0,
) -> QuizResult:
    """
    Apply a manual grade to one question and recompute the totals.

    The input results are not modified; the returned QuizResult carries the
    updated copy.

    Args:
        detailed_results: Stored per-question results
        question_index: Position of the graded question
        points: Points awarded
        max_points: Points available for the question

    Returns:
        QuizResult recomputed from the updated results

    Raises:
        InvalidGradeError: If the index is out of range or the grade is not
            within ``0 <= points <= max_points``
    """
    results = load_results(detailed_results)

    if isinstance(question_index, bool) or not isinstance(question_index, int):
        raise InvalidGradeError("questionIndex must be an integer", question_index=question_index)
    if not 0 <= question_index < len(results):
        raise InvalidGradeError(
            "questionIndex is out of range",
            question_index=question_index,
            total_questions=len(results),
        )

    points_value = _grade_value("points", points)
    max_value = _grade_value("max_points", max_points)
    if max_value <= 0:
        raise InvalidGradeError("max_points must be positive", max_points=max_points)
    if points_value < 0 or points_value > max_value:
        raise InvalidGradeError(
            "Score must be between 0 and maxPoints",
            points=points,
            max_points=max_points,
        )

    updated = list(results)
    updated[question_index] = results[question_index].model_copy(update={
        "points": points_value,
        "max_points": max_value,
        "is_correct": points_value == max_value,
        "pending_review": False,
    })

    logger.info(
        "Question regraded",
        extra_data={"question_index": question_index, "points": points_value, "max_points": max_value}
    )
    return aggregate(updated, time_spent)
