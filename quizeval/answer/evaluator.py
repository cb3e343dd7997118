"""
Base question evaluator framework.

Provides the abstract base class for per-type scoring policies and a
registry keyed by :class:`QuestionType` for dispatch. The registry is
closed over the enum: :meth:`EvaluatorRegistry.ensure_exhaustive` fails
at import time if a question type has no policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr

from quizeval.core.logging import get_logger
from quizeval.math.symbolic import SymbolicComparator

from .models import MAX_POINTS, Question, QuestionResult, QuestionType, SubmittedAnswer

logger = get_logger(__name__)


class AnswerEvaluator(BaseModel, ABC):
    """
    Abstract base class for question evaluators.

    Each evaluator scores answers to one question type against a question
    definition.

    Subclasses must implement:
    - score(): Points earned for the submitted answer list
    - question_type: Class variable naming the handled type
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    question_type: ClassVar[QuestionType]
    # Results need manual grading before they count as correct or incorrect
    pending_review: ClassVar[bool] = False

    question: Question
    comparator: Optional[SymbolicComparator] = None
    max_points: float = MAX_POINTS

    @abstractmethod
    def score(self, answer: list[Any]) -> float:
        """
        Compute the points earned.

        Args:
            answer: Submitted answer values (selections, text, or blank values)

        Returns:
            Points in ``[0, max_points]``
        """
        pass

    def is_correct(self, points: float) -> bool:
        """Whether ``points`` counts as a correct answer; full credit by default."""
        return points == self.max_points

    def evaluate(self, submitted: SubmittedAnswer) -> QuestionResult:
        """
        Evaluate a submitted answer.

        A policy that fails on malformed input awards zero credit instead of
        aborting the scoring pass.
        """
        try:
            points = float(self.score(submitted.answer))
        except (ValueError, TypeError, ArithmeticError) as e:
            logger.warning(
                "Question evaluation failed; awarding zero credit",
                extra_data={
                    "question_id": self.question.id,
                    "question_type": self.question_type.value,
                    "error": str(e),
                }
            )
            points = 0.0

        return self.build_result(
            user_answer=submitted.answer,
            points=points,
            is_correct=self.is_correct(points),
            pending_review=self.pending_review,
        )

    def build_result(
        self,
        user_answer: list[Any],
        points: float,
        is_correct: bool,
        pending_review: bool = False,
    ) -> QuestionResult:
        return QuestionResult(
            question_id=self.question.id,
            question=dump_question(self.question),
            user_answer=user_answer,
            correct_answer=self.question.reference_answer,
            is_correct=is_correct,
            points=points,
            max_points=self.max_points,
            pending_review=pending_review,
        )


def dump_question(question: Question) -> dict[str, Any]:
    """Question as carried in results: camelCase keys, unset fields dropped."""
    return question.model_dump(mode="json", by_alias=True, exclude_none=True)


def unanswered_result(question: Question, pending_review: bool = False) -> QuestionResult:
    """Result for a question with no submitted answer; manually graded types still await review."""
    return QuestionResult(
        question_id=question.id,
        question=dump_question(question),
        user_answer=[],
        correct_answer=question.reference_answer,
        is_correct=False,
        points=0.0,
        max_points=MAX_POINTS,
        pending_review=pending_review,
    )


class EvaluatorRegistry(BaseModel):
    """
    Registry for question evaluators.

    Provides type-based dispatch to the evaluator for a question type.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    _evaluators: dict[QuestionType, type[AnswerEvaluator]] = PrivateAttr(default_factory=dict)

    def register(self, question_type: QuestionType, evaluator_class: type[AnswerEvaluator]) -> None:
        """
        Register the evaluator for a question type.

        Raises:
            TypeError: If evaluator_class is not an AnswerEvaluator subclass
        """
        if not (isinstance(evaluator_class, type) and issubclass(evaluator_class, AnswerEvaluator)):
            raise TypeError(f"evaluator_class must be a subclass of AnswerEvaluator, got {evaluator_class}")
        self._evaluators[QuestionType(question_type)] = evaluator_class

    def get_evaluator(self, question_type: QuestionType) -> type[AnswerEvaluator] | None:
        return self._evaluators.get(question_type)

    def create_evaluator(
        self,
        question: Question,
        comparator: SymbolicComparator | None = None,
    ) -> AnswerEvaluator:
        """
        Create the evaluator for a question.

        Raises:
            ValueError: If no evaluator is registered for the question's type
        """
        evaluator_class = self.get_evaluator(question.type)
        if evaluator_class is None:
            raise ValueError(f"No evaluator registered for question type: {question.type.value}")

        return evaluator_class(question=question, comparator=comparator)

    def get_registered_types(self) -> list[QuestionType]:
        return list(self._evaluators.keys())

    def missing_types(self) -> list[QuestionType]:
        return [question_type for question_type in QuestionType if question_type not in self._evaluators]

    def ensure_exhaustive(self) -> None:
        """
        Raises:
            RuntimeError: If any question type has no registered evaluator
        """
        missing = self.missing_types()
        if missing:
            names = ", ".join(question_type.value for question_type in missing)
            raise RuntimeError(f"No evaluator registered for question types: {names}")


# Global registry instance
_global_registry = EvaluatorRegistry()


def register_evaluator(evaluator_class: type[AnswerEvaluator]) -> type[AnswerEvaluator]:
    """
    Register an evaluator in the global registry under its ``question_type``.

    Usable as a class decorator.
    """
    _global_registry.register(evaluator_class.question_type, evaluator_class)
    return evaluator_class


def get_registry() -> EvaluatorRegistry:
    return _global_registry


def evaluate_question(
    question: Question,
    submitted: SubmittedAnswer | None = None,
    comparator: SymbolicComparator | None = None,
) -> QuestionResult:
    """
    Evaluate one question.

    Args:
        question: Question definition
        submitted: Learner's answer, or None when unanswered
        comparator: Symbolic comparator for math-mode blanks (defaults to
            the process-wide one, created on first use)

    Returns:
        QuestionResult; unanswered questions score zero without type logic,
        and an unanswered essay is still left for an instructor to grade
    """
    if submitted is None:
        evaluator_class = _global_registry.get_evaluator(question.type)
        return unanswered_result(question, pending_review=bool(evaluator_class and evaluator_class.pending_review))

    evaluator = _global_registry.create_evaluator(question, comparator=comparator)
    return evaluator.evaluate(submitted)
