"""
Answer evaluation and quiz scoring.

Provides:
- Question, answer and result models
- Type-specific evaluators dispatched by question type
- Partial credit (complex multiple choice, fill-in-the-blank)
- Quiz aggregation and manual re-grading
"""

from .models import (
    MAX_POINTS,
    Blank,
    Question,
    QuestionResult,
    QuestionType,
    QuizResult,
    SubmittedAnswer,
)
from .evaluator import AnswerEvaluator, EvaluatorRegistry, evaluate_question, get_registry
from . import evaluators  # noqa: F401  (registers the per-type evaluators)
from .graders import (
    aggregate,
    load_answers,
    load_questions,
    load_results,
    recompute_aggregates,
    regrade_question,
    round_half_up,
    score_quiz,
)

__all__ = [
    "MAX_POINTS",
    "Blank",
    "Question",
    "QuestionResult",
    "QuestionType",
    "QuizResult",
    "SubmittedAnswer",
    "AnswerEvaluator",
    "EvaluatorRegistry",
    "evaluate_question",
    "get_registry",
    "aggregate",
    "load_answers",
    "load_questions",
    "load_results",
    "recompute_aggregates",
    "regrade_question",
    "round_half_up",
    "score_quiz",
]
