"""
quizeval - Answer evaluation and symbolic scoring for quizzes

Scores learner submissions against question definitions:
- Choice, text, number, essay and fill-in-the-blank questions
- Partial credit with penalty weighting
- Tolerance-aware numeric comparison
- Symbolic equivalence of math expressions (SymPy)
- Manual re-grading with aggregate recomputation
"""

from .answer import (
    Blank,
    Question,
    QuestionResult,
    QuestionType,
    QuizResult,
    SubmittedAnswer,
    evaluate_question,
    recompute_aggregates,
    regrade_question,
    score_quiz,
)
from .core.errors import (
    BackendUnavailableError,
    InvalidGradeError,
    QuizEvalError,
    QuizValidationError,
    UnparsableExpressionError,
)
from .math import SymbolicComparator, compare_math_expressions, get_backend, normalize_expression

__version__ = "1.0.0"

__all__ = [
    "Blank",
    "Question",
    "QuestionResult",
    "QuestionType",
    "QuizResult",
    "SubmittedAnswer",
    "evaluate_question",
    "recompute_aggregates",
    "regrade_question",
    "score_quiz",
    "BackendUnavailableError",
    "InvalidGradeError",
    "QuizEvalError",
    "QuizValidationError",
    "UnparsableExpressionError",
    "SymbolicComparator",
    "compare_math_expressions",
    "get_backend",
    "normalize_expression",
]
