"""Core utilities package"""

from .config import Settings, get_settings
from .logging import ContextLogger, attempt_logger, get_logger, setup_logging
from .errors import (
    QuizEvalError,
    InvalidGradeError,
    UnparsableExpressionError,
    BackendUnavailableError,
    QuizValidationError,
    QuestionSetNotFoundError,
    AttemptNotFoundError,
)

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "attempt_logger",
    "ContextLogger",
    "QuizEvalError",
    "InvalidGradeError",
    "UnparsableExpressionError",
    "BackendUnavailableError",
    "QuizValidationError",
    "QuestionSetNotFoundError",
    "AttemptNotFoundError",
]
