"""Domain models package"""

from .domain import (
    EndReason,
    ScoreReleaseMode,
    QuestionSet,
    EssayGrade,
    QuizAttempt,
    ProgressStats,
)

__all__ = [
    "EndReason",
    "ScoreReleaseMode",
    "QuestionSet",
    "EssayGrade",
    "QuizAttempt",
    "ProgressStats",
]
