"""
Domain models for quiz attempts.

These are the entities the grading service stores and returns around the
scoring core: question sets, attempts, essay grades and progress stats.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..answer.graders import recompute_aggregates
from ..answer.models import Question, QuizResult, SubmittedAnswer


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EndReason(str, Enum):
    """Why an attempt ended"""
    TIME_UP = "time_up"
    MANUAL = "manual"

    @classmethod
    def normalize(cls, value: Any) -> "EndReason":
        """Anything other than ``time_up`` is a manual submission"""
        if value == cls.TIME_UP or value == cls.TIME_UP.value:
            return cls.TIME_UP
        return cls.MANUAL


class ScoreReleaseMode(str, Enum):
    """When learners see their score"""
    IMMEDIATE = "immediate"
    MANUAL = "manual"


class _RecordModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionSet(_RecordModel):
    """A quiz's questions and release policy"""
    quiz_id: int
    title: str = ""
    questions: List[Question] = Field(default_factory=list)
    score_release_mode: ScoreReleaseMode = ScoreReleaseMode.IMMEDIATE

    @field_validator("score_release_mode", mode="before")
    @classmethod
    def default_release_mode(cls, v):
        return ScoreReleaseMode.IMMEDIATE if not v else v


class EssayGrade(_RecordModel):
    """An instructor's grade for one essay question"""
    score: float
    max_score: float
    feedback: str = ""
    graded_by: Optional[Union[int, str]] = None
    graded_at: datetime = Field(default_factory=utc_now)


class QuizAttempt(_RecordModel):
    """A learner's scored submission"""
    id: Optional[int] = None
    user_id: int
    quiz_id: int
    answers: List[SubmittedAnswer] = Field(default_factory=list)
    result: QuizResult
    completed_at: datetime = Field(default_factory=utc_now)
    score_released_at: Optional[datetime] = None
    end_reason: EndReason = EndReason.MANUAL
    essay_grading: Dict[str, EssayGrade] = Field(default_factory=dict)

    @property
    def percentage(self) -> int:
        return self.result.percentage

    @property
    def is_released(self) -> bool:
        return self.score_released_at is not None

    def to_record(self) -> Dict[str, Any]:
        """
        Flatten into a storage row.

        Answers and per-question results are stored as JSON text blocks next
        to the aggregate columns.
        """
        result = self.result
        return {
            "id": self.id,
            "userId": self.user_id,
            "quizId": self.quiz_id,
            "answers": json.dumps([
                answer.model_dump(mode="json", by_alias=True) for answer in self.answers
            ]),
            "score": result.score,
            "totalQuestions": result.total_questions,
            "correctAnswers": result.correct_answers,
            "incorrectAnswers": result.incorrect_answers,
            "pendingReview": result.pending_review,
            "percentage": result.percentage,
            "timeSpent": result.time_spent,
            "detailedResults": json.dumps([
                detail.model_dump(mode="json", by_alias=True) for detail in result.detailed_results
            ]),
            "completedAt": self.completed_at.isoformat(),
            "scoreReleasedAt": self.score_released_at.isoformat() if self.score_released_at else None,
            "endReason": self.end_reason.value,
            "essayGrading": {
                key: grade.model_dump(mode="json", by_alias=True)
                for key, grade in self.essay_grading.items()
            },
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "QuizAttempt":
        """
        Rebuild an attempt from a storage row.

        Aggregates are recomputed from the stored per-question results.
        """
        answers = record.get("answers") or []
        if isinstance(answers, str):
            answers = json.loads(answers)

        detailed_results = record.get("detailedResults") or []
        if isinstance(detailed_results, str):
            detailed_results = json.loads(detailed_results)

        return cls(
            id=record.get("id"),
            user_id=record["userId"],
            quiz_id=record["quizId"],
            answers=answers,
            result=recompute_aggregates(detailed_results, record.get("timeSpent") or 0),
            completed_at=record.get("completedAt") or utc_now(),
            score_released_at=record.get("scoreReleasedAt"),
            end_reason=EndReason.normalize(record.get("endReason")),
            essay_grading=record.get("essayGrading") or {},
        )


class ProgressStats(_RecordModel):
    """A learner's progress across attempts"""
    total_attempts: int = 0
    average_score: int = 0
    best_score: int = 0
    quizzes_attempted: int = 0
    recent_activity: List[QuizAttempt] = Field(default_factory=list)
