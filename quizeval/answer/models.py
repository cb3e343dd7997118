"""
Question, answer and result models.

Question definitions and submitted answers arrive as already-deserialized
structures with camelCase keys (``correctAnswer``, ``caseSensitive``);
every model accepts those keys and the snake_case field names alike, and
dumps camelCase with ``by_alias=True``.

Scoring-side models are frozen: a result is built once per submission and
only replaced, never mutated, by re-grading.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Points available per question (uniform weighting)
MAX_POINTS = 1.0


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class QuestionType(str, Enum):
    """Closed set of question types the evaluator dispatches on."""

    MULTIPLE_CHOICE = "multiple-choice"
    MULTIPLE_SELECT = "multiple-select"
    COMPLEX_MULTIPLE_CHOICE = "complex-multiple-choice"
    TEXT = "text"
    NUMBER = "number"
    ESSAY = "essay"
    FILL_IN_THE_BLANK = "fill-in-the-blank"


class Blank(_CamelModel):
    """
    One slot of a fill-in-the-blank question.

    ``index`` identifies the slot in the submitted answer list; it is not the
    blank's position in ``Question.blanks``.
    """

    index: int
    correct_answers: list[str] = Field(default_factory=list)
    case_sensitive: bool = False
    math_mode: bool = False
    algebra_mode: bool = True
    tolerance: float = Field(default=0.0001, ge=0)

    @field_validator("correct_answers", mode="before")
    @classmethod
    def coerce_answers(cls, v: Any) -> Any:
        """Accepted answers are compared as text; ``5`` is stored as ``"5"``."""
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            v = [v]
        return [item if isinstance(item, str) else str(item) for item in v]

    @field_validator("case_sensitive", "math_mode", mode="before")
    @classmethod
    def default_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("algebra_mode", mode="before")
    @classmethod
    def default_true(cls, v: Any) -> Any:
        return True if v is None else v

    @field_validator("tolerance", mode="before")
    @classmethod
    def default_tolerance(cls, v: Any) -> Any:
        return 0.0001 if v is None else v


class Question(_CamelModel):
    """
    A quiz question definition.

    Attributes:
        id: Question identifier carried into the result
        type: Question type
        question: Prompt text (display only)
        options: Option labels for the choice types
        correct_answer: Correct option index/indices, text, or number
        correct_answers: Alternative key for complex-multiple-choice
        tolerance: Absolute tolerance for number questions
        blanks: Blank definitions for fill-in-the-blank
        index_base: Base (0 or 1) of stored option indices; None applies the
            legacy rule that an index <= 0 is 0-based
    """

    model_config = ConfigDict(extra="allow")

    id: int = 0
    type: QuestionType
    question: str = ""
    options: Optional[list[Any]] = None
    correct_answer: Union[int, float, str, list, None] = None
    correct_answers: Optional[list] = None
    tolerance: Optional[float] = None
    blanks: Optional[list[Blank]] = None
    index_base: Optional[Literal[0, 1]] = None

    @field_validator("id", mode="before")
    @classmethod
    def default_id(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("question", mode="before")
    @classmethod
    def default_prompt(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="after")
    def check_unique_blank_indices(self) -> Question:
        if self.blanks:
            indices = [blank.index for blank in self.blanks]
            duplicates = sorted({index for index in indices if indices.count(index) > 1})
            if duplicates:
                raise ValueError(f"blank indices must be unique within a question, duplicated: {duplicates}")
        return self

    @property
    def reference_answer(self) -> Any:
        """Answer key reported in the result: the first of correctAnswer, correctAnswers, blanks."""
        if self.correct_answer is not None:
            return self.correct_answer
        if self.correct_answers is not None:
            return self.correct_answers
        if self.blanks is not None:
            return [blank.model_dump(by_alias=True) for blank in self.blanks]
        return None


class SubmittedAnswer(_CamelModel):
    """A learner's answer to the question at position ``question_id``."""

    question_id: int
    type: str = ""
    answer: list[Any] = Field(default_factory=list)

    @field_validator("answer", mode="before")
    @classmethod
    def wrap_scalar(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, tuple):
            return list(v)
        if not isinstance(v, list):
            return [v]
        return v


class QuestionResult(_CamelModel):
    """Outcome of evaluating one question."""

    question_id: int = 0
    question: dict[str, Any] = Field(default_factory=dict)
    user_answer: list[Any] = Field(default_factory=list)
    correct_answer: Any = None
    is_correct: bool = False
    points: float = 0.0
    max_points: float = MAX_POINTS
    pending_review: bool = False

    @field_validator("points", mode="before")
    @classmethod
    def default_points(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @field_validator("max_points", mode="before")
    @classmethod
    def default_max_points(cls, v: Any) -> Any:
        # Stored results predating per-question weights carry no maxPoints
        return MAX_POINTS if not v else v


class QuizResult(_CamelModel):
    """
    Aggregated outcome of a submission.

    ``correct_answers + incorrect_answers + pending_review == total_questions``;
    essays awaiting manual grading count toward neither correct nor incorrect.
    """

    score: float = 0.0
    total_questions: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    pending_review: int = 0
    percentage: int = Field(default=0, ge=0, le=100)
    time_spent: int = Field(default=0, ge=0)
    detailed_results: list[QuestionResult] = Field(default_factory=list)
