"""
Tests for GradingService.

Unit tests for submission, essay grading, score release and progress.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from quizeval.core.errors import (
    AttemptNotFoundError,
    InvalidGradeError,
    QuestionSetNotFoundError,
)
from quizeval.models.domain import EndReason, QuestionSet, QuizAttempt, ScoreReleaseMode
from quizeval.repositories import InMemoryQuizRepository
from quizeval.services import GradingService, get_grading_service


QUESTIONS = [
    {"type": "multiple-choice", "options": ["A", "B"], "correctAnswer": 1},
    {"type": "number", "correctAnswer": 3.14, "tolerance": 0.01},
    {"type": "essay", "question": "Explain your reasoning"},
]

ANSWERS = [
    {"questionId": 0, "type": "multiple-choice", "answer": [1]},
    {"questionId": 1, "type": "number", "answer": ["3.145"]},
    {"questionId": 2, "type": "essay", "answer": ["Because it converges."]},
]


@pytest.fixture
def repository() -> InMemoryQuizRepository:
    return InMemoryQuizRepository([
        QuestionSet.model_validate({"quizId": 1, "title": "Immediate", "questions": QUESTIONS}),
        QuestionSet.model_validate({
            "quizId": 2,
            "title": "Held back",
            "questions": QUESTIONS[:2],
            "scoreReleaseMode": "manual",
        }),
    ])


@pytest.fixture
def service(repository, comparator) -> GradingService:
    return get_grading_service(repository, comparator)


@pytest.mark.asyncio
async def test_submit_attempt(service, repository):
    """Test scoring and storing a submission"""
    attempt = await service.submit_attempt(user_id=5, quiz_id=1, answers=ANSWERS, time_spent=120)

    assert attempt.id == 1
    assert attempt.user_id == 5
    assert attempt.result.correct_answers == 2
    assert attempt.result.pending_review == 1
    assert attempt.percentage == 67
    assert attempt.result.time_spent == 120
    assert attempt.end_reason is EndReason.MANUAL

    stored = await repository.get_attempt(attempt.id)
    assert stored.result.model_dump() == attempt.result.model_dump()
    assert stored.answers == attempt.answers


@pytest.mark.asyncio
async def test_immediate_release(service):
    attempt = await service.submit_attempt(5, 1, ANSWERS)

    assert attempt.is_released
    assert attempt.score_released_at == attempt.completed_at


@pytest.mark.asyncio
async def test_manual_release(service):
    """Scores of manually released quizzes stay hidden until released"""
    attempt = await service.submit_attempt(5, 2, ANSWERS[:2])
    assert attempt.score_released_at is None

    released = await service.release_score(attempt.id)
    assert released.is_released

    stored = await service.repository.get_attempt(attempt.id)
    assert stored.score_released_at == released.score_released_at


@pytest.mark.asyncio
async def test_release_is_idempotent(service):
    attempt = await service.submit_attempt(5, 1, ANSWERS)
    released = await service.release_score(attempt.id)
    assert released.score_released_at == attempt.score_released_at


@pytest.mark.asyncio
@pytest.mark.parametrize("end_reason, expected", [
    ("time_up", EndReason.TIME_UP),
    ("manual", EndReason.MANUAL),
    ("closed_tab", EndReason.MANUAL),
    (None, EndReason.MANUAL),
])
async def test_end_reason(service, end_reason, expected):
    attempt = await service.submit_attempt(5, 1, ANSWERS, end_reason=end_reason)
    assert attempt.end_reason is expected


@pytest.mark.asyncio
async def test_submit_unknown_quiz(service):
    with pytest.raises(QuestionSetNotFoundError):
        await service.submit_attempt(5, 99, ANSWERS)


@pytest.mark.asyncio
async def test_grade_essay(service, repository):
    """Test grading an essay recomputes the stored aggregates"""
    attempt = await service.submit_attempt(5, 1, ANSWERS)

    graded = await service.grade_essay(attempt.id, 2, 1, 1, feedback="Clear argument", graded_by=42)

    assert graded.percentage == 100
    assert graded.result.correct_answers == 3
    assert graded.result.pending_review == 0
    grade = graded.essay_grading["2"]
    assert grade.score == 1
    assert grade.max_score == 1
    assert grade.feedback == "Clear argument"
    assert grade.graded_by == 42

    stored = await repository.get_attempt(attempt.id)
    assert stored.percentage == 100
    assert stored.essay_grading["2"].feedback == "Clear argument"


@pytest.mark.asyncio
async def test_grade_essay_invalid_score(service, repository):
    """Test an out-of-range grade leaves the stored attempt untouched"""
    attempt = await service.submit_attempt(5, 1, ANSWERS)

    with pytest.raises(InvalidGradeError):
        await service.grade_essay(attempt.id, 2, 3, 1)

    stored = await repository.get_attempt(attempt.id)
    assert stored.percentage == 67
    assert stored.essay_grading == {}


@pytest.mark.asyncio
async def test_grade_essay_unknown_attempt(service):
    with pytest.raises(AttemptNotFoundError):
        await service.grade_essay(404, 0, 1, 1)


@pytest.mark.asyncio
async def test_user_progress(service, repository):
    """Test progress statistics across quizzes"""
    await service.submit_attempt(5, 1, ANSWERS)
    await service.submit_attempt(5, 2, ANSWERS[:2])
    await service.submit_attempt(5, 2, [])
    await service.submit_attempt(6, 1, ANSWERS)

    progress = await service.get_user_progress(5)

    assert progress.total_attempts == 3
    assert progress.best_score == 100
    # (67 + 100 + 0) / 3
    assert progress.average_score == 56
    assert progress.quizzes_attempted == 2
    assert len(progress.recent_activity) == 3


@pytest.mark.asyncio
async def test_recent_activity_is_latest_five(repository, service):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    scored = await service.submit_attempt(5, 1, ANSWERS)
    for day in range(7):
        await repository.save_attempt(
            scored.model_copy(update={"completed_at": base + timedelta(days=day)})
        )

    progress = await service.get_user_progress(5)

    assert progress.total_attempts == 8
    assert len(progress.recent_activity) == 5
    completed = [attempt.completed_at for attempt in progress.recent_activity]
    assert completed == sorted(completed, reverse=True)


@pytest.mark.asyncio
async def test_progress_without_attempts(service):
    progress = await service.get_user_progress(123)

    assert progress.total_attempts == 0
    assert progress.average_score == 0
    assert progress.best_score == 0
    assert progress.recent_activity == []


def test_question_set_release_mode_default():
    question_set = QuestionSet.model_validate({"quizId": 3, "scoreReleaseMode": None})
    assert question_set.score_release_mode is ScoreReleaseMode.IMMEDIATE


@pytest.mark.asyncio
async def test_attempt_record_round_trip(service):
    """Test an attempt survives flattening into a storage row"""
    attempt = await service.submit_attempt(5, 1, ANSWERS, time_spent=45, end_reason="time_up")
    graded = await service.grade_essay(attempt.id, 2, 0.5, 1, feedback="Partly")

    record = graded.to_record()
    assert isinstance(record["answers"], str)
    assert isinstance(record["detailedResults"], str)
    assert record["endReason"] == "time_up"
    assert record["essayGrading"]["2"]["maxScore"] == 1

    restored = QuizAttempt.from_record(record)
    assert restored.model_dump() == graded.model_dump()


@pytest.mark.asyncio
async def test_grading_records_carry_attempt_context(service, caplog):
    """Every grading record names the quiz, attempt and learner"""
    caplog.set_level(logging.INFO, logger="quizeval.services.grading_service")

    attempt = await service.submit_attempt(5, 1, ANSWERS)
    await service.grade_essay(attempt.id, 2, 1, 1)

    contexts = {
        record.getMessage(): record.extra_data
        for record in caplog.records
        if record.name == "quizeval.services.grading_service"
    }
    assert contexts["Attempt submitted"]["attempt_id"] == attempt.id
    assert contexts["Attempt submitted"]["quiz_id"] == 1
    assert contexts["Essay graded"] == {
        "quiz_id": 1,
        "attempt_id": attempt.id,
        "user_id": 5,
        "question_index": 2,
        "score": 1,
        "max_score": 1,
        "percentage": 100,
    }
