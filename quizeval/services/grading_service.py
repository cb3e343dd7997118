"""
Grading service for quiz attempts.

Handles submission scoring, manual essay grading, score release and
learner progress on top of the quiz repository.
"""

from typing import Any, Dict, List, Optional, Union

from ..answer.graders import load_answers, regrade_question, round_half_up, score_quiz
from ..core.config import get_settings
from ..core.logging import attempt_logger, get_logger
from ..math.symbolic import SymbolicComparator
from ..models.domain import (
    EndReason,
    EssayGrade,
    ProgressStats,
    QuizAttempt,
    ScoreReleaseMode,
    utc_now,
)
from ..repositories.quiz_repository import QuizRepositoryInterface

logger = get_logger(__name__)


class GradingService:
    """
    Service for attempt grading operations.

    Scores submissions against stored question sets and applies instructor
    grades to essay questions.
    """

    def __init__(
        self,
        repository: QuizRepositoryInterface,
        comparator: Optional[SymbolicComparator] = None
    ):
        self.repository = repository
        self.comparator = comparator

        logger.info("GradingService initialized")

    async def submit_attempt(
        self,
        user_id: int,
        quiz_id: int,
        answers: List[Union[Dict[str, Any], Any]],
        time_spent: int = 0,
        end_reason: str = EndReason.MANUAL.value
    ) -> QuizAttempt:
        """
        Score and store a submission.

        Args:
            user_id: Learner identifier
            quiz_id: Quiz identifier
            answers: Submitted answers
            time_spent: Seconds spent on the attempt
            end_reason: ``time_up`` when the timer ran out, otherwise manual

        Returns:
            Stored attempt

        Raises:
            QuestionSetNotFoundError: If the quiz has no question set
            QuizValidationError: If questions or answers are malformed
        """
        log = attempt_logger(__name__, quiz_id=quiz_id, user_id=user_id)

        question_set = await self.repository.get_question_set(quiz_id)
        submitted = load_answers(answers)

        result = score_quiz(question_set.questions, submitted, time_spent, self.comparator)

        completed_at = utc_now()
        released_at = completed_at if question_set.score_release_mode == ScoreReleaseMode.IMMEDIATE else None

        attempt = await self.repository.save_attempt(QuizAttempt(
            user_id=user_id,
            quiz_id=quiz_id,
            answers=submitted,
            result=result,
            completed_at=completed_at,
            score_released_at=released_at,
            end_reason=EndReason.normalize(end_reason),
        ))

        log.bind(attempt_id=attempt.id).info(
            "Attempt submitted",
            extra_data={
                "percentage": result.percentage,
                "pending_review": result.pending_review,
                "end_reason": attempt.end_reason.value,
            }
        )

        return attempt

    async def grade_essay(
        self,
        attempt_id: int,
        question_index: int,
        score: float,
        max_score: float,
        feedback: str = "",
        graded_by: Optional[Union[int, str]] = None
    ) -> QuizAttempt:
        """
        Apply an instructor's grade to one question of a stored attempt.

        Raises:
            AttemptNotFoundError: If the attempt doesn't exist
            InvalidGradeError: If the index or score is out of range; the
                stored attempt is left untouched
        """
        attempt = await self.repository.get_attempt(attempt_id)
        log = attempt_logger(
            __name__,
            quiz_id=attempt.quiz_id,
            attempt_id=attempt_id,
            user_id=attempt.user_id,
            question_index=question_index,
        )

        result = regrade_question(
            attempt.result.detailed_results,
            question_index,
            score,
            max_score,
            attempt.result.time_spent,
        )

        grade = EssayGrade(
            score=score,
            max_score=max_score,
            feedback=feedback or "",
            graded_by=graded_by,
        )
        essay_grading = {**attempt.essay_grading, str(question_index): grade}

        updated = await self.repository.update_attempt(
            attempt.model_copy(update={"result": result, "essay_grading": essay_grading})
        )

        log.info(
            "Essay graded",
            extra_data={"score": score, "max_score": max_score, "percentage": result.percentage}
        )

        return updated

    async def release_score(self, attempt_id: int) -> QuizAttempt:
        """
        Make an attempt's score visible to the learner.

        Raises:
            AttemptNotFoundError: If the attempt doesn't exist
        """
        attempt = await self.repository.get_attempt(attempt_id)
        if attempt.is_released:
            return attempt

        updated = await self.repository.update_attempt(
            attempt.model_copy(update={"score_released_at": utc_now()})
        )

        attempt_logger(__name__, quiz_id=attempt.quiz_id, attempt_id=attempt_id, user_id=attempt.user_id).info("Score released")

        return updated

    async def get_user_progress(self, user_id: int) -> ProgressStats:
        """Summarize a learner's attempts"""
        attempts = await self.repository.list_attempts(user_id)

        if not attempts:
            return ProgressStats()

        percentages = [attempt.percentage for attempt in attempts]

        return ProgressStats(
            total_attempts=len(attempts),
            average_score=round_half_up(sum(percentages) / len(percentages)),
            best_score=max(percentages),
            quizzes_attempted=len({attempt.quiz_id for attempt in attempts}),
            recent_activity=attempts[:get_settings().RECENT_ACTIVITY_LIMIT],
        )


# Factory function
def get_grading_service(
    repository: QuizRepositoryInterface,
    comparator: Optional[SymbolicComparator] = None
) -> GradingService:
    """Create grading service instance"""
    return GradingService(repository, comparator)
