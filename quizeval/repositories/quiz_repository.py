"""
Quiz repository for data access.

Implements the Repository pattern for question sets and attempt storage.
Attempts are kept as flat records (see :meth:`QuizAttempt.to_record`).
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
import json

from ..models.domain import QuestionSet, QuizAttempt
from ..core.errors import AttemptNotFoundError, QuestionSetNotFoundError, QuizValidationError
from ..core.logging import get_logger

logger = get_logger(__name__)


class QuizRepositoryInterface(ABC):
    """Abstract interface for quiz repository"""

    @abstractmethod
    async def get_question_set(self, quiz_id: int) -> QuestionSet:
        """Get a quiz's question set by ID"""
        pass

    @abstractmethod
    async def save_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        """Persist a new attempt; returns it with its assigned ID"""
        pass

    @abstractmethod
    async def get_attempt(self, attempt_id: int) -> QuizAttempt:
        """Get an attempt by ID"""
        pass

    @abstractmethod
    async def update_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        """Overwrite a stored attempt"""
        pass

    @abstractmethod
    async def list_attempts(self, user_id: int, quiz_id: Optional[int] = None) -> List[QuizAttempt]:
        """List a user's attempts, most recent first"""
        pass


def _most_recent_first(attempts: List[QuizAttempt]) -> List[QuizAttempt]:
    return sorted(attempts, key=lambda attempt: attempt.completed_at.timestamp(), reverse=True)


class InMemoryQuizRepository(QuizRepositoryInterface):
    """
    In-memory quiz repository.

    Holds attempt records in a dict; useful for tests and embedding.
    """

    def __init__(self, question_sets: Optional[List[QuestionSet]] = None):
        self._question_sets: Dict[int, QuestionSet] = {}
        self._records: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

        for question_set in question_sets or []:
            self.add_question_set(question_set)

    def add_question_set(self, question_set: QuestionSet) -> None:
        self._question_sets[question_set.quiz_id] = question_set

    async def get_question_set(self, quiz_id: int) -> QuestionSet:
        if quiz_id not in self._question_sets:
            logger.warning(
                "Question set not found",
                extra_data={"quiz_id": quiz_id}
            )
            raise QuestionSetNotFoundError(quiz_id)
        return self._question_sets[quiz_id]

    async def save_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        saved = attempt.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self._records[saved.id] = saved.to_record()
        return saved

    async def get_attempt(self, attempt_id: int) -> QuizAttempt:
        if attempt_id not in self._records:
            raise AttemptNotFoundError(attempt_id)
        return QuizAttempt.from_record(self._records[attempt_id])

    async def update_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        if attempt.id not in self._records:
            raise AttemptNotFoundError(attempt.id)
        self._records[attempt.id] = attempt.to_record()
        return attempt

    async def list_attempts(self, user_id: int, quiz_id: Optional[int] = None) -> List[QuizAttempt]:
        attempts = [
            QuizAttempt.from_record(record)
            for record in self._records.values()
            if record["userId"] == user_id and (quiz_id is None or record["quizId"] == quiz_id)
        ]
        return _most_recent_first(attempts)


class FileSystemQuizRepository(QuizRepositoryInterface):
    """
    File system-based quiz repository.

    Stores question sets as ``<quiz_id>.json`` and attempts as
    ``attempts/<attempt_id>.json`` under the data directory.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.attempts_dir = self.data_dir / "attempts"
        self.attempts_dir.mkdir(exist_ok=True, parents=True)

        # Cache for question sets
        self._question_set_cache: Dict[int, QuestionSet] = {}

        logger.info(
            "Initialized FileSystemQuizRepository",
            extra_data={"data_dir": str(self.data_dir)}
        )

    async def get_question_set(self, quiz_id: int) -> QuestionSet:
        """Get a quiz's question set by ID"""

        # Check cache first
        if quiz_id in self._question_set_cache:
            return self._question_set_cache[quiz_id]

        question_file = self.data_dir / f"{quiz_id}.json"

        if not question_file.exists():
            logger.warning(
                "Question set not found",
                extra_data={"quiz_id": quiz_id}
            )
            raise QuestionSetNotFoundError(quiz_id)

        data = json.loads(question_file.read_text(encoding="utf-8"))
        # A bare list is a question set without metadata
        if isinstance(data, list):
            data = {"questions": data}
        data.setdefault("quizId", quiz_id)

        try:
            question_set = QuestionSet.model_validate(data)
        except ValueError as e:
            raise QuizValidationError(f"Invalid question set for quiz '{quiz_id}'", errors=[str(e)]) from e

        self._question_set_cache[quiz_id] = question_set

        logger.debug(
            "Question set loaded",
            extra_data={"quiz_id": quiz_id, "questions": len(question_set.questions)}
        )

        return question_set

    async def save_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        saved = attempt.model_copy(update={"id": self._next_attempt_id()})
        self._write_record(saved)

        logger.debug(
            "Attempt saved",
            extra_data={"attempt_id": saved.id, "user_id": saved.user_id, "quiz_id": saved.quiz_id}
        )

        return saved

    async def get_attempt(self, attempt_id: int) -> QuizAttempt:
        attempt_file = self._attempt_file(attempt_id)

        if not attempt_file.exists():
            raise AttemptNotFoundError(attempt_id)

        return QuizAttempt.from_record(json.loads(attempt_file.read_text(encoding="utf-8")))

    async def update_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        if attempt.id is None or not self._attempt_file(attempt.id).exists():
            raise AttemptNotFoundError(attempt.id)

        self._write_record(attempt)
        return attempt

    async def list_attempts(self, user_id: int, quiz_id: Optional[int] = None) -> List[QuizAttempt]:
        attempts = []

        for attempt_file in self.attempts_dir.glob("*.json"):
            record = json.loads(attempt_file.read_text(encoding="utf-8"))
            if record.get("userId") != user_id:
                continue
            if quiz_id is not None and record.get("quizId") != quiz_id:
                continue
            attempts.append(QuizAttempt.from_record(record))

        return _most_recent_first(attempts)

    def _attempt_file(self, attempt_id: int) -> Path:
        return self.attempts_dir / f"{attempt_id}.json"

    def _next_attempt_id(self) -> int:
        ids = [int(path.stem) for path in self.attempts_dir.glob("*.json") if path.stem.isdigit()]
        return max(ids, default=0) + 1

    def _write_record(self, attempt: QuizAttempt) -> None:
        self._attempt_file(attempt.id).write_text(
            json.dumps(attempt.to_record(), indent=2),
            encoding="utf-8"
        )
