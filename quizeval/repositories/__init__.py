"""Repositories package"""

from .quiz_repository import (
    QuizRepositoryInterface,
    InMemoryQuizRepository,
    FileSystemQuizRepository,
)

__all__ = [
    "QuizRepositoryInterface",
    "InMemoryQuizRepository",
    "FileSystemQuizRepository",
]
