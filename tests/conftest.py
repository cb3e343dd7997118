"""
Shared pytest fixtures for the scoring engine tests.

This module provides:
- The algebra back end and a symbolic comparator bound to it
- Utilities for testing Pydantic validation
- Sample question sets covering every question type
"""

import pytest
from typing import Any, Type
from pydantic import BaseModel, ValidationError

from quizeval.core.config import Settings
from quizeval.math.backend import SympyBackend, load_backend
from quizeval.math.symbolic import SymbolicComparator


@pytest.fixture(scope="session")
def backend() -> SympyBackend:
    """SymPy back end with default limits."""
    return load_backend(Settings())


@pytest.fixture
def comparator(backend: SympyBackend) -> SymbolicComparator:
    return SymbolicComparator(backend)


@pytest.fixture
def degraded_comparator() -> SymbolicComparator:
    """Comparator without a back end (string fallback)."""
    return SymbolicComparator(None)


@pytest.fixture
def assert_validation_error():
    """Helper to assert that a ValidationError is raised with expected details."""
    def _assert_validation(
        model_class: Type[BaseModel],
        data: dict[str, Any],
        expected_field: str | None = None,
        expected_type: str | None = None,
    ) -> ValidationError:
        """
        Assert that validating ``data`` raises ValidationError.

        Args:
            model_class: The Pydantic model class
            data: Invalid data to validate
            expected_field: Expected field name (or alias) in error (optional)
            expected_type: Expected error type (optional)

        Returns:
            The ValidationError that was raised
        """
        with pytest.raises(ValidationError) as exc_info:
            model_class.model_validate(data)

        error = exc_info.value
        if expected_field:
            field_errors = [e for e in error.errors() if e['loc'] and e['loc'][0] == expected_field]
            assert len(field_errors) > 0, f"Expected error for field '{expected_field}' not found"

        if expected_type:
            assert any(
                expected_type in str(e['type']).lower() for e in error.errors()
            ), f"Expected error type containing '{expected_type}' not found"

        return error

    return _assert_validation


@pytest.fixture
def mixed_questions() -> list[dict[str, Any]]:
    """One question of every type, as a stored quiz would hold them."""
    return [
        {"id": 10, "type": "multiple-choice", "question": "Pick B", "options": ["A", "B", "C"], "correctAnswer": 2},
        {"id": 11, "type": "multiple-select", "question": "Pick A and C", "options": ["A", "B", "C"], "correctAnswer": [1, 3]},
        {"id": 12, "type": "complex-multiple-choice", "question": "Pick primes", "options": ["2", "4", "5", "9"], "correctAnswers": [1, 3]},
        {"id": 13, "type": "text", "question": "Capital of France", "correctAnswer": "Paris"},
        {"id": 14, "type": "number", "question": "Approximate pi", "correctAnswer": 3.14, "tolerance": 0.01},
        {"id": 15, "type": "essay", "question": "Explain limits"},
        {
            "id": 16,
            "type": "fill-in-the-blank",
            "question": "Simplify",
            "blanks": [
                {"index": 0, "correctAnswers": ["2*x+2"], "mathMode": True},
                {"index": 1, "correctAnswers": ["5"], "mathMode": True},
                {"index": 2, "correctAnswers": ["y^2"], "mathMode": True},
            ],
        },
    ]


@pytest.fixture
def perfect_answers() -> list[dict[str, Any]]:
    """Answers earning full credit on ``mixed_questions`` (essay left for grading)."""
    return [
        {"questionId": 0, "type": "multiple-choice", "answer": [2]},
        {"questionId": 1, "type": "multiple-select", "answer": [3, 1]},
        {"questionId": 2, "type": "complex-multiple-choice", "answer": [1, 3]},
        {"questionId": 3, "type": "text", "answer": ["  paris "]},
        {"questionId": 4, "type": "number", "answer": ["3.145"]},
        {"questionId": 5, "type": "essay", "answer": ["Limits describe behaviour near a point."]},
        {"questionId": 6, "type": "fill-in-the-blank", "answer": ["2(x+1)", "5.0", "y*y"]},
    ]
