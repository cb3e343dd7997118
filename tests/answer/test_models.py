"""
Tests for question, answer and result models.
"""

import pytest
from pydantic import ValidationError

from quizeval.answer.models import (
    MAX_POINTS,
    Blank,
    Question,
    QuestionResult,
    QuestionType,
    QuizResult,
    SubmittedAnswer,
)


class TestQuestion:

    def test_camel_case_keys(self):
        question = Question.model_validate({
            "id": 3,
            "type": "number",
            "correctAnswer": 3.14,
            "tolerance": 0.01,
            "indexBase": 0,
        })
        assert question.type is QuestionType.NUMBER
        assert question.correct_answer == 3.14
        assert question.index_base == 0

    def test_snake_case_names(self):
        question = Question(type="multiple-choice", correct_answer=2)
        assert question.correct_answer == 2
        assert question.id == 0

    def test_unknown_type_rejected(self, assert_validation_error):
        assert_validation_error(Question, {"type": "matching"}, expected_field="type")

    def test_index_base_must_be_zero_or_one(self, assert_validation_error):
        assert_validation_error(Question, {"type": "multiple-choice", "indexBase": 2}, expected_field="indexBase")

    def test_null_id_defaults(self):
        assert Question.model_validate({"id": None, "type": "text"}).id == 0

    def test_extra_keys_preserved(self):
        question = Question.model_validate({"type": "essay", "explanation": "Use the definition"})
        assert question.model_extra == {"explanation": "Use the definition"}
        assert question.model_dump(by_alias=True)["explanation"] == "Use the definition"

    def test_duplicate_blank_indices_rejected(self):
        with pytest.raises(ValidationError, match="blank indices must be unique"):
            Question.model_validate({
                "type": "fill-in-the-blank",
                "blanks": [
                    {"index": 0, "correctAnswers": ["a"]},
                    {"index": 0, "correctAnswers": ["b"]},
                ],
            })

    def test_frozen(self):
        question = Question(type="text", correct_answer="Paris")
        with pytest.raises(ValidationError):
            question.correct_answer = "Lyon"

    @pytest.mark.parametrize("data, expected", [
        ({"type": "multiple-choice", "correctAnswer": 2}, 2),
        ({"type": "complex-multiple-choice", "correctAnswers": [1, 3]}, [1, 3]),
        ({"type": "essay"}, None),
    ])
    def test_reference_answer(self, data, expected):
        assert Question.model_validate(data).reference_answer == expected

    def test_reference_answer_falls_back_to_blanks(self):
        question = Question.model_validate({
            "type": "fill-in-the-blank",
            "blanks": [{"index": 0, "correctAnswers": ["4"]}],
        })
        assert question.reference_answer[0]["correctAnswers"] == ["4"]


class TestBlank:

    def test_defaults(self):
        blank = Blank(index=0)
        assert blank.correct_answers == []
        assert blank.case_sensitive is False
        assert blank.math_mode is False
        assert blank.algebra_mode is True
        assert blank.tolerance == 0.0001

    def test_nulls_take_defaults(self):
        blank = Blank.model_validate({
            "index": 1,
            "correctAnswers": None,
            "caseSensitive": None,
            "algebraMode": None,
            "tolerance": None,
        })
        assert blank.correct_answers == []
        assert blank.case_sensitive is False
        assert blank.algebra_mode is True
        assert blank.tolerance == 0.0001

    def test_answers_coerced_to_text(self):
        blank = Blank.model_validate({"index": 0, "correctAnswers": [5, 2.5, "x"]})
        assert blank.correct_answers == ["5", "2.5", "x"]

    def test_single_answer_wrapped(self):
        assert Blank.model_validate({"index": 0, "correctAnswers": "x"}).correct_answers == ["x"]

    def test_negative_tolerance_rejected(self, assert_validation_error):
        assert_validation_error(Blank, {"index": 0, "tolerance": -1}, expected_field="tolerance")


class TestSubmittedAnswer:

    def test_scalar_wrapped(self):
        assert SubmittedAnswer.model_validate({"questionId": 0, "answer": 2}).answer == [2]

    def test_tuple_becomes_list(self):
        assert SubmittedAnswer(question_id=0, answer=(1, 3)).answer == [1, 3]

    def test_missing_answer_is_empty(self):
        assert SubmittedAnswer.model_validate({"questionId": 1, "answer": None}).answer == []

    def test_question_id_required(self, assert_validation_error):
        assert_validation_error(SubmittedAnswer, {"answer": [1]}, expected_field="questionId")


class TestResults:

    def test_question_result_dumps_camel_case(self):
        result = QuestionResult(question_id=1, is_correct=True, points=1.0)
        dumped = result.model_dump(by_alias=True)
        assert dumped["questionId"] == 1
        assert dumped["isCorrect"] is True
        assert dumped["maxPoints"] == MAX_POINTS
        assert dumped["pendingReview"] is False

    def test_stored_result_without_max_points(self):
        result = QuestionResult.model_validate({"questionId": 0, "points": None, "maxPoints": None})
        assert result.points == 0.0
        assert result.max_points == MAX_POINTS

    def test_percentage_bounds(self, assert_validation_error):
        assert_validation_error(QuizResult, {"percentage": 101}, expected_field="percentage")
        assert_validation_error(QuizResult, {"percentage": -1}, expected_field="percentage")

    def test_time_spent_non_negative(self, assert_validation_error):
        assert_validation_error(QuizResult, {"timeSpent": -5}, expected_field="timeSpent")
