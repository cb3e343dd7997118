"""
Tests for fill-in-the-blank evaluation.
"""

import pytest

from quizeval.answer.evaluator import evaluate_question
from quizeval.answer.evaluators.blanks import blank_value
from quizeval.answer.models import Question, SubmittedAnswer


def blanks_question(*blanks: dict) -> Question:
    return Question.model_validate({"type": "fill-in-the-blank", "blanks": list(blanks)})


def evaluate(question: Question, answers: list, comparator=None):
    return evaluate_question(question, SubmittedAnswer(question_id=0, answer=answers), comparator)


class TestBlankValue:

    def test_present(self):
        assert blank_value(["a", " b "], 1) == "b"

    def test_out_of_range(self):
        assert blank_value(["a"], 3) == ""
        assert blank_value(["a"], -1) == ""

    def test_none(self):
        assert blank_value([None], 0) == ""

    def test_number(self):
        assert blank_value([5], 0) == "5"


class TestMathAlgebraMode:

    def test_symbolic_equivalence_on_every_blank(self, comparator):
        """2(x+1), 5.0 and y*y match 2*x+2, 5 and y^2."""
        question = blanks_question(
            {"index": 0, "correctAnswers": ["2*x+2"], "mathMode": True},
            {"index": 1, "correctAnswers": ["5"], "mathMode": True},
            {"index": 2, "correctAnswers": ["y^2"], "mathMode": True},
        )
        result = evaluate(question, ["2(x+1)", "5.0", "y*y"], comparator)
        assert result.points == 1.0
        assert result.is_correct is True

    def test_any_accepted_answer(self, comparator):
        question = blanks_question({"index": 0, "correctAnswers": ["x+1", "1+x"], "mathMode": True})
        assert evaluate(question, ["x + 1"], comparator).is_correct

    def test_blank_tolerance(self, comparator):
        question = blanks_question(
            {"index": 0, "correctAnswers": ["pi"], "mathMode": True, "tolerance": 0.01},
        )
        assert evaluate(question, ["3.14"], comparator).is_correct

    def test_unparsable_answer_is_wrong(self, comparator):
        question = blanks_question({"index": 0, "correctAnswers": ["x^2"], "mathMode": True})
        assert not evaluate(question, ["x^"], comparator).is_correct

    def test_default_comparator(self):
        question = blanks_question({"index": 0, "correctAnswers": ["2x+2"], "mathMode": True})
        assert evaluate(question, ["2(x+1)"]).is_correct

    def test_degraded_comparator(self, degraded_comparator):
        question = blanks_question({"index": 0, "correctAnswers": ["2x+2"], "mathMode": True})
        assert evaluate(question, ["2x + 2"], degraded_comparator).is_correct
        assert not evaluate(question, ["2(x+1)"], degraded_comparator).is_correct


class TestMathNumericMode:

    def test_within_tolerance(self):
        question = blanks_question(
            {"index": 0, "correctAnswers": ["0.5"], "mathMode": True, "algebraMode": False, "tolerance": 0.001},
        )
        assert evaluate(question, ["0.5004"]).is_correct
        assert not evaluate(question, ["0.51"]).is_correct

    def test_falls_back_to_text(self):
        question = blanks_question(
            {"index": 0, "correctAnswers": ["ABC"], "mathMode": True, "algebraMode": False},
        )
        assert evaluate(question, ["abc"]).is_correct

    def test_no_algebra(self):
        question = blanks_question(
            {"index": 0, "correctAnswers": ["2x+2"], "mathMode": True, "algebraMode": False},
        )
        assert not evaluate(question, ["2(x+1)"]).is_correct


class TestTextMode:

    def test_case_insensitive_by_default(self):
        question = blanks_question({"index": 0, "correctAnswers": ["Paris"]})
        assert evaluate(question, [" paris "]).is_correct

    def test_case_sensitive(self):
        question = blanks_question({"index": 0, "correctAnswers": ["Paris"], "caseSensitive": True})
        assert not evaluate(question, ["paris"]).is_correct
        assert evaluate(question, ["Paris"]).is_correct


class TestScoring:

    def test_lookup_by_blank_index(self):
        """Blank order in the definition does not matter; ``index`` does."""
        question = blanks_question(
            {"index": 2, "correctAnswers": ["c"]},
            {"index": 0, "correctAnswers": ["a"]},
        )
        assert evaluate(question, ["a", "ignored", "c"]).points == 1.0

    def test_missing_value_is_wrong(self):
        question = blanks_question(
            {"index": 0, "correctAnswers": ["a"]},
            {"index": 5, "correctAnswers": ["b"]},
        )
        result = evaluate(question, ["a"])
        assert result.points == 0.5
        assert result.is_correct is False

    @pytest.mark.parametrize("n, k", [(1, 0), (1, 1), (3, 1), (3, 2), (4, 3), (7, 5)])
    def test_equal_weight_per_blank(self, n, k):
        question = blanks_question(*({"index": i, "correctAnswers": [f"w{i}"]} for i in range(n)))
        answers = [f"w{i}" if i < k else "wrong" for i in range(n)]
        result = evaluate(question, answers)
        assert result.points == pytest.approx(k / n, abs=1e-9)
        assert result.is_correct is (k == n)

    def test_no_blanks(self):
        question = Question.model_validate({"type": "fill-in-the-blank"})
        assert evaluate(question, ["a"]).points == 0.0

    def test_correct_answer_reports_blanks(self):
        question = blanks_question({"index": 0, "correctAnswers": ["a"]})
        result = evaluate(question, ["a"])
        assert result.correct_answer[0]["correctAnswers"] == ["a"]
