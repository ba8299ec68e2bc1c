import pytest

from app.core.constants import MultipleScoringPolicyEnum, QuestionTypeEnum
from app.services.scoring import ScoreResult, ScoringRules, score_answer

PARTIAL = ScoringRules(multiple_policy=MultipleScoringPolicyEnum.PARTIAL)


class TestSingleAndJudge:
    def test_single_exact_match(self):
        assert score_answer("single", "B", "B") == ScoreResult(True, 1.0)

    def test_single_mismatch(self):
        assert score_answer("single", "A", "B") == ScoreResult(False, 0.0)

    def test_single_is_case_sensitive(self):
        assert score_answer("single", "b", "B").score == 0.0

    def test_judge_match_and_mismatch(self):
        assert score_answer("judge", True, True) == ScoreResult(True, 1.0)
        assert score_answer("judge", False, True) == ScoreResult(False, 0.0)

    def test_judge_string_is_not_a_boolean(self):
        assert score_answer("judge", "true", True).score == 0.0

    def test_enum_type_accepted(self):
        assert score_answer(QuestionTypeEnum.SINGLE, "C", "C").is_correct


class TestMultipleStrict:
    def test_order_does_not_matter(self):
        assert score_answer("multiple", ["C", "A", "B"], ["A", "B", "C"]) == ScoreResult(True, 1.0)

    @pytest.mark.parametrize("submitted", [["A", "B"], ["A", "B", "C", "D"], []])
    def test_anything_but_the_exact_set_scores_zero(self, submitted):
        assert score_answer("multiple", submitted, ["A", "B", "C"]) == ScoreResult(False, 0.0)


class TestMultiplePartial:
    def test_full_selection_earns_full_credit(self):
        assert score_answer("multiple", ["A", "B", "C"], ["A", "B", "C"], PARTIAL) == ScoreResult(True, 1.0)

    def test_each_missing_item_costs_half_a_point(self):
        assert score_answer("multiple", ["A", "B"], ["A", "B", "C"], PARTIAL) == ScoreResult(False, 0.5)

    def test_partial_credit_never_goes_negative(self):
        assert score_answer("multiple", ["A"], ["A", "B", "C", "D"], PARTIAL).score == 0.0

    def test_wrong_pick_scores_zero(self):
        assert score_answer("multiple", ["A", "D"], ["A", "B", "C"], PARTIAL) == ScoreResult(False, 0.0)

    def test_empty_selection_scores_zero(self):
        assert score_answer("multiple", [], ["A", "B"], PARTIAL).score == 0.0


class TestMalformedInput:
    @pytest.mark.parametrize("question_type, submitted, correct", [
        ("essay", "A", "A"),
        (None, "A", "A"),
        (["single"], "A", "A"),
        ("single", ["A"], "A"),
        ("multiple", "AB", ["A", "B"]),
        ("multiple", ["A", 1], ["A", "B"]),
        ("judge", 1, True),
    ])
    def test_shape_mismatch_scores_zero(self, question_type, submitted, correct):
        assert score_answer(question_type, submitted, correct) == ScoreResult(False, 0.0)
