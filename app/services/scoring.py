"""Per-question scoring.

Pure functions: no I/O, and no exceptions for unexpected input. An unknown
question type or an answer whose shape does not match its type scores zero.
"""
from dataclasses import dataclass
from typing import Any

from app.core.constants import MultipleScoringPolicyEnum, QuestionTypeEnum


@dataclass(frozen=True)
class ScoreResult:
    is_correct: bool
    score: float


@dataclass(frozen=True)
class ScoringRules:
    multiple_policy: MultipleScoringPolicyEnum = MultipleScoringPolicyEnum.STRICT
    full_credit: float = 1.0
    multiple_full_credit: float = 1.0
    missing_item_penalty: float = 0.5

    @classmethod
    def from_config(cls, config) -> "ScoringRules":
        return cls(
            multiple_policy=MultipleScoringPolicyEnum(config.multiple_scoring),
            multiple_full_credit=config.multiple_full_credit,
            missing_item_penalty=config.multiple_missing_penalty,
        )


INCORRECT = ScoreResult(is_correct=False, score=0.0)


def _is_letter_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def _score_single(submitted: Any, correct: Any, rules: ScoringRules) -> ScoreResult:
    if not isinstance(submitted, str) or not isinstance(correct, str):
        return INCORRECT
    if submitted == correct:
        return ScoreResult(True, rules.full_credit)
    return INCORRECT


def _score_judge(submitted: Any, correct: Any, rules: ScoringRules) -> ScoreResult:
    if not isinstance(submitted, bool) or not isinstance(correct, bool):
        return INCORRECT
    if submitted is correct:
        return ScoreResult(True, rules.full_credit)
    return INCORRECT


def _score_multiple(submitted: Any, correct: Any, rules: ScoringRules) -> ScoreResult:
    if not _is_letter_list(submitted) or not _is_letter_list(correct) or not correct:
        return INCORRECT

    chosen = set(submitted)
    expected = set(correct)

    if rules.multiple_policy == MultipleScoringPolicyEnum.PARTIAL:
        if not chosen or not chosen <= expected:
            return INCORRECT
        missing = len(expected - chosen)
        if missing == 0:
            return ScoreResult(True, rules.multiple_full_credit)
        partial = rules.multiple_full_credit - missing * rules.missing_item_penalty
        return ScoreResult(False, max(0.0, partial))

    if chosen == expected:
        return ScoreResult(True, rules.multiple_full_credit)
    return INCORRECT


_SCORERS = {
    QuestionTypeEnum.SINGLE.value: _score_single,
    QuestionTypeEnum.JUDGE.value: _score_judge,
    QuestionTypeEnum.MULTIPLE.value: _score_multiple,
}


def score_answer(question_type: Any, submitted: Any, correct: Any,
                 rules: ScoringRules = ScoringRules()) -> ScoreResult:
    key = question_type.value if isinstance(question_type, QuestionTypeEnum) else question_type
    scorer = _SCORERS.get(key) if isinstance(key, str) else None
    if scorer is None:
        return INCORRECT
    return scorer(submitted, correct, rules)
