from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from app.core.constants import MultipleScoringPolicyEnum, QuestionTypeEnum
from app.core.exceptions import UnknownExamProfileError


class ExamConfiguration(BaseModel):
    """A versioned exam layout.

    The whole value is stored on each session at creation time, so later
    changes to the profiles below never alter an exam already in progress.
    """
    name: str
    version: int = 1
    single_choice_count: int = Field(ge=0)
    multiple_choice_count: int = Field(ge=0)
    judge_count: int = Field(ge=0)
    time_limit: int = Field(gt=0, description="Seconds")
    pass_score: float = Field(ge=0)
    block_order: Tuple[QuestionTypeEnum, QuestionTypeEnum, QuestionTypeEnum] = (
        QuestionTypeEnum.JUDGE,
        QuestionTypeEnum.SINGLE,
        QuestionTypeEnum.MULTIPLE,
    )
    multiple_scoring: MultipleScoringPolicyEnum = MultipleScoringPolicyEnum.STRICT
    multiple_full_credit: float = Field(default=1.0, gt=0)
    multiple_missing_penalty: float = Field(default=0.5, ge=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("block_order")
    @classmethod
    def block_order_covers_every_type(cls, v):
        if set(v) != set(QuestionTypeEnum):
            raise ValueError("block_order must list single, multiple and judge exactly once")
        return v

    @computed_field
    @property
    def total_questions(self) -> int:
        return self.single_choice_count + self.multiple_choice_count + self.judge_count

    @computed_field
    @property
    def max_score(self) -> float:
        return (
            self.single_choice_count
            + self.judge_count
            + self.multiple_choice_count * self.multiple_full_credit
        )

    def count_for(self, question_type: QuestionTypeEnum) -> int:
        return {
            QuestionTypeEnum.SINGLE: self.single_choice_count,
            QuestionTypeEnum.MULTIPLE: self.multiple_choice_count,
            QuestionTypeEnum.JUDGE: self.judge_count,
        }[QuestionTypeEnum(question_type)]

    def block_layout(self):
        """Yield ``(question_type, start, end)`` for each contiguous block."""
        start = 0
        for question_type in self.block_order:
            end = start + self.count_for(question_type)
            yield question_type, start, end
            start = end


EXAM_PROFILES: Dict[str, ExamConfiguration] = {
    "standard_100": ExamConfiguration(
        name="standard_100",
        version=2,
        single_choice_count=40,
        multiple_choice_count=20,
        judge_count=40,
        time_limit=5400,
        pass_score=60,
        block_order=(QuestionTypeEnum.JUDGE, QuestionTypeEnum.SINGLE, QuestionTypeEnum.MULTIPLE),
        multiple_scoring=MultipleScoringPolicyEnum.STRICT,
    ),
    "legacy_80": ExamConfiguration(
        name="legacy_80",
        version=1,
        single_choice_count=40,
        multiple_choice_count=10,
        judge_count=30,
        time_limit=5400,
        pass_score=48,
        block_order=(QuestionTypeEnum.SINGLE, QuestionTypeEnum.MULTIPLE, QuestionTypeEnum.JUDGE),
        multiple_scoring=MultipleScoringPolicyEnum.PARTIAL,
        multiple_full_credit=1.0,
        multiple_missing_penalty=0.5,
    ),
}


def get_exam_profile(name: str) -> ExamConfiguration:
    profile = EXAM_PROFILES.get(name)
    if profile is None:
        raise UnknownExamProfileError(name)
    return profile
