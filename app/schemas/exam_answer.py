from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel
from typing import Optional, List, Union

# Submitted and correct values are a letter (single), a list of letters
# (multiple) or a boolean (judge). Shape mismatches are left to the scorer.
AnswerValue = Union[StrictBool, str, List[str]]

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class AnswerSubmit(CamelModel):
    session_id: str = Field(min_length=1)
    question_id: int
    question_type: str = Field(min_length=1)
    user_answer: AnswerValue
    correct_answer: Optional[AnswerValue] = None

class AnswerResult(CamelModel):
    is_correct: bool
    score: float
    message: str

