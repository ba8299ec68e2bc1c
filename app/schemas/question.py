from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.core.constants import OPTION_LETTERS


class QuestionBase(BaseModel):
    id: int = Field(gt=0)
    question: str = Field(min_length=1)

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ChoiceQuestionBase(QuestionBase):
    options: Dict[str, str]

    @field_validator("options")
    @classmethod
    def options_not_empty(cls, v: Dict[str, str]) -> Dict[str, str]:
        cleaned = {letter.strip().upper(): text.strip() for letter, text in v.items() if text and text.strip()}
        unknown = [letter for letter in cleaned if letter not in OPTION_LETTERS]
        if unknown:
            raise ValueError(f"Unknown option letters: {unknown}")
        if not cleaned:
            raise ValueError("Choice questions need at least one non-empty option")
        return cleaned


class SingleChoiceQuestion(ChoiceQuestionBase):
    type: Literal["single"] = "single"
    correct_answer: str

    @model_validator(mode="after")
    def answer_is_an_option(self):
        if self.correct_answer not in self.options:
            raise ValueError(f"Correct answer '{self.correct_answer}' is not one of the options")
        return self


class MultipleChoiceQuestion(ChoiceQuestionBase):
    type: Literal["multiple"] = "multiple"
    correct_answer: List[str] = Field(min_length=1)

    @model_validator(mode="after")
    def answers_are_options(self):
        missing = [letter for letter in self.correct_answer if letter not in self.options]
        if missing:
            raise ValueError(f"Correct answers {missing} are not among the options")
        if len(set(self.correct_answer)) != len(self.correct_answer):
            raise ValueError("Correct answers must not repeat")
        return self


class JudgeQuestion(QuestionBase):
    type: Literal["judge"] = "judge"
    correct_answer: bool
    options: Optional[Dict[str, str]] = None

    @field_validator("options")
    @classmethod
    def judge_has_no_options(cls, v):
        if v:
            raise ValueError("Judge questions do not carry options")
        return None


Question = Annotated[
    Union[SingleChoiceQuestion, MultipleChoiceQuestion, JudgeQuestion],
    Field(discriminator="type"),
]

question_list_adapter = TypeAdapter(List[Question])


class PublicQuestion(BaseModel):
    """A snapshot question as sent to the exam taker, without its answer."""
    id: int
    type: str
    question: str
    options: Optional[Dict[str, str]] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BankQuestions(BaseModel):
    single_choice: List[SingleChoiceQuestion] = []
    multiple_choice: List[MultipleChoiceQuestion] = []
    judge: List[JudgeQuestion] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def tag_question_types(cls, data):
        # Bank files group questions by type and may omit the per-item tag.
        if isinstance(data, dict):
            data = dict(data)
            for key, question_type in (("singleChoice", "single"), ("multipleChoice", "multiple"), ("judge", "judge")):
                items = data.get(key)
                if isinstance(items, list):
                    data[key] = [
                        {**item, "type": question_type} if isinstance(item, dict) else item
                        for item in items
                    ]
        return data

    @model_validator(mode="after")
    def ids_unique_within_pool(self):
        ids = [q.id for q in (*self.single_choice, *self.multiple_choice, *self.judge)]
        if len(ids) != len(set(ids)):
            raise ValueError("Question ids must be unique within a category")
        return self


class QuestionBankFile(BaseModel):
    metadata: Dict = {}
    questions: BankQuestions
