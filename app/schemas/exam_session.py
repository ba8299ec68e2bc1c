from pydantic import Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from app.core.constants import ExamCategoryEnum, ExamModeEnum
from app.schemas.exam_answer import CamelModel, AnswerValue
from app.schemas.question import PublicQuestion


class StartExamRequest(CamelModel):
    session_id: Optional[str] = None
    mode: Optional[ExamModeEnum] = None
    category: Optional[ExamCategoryEnum] = None
    profile: Optional[str] = None

class ExamConfigSummary(CamelModel):
    name: str
    version: int
    time_limit: int
    total_questions: int
    single_choice_count: int
    multiple_choice_count: int
    judge_count: int
    pass_score: float
    max_score: float
    block_order: List[str]
    multiple_scoring: str

class StartExamResponse(CamelModel):
    session_id: str
    category: str
    mode: Optional[str] = None
    resumed: bool = False
    start_time: datetime
    remaining_time: int
    questions: List[PublicQuestion]
    config: ExamConfigSummary

class CompleteExamRequest(CamelModel):
    session_id: str = Field(min_length=1)

class CompleteExamResponse(CamelModel):
    total_score: float
    max_score: float
    pass_score: float
    passed: bool
    message: str

class ExamHistoryItem(CamelModel):
    id: str
    category: str
    mode: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int
    score: Optional[float] = None
    total_questions: int
    max_score: float
    pass_score: float
    passed: bool
    wrong_answers_count: int

class ExamSessionState(CamelModel):
    session_id: str
    category: str
    mode: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    is_completed: bool
    score: Optional[float] = None
    time_limit: int
    remaining_time: int
    total_questions: int
    answered_count: int

class ResultSessionInfo(CamelModel):
    id: str
    category: str
    start_time: datetime
    end_time: Optional[datetime] = None
    is_completed: bool
    time_limit: int

class ResultStats(CamelModel):
    total_questions: int
    answered_questions: int
    correct_answers: int
    wrong_answers: int
    total_score: float
    max_score: float
    pass_score: float
    passed: bool
    duration: int

class TypeStat(CamelModel):
    total: int = 0
    correct: int = 0
    score: float = 0.0

class AnswerDetail(CamelModel):
    question_id: int
    question: str
    question_type: str
    options: Optional[Dict[str, str]] = None
    user_answer: Optional[AnswerValue] = None
    correct_answer: Optional[AnswerValue] = None
    is_correct: bool
    score: float
    answered_at: datetime

class ExamResults(CamelModel):
    exam_session: ResultSessionInfo
    stats: ResultStats
    type_stats: Dict[str, TypeStat]
    answer_details: List[AnswerDetail]

class ExamModeInfo(CamelModel):
    mode: ExamModeEnum
    label: str
    description: str

class ExamProfileInfo(ExamConfigSummary):
    pass

class ExamProfiles(CamelModel):
    default: str
    profiles: List[ExamProfileInfo]

    @classmethod
    def describe(cls, default: str, configs: List[Any]) -> "ExamProfiles":
        return cls(default=default, profiles=[ExamProfileInfo(**summarize_config(c)) for c in configs])


def summarize_config(config) -> Dict[str, Any]:
    return {
        "name": config.name,
        "version": config.version,
        "time_limit": config.time_limit,
        "total_questions": config.total_questions,
        "single_choice_count": config.single_choice_count,
        "multiple_choice_count": config.multiple_choice_count,
        "judge_count": config.judge_count,
        "pass_score": config.pass_score,
        "max_score": config.max_score,
        "block_order": [t.value for t in config.block_order],
        "multiple_scoring": config.multiple_scoring.value,
    }
