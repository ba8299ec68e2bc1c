import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import MESSAGES, QuestionTypeEnum
from app.crud.exam_session import exam_session as crud_exam_session
from app.models.exam_session import ExamSession
from app.schemas.exam_session import (
    AnswerDetail,
    ExamHistoryItem,
    ExamResults,
    ExamSessionState,
    ResultSessionInfo,
    ResultStats,
    TypeStat,
)
from app.services.exam_session import load_session_config, remaining_seconds
from app.services.question_bank import QuestionBankStore, question_bank
from app.utils.time import elapsed_seconds

logger = logging.getLogger(__name__)


class ExamHistoryService:
    """Read-only projections over stored sessions and answers."""

    def __init__(self, bank: QuestionBankStore):
        self.bank = bank

    def _get_owned_session(self, db: Session, session_id: str, user_id: str) -> ExamSession:
        session = crud_exam_session.get(db, id=session_id)
        if not session:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam session not found.")
        if session.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only view your own exam sessions."
            )
        return session

    def get_history(self, db: Session, user_id: str, skip: int = 0,
                    limit: Optional[int] = None) -> List[ExamHistoryItem]:
        """Completed sessions, newest first. Every session is returned unless ``limit`` is given."""
        history = []
        for session in crud_exam_session.get_completed_by_user(db, user_id=user_id, skip=skip, limit=limit):
            config = load_session_config(session)
            score = session.score or 0.0
            history.append(ExamHistoryItem(
                id=session.id,
                category=session.category,
                mode=session.mode,
                start_time=session.start_time,
                end_time=session.end_time,
                duration=elapsed_seconds(session.start_time, session.end_time),
                score=session.score,
                total_questions=session.total_questions,
                max_score=config.max_score,
                pass_score=config.pass_score,
                passed=score >= config.pass_score,
                wrong_answers_count=sum(1 for answer in session.answers if not answer.is_correct),
            ))
        return history

    def _question_lookup(self, session: ExamSession):
        pool = self.bank.load_pool(session.category)
        snapshot = {q.get("id"): q for q in session.questions or []}

        def lookup(question_id: int, question_type: str) -> Dict[str, Any]:
            question = pool.find(question_id)
            if question is not None and question.type == question_type:
                return {"question": question.question, "options": getattr(question, "options", None)}
            fallback = snapshot.get(question_id)
            if fallback is not None:
                return {"question": fallback.get("question"), "options": fallback.get("options")}
            return {"question": MESSAGES["question_not_found"], "options": None}

        return lookup

    def get_results(self, db: Session, session_id: str, user_id: str) -> ExamResults:
        session = self._get_owned_session(db, session_id, user_id)
        config = load_session_config(session)
        lookup = self._question_lookup(session)

        details = []
        type_stats = {t.value: TypeStat() for t in QuestionTypeEnum}
        for answer in sorted(session.answers, key=lambda a: a.question_id):
            details.append(AnswerDetail(
                question_id=answer.question_id,
                question_type=answer.question_type,
                user_answer=answer.user_answer,
                correct_answer=answer.correct_answer,
                is_correct=answer.is_correct,
                score=answer.score,
                answered_at=answer.answered_at,
                **lookup(answer.question_id, answer.question_type),
            ))
            stat = type_stats.get(answer.question_type)
            if stat is None:
                continue
            stat.total += 1
            stat.correct += 1 if answer.is_correct else 0
            stat.score += answer.score

        correct = sum(1 for answer in session.answers if answer.is_correct)
        total_score = session.score or 0.0
        stats = ResultStats(
            total_questions=session.total_questions,
            answered_questions=len(session.answers),
            correct_answers=correct,
            wrong_answers=len(session.answers) - correct,
            total_score=total_score,
            max_score=config.max_score,
            pass_score=config.pass_score,
            passed=total_score >= config.pass_score,
            duration=elapsed_seconds(session.start_time, session.end_time),
        )

        return ExamResults(
            exam_session=ResultSessionInfo(
                id=session.id,
                category=session.category,
                start_time=session.start_time,
                end_time=session.end_time,
                is_completed=session.is_completed,
                time_limit=session.time_limit,
            ),
            stats=stats,
            type_stats=type_stats,
            answer_details=details,
        )

    def get_session_state(self, db: Session, session_id: str, user_id: str) -> ExamSessionState:
        session = self._get_owned_session(db, session_id, user_id)
        return ExamSessionState(
            session_id=session.id,
            category=session.category,
            mode=session.mode,
            start_time=session.start_time,
            end_time=session.end_time,
            is_completed=session.is_completed,
            score=session.score,
            time_limit=session.time_limit,
            remaining_time=0 if session.is_completed else remaining_seconds(session),
            total_questions=session.total_questions,
            answered_count=len(session.answers),
        )


exam_history_service = ExamHistoryService(question_bank)
