import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import ExamCategoryEnum, ExamModeEnum, MESSAGES
from app.core.exam_config import ExamConfiguration, get_exam_profile
from app.crud.exam_answer import exam_answer as crud_exam_answer
from app.crud.exam_session import exam_session as crud_exam_session
from app.models.exam_session import ExamSession
from app.schemas.exam_answer import AnswerResult, AnswerSubmit
from app.schemas.exam_session import (
    CompleteExamResponse,
    ExamConfigSummary,
    StartExamResponse,
    summarize_config,
)
from app.schemas.question import PublicQuestion
from app.services.exam_assembler import ExamAssembler, exam_assembler
from app.services.scoring import ScoreResult, ScoringRules, score_answer
from app.utils.time import elapsed_seconds, utcnow

logger = logging.getLogger(__name__)


def load_session_config(session: ExamSession) -> ExamConfiguration:
    return ExamConfiguration.model_validate(session.config)


def remaining_seconds(session: ExamSession, now=None) -> int:
    elapsed = elapsed_seconds(session.start_time, now or utcnow())
    return max(0, session.time_limit - elapsed)


class ExamSessionService:

    def __init__(self, assembler: ExamAssembler):
        self.assembler = assembler

    def _get_session(self, db: Session, session_id: str, for_update: bool = False) -> ExamSession:
        if for_update:
            session = crud_exam_session.get_for_update(db, id=session_id)
        else:
            session = crud_exam_session.get(db, id=session_id)
        if not session:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam session not found.")
        return session

    def _require_ownership(self, session: ExamSession, user_id: str):
        if session.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only access your own exam sessions."
            )

    def _require_in_progress(self, session: ExamSession):
        if session.is_completed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This exam session has already been completed."
            )

    def _require_within_time_limit(self, session: ExamSession):
        if not settings.ENFORCE_TIME_LIMIT:
            return
        elapsed = elapsed_seconds(session.start_time, utcnow())
        if elapsed > session.time_limit + settings.TIME_LIMIT_GRACE_SECONDS:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="The time limit for this exam session has expired."
            )

    def _find_in_snapshot(self, session: ExamSession, question_id: int) -> Optional[Dict[str, Any]]:
        return next((q for q in session.questions if q.get("id") == question_id), None)

    def _build_start_response(self, session: ExamSession, config: ExamConfiguration,
                              questions: List[Dict[str, Any]], resumed: bool) -> StartExamResponse:
        return StartExamResponse(
            session_id=session.id,
            category=session.category,
            mode=session.mode,
            resumed=resumed,
            start_time=session.start_time,
            remaining_time=remaining_seconds(session),
            questions=[PublicQuestion.model_validate(q) for q in questions],
            config=ExamConfigSummary(**summarize_config(config)),
        )

    def start_exam(
        self,
        db: Session,
        user_id: str,
        session_id: Optional[str] = None,
        mode: Optional[Union[ExamModeEnum, str]] = None,
        category: Optional[Union[ExamCategoryEnum, str]] = None,
        profile: Optional[str] = None,
    ) -> StartExamResponse:
        if session_id:
            return self.resume_exam(db, session_id=session_id, user_id=user_id)

        config = get_exam_profile(profile or settings.DEFAULT_EXAM_PROFILE)
        category = ExamCategoryEnum(category or settings.DEFAULT_CATEGORY).value
        mode = ExamModeEnum(mode) if mode else None

        questions = self.assembler.assemble(db, category, config, mode=mode, user_id=user_id)
        snapshot = [q.model_dump(mode="json", by_alias=True) for q in questions]

        session = crud_exam_session.create_session(
            db,
            user_id=user_id,
            category=category,
            mode=mode.value if mode else None,
            config=config.model_dump(mode="json"),
            questions=snapshot,
        )
        logger.info(f"Exam session {session.id} started for user {user_id} ({config.name}, category {category})")
        return self._build_start_response(session, config, snapshot, resumed=False)

    def resume_exam(self, db: Session, session_id: str, user_id: str) -> StartExamResponse:
        session = self._get_session(db, session_id, for_update=True)
        self._require_ownership(session, user_id)
        self._require_in_progress(session)

        config = load_session_config(session)
        questions, repaired = self.assembler.repair_question_order(session.questions, config)
        if repaired:
            crud_exam_session.update_questions(db, db_obj=session, questions=questions)
            logger.warning(f"Exam session {session.id} snapshot regrouped by question type")

        return self._build_start_response(session, config, questions, resumed=True)

    def record_answer(
        self,
        db: Session,
        session_id: str,
        question_id: int,
        question_type: str,
        user_answer: Any,
        correct_answer: Any,
        rules: ScoringRules = ScoringRules(),
    ) -> ScoreResult:
        """Score one answer and upsert it under (session_id, question_id).

        Session totals are left alone; they are summed at completion.
        """
        result = score_answer(question_type, user_answer, correct_answer, rules)
        crud_exam_answer.upsert(
            db,
            session_id=session_id,
            question_id=question_id,
            fields={
                "question_type": question_type,
                "user_answer": user_answer,
                "correct_answer": correct_answer,
                "is_correct": result.is_correct,
                "score": result.score,
                "answered_at": utcnow(),
            },
        )
        return result

    def submit_answer(self, db: Session, answer_in: AnswerSubmit, user_id: str) -> AnswerResult:
        session = self._get_session(db, answer_in.session_id, for_update=True)
        self._require_ownership(session, user_id)
        self._require_in_progress(session)
        self._require_within_time_limit(session)

        question = self._find_in_snapshot(session, answer_in.question_id)
        if question is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Question does not belong to this exam session."
            )
        if question["type"] != answer_in.question_type:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Question type does not match the exam session."
            )

        correct_answer = question["correctAnswer"]
        if answer_in.correct_answer is not None and answer_in.correct_answer != correct_answer:
            logger.warning(
                f"Client-supplied correct answer for question {answer_in.question_id} in session "
                f"{session.id} differs from the snapshot; using the snapshot"
            )

        rules = ScoringRules.from_config(load_session_config(session))
        result = self.record_answer(
            db,
            session_id=session.id,
            question_id=answer_in.question_id,
            question_type=answer_in.question_type,
            user_answer=answer_in.user_answer,
            correct_answer=correct_answer,
            rules=rules,
        )
        return AnswerResult(
            is_correct=result.is_correct,
            score=result.score,
            message=MESSAGES["answer_correct"] if result.is_correct else MESSAGES["answer_wrong"],
        )

    def finalize(self, db: Session, session_id: str) -> float:
        """Sum the recorded scores and close the session.

        Safe to repeat: each call recomputes the sum and overwrites the score
        and end time. Answer writes still in flight on another connection
        are not counted unless they hold the session lock first.
        """
        session = self._get_session(db, session_id, for_update=True)
        total_score = crud_exam_answer.sum_scores(db, session_id=session.id)
        crud_exam_session.complete_session(db, db_obj=session, end_time=utcnow(), score=total_score)
        logger.info(f"Exam session {session.id} completed with score {total_score}")
        return total_score

    def complete_exam(self, db: Session, session_id: str, user_id: str) -> CompleteExamResponse:
        session = self._get_session(db, session_id, for_update=True)
        self._require_ownership(session, user_id)

        total_score = self.finalize(db, session.id)
        config = load_session_config(session)
        passed = total_score >= config.pass_score

        return CompleteExamResponse(
            total_score=total_score,
            max_score=config.max_score,
            pass_score=config.pass_score,
            passed=passed,
            message=MESSAGES["exam_passed"] if passed else MESSAGES["exam_failed"],
        )


exam_session_service = ExamSessionService(exam_assembler)
