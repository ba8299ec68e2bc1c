from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Set

from app.crud.base import CRUDBase
from app.models.exam_answer import ExamAnswer
from app.models.exam_session import ExamSession

class CRUDExamAnswer(CRUDBase[ExamAnswer]):

    def get_by_session_and_question(self, db: Session, session_id: str,
                                    question_id: int) -> Optional[ExamAnswer]:
        return (
            db.query(ExamAnswer)
            .filter(ExamAnswer.session_id == session_id)
            .filter(ExamAnswer.question_id == question_id)
            .first()
        )

    def get_all_by_session(self, db: Session, session_id: str) -> List[ExamAnswer]:
        return (
            db.query(ExamAnswer)
            .filter(ExamAnswer.session_id == session_id)
            .order_by(ExamAnswer.question_id)
            .all()
        )

    def upsert(self, db: Session, *, session_id: str, question_id: int, fields: Dict[str, Any]) -> ExamAnswer:
        """Insert or overwrite the answer keyed by (session_id, question_id)."""
        existing = self.get_by_session_and_question(db, session_id=session_id, question_id=question_id)
        if existing:
            return self.update(db, db_obj=existing, obj_in=fields)
        return self.create(db, obj_in={"session_id": session_id, "question_id": question_id, **fields})

    def sum_scores(self, db: Session, session_id: str) -> float:
        total = (
            db.query(func.coalesce(func.sum(ExamAnswer.score), 0.0))
            .filter(ExamAnswer.session_id == session_id)
            .scalar()
        )
        return float(total or 0.0)

    def get_answered_question_ids(self, db: Session, *, user_id: str, category: str,
                                  only_incorrect: bool = False) -> Set[int]:
        """Question ids this user answered in any of their sessions of a category."""
        query = (
            db.query(ExamAnswer.question_id)
            .join(ExamSession, ExamSession.id == ExamAnswer.session_id)
            .filter(ExamSession.user_id == user_id)
            .filter(ExamSession.category == category)
        )
        if only_incorrect:
            query = query.filter(ExamAnswer.is_correct == False)
        return {row[0] for row in query.distinct().all()}


exam_answer = CRUDExamAnswer(ExamAnswer)
