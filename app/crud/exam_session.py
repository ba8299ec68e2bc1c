from datetime import datetime
from sqlalchemy.orm import Session, selectinload
from typing import Any, Dict, List, Optional

from app.crud.base import CRUDBase
from app.models.exam_session import ExamSession

class CRUDExamSession(CRUDBase[ExamSession]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamSession).options(selectinload(ExamSession.answers))

    def get(self, db: Session, id: str) -> Optional[ExamSession]:
        return self._query_with_relationships(db).filter(ExamSession.id == id).first()

    def get_for_update(self, db: Session, id: str) -> Optional[ExamSession]:
        """Load a session and hold its row lock until the transaction ends.

        Answer upserts and finalization both go through here, so the two
        never interleave on one session. SQLite ignores FOR UPDATE and
        serializes writers on its own.
        """
        return (
            db.query(ExamSession)
            .filter(ExamSession.id == id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def create_session(
        self,
        db: Session,
        *,
        user_id: str,
        category: str,
        mode: Optional[str],
        config: Dict[str, Any],
        questions: List[Dict[str, Any]],
    ) -> ExamSession:
        return self.create(db, obj_in={
            "user_id": user_id,
            "category": category,
            "mode": mode,
            "config": config,
            "questions": questions,
            "total_questions": config["total_questions"],
            "time_limit": config["time_limit"],
            "is_completed": False,
        })

    def update_questions(self, db: Session, *, db_obj: ExamSession, questions: List[Dict[str, Any]]) -> ExamSession:
        return self.update(db, db_obj=db_obj, obj_in={"questions": questions})

    def complete_session(self, db: Session, *, db_obj: ExamSession, end_time: datetime, score: float) -> ExamSession:
        return self.update(db, db_obj=db_obj, obj_in={
            "is_completed": True,
            "end_time": end_time,
            "score": score,
        })

    def get_completed_by_user(self, db: Session, user_id: str, skip: int = 0,
                              limit: Optional[int] = None) -> List[ExamSession]:
        query = (
            self._query_with_relationships(db)
            .filter(ExamSession.user_id == user_id)
            .filter(ExamSession.is_completed == True)
            .order_by(ExamSession.start_time.desc(), ExamSession.id)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()


exam_session = CRUDExamSession(ExamSession)
