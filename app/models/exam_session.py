import uuid

from sqlalchemy import Column, String, Integer, DateTime, Float, Boolean, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.utils.time import utcnow


def _new_session_id() -> str:
    return uuid.uuid4().hex


class ExamSession(Base):
    __tablename__ = "exam_sessions"
    __table_args__ = (
        Index("ix_exam_sessions_user_completed", "user_id", "is_completed"),
    )

    id = Column(String(32), primary_key=True, default=_new_session_id)
    user_id = Column(String, index=True, nullable=False)
    category = Column(String(8), nullable=False)
    mode = Column(String(32), nullable=True)
    config = Column(JSON, nullable=False)  # ExamConfiguration captured at creation
    questions = Column(JSON, nullable=False)  # ordered question snapshot
    total_questions = Column(Integer, nullable=False)
    time_limit = Column(Integer, nullable=False)  # seconds
    is_completed = Column(Boolean, nullable=False, default=False)
    score = Column(Float, nullable=True)
    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    answers = relationship(
        "ExamAnswer",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ExamAnswer.question_id",
    )
