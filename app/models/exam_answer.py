from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Float, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.utils.time import utcnow

class ExamAnswer(Base):
    __tablename__ = "exam_answers"
    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_exam_answers_session_question"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(32), ForeignKey("exam_sessions.id", ondelete="CASCADE"), index=True, nullable=False)
    question_id = Column(Integer, nullable=False)
    question_type = Column(String(16), nullable=False)
    user_answer = Column(JSON, nullable=True)
    correct_answer = Column(JSON, nullable=True)  # copied from the snapshot at answer time
    is_correct = Column(Boolean, nullable=False, default=False)
    score = Column(Float, nullable=False, default=0.0)
    answered_at = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    session = relationship("ExamSession", back_populates="answers")
