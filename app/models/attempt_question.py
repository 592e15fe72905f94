from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import AttemptQuestionStatusEnum

class AttemptQuestion(Base):
    __tablename__ = "attempt_questions"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, index=True)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    user_answer = Column(String, nullable=True)
    is_correct = Column(Boolean, nullable=True) # None until answered
    status = Column(Enum(AttemptQuestionStatusEnum), nullable=False, default=AttemptQuestionStatusEnum.UNATTEMPTED)
    is_marked_for_review = Column(Boolean, nullable=False, default=False)
    visit_count = Column(Integer, nullable=False, default=0)
    time_spent = Column(Integer, nullable=False, default=0) # seconds
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    attempt = relationship("ExamAttempt", back_populates="attempt_questions")
    section = relationship("Section")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_questions_attempt_question"),
    )
