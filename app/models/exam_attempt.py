from sqlalchemy import Column, Integer, DateTime, ForeignKey, Float, Enum, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import AttemptStatusEnum

class ExamAttempt(Base):
    __tablename__ = "exam_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    test_series_id = Column(Integer, ForeignKey("test_series.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False) # Deadline while STARTED, actual finish once COMPLETED
    status = Column(Enum(AttemptStatusEnum), nullable=False, default=AttemptStatusEnum.STARTED)
    total_questions = Column(Integer, nullable=False, default=0)
    max_score = Column(Float, nullable=False, default=0)

    # Populated only at finalize
    attempted_count = Column(Integer, nullable=True)
    correct_count = Column(Integer, nullable=True)
    wrong_count = Column(Integer, nullable=True)
    skipped_count = Column(Integer, nullable=True)
    marked_for_review_count = Column(Integer, nullable=True)
    total_score = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)
    rank = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    test_series = relationship("TestSeries", back_populates="attempts")
    attempt_questions = relationship(
        "AttemptQuestion",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptQuestion.sequence"
    )
    section_timings = relationship(
        "AttemptSectionTiming",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptSectionTiming.sequence"
    )

    __table_args__ = (
        Index("ix_exam_attempts_status_end_time", "status", "end_time"),
        Index("ix_exam_attempts_series_score", "test_series_id", "total_score"),
        Index(
            "uq_exam_attempts_one_started",
            "user_id",
            "test_series_id",
            unique=True,
            postgresql_where=text("status = 'STARTED'"),
            sqlite_where=text("status = 'STARTED'")
        ),
    )


class AttemptSectionTiming(Base):
    __tablename__ = "attempt_section_timings"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, index=True)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True) # Last heartbeat, not section close
    total_time_spent = Column(Integer, nullable=False, default=0) # seconds

    attempt = relationship("ExamAttempt", back_populates="section_timings")
    section = relationship("Section")
