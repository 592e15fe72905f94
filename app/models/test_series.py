from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class TestSeries(Base):
    __tablename__ = "test_series"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), index=True, nullable=False)
    description = Column(String(500), nullable=True)
    exam_plan_id = Column(Integer, nullable=True, index=True)
    duration_minutes = Column(Integer, nullable=False)
    correct_marks = Column(Float, nullable=False, default=1)
    negative_marks = Column(Float, nullable=False, default=0.25)
    passing_percentage = Column(Float, nullable=False, default=33)
    instructions = Column(String, nullable=True)
    is_free = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    sections = relationship("Section", back_populates="test_series", order_by="Section.sequence")
    series_questions = relationship("TestSeriesQuestion", back_populates="test_series")
    attempts = relationship("ExamAttempt", back_populates="test_series")
