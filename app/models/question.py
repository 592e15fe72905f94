from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from app.core.database import Base

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    question_text = Column(String(2000), nullable=False)
    options = Column(JSON, nullable=False, default=list) # Ordered option texts, keyed option1..optionN
    right_answer = Column(String, nullable=False) # e.g. "option2"
    explanation = Column(String(2000), nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    @property
    def keyed_options(self):
        return {f"option{index}": text for index, text in enumerate(self.options or [], start=1)}
