from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, index=True)
    test_series_id = Column(Integer, ForeignKey("test_series.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    sequence = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    test_series = relationship("TestSeries", back_populates="sections")

    __table_args__ = (
        UniqueConstraint("test_series_id", "name", name="uq_sections_test_series_name"),
    )
