from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

from app.core.constants import AttemptStatusEnum

class SectionTiming(BaseModel):
    section_id: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_time_spent: int = 0

    model_config = ConfigDict(from_attributes=True)

class ExamAttempt(BaseModel):
    id: int
    user_id: int
    test_series_id: int
    start_time: datetime
    end_time: datetime
    status: AttemptStatusEnum
    total_questions: int
    max_score: float
    section_timings: List[SectionTiming] = []

    model_config = ConfigDict(from_attributes=True)

class ScoredResult(BaseModel):
    id: int
    total_questions: int
    attempted_count: int
    correct_count: int
    wrong_count: int
    skipped_count: int
    marked_for_review_count: int
    total_score: float
    max_score: float
    percentage: float
    rank: int

    model_config = ConfigDict(from_attributes=True)

class RemainingTime(BaseModel):
    milliseconds: int
    formatted: str

class ExamTiming(BaseModel):
    start_time: datetime
    end_time: datetime
    remaining_time: RemainingTime

class TestSeriesSummary(BaseModel):
    id: int
    title: str
    duration_minutes: Optional[int] = None
    correct_marks: Optional[float] = None
    negative_marks: Optional[float] = None
    passing_percentage: Optional[float] = None
    instructions: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class SectionResultStats(BaseModel):
    section_id: int
    name: str
    total_questions: int
    attempted: int
    correct: int
    wrong: int
    skipped: int

class SectionTimeSpent(BaseModel):
    section_id: int
    name: str
    total_time_spent: int

class ExamResult(ScoredResult):
    test_series: TestSeriesSummary
    start_time: datetime
    end_time: datetime
    total_duration: float
    passed: bool
    percentile: float
    section_stats: List[SectionResultStats] = []
    section_timings: List[SectionTimeSpent] = []

class ExamHistoryItem(BaseModel):
    id: int
    test_series: Optional[TestSeriesSummary] = None
    start_time: datetime
    end_time: datetime
    total_questions: int
    attempted_count: Optional[int] = None
    correct_count: Optional[int] = None
    wrong_count: Optional[int] = None
    total_score: Optional[float] = None
    max_score: float
    percentage: Optional[float] = None
    rank: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
