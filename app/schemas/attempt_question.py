from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict
from datetime import datetime

from app.core.constants import AttemptQuestionStatusEnum, AttemptStatusEnum
from app.schemas.exam_attempt import ExamTiming, RemainingTime, TestSeriesSummary

class AnswerIn(BaseModel):
    answer: str
    time_spent: int = Field(default=0, ge=0)
    is_marked_for_review: Optional[bool] = None

class SkipIn(BaseModel):
    time_spent: int = Field(default=0, ge=0)
    is_marked_for_review: Optional[bool] = None

class MarkReviewIn(BaseModel):
    is_marked_for_review: bool
    time_spent: int = Field(default=0, ge=0)

class AttemptAnswerIn(AnswerIn):
    question_id: int

class QuestionStatusIn(BaseModel):
    question_id: int
    status: AttemptQuestionStatusEnum
    time_spent: int = Field(default=0, ge=0)
    is_marked_for_review: Optional[bool] = None

class SectionTimingIn(BaseModel):
    time_spent: int = Field(..., ge=0)

class AnswerStatus(BaseModel):
    id: int
    user_answer: Optional[str] = None
    is_marked_for_review: bool
    status: AttemptQuestionStatusEnum

    model_config = ConfigDict(from_attributes=True)

class SkipStatus(BaseModel):
    id: int
    is_marked_for_review: bool
    status: AttemptQuestionStatusEnum

    model_config = ConfigDict(from_attributes=True)

class QuestionStatus(BaseModel):
    id: int
    status: AttemptQuestionStatusEnum
    is_marked_for_review: bool

    model_config = ConfigDict(from_attributes=True)

class MarkReviewStatus(BaseModel):
    id: int
    is_marked_for_review: bool

    model_config = ConfigDict(from_attributes=True)

class SectionTimingStatus(BaseModel):
    section_id: int
    total_time_spent: int

class AttemptQuestionView(BaseModel):
    """A question as shown during a live attempt. Never carries the right answer."""
    id: int
    sequence: int
    question_text: str
    options: Dict[str, str]
    user_answer: Optional[str] = None
    is_marked_for_review: bool
    status: AttemptQuestionStatusEnum
    visit_count: int

class AttemptQuestionDetail(AttemptQuestionView):
    exam_timing: ExamTiming

class QuestionStats(BaseModel):
    total_questions: int
    attempted: int
    unattempted: int
    skipped: int
    marked_for_review: int

class SectionSummary(BaseModel):
    id: int
    name: str
    sequence: int

class SectionQuestions(BaseModel):
    section: SectionSummary
    questions: List[AttemptQuestionView]
    stats: QuestionStats
    exam_timing: ExamTiming

class StructuredSection(SectionSummary):
    questions: List[AttemptQuestionView]
    stats: QuestionStats

class AttemptOverview(BaseModel):
    id: int
    test_series: TestSeriesSummary
    start_time: datetime
    end_time: datetime
    status: AttemptStatusEnum
    remaining_time: RemainingTime

class AllQuestions(BaseModel):
    exam: AttemptOverview
    sections: List[StructuredSection]
    stats: QuestionStats

class NavigationQuestion(BaseModel):
    id: int
    sequence: int
    status: AttemptQuestionStatusEnum
    is_marked_for_review: bool

class NavigationSection(SectionSummary):
    questions: List[NavigationQuestion]
    stats: QuestionStats

class Navigation(BaseModel):
    attempt_id: int
    status: AttemptStatusEnum
    sections: List[NavigationSection]

class ReviewQuestion(BaseModel):
    id: int
    sequence: int
    question_text: str
    options: Dict[str, str]
    user_answer: Optional[str] = None
    correct_answer: str
    is_correct: Optional[bool] = None
    explanation: Optional[str] = None
    status: AttemptQuestionStatusEnum
    is_marked_for_review: bool
    time_spent: int

class ReviewSection(BaseModel):
    section: SectionSummary
    questions: List[ReviewQuestion]
