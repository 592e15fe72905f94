# Imports every mapped class so relationship strings resolve and metadata is complete.
from app.models.test_series import TestSeries
from app.models.section import Section
from app.models.question import Question
from app.models.test_series_question import TestSeriesQuestion
from app.models.user_purchase import UserPurchase
from app.models.exam_attempt import ExamAttempt, AttemptSectionTiming
from app.models.attempt_question import AttemptQuestion

__all__ = [
    "TestSeries",
    "Section",
    "Question",
    "TestSeriesQuestion",
    "UserPurchase",
    "ExamAttempt",
    "AttemptSectionTiming",
    "AttemptQuestion",
]
