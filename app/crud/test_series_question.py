from typing import List
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.question import Question
from app.models.section import Section
from app.models.test_series_question import TestSeriesQuestion

class CRUDTestSeriesQuestion(CRUDBase[TestSeriesQuestion]):

    def get_snapshot_rows(self, db: Session, test_series_id: int, section_ids: List[int]) -> List[TestSeriesQuestion]:
        """Active questions of the series, ordered section-first then by question sequence."""
        if not section_ids:
            return []
        return (
            db.query(TestSeriesQuestion)
            .options(selectinload(TestSeriesQuestion.question))
            .join(Section, TestSeriesQuestion.section_id == Section.id)
            .join(Question, TestSeriesQuestion.question_id == Question.id)
            .filter(TestSeriesQuestion.test_series_id == test_series_id)
            .filter(TestSeriesQuestion.is_active == True)
            .filter(TestSeriesQuestion.section_id.in_(section_ids))
            .filter(Question.deleted_at.is_(None))
            .order_by(Section.sequence, Section.id, TestSeriesQuestion.sequence, TestSeriesQuestion.id)
            .all()
        )

test_series_question = CRUDTestSeriesQuestion(TestSeriesQuestion)
