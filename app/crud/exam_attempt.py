from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload

from app.core.constants import AttemptStatusEnum
from app.crud.base import CRUDBase
from app.models.exam_attempt import ExamAttempt

class CRUDExamAttempt(CRUDBase[ExamAttempt]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamAttempt).options(
            selectinload(ExamAttempt.test_series),
            selectinload(ExamAttempt.section_timings)
        )

    def get(self, db: Session, id: int) -> Optional[ExamAttempt]:
        return self._query_with_relationships(db).filter(ExamAttempt.id == id).first()

    def get_for_user(self, db: Session, id: int, user_id: int) -> Optional[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.id == id)
            .filter(ExamAttempt.user_id == user_id)
            .first()
        )

    def get_started(self, db: Session, user_id: int, test_series_id: int) -> Optional[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.test_series_id == test_series_id)
            .filter(ExamAttempt.status == AttemptStatusEnum.STARTED)
            .first()
        )

    def claim_completion(self, db: Session, id: int, finished_at: datetime) -> bool:
        """Move STARTED -> COMPLETED in one conditional UPDATE. True only for the caller that won."""
        claimed = (
            db.query(ExamAttempt)
            .filter(ExamAttempt.id == id)
            .filter(ExamAttempt.status == AttemptStatusEnum.STARTED)
            .update(
                {ExamAttempt.status: AttemptStatusEnum.COMPLETED, ExamAttempt.end_time: finished_at},
                synchronize_session="fetch"
            )
        )
        return claimed == 1

    def count_higher_scores(self, db: Session, test_series_id: int, total_score: float, exclude_id: int) -> int:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.test_series_id == test_series_id)
            .filter(ExamAttempt.status == AttemptStatusEnum.COMPLETED)
            .filter(ExamAttempt.id != exclude_id)
            .filter(ExamAttempt.total_score > total_score)
            .count()
        )

    def get_completed_scores(self, db: Session, test_series_id: int) -> List[float]:
        rows = (
            db.query(ExamAttempt.total_score)
            .filter(ExamAttempt.test_series_id == test_series_id)
            .filter(ExamAttempt.status == AttemptStatusEnum.COMPLETED)
            .filter(ExamAttempt.total_score.isnot(None))
            .all()
        )
        return [row[0] for row in rows]

    def get_expired_started(self, db: Session, as_of: datetime) -> List[ExamAttempt]:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.status == AttemptStatusEnum.STARTED)
            .filter(ExamAttempt.end_time <= as_of)
            .order_by(ExamAttempt.end_time)
            .all()
        )

    def get_all_started(self, db: Session) -> List[ExamAttempt]:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.status == AttemptStatusEnum.STARTED)
            .order_by(ExamAttempt.end_time)
            .all()
        )

    def get_completed_by_user(self, db: Session, user_id: int, skip: int = 0, limit: int = 10) -> Tuple[List[ExamAttempt], int]:
        query = (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.status == AttemptStatusEnum.COMPLETED)
        )
        total = query.count()
        items = (
            query.order_by(ExamAttempt.end_time.desc(), ExamAttempt.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total


exam_attempt = CRUDExamAttempt(ExamAttempt)
