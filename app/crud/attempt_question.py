from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.attempt_question import AttemptQuestion

class CRUDAttemptQuestion(CRUDBase[AttemptQuestion]):

    def _query_with_relationships(self, db: Session):
        return db.query(AttemptQuestion).options(
            selectinload(AttemptQuestion.question),
            selectinload(AttemptQuestion.attempt)
        )

    def get(self, db: Session, id: int) -> Optional[AttemptQuestion]:
        return self._query_with_relationships(db).filter(AttemptQuestion.id == id).first()

    def get_in_attempt(self, db: Session, id: int, attempt_id: int) -> Optional[AttemptQuestion]:
        return (
            self._query_with_relationships(db)
            .filter(AttemptQuestion.id == id)
            .filter(AttemptQuestion.attempt_id == attempt_id)
            .first()
        )

    def get_all_by_attempt(self, db: Session, attempt_id: int) -> List[AttemptQuestion]:
        return (
            self._query_with_relationships(db)
            .filter(AttemptQuestion.attempt_id == attempt_id)
            .order_by(AttemptQuestion.sequence)
            .all()
        )

    def get_by_attempt_and_section(self, db: Session, attempt_id: int, section_id: int) -> List[AttemptQuestion]:
        return (
            self._query_with_relationships(db)
            .filter(AttemptQuestion.attempt_id == attempt_id)
            .filter(AttemptQuestion.section_id == section_id)
            .order_by(AttemptQuestion.sequence)
            .all()
        )


attempt_question = CRUDAttemptQuestion(AttemptQuestion)
