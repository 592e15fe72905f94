from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.section import Section

class CRUDSection(CRUDBase[Section]):

    def get_active_by_test_series(self, db: Session, test_series_id: int) -> List[Section]:
        return (
            self._query_active(db)
            .filter(Section.test_series_id == test_series_id)
            .filter(Section.is_active == True)
            .order_by(Section.sequence, Section.id)
            .all()
        )

section = CRUDSection(Section)
