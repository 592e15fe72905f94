from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from app.core.constants import PurchaseItemTypeEnum, PurchaseStatusEnum
from app.crud.base import CRUDBase
from app.models.user_purchase import UserPurchase

class CRUDUserPurchase(CRUDBase[UserPurchase]):

    def get_active_purchase(
        self,
        db: Session,
        user_id: int,
        item_type: PurchaseItemTypeEnum,
        item_id: int,
        as_of: datetime
    ) -> Optional[UserPurchase]:
        return (
            self._query_active(db)
            .filter(UserPurchase.user_id == user_id)
            .filter(UserPurchase.item_type == item_type)
            .filter(UserPurchase.item_id == item_id)
            .filter(UserPurchase.status == PurchaseStatusEnum.ACTIVE)
            .filter(UserPurchase.expiry_date > as_of)
            .first()
        )

user_purchase = CRUDUserPurchase(UserPurchase)
