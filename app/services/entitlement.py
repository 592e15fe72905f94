import logging
from sqlalchemy.orm import Session

from app.core.constants import PurchaseItemTypeEnum
from app.crud.user_purchase import user_purchase as crud_user_purchase
from app.models.test_series import TestSeries
from app.utils.time import utcnow

logger = logging.getLogger(__name__)


class EntitlementService:

    def has_access(self, db: Session, user_id: int, test_series: TestSeries) -> bool:
        if test_series.is_free:
            return True

        now = utcnow()
        if crud_user_purchase.get_active_purchase(
            db,
            user_id=user_id,
            item_type=PurchaseItemTypeEnum.TEST_SERIES,
            item_id=test_series.id,
            as_of=now
        ):
            return True

        if test_series.exam_plan_id and crud_user_purchase.get_active_purchase(
            db,
            user_id=user_id,
            item_type=PurchaseItemTypeEnum.EXAM_PLAN,
            item_id=test_series.exam_plan_id,
            as_of=now
        ):
            return True

        logger.info(f"User {user_id} has no active purchase for test series {test_series.id}")
        return False


entitlement_service = EntitlementService()
