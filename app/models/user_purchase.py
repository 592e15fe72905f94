from sqlalchemy import Column, Integer, DateTime, Enum, Index
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import PurchaseItemTypeEnum, PurchaseStatusEnum

class UserPurchase(Base):
    __tablename__ = "user_purchases"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    item_type = Column(Enum(PurchaseItemTypeEnum), nullable=False)
    item_id = Column(Integer, nullable=False)
    status = Column(Enum(PurchaseStatusEnum), nullable=False, default=PurchaseStatusEnum.ACTIVE)
    purchase_date = Column(DateTime, server_default=func.now())
    expiry_date = Column(DateTime, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    __table_args__ = (
        Index("ix_user_purchases_user_item", "user_id", "item_type", "item_id"),
    )
