from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Numeric, DateTime, func, CheckConstraint
from sqlalchemy import Enum as SQLEnum

from enums.discount_type import DiscountType
from enums.record_status import RecordStatus
from models.base import Base


class OfferPlan(Base):
    """
    Standing discount attached to products via products.offer_plan_id.

    Only applied to a product's price while its status is Active.
    """
    __tablename__ = 'offer_plans'

    id = Column(Integer, primary_key=True)
    discount = Column(Numeric(12, 4, asdecimal=True), nullable=False)
    type = Column(SQLEnum(DiscountType, values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=DiscountType.PERCENTAGE)
    sort_order = Column(Integer, nullable=False, default=500)
    status = Column(SQLEnum(RecordStatus, values_callable=lambda e: [m.value for m in e]),
                    nullable=False, default=RecordStatus.ACTIVE)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        CheckConstraint('discount >= 0', name='check_offer_plan_discount_non_negative'),
    )


class OfferPlanDTO(BaseModel):
    id: int | None = None
    discount: Decimal
    type: DiscountType
    status: RecordStatus = RecordStatus.ACTIVE
    sort_order: int | None = None
    created_at: datetime | None = None
