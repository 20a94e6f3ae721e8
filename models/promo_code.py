from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, DateTime, func, CheckConstraint
from sqlalchemy import Enum as SQLEnum

from enums.discount_type import DiscountType
from enums.record_status import RecordStatus
from models.base import Base


class PromoCode(Base):
    __tablename__ = 'promo_codes'

    id = Column(Integer, primary_key=True)
    code = Column(String(100), nullable=False, unique=True)
    discount = Column(Numeric(12, 4, asdecimal=True), nullable=False)
    type = Column(SQLEnum(DiscountType, values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=DiscountType.PERCENTAGE)
    # NULL dates never match the validity window
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    status = Column(SQLEnum(RecordStatus, values_callable=lambda e: [m.value for m in e]),
                    nullable=False, default=RecordStatus.ACTIVE)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('discount >= 0', name='check_promo_code_discount_non_negative'),
    )


class PromoCodeDTO(BaseModel):
    id: int | None = None
    code: str | None = None
    discount: Decimal | None = None
    type: DiscountType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: RecordStatus | None = None
