from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.record_status import RecordStatus
from models.base import Base
from models.offer_plan import OfferPlanDTO


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    offer_plan_id = Column(Integer, ForeignKey('offer_plans.id', ondelete='SET NULL'), nullable=True)
    title = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    type = Column(String(100), nullable=True)
    status = Column(SQLEnum(RecordStatus, values_callable=lambda e: [m.value for m in e]),
                    nullable=False, default=RecordStatus.ACTIVE)

    offer_plan = relationship('OfferPlan', lazy='joined')
    pack_sizes = relationship('PackSize', back_populates='product')


class ProductDTO(BaseModel):
    id: int | None = None
    offer_plan_id: int | None = None
    title: str | None = None
    slug: str | None = None
    type: str | None = None
    status: RecordStatus | None = None
    offer_plan: OfferPlanDTO | None = None
