from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Numeric, DateTime, func, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base
from models.pack_size import PackSizeDTO


class OrderItem(Base):
    __tablename__ = 'order_items'

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_item_positive_quantity'),
        Index('ix_order_items_order_id', 'order_id'),
        Index('ix_order_items_packsize_id', 'packsize_id'),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    # RESTRICT: a pack size stays while any order line points at it
    packsize_id = Column(Integer, ForeignKey('packsizes_products.id', ondelete='RESTRICT'), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    # Frozen at order creation
    unit_price = Column(Numeric(12, 4, asdecimal=True), nullable=False)
    discount = Column(Numeric(12, 4, asdecimal=True), nullable=False, default=Decimal("0"))
    price = Column(Numeric(12, 4, asdecimal=True), nullable=False)  # line total after offer plan
    created_at = Column(DateTime, default=func.now(), nullable=False)

    order = relationship("Order", back_populates="items")
    pack_size = relationship("PackSize")


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: int | None = None
    packsize_id: int | None = None
    quantity: int | None = None
    unit_price: Decimal | None = None
    discount: Decimal | None = None
    price: Decimal | None = None
    created_at: datetime | None = None
    pack_size: PackSizeDTO | None = None
