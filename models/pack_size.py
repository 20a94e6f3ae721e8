from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from models.base import Base


class PackSize(Base):
    """
    Purchasable variant of a product with its own unit price.

    Rows referenced by order_items must not be deleted (see CatalogService.delete_pack_size).
    """
    __tablename__ = 'packsizes_products'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    size = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(12, 4, asdecimal=True), nullable=False, default=Decimal("1.00"))

    product = relationship('Product', back_populates='pack_sizes')

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_packsize_price_non_negative'),
    )


class PackSizeDTO(BaseModel):
    id: int | None = None
    product_id: int | None = None
    size: int | None = None
    price: Decimal | None = None
