# cart is a mutable container owned by one identity (a user id, or the client IP
# for anonymous visitors). Line prices are never stored here: they are derived
# from the live catalog every time the cart is read.
#
# identity_key ("user:<id>" or "ip:<addr>") is unique so that two concurrent
# first writes for the same identity cannot both insert a cart.
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship

from models.base import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    identity_key = Column(String(255), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True)
    ip = Column(String(64), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    country = Column(String(255), nullable=True)
    state = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    zip_code = Column(String(20), nullable=True)
    promocode_id = Column(Integer, ForeignKey('promo_codes.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    items = relationship('CartItem', back_populates='cart', cascade='all, delete-orphan')
    promo_code = relationship('PromoCode')


class CartDTO(BaseModel):
    id: int | None = None
    identity_key: str | None = None
    user_id: int | None = None
    ip: str | None = None
    name: str | None = None
    email: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    phone: str | None = None
    address: str | None = None
    zip_code: str | None = None
    promocode_id: int | None = None
    created_at: datetime | None = None


class CartIdentity(BaseModel):
    """Who a cart belongs to: a registered user, or else the client IP."""
    user_id: int | None = None
    ip: str | None = None

    @property
    def key(self) -> str:
        if self.user_id is not None:
            return f"user:{self.user_id}"
        return f"ip:{self.ip}"


class CartLineInputDTO(BaseModel):
    product_id: int = Field(gt=0)
    packsize_id: int = Field(gt=0)
    quantity: int = Field(ge=1)


class CartUpdateDTO(BaseModel):
    """Cart header (contact fields) plus the line quantities to set."""
    name: str | None = None
    email: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    phone: str | None = None
    address: str | None = None
    zip_code: str | None = None
    items: list[CartLineInputDTO] = Field(default_factory=list, max_length=100)
