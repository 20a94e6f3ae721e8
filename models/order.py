from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, String, Text, JSON, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.currency import Currency
from enums.order_status import OrderStatus, PaymentStatus
from models.base import Base
from models.orderItem import OrderItemDTO
from models.promo_code import PromoCodeDTO


class Order(Base):
    """
    Immutable price snapshot of a checkout.

    All money columns are written once by OrderService.orchestrate_order_creation and never
    recomputed from the catalog afterwards. Later changes to pack size prices,
    offer plans or promo codes do not touch existing orders.
    """
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Contact / shipping
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    country = Column(String(255), nullable=False)
    state = Column(String(255), nullable=False)
    city = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    address = Column(Text, nullable=False)
    zip_code = Column(String(20), nullable=False)

    # Totals (no CHECK > 0: unclamped discounts may legitimately produce negative values)
    subtotal = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    total = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    promo_discount = Column(Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0"))
    shipping_charge = Column(Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0"))
    total_amount = Column(Numeric(12, 2, asdecimal=True), nullable=False)  # grand total
    currency = Column(SQLEnum(Currency), nullable=False)

    status = Column(SQLEnum(OrderStatus, values_callable=lambda e: [m.value for m in e]),
                    nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(SQLEnum(PaymentStatus, values_callable=lambda e: [m.value for m in e]),
                            nullable=False, default=PaymentStatus.PENDING)
    # Payment provider response, e.g. {"id": "...", "link": "https://..."}
    payment_detail = Column(JSON, nullable=True)

    promocode_id = Column(Integer, ForeignKey('promo_codes.id', ondelete='SET NULL'), nullable=True)
    promo_code = Column(String(100), nullable=True)  # code as entered, kept if the promo row is deleted

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')
    order_promo_code = relationship('PromoCode')
    user = relationship('User')


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    name: str | None = None
    email: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    phone: str | None = None
    address: str | None = None
    zip_code: str | None = None
    subtotal: Decimal | None = None
    total: Decimal | None = None
    promo_discount: Decimal | None = None
    shipping_charge: Decimal | None = None
    total_amount: Decimal | None = None
    currency: Currency | None = None
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    payment_detail: dict | None = None
    promocode_id: int | None = None
    promo_code: str | None = None
    created_at: datetime | None = None


class OrderDetailDTO(OrderDTO):
    items: list[OrderItemDTO] = []
    order_promo_code: PromoCodeDTO | None = None


class OrderItemInputDTO(BaseModel):
    product_id: int = Field(gt=0)
    packsize_id: int = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    # Price the client displayed; informational only, lines are priced server-side
    price: Decimal | None = Field(default=None, gt=0)


class OrderCreateDTO(BaseModel):
    """
    Checkout request. Without items the caller's cart is checked out
    (and its attached promo code used when promocode is not given).
    """
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    country: str = Field(min_length=1, max_length=255)
    state: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=255)
    phone: str = Field(pattern=r"^[0-9]+$", min_length=8, max_length=15)
    shipping_address: str = Field(min_length=1)
    zip_code: str = Field(min_length=1, max_length=20)
    total_amount: Decimal | None = Field(default=None, gt=0)
    promocode: str | None = None
    items: list[OrderItemInputDTO] = Field(default_factory=list, max_length=100)


class OrderUserUpdateDTO(BaseModel):
    """What a customer may change on their own order."""
    status: OrderStatus | None = None  # only Cancelled is accepted
    payment_status: PaymentStatus | None = None
    payment_detail: dict | None = None


class OrderAdminStatusDTO(BaseModel):
    status: OrderStatus


class OrderAdminPaymentStatusDTO(BaseModel):
    payment_status: PaymentStatus
