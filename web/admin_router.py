"""
Admin router: promo codes, carts, orders, offer plans, pack sizes.

Every endpoint requires the X-Admin-Token header matching ADMIN_API_TOKEN.
"""

import secrets
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import get_session
from enums.discount_type import DiscountType
from enums.record_status import RecordStatus
from exceptions import AdminAuthenticationException
from models.offer_plan import OfferPlanDTO
from models.order import OrderAdminStatusDTO, OrderAdminPaymentStatusDTO
from models.pack_size import PackSizeDTO
from models.promo_code import PromoCodeDTO
from services.cart import CartService
from services.catalog import CatalogService
from services.order import OrderService
from services.promo_code import PromoCodeService


def verify_admin_token(x_admin_token: str | None = Header(default=None)) -> None:
    if not config.ADMIN_API_TOKEN or not x_admin_token or \
            not secrets.compare_digest(x_admin_token.encode(), config.ADMIN_API_TOKEN.encode()):
        raise AdminAuthenticationException()


admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(verify_admin_token)])


def _parse_discount_type(v):
    if v is None or isinstance(v, DiscountType):
        return v
    if isinstance(v, str):
        return DiscountType.from_string(v)
    raise ValueError(f"Discount type must be a string, got {type(v)}")


class PromoCodeCreatePayload(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    discount: Decimal = Field(..., gt=0)
    type: DiscountType
    start_date: datetime
    end_date: datetime
    status: RecordStatus = RecordStatus.ACTIVE

    @field_validator('type', mode='before')
    @classmethod
    def validate_type(cls, v):
        """Accepts the stored tags and the "percentage"/"fixed" aliases."""
        return _parse_discount_type(v)


class PromoCodeUpdatePayload(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=100)
    discount: Decimal | None = Field(default=None, gt=0)
    type: DiscountType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: RecordStatus | None = None

    @field_validator('type', mode='before')
    @classmethod
    def validate_type(cls, v):
        return _parse_discount_type(v)


class OfferPlanCreatePayload(BaseModel):
    discount: Decimal = Field(..., gt=0)
    type: DiscountType
    status: RecordStatus = RecordStatus.ACTIVE
    sort_order: int = Field(default=500, ge=0)

    @field_validator('type', mode='before')
    @classmethod
    def validate_type(cls, v):
        return _parse_discount_type(v)


class OfferPlanUpdatePayload(BaseModel):
    discount: Decimal | None = Field(default=None, gt=0)
    type: DiscountType | None = None
    status: RecordStatus | None = None
    sort_order: int | None = Field(default=None, ge=0)

    @field_validator('type', mode='before')
    @classmethod
    def validate_type(cls, v):
        return _parse_discount_type(v)


class PackSizeCreatePayload(BaseModel):
    product_id: int = Field(..., gt=0)
    size: int = Field(default=1, ge=1)
    price: Decimal = Field(..., ge=0)


class PackSizeUpdatePayload(BaseModel):
    size: int | None = Field(default=None, ge=1)
    price: Decimal | None = Field(default=None, ge=0)


# === Promo codes ===

@admin_router.get("/promo-codes")
async def list_promo_codes(page: int = Query(default=0, ge=0),
                           search: str | None = Query(default=None),
                           session: AsyncSession = Depends(get_session)):
    data = await PromoCodeService.get_page(page, search, session)
    return {"status": True, "data": data, "message": "Promo codes retrieved successfully."}


@admin_router.get("/promo-codes/{promocode_id}")
async def get_promo_code(promocode_id: int, session: AsyncSession = Depends(get_session)):
    promo_code = await PromoCodeService.get_by_id(promocode_id, session)
    return {"status": True, "data": promo_code, "message": "Promo code retrieved successfully."}


@admin_router.post("/promo-codes", status_code=201)
async def create_promo_code(payload: PromoCodeCreatePayload, session: AsyncSession = Depends(get_session)):
    promo_code = await PromoCodeService.create(PromoCodeDTO(**payload.model_dump()), session)
    return {"status": True, "data": promo_code, "message": "Promo code created successfully."}


@admin_router.patch("/promo-codes/{promocode_id}")
async def update_promo_code(promocode_id: int, payload: PromoCodeUpdatePayload,
                            session: AsyncSession = Depends(get_session)):
    values = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    promo_code = await PromoCodeService.update(promocode_id, values, session)
    return {"status": True, "data": promo_code, "message": "Promo code updated successfully."}


@admin_router.post("/promo-codes/{promocode_id}/toggle")
async def toggle_promo_code(promocode_id: int, session: AsyncSession = Depends(get_session)):
    promo_code = await PromoCodeService.toggle_status(promocode_id, session)
    return {"status": True, "data": promo_code, "message": "Promo code status changed successfully."}


@admin_router.delete("/promo-codes/{promocode_id}")
async def delete_promo_code(promocode_id: int, session: AsyncSession = Depends(get_session)):
    await PromoCodeService.delete(promocode_id, session)
    return {"status": True, "message": "Promo code deleted successfully."}


# === Carts ===

@admin_router.get("/carts")
async def list_carts(page: int = Query(default=0, ge=0),
                     search: str | None = Query(default=None),
                     session: AsyncSession = Depends(get_session)):
    data = await CartService.get_page(page, search, session)
    return {"status": True, "data": data, "message": "Carts retrieved successfully."}


@admin_router.get("/carts/{cart_id}")
async def get_cart(cart_id: int, session: AsyncSession = Depends(get_session)):
    """Cart header plus the same priced view the customer sees."""
    cart, view = await CartService.get_detail(cart_id, session)
    return {"status": True, "data": {"cart": cart, "pricing": view}, "message": "Cart retrieved successfully."}


# === Orders ===

@admin_router.get("/orders")
async def list_orders(page: int = Query(default=0, ge=0),
                      search: str | None = Query(default=None),
                      column: str = Query(default="id"),
                      order: str = Query(default="desc", pattern="^(asc|desc)$"),
                      session: AsyncSession = Depends(get_session)):
    data = await OrderService.get_page(page, search, column, order, session)
    return {"status": True, "data": data, "message": "Orders retrieved successfully."}


@admin_router.get("/orders/{order_id}")
async def get_order(order_id: int, session: AsyncSession = Depends(get_session)):
    order = await OrderService.get_order(order_id, None, session)
    return {"status": True, "data": order, "message": "Order retrieved successfully."}


@admin_router.patch("/orders/{order_id}/status")
async def update_order_status(order_id: int, payload: OrderAdminStatusDTO,
                              session: AsyncSession = Depends(get_session)):
    order = await OrderService.update_status(order_id, payload.status, session)
    return {"status": True, "data": order, "message": f"Order status set to {payload.status.value}."}


@admin_router.patch("/orders/{order_id}/payment-status")
async def update_order_payment_status(order_id: int, payload: OrderAdminPaymentStatusDTO,
                                      session: AsyncSession = Depends(get_session)):
    """Only staff may mark an order Paid."""
    order = await OrderService.update_payment_status(order_id, payload.payment_status, session)
    return {"status": True, "data": order, "message": f"Payment status set to {payload.payment_status.value}."}


@admin_router.get("/orders/{order_id}/items")
async def get_order_items(order_id: int, session: AsyncSession = Depends(get_session)):
    items = await OrderService.get_items(order_id, session)
    return {"status": True, "data": items, "message": "Order items retrieved successfully."}


# === Offer plans ===

@admin_router.get("/offer-plans")
async def list_offer_plans(page: int = Query(default=0, ge=0),
                           status: RecordStatus | None = Query(default=None),
                           session: AsyncSession = Depends(get_session)):
    data = await CatalogService.get_offer_plan_page(page, status, session)
    return {"status": True, "data": data, "message": "Offer plans retrieved successfully."}


@admin_router.get("/offer-plans/{offer_plan_id}")
async def get_offer_plan(offer_plan_id: int, session: AsyncSession = Depends(get_session)):
    offer_plan = await CatalogService.get_offer_plan(offer_plan_id, session)
    return {"status": True, "data": offer_plan, "message": "Offer plan retrieved successfully."}


@admin_router.post("/offer-plans", status_code=201)
async def create_offer_plan(payload: OfferPlanCreatePayload, session: AsyncSession = Depends(get_session)):
    offer_plan = await CatalogService.create_offer_plan(OfferPlanDTO(**payload.model_dump()), session)
    return {"status": True, "data": offer_plan, "message": "Offer plan created successfully."}


@admin_router.patch("/offer-plans/{offer_plan_id}")
async def update_offer_plan(offer_plan_id: int, payload: OfferPlanUpdatePayload,
                            session: AsyncSession = Depends(get_session)):
    """Affects every product on this plan from the next cart read; orders keep their snapshot."""
    values = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    offer_plan = await CatalogService.update_offer_plan(offer_plan_id, values, session)
    return {"status": True, "data": offer_plan, "message": "Offer plan updated successfully."}


@admin_router.post("/offer-plans/{offer_plan_id}/toggle")
async def toggle_offer_plan(offer_plan_id: int, session: AsyncSession = Depends(get_session)):
    offer_plan = await CatalogService.toggle_offer_plan_status(offer_plan_id, session)
    return {"status": True, "data": offer_plan, "message": "Offer plan status changed successfully."}


# === Pack sizes ===

@admin_router.post("/pack-sizes", status_code=201)
async def create_pack_size(payload: PackSizeCreatePayload, session: AsyncSession = Depends(get_session)):
    pack_size = await CatalogService.create_pack_size(PackSizeDTO(**payload.model_dump()), session)
    return {"status": True, "data": pack_size, "message": "Pack size created successfully."}


@admin_router.patch("/pack-sizes/{packsize_id}")
async def update_pack_size(packsize_id: int, payload: PackSizeUpdatePayload,
                           session: AsyncSession = Depends(get_session)):
    values = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    pack_size = await CatalogService.update_pack_size(packsize_id, values, session)
    return {"status": True, "data": pack_size, "message": "Pack size updated successfully."}


@admin_router.delete("/pack-sizes/{packsize_id}")
async def delete_pack_size(packsize_id: int, session: AsyncSession = Depends(get_session)):
    await CatalogService.delete_pack_size(packsize_id, session)
    return {"status": True, "message": "Pack size deleted successfully."}
