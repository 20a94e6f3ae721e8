"""
Public API router: cart and orders.

Identity:
- Order endpoints: Authorization: Bearer <signed user token> (required)
- Cart endpoints: the signed user token when sent, otherwise the client IP

Errors are raised as shop exceptions and rendered by utils/error_handler.py.
"""

import datetime
import logging

from fastapi import APIRouter, Depends, Header, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import get_session
from enums.rate_limit_operation import RateLimitOperation
from exceptions import UserAuthenticationException, ValidationException
from middleware.rate_limit import RateLimiter
from models.cart import CartIdentity, CartUpdateDTO
from models.order import OrderCreateDTO, OrderUserUpdateDTO
from services.cart import CartService
from services.order import OrderService
from utils.user_token import validate_user_token, UserTokenValidationError

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["api"])

ONE_HOUR = 3600


class CartItemRemovePayload(BaseModel):
    product_id: int = Field(..., gt=0)
    packsize_id: int = Field(..., gt=0)


class PromoCodePayload(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)


def _user_id_from_authorization(authorization: str) -> int:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UserAuthenticationException("Authorization header must be 'Bearer <token>'")
    try:
        return validate_user_token(token.strip(), config.USER_TOKEN_SECRET, config.USER_TOKEN_MAX_AGE_SECONDS)
    except UserTokenValidationError as e:
        logger.warning(f"Rejected user token: {e}")
        raise UserAuthenticationException(str(e)) from e


def get_user_id(authorization: str | None = Header(default=None)) -> int:
    """User id from the signed bearer token; 401 without one."""
    if not authorization:
        raise UserAuthenticationException("Missing Authorization header")
    return _user_id_from_authorization(authorization)


def get_cart_identity(request: Request, authorization: str | None = Header(default=None)) -> CartIdentity:
    """
    Signed-in caller: their user id (a bad token is rejected, never downgraded to IP).
    Anonymous caller: the client IP.
    """
    user_id = _user_id_from_authorization(authorization) if authorization else None
    ip = request.client.host if request.client else None
    if user_id is None and not ip:
        raise ValidationException("Cannot identify cart: no user token and no client address")
    return CartIdentity(user_id=user_id, ip=ip)


def get_rate_limiter(request: Request) -> RateLimiter:
    return RateLimiter(request.app.state.redis)


# === Cart ===

@api_router.get("/cart")
async def get_cart(identity: CartIdentity = Depends(get_cart_identity),
                   session: AsyncSession = Depends(get_session)):
    """
    Priced cart of the caller.

    total = lines after offer plans - promo code discount (no shipping).
    Money values are rounded to 2 places.
    """
    cart = await CartService.get_cart_view(identity, session)
    return {"status": True, "data": cart, "message": "Cart retrieved successfully."}


@api_router.post("/cart")
async def add_to_cart(payload: CartUpdateDTO,
                      identity: CartIdentity = Depends(get_cart_identity),
                      session: AsyncSession = Depends(get_session)):
    """
    Create or update the caller's cart: contact fields plus line quantities.

    Request Body:
        {
            "name": "Jane", "email": "jane@example.com", ...,
            "items": [{"product_id": 1, "packsize_id": 3, "quantity": 2}]
        }
    """
    cart = await CartService.add_or_update(identity, payload, session)
    return {"status": True, "data": cart, "message": "Cart updated successfully."}


@api_router.post("/cart/remove")
async def remove_from_cart(payload: CartItemRemovePayload,
                           identity: CartIdentity = Depends(get_cart_identity),
                           session: AsyncSession = Depends(get_session)):
    cart = await CartService.remove_item(identity, payload.product_id, payload.packsize_id, session)
    return {"status": True, "data": cart, "message": "Cart item removed successfully."}


@api_router.delete("/cart")
async def clear_cart(identity: CartIdentity = Depends(get_cart_identity),
                     session: AsyncSession = Depends(get_session)):
    await CartService.clear(identity, session)
    return {"status": True, "message": "Cart deleted successfully."}


@api_router.post("/cart/promo-code")
async def apply_promo_code(payload: PromoCodePayload,
                           identity: CartIdentity = Depends(get_cart_identity),
                           limiter: RateLimiter = Depends(get_rate_limiter),
                           session: AsyncSession = Depends(get_session)):
    await limiter.enforce(RateLimitOperation.PROMO_CODE_APPLY, identity.key,
                          max_count=config.MAX_PROMO_CODE_ATTEMPTS_PER_HOUR, window_seconds=ONE_HOUR)
    cart = await CartService.apply_promo_code(identity, payload.code.strip(), datetime.datetime.now(), session)
    return {"status": True, "data": cart, "message": "Promo code applied successfully."}


@api_router.delete("/cart/promo-code")
async def remove_promo_code(identity: CartIdentity = Depends(get_cart_identity),
                            session: AsyncSession = Depends(get_session)):
    cart = await CartService.remove_promo_code(identity, session)
    return {"status": True, "data": cart, "message": "Promo code removed successfully."}


# === Orders ===

@api_router.post("/orders", status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreateDTO,
                       user_id: int = Depends(get_user_id),
                       limiter: RateLimiter = Depends(get_rate_limiter),
                       session: AsyncSession = Depends(get_session)):
    """
    Check out. Lines are priced on the server; a client-sent total_amount or
    line price is only compared and logged. Without items the caller's cart
    is checked out.

    Returns:
        201: Order created (payment link and mail follow asynchronously)
        400: Invalid or expired promo code / below minimum / validation error
        401: Missing, forged or expired user token
        404: User, cart, product or pack size not found
        429: Too many orders from this user
    """
    await limiter.enforce(RateLimitOperation.ORDER_CREATE, CartIdentity(user_id=user_id).key,
                          max_count=config.MAX_ORDERS_PER_IDENTITY_PER_HOUR, window_seconds=ONE_HOUR)
    order = await OrderService.orchestrate_order_creation(user_id, payload, datetime.datetime.now(), session)
    return {"status": True, "data": order, "message": "Order created successfully"}


@api_router.get("/orders")
async def get_orders(user_id: int = Depends(get_user_id),
                     session: AsyncSession = Depends(get_session)):
    orders = await OrderService.get_orders(user_id, session)
    return {"status": True, "data": orders, "message": "Get all orders successfully."}


@api_router.get("/orders/{order_id}")
async def get_order(order_id: int,
                    user_id: int = Depends(get_user_id),
                    session: AsyncSession = Depends(get_session)):
    order = await OrderService.get_order(order_id, user_id, session)
    return {"status": True, "data": order, "message": "Order retrieved successfully."}


@api_router.patch("/orders/{order_id}")
async def update_order(order_id: int,
                       payload: OrderUserUpdateDTO,
                       user_id: int = Depends(get_user_id),
                       session: AsyncSession = Depends(get_session)):
    order = await OrderService.update_by_user(order_id, user_id, payload, session)
    return {"status": True, "data": order, "message": "Order status updated successfully"}
