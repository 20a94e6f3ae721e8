import datetime
import logging
import math

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from exceptions import (
    CartNotFoundException,
    CartItemNotFoundException,
    CartConflictException,
    PackSizeNotFoundException,
    PromoCodeNotAppliedException,
    UserNotFoundException,
)
from models.cart import CartDTO, CartIdentity, CartUpdateDTO
from models.cartItem import CartItemDTO
from models.pricing import CartViewDTO
from repositories.cart import CartRepository
from repositories.pack_size import PackSizeRepository
from repositories.promo_code import PromoCodeRepository
from repositories.user import UserRepository
from services.pricing import PricingService
from services.promo_code import PromoCodeService
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "country", "state", "city", "phone", "address", "zip_code")


class CartService:

    @staticmethod
    async def _require_user(identity: CartIdentity, session: AsyncSession | Session) -> None:
        if identity.user_id is not None and await UserRepository.get_by_id(identity.user_id, session) is None:
            raise UserNotFoundException(identity.user_id)

    @staticmethod
    async def _require_cart(identity: CartIdentity, session: AsyncSession | Session) -> CartDTO:
        cart = await CartRepository.find_by_identity(identity.user_id, identity.ip, session)
        if cart is None:
            raise CartNotFoundException(identity.key)
        return cart

    @staticmethod
    async def build_view(cart: CartDTO, session: AsyncSession | Session) -> CartViewDTO:
        """
        Price a cart from the live catalog.

        The attached promo code is used as stored, it is not re-validated here:
        a code that expired after it was attached still discounts the view.
        """
        lines = await CartRepository.get_lines(cart.id, session)
        promo_code = None
        if cart.promocode_id is not None:
            promo_code = await PromoCodeRepository.get_by_id(cart.promocode_id, session)
        return PricingService.build_cart_view(
            cart.id,
            [(cart_item.id, product, pack_size, cart_item.quantity) for cart_item, product, pack_size in lines],
            promo_code
        )

    @staticmethod
    async def get_cart_view(identity: CartIdentity, session: AsyncSession | Session) -> CartViewDTO:
        await CartService._require_user(identity, session)
        cart = await CartService._require_cart(identity, session)
        return await CartService.build_view(cart, session)

    @staticmethod
    async def add_or_update(identity: CartIdentity, cart_update: CartUpdateDTO,
                            session: AsyncSession | Session) -> CartViewDTO:
        """
        Create the identity's cart or update it, then set the given line quantities.

        Header and lines are written in one transaction. Two first writes for
        the same identity race on carts.identity_key; the loser is retried once
        and then sees the winner's cart.

        Raises:
            UserNotFoundException, PackSizeNotFoundException,
            CartConflictException (race not resolved by the retry)
        """
        try:
            cart = await CartService._upsert(identity, cart_update, session)
        except IntegrityError as e:
            logger.error(f"Cart upsert for {identity.key} failed after retry: {e.orig}")
            raise CartConflictException(identity.key) from e
        return await CartService.build_view(cart, session)

    @staticmethod
    @TransactionManager.with_retry()
    async def _upsert(identity: CartIdentity, cart_update: CartUpdateDTO,
                      session: AsyncSession | Session) -> CartDTO:
        async with TransactionManager.atomic(session, "cart update"):
            await CartService._require_user(identity, session)

            for line in cart_update.items:
                pack_size = await PackSizeRepository.get_for_product(line.product_id, line.packsize_id, session)
                if pack_size is None:
                    raise PackSizeNotFoundException([line.packsize_id], product_id=line.product_id)

            header = {field: getattr(cart_update, field) for field in CONTACT_FIELDS
                      if getattr(cart_update, field) is not None}

            cart = await CartRepository.find_by_identity(identity.user_id, identity.ip, session)
            if cart is None:
                cart = await CartRepository.create(CartDTO(
                    identity_key=identity.key,
                    user_id=identity.user_id,
                    ip=identity.ip,
                    **header
                ), session)
                logger.info(f"🛒 Cart {cart.id} created for {identity.key}")
            else:
                if identity.ip:
                    header["ip"] = identity.ip
                if identity.user_id is not None and cart.user_id is None:
                    # Anonymous cart from this IP becomes the user's cart
                    header["user_id"] = identity.user_id
                    header["identity_key"] = identity.key
                    logger.info(f"Cart {cart.id} adopted by {identity.key}")
                await CartRepository.update_header(cart.id, header, session)
                cart = await CartRepository.get_by_id(cart.id, session)

            for line in cart_update.items:
                await CartRepository.upsert_item(CartItemDTO(
                    cart_id=cart.id,
                    product_id=line.product_id,
                    packsize_id=line.packsize_id,
                    quantity=line.quantity
                ), session)

        logger.info(f"🛒 Cart {cart.id} saved with {len(cart_update.items)} line update(s)")
        return cart

    @staticmethod
    async def remove_item(identity: CartIdentity, product_id: int, packsize_id: int,
                          session: AsyncSession | Session) -> CartViewDTO:
        async with TransactionManager.atomic(session, "cart item removal"):
            cart = await CartService._require_cart(identity, session)
            cart_item = await CartRepository.get_item(cart.id, product_id, packsize_id, session)
            if cart_item is None:
                raise CartItemNotFoundException(cart.id, product_id, packsize_id)
            await CartRepository.delete_item(cart_item.id, session)
        logger.info(f"Cart {cart.id}: removed product {product_id} / pack size {packsize_id}")
        return await CartService.build_view(cart, session)

    @staticmethod
    async def clear(identity: CartIdentity, session: AsyncSession | Session) -> None:
        async with TransactionManager.atomic(session, "cart deletion"):
            cart = await CartService._require_cart(identity, session)
            await CartRepository.delete(cart.id, session)
        logger.info(f"🗑️ Cart {cart.id} of {identity.key} cleared")

    @staticmethod
    async def apply_promo_code(identity: CartIdentity, code: str, now: datetime.datetime,
                               session: AsyncSession | Session) -> CartViewDTO:
        """
        Validate a promo code against the cart and attach it.

        The candidate subtotal for the minimum check is the unrounded cart subtotal
        (original line prices, before offer plans), the same value checkout uses.

        Raises:
            CartNotFoundException, PromoCodeNotFoundException, PromoCodeBelowMinimumException
        """
        async with TransactionManager.atomic(session, "promo code attachment"):
            cart = await CartService._require_cart(identity, session)
            lines = await CartRepository.get_lines(cart.id, session)
            candidate_subtotal = PricingService.candidate_subtotal([
                PricingService.price_cart_line(product, pack_size, cart_item.quantity)
                for cart_item, product, pack_size in lines
            ])
            promo_code, _ = await PromoCodeService.validate(code, now, candidate_subtotal, session)
            await CartRepository.set_promo_code(cart.id, promo_code.id, session)
            cart.promocode_id = promo_code.id
        logger.info(f"🏷️ Promo code '{promo_code.code}' attached to cart {cart.id}")
        return await CartService.build_view(cart, session)

    @staticmethod
    async def remove_promo_code(identity: CartIdentity, session: AsyncSession | Session) -> CartViewDTO:
        async with TransactionManager.atomic(session, "promo code removal"):
            cart = await CartService._require_cart(identity, session)
            if cart.promocode_id is None:
                raise PromoCodeNotAppliedException(identity.key)
            await CartRepository.set_promo_code(cart.id, None, session)
            cart.promocode_id = None
        logger.info(f"Promo code removed from cart {cart.id}")
        return await CartService.build_view(cart, session)

    # === Admin Methods ===

    @staticmethod
    async def get_page(page: int, search: str | None, session: AsyncSession | Session) -> dict:
        carts, count = await CartRepository.get_paginated(page, search, session)
        return {
            "items": carts,
            "page": page,
            "total": count,
            "total_pages": math.ceil(count / config.PAGE_ENTRIES),
        }

    @staticmethod
    async def get_detail(cart_id: int, session: AsyncSession | Session) -> tuple[CartDTO, CartViewDTO]:
        """Admin cart detail, priced exactly like the customer's own view."""
        cart = await CartRepository.get_by_id(cart_id, session)
        if cart is None:
            raise CartNotFoundException(f"id:{cart_id}")
        return cart, await CartService.build_view(cart, session)
