from sqlalchemy import select, update, delete, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, selectinload

import config
from db import session_execute, session_flush, session_refresh
from models.cart import Cart, CartDTO
from models.cartItem import CartItem, CartItemDTO
from models.pack_size import PackSizeDTO
from models.product import ProductDTO


class CartRepository:
    @staticmethod
    async def find_by_identity(user_id: int | None, ip: str | None,
                               session: AsyncSession | Session) -> CartDTO | None:
        """
        Cart of a user id or client IP.

        Matches carts owned by user_id, or anonymous carts created from ip.
        When both exist the user's own cart wins. Carts owned by another user
        are never matched through the IP.
        """
        conditions = []
        if user_id is not None:
            conditions.append(Cart.user_id == user_id)
        if ip:
            conditions.append(and_(Cart.ip == ip, Cart.user_id.is_(None)))
        if len(conditions) == 0:
            return None
        stmt = select(Cart).where(or_(*conditions)).order_by(Cart.id)
        carts = await session_execute(stmt, session)
        carts = carts.scalars().all()
        if len(carts) == 0:
            return None
        owned = [cart for cart in carts if user_id is not None and cart.user_id == user_id]
        cart = owned[0] if len(owned) > 0 else carts[0]
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def get_by_id(cart_id: int, session: AsyncSession | Session) -> CartDTO | None:
        stmt = select(Cart).where(Cart.id == cart_id)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        return None

    @staticmethod
    async def create(cart_dto: CartDTO, session: AsyncSession | Session) -> CartDTO:
        """Insert a cart. Raises IntegrityError if identity_key is already taken."""
        cart = Cart(**cart_dto.model_dump(exclude_none=True))
        session.add(cart)
        await session_flush(session)
        await session_refresh(session, cart)
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def update_header(cart_id: int, values: dict, session: AsyncSession | Session) -> None:
        if len(values) == 0:
            return
        stmt = update(Cart).where(Cart.id == cart_id).values(**values)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def set_promo_code(cart_id: int, promocode_id: int | None, session: AsyncSession | Session) -> None:
        stmt = update(Cart).where(Cart.id == cart_id).values(promocode_id=promocode_id)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def get_lines(cart_id: int,
                        session: AsyncSession | Session) -> list[tuple[CartItemDTO, ProductDTO | None, PackSizeDTO | None]]:
        """Cart items with the live product (and its offer plan) and pack size."""
        stmt = (select(CartItem)
                .where(CartItem.cart_id == cart_id)
                .options(selectinload(CartItem.product), selectinload(CartItem.pack_size))
                .order_by(CartItem.id)
                .execution_options(populate_existing=True))
        cart_items = await session_execute(stmt, session)
        lines = []
        for cart_item in cart_items.scalars().all():
            product = ProductDTO.model_validate(cart_item.product, from_attributes=True) \
                if cart_item.product is not None else None
            pack_size = PackSizeDTO.model_validate(cart_item.pack_size, from_attributes=True) \
                if cart_item.pack_size is not None else None
            lines.append((CartItemDTO.model_validate(cart_item, from_attributes=True), product, pack_size))
        return lines

    @staticmethod
    async def get_item(cart_id: int, product_id: int, packsize_id: int,
                       session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id,
                                      CartItem.product_id == product_id,
                                      CartItem.packsize_id == packsize_id)
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is not None:
            return CartItemDTO.model_validate(cart_item, from_attributes=True)
        return None

    @staticmethod
    async def upsert_item(cart_item_dto: CartItemDTO, session: AsyncSession | Session) -> CartItemDTO:
        """Set the quantity of a (cart, product, pack size) line, inserting it if missing."""
        existing = await CartRepository.get_item(cart_item_dto.cart_id, cart_item_dto.product_id,
                                                 cart_item_dto.packsize_id, session)
        if existing is not None:
            stmt = update(CartItem).where(CartItem.id == existing.id).values(quantity=cart_item_dto.quantity)
            await session_execute(stmt, session)
            await session_flush(session)
            existing.quantity = cart_item_dto.quantity
            return existing
        cart_item = CartItem(**cart_item_dto.model_dump(exclude_none=True))
        session.add(cart_item)
        await session_flush(session)
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def delete_item(cart_item_id: int, session: AsyncSession | Session) -> None:
        stmt = delete(CartItem).where(CartItem.id == cart_item_id)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def delete(cart_id: int, session: AsyncSession | Session) -> None:
        delete_items_stmt = delete(CartItem).where(CartItem.cart_id == cart_id)
        delete_cart_stmt = delete(Cart).where(Cart.id == cart_id)
        await session_execute(delete_items_stmt, session)
        await session_execute(delete_cart_stmt, session)
        await session_flush(session)

    @staticmethod
    async def get_paginated(page: int, search: str | None,
                            session: AsyncSession | Session) -> tuple[list[CartDTO], int]:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Cart.name.ilike(pattern),
                                  Cart.email.ilike(pattern),
                                  Cart.phone.ilike(pattern),
                                  Cart.ip.ilike(pattern)))
        carts_stmt = (select(Cart)
                      .where(*conditions)
                      .order_by(Cart.updated_at.desc(), Cart.id.desc())
                      .limit(config.PAGE_ENTRIES)
                      .offset(config.PAGE_ENTRIES * page))
        carts_count_stmt = select(func.count(Cart.id)).where(*conditions)
        carts = await session_execute(carts_stmt, session)
        carts = [CartDTO.model_validate(cart, from_attributes=True) for cart in carts.scalars().all()]
        carts_count = await session_execute(carts_count_stmt, session)
        return carts, carts_count.scalar_one()
