from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, selectinload

import config
from db import session_execute, session_flush, session_refresh
from models.order import Order, OrderDTO, OrderDetailDTO
from models.orderItem import OrderItem, OrderItemDTO


class OrderRepository:
    SORTABLE_COLUMNS = {
        "id": Order.id,
        "created_at": Order.created_at,
        "total_amount": Order.total_amount,
        "status": Order.status,
        "payment_status": Order.payment_status,
        "name": Order.name,
    }

    @staticmethod
    async def create(order_dto: OrderDTO, items: list[OrderItemDTO], session: AsyncSession | Session) -> OrderDTO:
        """
        Insert an order and its items. Flushes only, the caller owns the transaction.
        """
        order = Order(**order_dto.model_dump(exclude_none=True, exclude={'id', 'created_at'}))
        session.add(order)
        await session_flush(session)
        session.add_all([
            OrderItem(order_id=order.id,
                      **item.model_dump(exclude_none=True, exclude={'id', 'order_id', 'created_at', 'pack_size'}))
            for item in items
        ])
        await session_flush(session)
        await session_refresh(session, order)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    def _detail_stmt():
        return select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.pack_size),
            selectinload(Order.order_promo_code)
        ).execution_options(populate_existing=True)

    @staticmethod
    async def get_detail(order_id: int, user_id: int | None, session: AsyncSession | Session) -> OrderDetailDTO | None:
        """Order with its frozen items. user_id restricts the lookup to that owner."""
        stmt = OrderRepository._detail_stmt().where(Order.id == order_id)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDetailDTO.model_validate(order, from_attributes=True)
        return None

    @staticmethod
    async def get_by_user_id(user_id: int, session: AsyncSession | Session) -> list[OrderDetailDTO]:
        stmt = OrderRepository._detail_stmt().where(Order.user_id == user_id).order_by(Order.id.desc())
        orders = await session_execute(stmt, session)
        return [OrderDetailDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def update(order_id: int, values: dict, session: AsyncSession | Session) -> None:
        # Money columns are never part of values: the price snapshot is write-once
        stmt = update(Order).where(Order.id == order_id).values(**values)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def get_paginated(page: int, search: str | None, sort_column: str, sort_order: str,
                            session: AsyncSession | Session) -> tuple[list[OrderDTO], int]:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Order.name.ilike(pattern),
                                  Order.email.ilike(pattern),
                                  Order.phone.ilike(pattern),
                                  Order.promo_code.ilike(pattern)))
        column = OrderRepository.SORTABLE_COLUMNS.get(sort_column, Order.id)
        order_by = column.asc() if sort_order.lower() == "asc" else column.desc()
        orders_stmt = (select(Order)
                       .where(*conditions)
                       .order_by(order_by)
                       .limit(config.PAGE_ENTRIES)
                       .offset(config.PAGE_ENTRIES * page))
        orders_count_stmt = select(func.count(Order.id)).where(*conditions)
        orders = await session_execute(orders_stmt, session)
        orders = [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]
        orders_count = await session_execute(orders_count_stmt, session)
        return orders, orders_count.scalar_one()
