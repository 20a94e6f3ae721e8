from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, selectinload

from db import session_execute
from models.orderItem import OrderItem, OrderItemDTO


class OrderItemRepository:
    @staticmethod
    async def get_by_order_id(order_id: int, session: AsyncSession | Session) -> list[OrderItemDTO]:
        stmt = (select(OrderItem)
                .where(OrderItem.order_id == order_id)
                .options(selectinload(OrderItem.pack_size))
                .order_by(OrderItem.id))
        order_items = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(order_item, from_attributes=True)
                for order_item in order_items.scalars().all()]
