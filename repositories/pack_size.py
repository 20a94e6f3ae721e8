from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_refresh
from models.orderItem import OrderItem
from models.pack_size import PackSize, PackSizeDTO


class PackSizeRepository:
    @staticmethod
    async def get_by_id(packsize_id: int, session: AsyncSession | Session) -> PackSizeDTO | None:
        stmt = select(PackSize).where(PackSize.id == packsize_id)
        pack_size = await session_execute(stmt, session)
        pack_size = pack_size.scalar()
        if pack_size is not None:
            return PackSizeDTO.model_validate(pack_size, from_attributes=True)
        return None

    @staticmethod
    async def get_for_product(product_id: int, packsize_id: int,
                              session: AsyncSession | Session) -> PackSizeDTO | None:
        """Pack size packsize_id, only if it belongs to product_id."""
        stmt = select(PackSize).where(PackSize.id == packsize_id, PackSize.product_id == product_id)
        pack_size = await session_execute(stmt, session)
        pack_size = pack_size.scalar()
        if pack_size is not None:
            return PackSizeDTO.model_validate(pack_size, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(packsize_ids: list[int], session: AsyncSession | Session) -> dict[int, PackSizeDTO]:
        stmt = select(PackSize).where(PackSize.id.in_(packsize_ids))
        pack_sizes = await session_execute(stmt, session)
        return {
            pack_size.id: PackSizeDTO.model_validate(pack_size, from_attributes=True)
            for pack_size in pack_sizes.scalars().all()
        }

    @staticmethod
    async def count_order_references(packsize_id: int, session: AsyncSession | Session) -> int:
        stmt = select(func.count(OrderItem.id)).where(OrderItem.packsize_id == packsize_id)
        count = await session_execute(stmt, session)
        return count.scalar_one()

    @staticmethod
    async def delete(packsize_id: int, session: AsyncSession | Session) -> None:
        stmt = delete(PackSize).where(PackSize.id == packsize_id)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def create(pack_size_dto: PackSizeDTO, session: AsyncSession | Session) -> PackSizeDTO:
        pack_size = PackSize(**pack_size_dto.model_dump(exclude_none=True, exclude={'id'}))
        session.add(pack_size)
        await session_flush(session)
        await session_refresh(session, pack_size)
        return PackSizeDTO.model_validate(pack_size, from_attributes=True)

    @staticmethod
    async def update(packsize_id: int, values: dict, session: AsyncSession | Session) -> None:
        # Order items keep their own unit_price, a new price only reaches carts and new orders
        stmt = update(PackSize).where(PackSize.id == packsize_id).values(**values)
        await session_execute(stmt, session)
        await session_flush(session)
