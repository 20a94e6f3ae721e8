import datetime

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_execute, session_flush, session_refresh
from enums.record_status import RecordStatus
from models.promo_code import PromoCode, PromoCodeDTO


class PromoCodeRepository:
    @staticmethod
    async def get_valid_by_code(code: str, now: datetime.datetime,
                                session: AsyncSession | Session) -> PromoCodeDTO | None:
        """
        Active promo code matching code whose window contains now.

        Both window ends are inclusive. Codes with a NULL start or end date
        never match (NULL comparisons are never true).
        """
        stmt = select(PromoCode).where(
            PromoCode.code == code,
            PromoCode.status == RecordStatus.ACTIVE,
            PromoCode.start_date <= now,
            PromoCode.end_date >= now
        )
        promo_code = await session_execute(stmt, session)
        promo_code = promo_code.scalar()
        if promo_code is not None:
            return PromoCodeDTO.model_validate(promo_code, from_attributes=True)
        return None

    @staticmethod
    async def get_by_id(promocode_id: int, session: AsyncSession | Session) -> PromoCodeDTO | None:
        stmt = select(PromoCode).where(PromoCode.id == promocode_id)
        promo_code = await session_execute(stmt, session)
        promo_code = promo_code.scalar()
        if promo_code is not None:
            return PromoCodeDTO.model_validate(promo_code, from_attributes=True)
        return None

    @staticmethod
    async def get_paginated(page: int, search: str | None,
                            session: AsyncSession | Session) -> tuple[list[PromoCodeDTO], int]:
        conditions = []
        if search:
            conditions.append(PromoCode.code.ilike(f"%{search}%"))
        promo_codes_stmt = (select(PromoCode)
                            .where(*conditions)
                            .order_by(PromoCode.id.desc())
                            .limit(config.PAGE_ENTRIES)
                            .offset(config.PAGE_ENTRIES * page))
        promo_codes_count_stmt = select(func.count(PromoCode.id)).where(*conditions)
        promo_codes = await session_execute(promo_codes_stmt, session)
        promo_codes = [PromoCodeDTO.model_validate(promo_code, from_attributes=True)
                       for promo_code in promo_codes.scalars().all()]
        promo_codes_count = await session_execute(promo_codes_count_stmt, session)
        return promo_codes, promo_codes_count.scalar_one()

    @staticmethod
    async def create(promo_code_dto: PromoCodeDTO, session: AsyncSession | Session) -> PromoCodeDTO:
        promo_code = PromoCode(**promo_code_dto.model_dump(exclude_none=True))
        session.add(promo_code)
        await session_flush(session)
        await session_refresh(session, promo_code)
        return PromoCodeDTO.model_validate(promo_code, from_attributes=True)

    @staticmethod
    async def update(promocode_id: int, values: dict, session: AsyncSession | Session) -> None:
        stmt = update(PromoCode).where(PromoCode.id == promocode_id).values(**values)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def set_status(promocode_id: int, status: RecordStatus, session: AsyncSession | Session) -> None:
        stmt = update(PromoCode).where(PromoCode.id == promocode_id).values(status=status)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def delete(promocode_id: int, session: AsyncSession | Session) -> None:
        # carts.promocode_id and orders.promocode_id are SET NULL on delete;
        # orders keep the code string in orders.promo_code
        stmt = delete(PromoCode).where(PromoCode.id == promocode_id)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def code_exists(code: str, exclude_id: int | None, session: AsyncSession | Session) -> bool:
        conditions = [PromoCode.code == code]
        if exclude_id is not None:
            conditions.append(PromoCode.id != exclude_id)
        stmt = select(func.count(PromoCode.id)).where(*conditions)
        count = await session_execute(stmt, session)
        return count.scalar_one() > 0
