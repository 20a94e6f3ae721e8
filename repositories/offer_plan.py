from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_execute, session_flush, session_refresh
from enums.record_status import RecordStatus
from models.offer_plan import OfferPlan, OfferPlanDTO


class OfferPlanRepository:
    @staticmethod
    async def get_by_id(offer_plan_id: int, session: AsyncSession | Session) -> OfferPlanDTO | None:
        stmt = select(OfferPlan).where(OfferPlan.id == offer_plan_id)
        offer_plan = await session_execute(stmt, session)
        offer_plan = offer_plan.scalar()
        if offer_plan is not None:
            return OfferPlanDTO.model_validate(offer_plan, from_attributes=True)
        return None

    @staticmethod
    async def get_paginated(page: int, status: RecordStatus | None,
                            session: AsyncSession | Session) -> tuple[list[OfferPlanDTO], int]:
        conditions = []
        if status is not None:
            conditions.append(OfferPlan.status == status)
        offer_plans_stmt = (select(OfferPlan)
                            .where(*conditions)
                            .order_by(OfferPlan.sort_order.asc(), OfferPlan.id.desc())
                            .limit(config.PAGE_ENTRIES)
                            .offset(config.PAGE_ENTRIES * page))
        offer_plans_count_stmt = select(func.count(OfferPlan.id)).where(*conditions)
        offer_plans = await session_execute(offer_plans_stmt, session)
        offer_plans = [OfferPlanDTO.model_validate(offer_plan, from_attributes=True)
                       for offer_plan in offer_plans.scalars().all()]
        offer_plans_count = await session_execute(offer_plans_count_stmt, session)
        return offer_plans, offer_plans_count.scalar_one()

    @staticmethod
    async def create(offer_plan_dto: OfferPlanDTO, session: AsyncSession | Session) -> OfferPlanDTO:
        offer_plan = OfferPlan(**offer_plan_dto.model_dump(exclude_none=True, exclude={'id', 'created_at'}))
        session.add(offer_plan)
        await session_flush(session)
        await session_refresh(session, offer_plan)
        return OfferPlanDTO.model_validate(offer_plan, from_attributes=True)

    @staticmethod
    async def update(offer_plan_id: int, values: dict, session: AsyncSession | Session) -> None:
        stmt = update(OfferPlan).where(OfferPlan.id == offer_plan_id).values(**values)
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def set_status(offer_plan_id: int, status: RecordStatus, session: AsyncSession | Session) -> None:
        stmt = update(OfferPlan).where(OfferPlan.id == offer_plan_id).values(status=status)
        await session_execute(stmt, session)
        await session_flush(session)
