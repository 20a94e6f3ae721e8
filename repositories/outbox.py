import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_refresh
from enums.outbox_event import OutboxEventType, OutboxEventStatus
from models.outbox_event import OutboxEvent, OutboxEventDTO


class OutboxRepository:
    @staticmethod
    async def add(event_type: OutboxEventType, payload: dict, session: AsyncSession | Session) -> OutboxEventDTO:
        event = OutboxEvent(event_type=event_type, payload=payload,
                            status=OutboxEventStatus.PENDING, attempts=0)
        session.add(event)
        await session_flush(session)
        await session_refresh(session, event)
        return OutboxEventDTO.model_validate(event, from_attributes=True)

    @staticmethod
    async def get_pending(limit: int, session: AsyncSession | Session) -> list[OutboxEventDTO]:
        stmt = (select(OutboxEvent)
                .where(OutboxEvent.status == OutboxEventStatus.PENDING)
                .order_by(OutboxEvent.created_at, OutboxEvent.id)
                .limit(limit))
        events = await session_execute(stmt, session)
        return [OutboxEventDTO.model_validate(event, from_attributes=True) for event in events.scalars().all()]

    @staticmethod
    async def get_by_id(event_id: int, session: AsyncSession | Session) -> OutboxEventDTO | None:
        stmt = select(OutboxEvent).where(OutboxEvent.id == event_id)
        event = await session_execute(stmt, session)
        event = event.scalar()
        if event is not None:
            return OutboxEventDTO.model_validate(event, from_attributes=True)
        return None

    @staticmethod
    async def mark_done(event_id: int, session: AsyncSession | Session) -> None:
        stmt = (update(OutboxEvent)
                .where(OutboxEvent.id == event_id)
                .values(status=OutboxEventStatus.DONE,
                        attempts=OutboxEvent.attempts + 1,
                        processed_at=datetime.datetime.now()))
        await session_execute(stmt, session)
        await session_flush(session)

    @staticmethod
    async def record_failure(event: OutboxEventDTO, error: str, max_attempts: int,
                             session: AsyncSession | Session) -> OutboxEventStatus:
        """Count a failed attempt; the event is given up once max_attempts is reached."""
        attempts = event.attempts + 1
        status = OutboxEventStatus.FAILED if attempts >= max_attempts else OutboxEventStatus.PENDING
        stmt = (update(OutboxEvent)
                .where(OutboxEvent.id == event.id)
                .values(status=status,
                        attempts=attempts,
                        last_error=error[:1000],
                        processed_at=datetime.datetime.now() if status == OutboxEventStatus.FAILED else None))
        await session_execute(stmt, session)
        await session_flush(session)
        return status
