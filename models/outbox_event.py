from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, JSON, DateTime, func, Index
from sqlalchemy import Enum as SQLEnum

from enums.outbox_event import OutboxEventType, OutboxEventStatus
from models.base import Base


class OutboxEvent(Base):
    """
    Side effect recorded in the same transaction as the write that caused it.

    jobs/outbox_dispatch_job.py delivers pending events after commit, so slow
    or failing mail / payment provider calls never hold up or undo the write.
    """
    __tablename__ = 'outbox_events'

    id = Column(Integer, primary_key=True)
    event_type = Column(SQLEnum(OutboxEventType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(SQLEnum(OutboxEventStatus, values_callable=lambda e: [m.value for m in e]),
                    nullable=False, default=OutboxEventStatus.PENDING)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('ix_outbox_events_status_created', 'status', 'created_at'),
    )


class OutboxEventDTO(BaseModel):
    id: int | None = None
    event_type: OutboxEventType | None = None
    payload: dict | None = None
    status: OutboxEventStatus | None = None
    attempts: int | None = None
    last_error: str | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None
