"""Outbox Dispatch Job

Delivers the side effects recorded next to committed writes:
- order_created: request the PayPal payment link, store it on the order,
  mail the order confirmation

Failed events stay pending and are retried on the next cycle until
OUTBOX_MAX_ATTEMPTS is reached, then they are marked failed. The order
itself is never changed or rolled back by a failed dispatch.

Started as a background task by the app lifespan.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import get_db_session, session_rollback
from enums.outbox_event import OutboxEventType, OutboxEventStatus
from exceptions import OrderNotFoundException, PaymentLinkException
from models.outbox_event import OutboxEventDTO
from repositories.order import OrderRepository
from repositories.outbox import OutboxRepository
from services.notification import NotificationService
from services.payment import PaymentService
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class OutboxDispatchError(Exception):
    """Raised when a side effect was not delivered and the event should be retried."""
    pass


async def dispatch_order_created(event: OutboxEventDTO, session: AsyncSession | Session) -> None:
    order_id = event.payload["order_id"]
    order = await OrderRepository.get_detail(order_id, None, session)
    if order is None:
        raise OrderNotFoundException(order_id)

    # Skipped on retries once the link is stored
    link = (order.payment_detail or {}).get("link")
    if not link:
        try:
            payment_link = await PaymentService.create_payment_link(order.total_amount, order.currency, order.id)
            async with TransactionManager.atomic(session, "payment link storage"):
                await OrderRepository.update(order.id, {"payment_detail": payment_link.model_dump()}, session)
            link = payment_link.link
        except PaymentLinkException:
            if event.attempts + 1 < config.OUTBOX_MAX_ATTEMPTS:
                raise
            logger.warning(f"[Outbox] Giving up on payment link for order {order_id}, mailing without it")
            link = None

    sent = await NotificationService.send_order_confirmation(order, link)
    if not sent:
        raise OutboxDispatchError(f"confirmation mail for order {order_id} not delivered")


HANDLERS = {
    OutboxEventType.ORDER_CREATED: dispatch_order_created,
}


async def dispatch_event(event: OutboxEventDTO, session: AsyncSession | Session) -> OutboxEventStatus:
    """Run the handler of one event and record the outcome."""
    handler = HANDLERS[event.event_type]
    try:
        await handler(event, session)
    except Exception as e:
        await session_rollback(session)
        async with TransactionManager.atomic(session, "outbox failure record"):
            status = await OutboxRepository.record_failure(event, f"{type(e).__name__}: {e}",
                                                           config.OUTBOX_MAX_ATTEMPTS, session)
        if status == OutboxEventStatus.FAILED:
            logger.error(f"[Outbox] ❌ Event {event.id} ({event.event_type.value}) failed permanently: {e}")
        else:
            logger.warning(f"[Outbox] Event {event.id} ({event.event_type.value}) attempt "
                           f"{event.attempts + 1}/{config.OUTBOX_MAX_ATTEMPTS} failed: {e}")
        return status

    async with TransactionManager.atomic(session, "outbox completion"):
        await OutboxRepository.mark_done(event.id, session)
    logger.info(f"[Outbox] ✅ Event {event.id} ({event.event_type.value}) delivered")
    return OutboxEventStatus.DONE


async def run_dispatch_cycle() -> int:
    """Dispatch one batch of pending events. Returns the number of events handled."""
    async with get_db_session() as session:
        events = await OutboxRepository.get_pending(config.OUTBOX_BATCH_SIZE, session)
        for event in events:
            await dispatch_event(event, session)
    if len(events) > 0:
        logger.info(f"[Outbox] Dispatch cycle handled {len(events)} event(s)")
    return len(events)


async def outbox_dispatcher():
    """Poll for pending events until cancelled."""
    logger.info(f"[Outbox] Dispatcher started (interval: {config.OUTBOX_POLL_INTERVAL_SECONDS}s, "
                f"max attempts: {config.OUTBOX_MAX_ATTEMPTS})")

    while True:
        try:
            await run_dispatch_cycle()
            await asyncio.sleep(config.OUTBOX_POLL_INTERVAL_SECONDS)

        except asyncio.CancelledError:
            logger.info("[Outbox] Dispatcher stopped")
            break
        except Exception as e:
            logger.error(f"[Outbox] Dispatcher error: {e}", exc_info=True)
            await asyncio.sleep(config.OUTBOX_POLL_INTERVAL_SECONDS)
