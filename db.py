from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
import logging

from sqlalchemy import event, Engine, Result, CursorResult
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import Session

import config
from models.base import Base

"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.user import User
from models.offer_plan import OfferPlan
from models.product import Product
from models.pack_size import PackSize
from models.promo_code import PromoCode
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem
from models.outbox_event import OutboxEvent

logger = logging.getLogger(__name__)

# HARD DISABLE SQL echo, SQL loggers are silenced in utils/logging_config.py
sql_echo = False

engine = create_async_engine(config.DB_URL, echo=sql_echo)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

if config.DB_URL.startswith("sqlite") and ":memory:" not in config.DB_URL:
    data_folder = Path("data")
    if data_folder.exists() is False:
        data_folder.mkdir()


@asynccontextmanager
async def get_db_session() -> AsyncSession:
    session = None
    try:
        async with session_maker() as async_session:
            session = async_session
            yield session
    finally:
        if session is not None:
            await session.close()


async def get_session():
    """FastAPI dependency yielding one session per request."""
    async with get_db_session() as session:
        yield session


async def session_execute(stmt, session: AsyncSession | Session) -> Result[Any] | CursorResult[Any]:
    if isinstance(session, AsyncSession):
        query_result = await session.execute(stmt)
        return query_result
    else:
        query_result = session.execute(stmt)
        return query_result


async def session_flush(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.flush()
    else:
        session.flush()


async def session_commit(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.commit()
    else:
        session.commit()


async def session_rollback(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.rollback()
    else:
        session.rollback()


async def session_refresh(session: AsyncSession | Session, instance) -> None:
    if isinstance(session, AsyncSession):
        await session.refresh(instance)
    else:
        session.refresh(instance)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Only SQLite understands PRAGMA; other backends enforce FKs natively
    if "sqlite" not in type(dbapi_connection).__module__:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[DB] Tables ensured: {', '.join(sorted(Base.metadata.tables.keys()))}")
