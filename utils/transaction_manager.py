import asyncio
import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from exceptions import ShopException, TransactionFailureException

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    One transaction per cart/order mutation.

    Everything written inside atomic() is committed together or rolled back
    together. Shop exceptions pass through unchanged after the rollback,
    persistence errors become TransactionFailureException (IntegrityError is
    re-raised as is so with_retry() can retry the whole operation).
    """

    MAX_RETRIES = 1
    RETRY_DELAY_BASE = 0.05  # seconds

    @staticmethod
    @asynccontextmanager
    async def atomic(session: AsyncSession | Session, operation: str) -> AsyncGenerator[Any, None]:
        """
        Usage:
            async with TransactionManager.atomic(session, "order creation"):
                await OrderRepository.create(..., session)
        """
        try:
            yield session
            await session_commit(session)
            logger.debug(f"Transaction for {operation} committed")
        except ShopException:
            await TransactionManager._rollback(session, operation)
            raise
        except IntegrityError:
            await TransactionManager._rollback(session, operation)
            raise
        except SQLAlchemyError as e:
            await TransactionManager._rollback(session, operation)
            logger.error(f"Persistence error during {operation}: {e}")
            raise TransactionFailureException(operation) from e

    @staticmethod
    async def _rollback(session: AsyncSession | Session, operation: str) -> None:
        try:
            await session_rollback(session)
            logger.info(f"Transaction for {operation} rolled back")
        except SQLAlchemyError as rollback_error:
            logger.critical(f"Failed to rollback transaction for {operation}: {rollback_error}")

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None):
        """
        Retry an operation that lost an insert race (IntegrityError).
        The last error is re-raised once the retries are used up.
        """
        max_retries = max_retries if max_retries is not None else TransactionManager.MAX_RETRIES
        delay_base = delay_base if delay_base is not None else TransactionManager.RETRY_DELAY_BASE

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                last_exception = None

                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except IntegrityError as e:
                        last_exception = e

                        if attempt == max_retries:
                            logger.error(f"{func.__name__} failed after {max_retries} retries: {e.orig}")
                            break

                        delay = delay_base * (2 ** attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, "
                                       f"retrying in {delay:.2f}s: {e.orig}")
                        await asyncio.sleep(delay)

                raise last_exception

            return wrapper
        return decorator
