"""
Rate Limiting

Redis-based fixed-window counters per identity and operation.

Features:
- Per-identity limit on order creation
- Per-identity limit on promo code attempts (stops code guessing)
- Automatic expiry using Redis TTL
- Fails open: a Redis outage never blocks checkout

Configuration:
- MAX_ORDERS_PER_IDENTITY_PER_HOUR
- MAX_PROMO_CODE_ATTEMPTS_PER_HOUR
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from enums.rate_limit_operation import RateLimitOperation
from exceptions import RateLimitExceededException

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Usage:
        limiter = RateLimiter(redis)
        await limiter.enforce(RateLimitOperation.ORDER_CREATE, "user:5", max_count=5, window_seconds=3600)
    """

    def __init__(self, redis: Redis):
        self.redis = redis

    @staticmethod
    def _key(operation: RateLimitOperation, identity: str) -> str:
        return f"rate_limit:{operation.value}:{identity}"

    async def is_rate_limited(
        self,
        operation: RateLimitOperation,
        identity: str,
        max_count: int,
        window_seconds: int
    ) -> tuple[bool, int, int]:
        """
        Count one more operation for identity and check it against the limit.

        Args:
            operation: Operation whose counter is incremented
            identity: Cart identity key ("user:<id>" or "ip:<addr>")
            max_count: Maximum allowed operations in the window
            window_seconds: Window length, starts with the first operation

        Returns:
            Tuple of (is_limited, current_count, remaining_count)
        """
        key = self._key(operation, identity)

        try:
            current_count = await self.redis.incr(key)

            # Set expiry on first increment
            if current_count == 1:
                await self.redis.expire(key, window_seconds)

            is_limited = current_count > max_count
            remaining = max(0, max_count - current_count)

            if is_limited:
                ttl = await self.redis.ttl(key)
                logger.warning(
                    f"Rate limit exceeded: identity={identity}, operation={operation.value}, "
                    f"count={current_count}/{max_count}, resets_in={ttl}s"
                )

            return is_limited, current_count, remaining

        except (RedisError, OSError) as e:
            logger.error(f"Rate limiter error, allowing {operation.value}: {e}")
            return False, 0, max_count

    async def enforce(
        self,
        operation: RateLimitOperation,
        identity: str,
        max_count: int,
        window_seconds: int
    ) -> None:
        """Raise RateLimitExceededException when identity is over the limit."""
        is_limited, _, _ = await self.is_rate_limited(operation, identity, max_count, window_seconds)
        if is_limited:
            retry_after = await self.get_remaining_time(operation, identity)
            raise RateLimitExceededException(operation.value, retry_after)

    async def reset_limit(self, operation: RateLimitOperation, identity: str):
        await self.redis.delete(self._key(operation, identity))
        logger.info(f"Rate limit reset: identity={identity}, operation={operation.value}")

    async def get_remaining_time(self, operation: RateLimitOperation, identity: str) -> int:
        """Seconds until the window resets (0 if no window is open)."""
        try:
            ttl = await self.redis.ttl(self._key(operation, identity))
        except (RedisError, OSError):
            return 0
        return ttl if ttl > 0 else 0
