"""
Rate Limiter Tests

Uses fakeredis, no Redis server needed.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from enums.rate_limit_operation import RateLimitOperation
from exceptions import RateLimitExceededException
from middleware.rate_limit import RateLimiter


class TestRateLimiter:

    @pytest.mark.asyncio
    async def test_counts_until_limit(self, redis_client):
        limiter = RateLimiter(redis_client)

        results = [await limiter.is_rate_limited(RateLimitOperation.ORDER_CREATE, "user:1", 3, 3600)
                   for _ in range(4)]

        assert [limited for limited, _, _ in results] == [False, False, False, True]
        assert results[1] == (False, 2, 1)

    @pytest.mark.asyncio
    async def test_window_expiry_set_on_first_hit(self, redis_client):
        limiter = RateLimiter(redis_client)

        await limiter.is_rate_limited(RateLimitOperation.ORDER_CREATE, "user:1", 3, 3600)

        assert 0 < await redis_client.ttl("rate_limit:order_create:user:1") <= 3600

    @pytest.mark.asyncio
    async def test_identities_and_operations_are_independent(self, redis_client):
        limiter = RateLimiter(redis_client)
        await limiter.enforce(RateLimitOperation.ORDER_CREATE, "user:1", 1, 3600)

        await limiter.enforce(RateLimitOperation.ORDER_CREATE, "user:2", 1, 3600)
        await limiter.enforce(RateLimitOperation.PROMO_CODE_APPLY, "user:1", 1, 3600)

        with pytest.raises(RateLimitExceededException) as exc_info:
            await limiter.enforce(RateLimitOperation.ORDER_CREATE, "user:1", 1, 3600)
        assert 0 < exc_info.value.retry_after <= 3600

    @pytest.mark.asyncio
    async def test_reset_limit(self, redis_client):
        limiter = RateLimiter(redis_client)
        await limiter.enforce(RateLimitOperation.PROMO_CODE_APPLY, "ip:203.0.113.7", 1, 3600)

        await limiter.reset_limit(RateLimitOperation.PROMO_CODE_APPLY, "ip:203.0.113.7")

        await limiter.enforce(RateLimitOperation.PROMO_CODE_APPLY, "ip:203.0.113.7", 1, 3600)
        assert await limiter.get_remaining_time(RateLimitOperation.ORDER_CREATE, "ip:203.0.113.7") == 0

    @pytest.mark.asyncio
    async def test_fails_open_when_redis_is_down(self):
        broken_redis = AsyncMock()
        broken_redis.incr.side_effect = RedisConnectionError("Connection refused")
        broken_redis.ttl.side_effect = RedisConnectionError("Connection refused")
        limiter = RateLimiter(broken_redis)

        result = await limiter.is_rate_limited(RateLimitOperation.ORDER_CREATE, "user:1", 5, 3600)
        await limiter.enforce(RateLimitOperation.ORDER_CREATE, "user:1", 5, 3600)

        assert result == (False, 0, 5)
