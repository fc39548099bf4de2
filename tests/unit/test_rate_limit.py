import asyncio

import pytest

from app.core.config import Settings
from app.core.rate_limit import InMemoryRateLimiter, RateLimitRule, message_send_key


@pytest.mark.asyncio
async def test_rate_limiter_blocks_after_limit() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=2, window_seconds=60)

    assert await limiter.allow(message_send_key(1), rule)
    assert await limiter.allow(message_send_key(1), rule)
    assert not await limiter.allow(message_send_key(1), rule)


@pytest.mark.asyncio
async def test_rate_limiter_keys_are_per_user() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=1, window_seconds=60)

    assert await limiter.allow(message_send_key(1), rule)
    assert await limiter.allow(message_send_key(2), rule)
    assert not await limiter.allow(message_send_key(1), rule)


@pytest.mark.asyncio
async def test_rate_limiter_resets_after_window() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=1, window_seconds=1)

    assert await limiter.allow(message_send_key(3), rule)
    assert not await limiter.allow(message_send_key(3), rule)

    await asyncio.sleep(1.05)
    assert await limiter.allow(message_send_key(3), rule)


@pytest.mark.asyncio
async def test_reset_clears_history() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule(limit=1, window_seconds=60)

    assert await limiter.allow(message_send_key(4), rule)
    await limiter.reset(message_send_key(4))
    assert await limiter.allow(message_send_key(4), rule)


@pytest.mark.asyncio
async def test_non_positive_limit_disables_limiting() -> None:
    limiter = InMemoryRateLimiter()
    rule = RateLimitRule.for_messages(Settings(message_rate_limit=0))

    for _ in range(10):
        assert await limiter.allow(message_send_key(5), rule)
