import asyncio
from collections import defaultdict, deque
from dataclasses import dataclass
from time import monotonic

from app.core.config import Settings


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    limit: int
    window_seconds: int

    @classmethod
    def for_messages(cls, settings: Settings) -> "RateLimitRule":
        return cls(
            limit=settings.message_rate_limit,
            window_seconds=settings.message_rate_window_seconds,
        )


def message_send_key(user_id: int) -> str:
    return f"messages:user:{user_id}"


class InMemoryRateLimiter:
    """Sliding-window limiter kept per process; keys are caller scoped."""

    def __init__(self) -> None:
        self._events: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def allow(self, key: str, rule: RateLimitRule) -> bool:
        if rule.limit <= 0:
            return True

        now = monotonic()
        window_start = now - rule.window_seconds

        async with self._lock:
            events = self._events[key]
            while events and events[0] <= window_start:
                events.popleft()

            if len(events) >= rule.limit:
                return False

            events.append(now)
            return True

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._events.pop(key, None)
