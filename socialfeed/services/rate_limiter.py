"""Per-user sliding window rate limiting for write and like actions."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from limits import parse


@dataclass(frozen=True)
class RateLimitRule:
    """At most ``max_requests`` calls within any ``window_ms`` interval."""

    max_requests: int
    window_ms: int

    @classmethod
    def parse(cls, value: str) -> "RateLimitRule":
        """Build a rule from a limit string such as ``"10/minute"`` or ``"3/5minutes"``."""
        item = parse(value)
        return cls(max_requests=item.amount, window_ms=item.get_expiry() * 1000)

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.window_ms / 1000)


class RateLimitStore(Protocol):
    """
    Key-value storage for request timestamps.

    The in-memory store is process-local; a shared store (e.g. Redis) must be
    plugged in for the limits to hold across several API instances.
    """

    async def count_in_window(self, key: str, now_ms: float, window_ms: int) -> int: ...

    async def increment(self, key: str, now_ms: float) -> None: ...

    async def reset(self) -> None: ...


class InMemoryRateLimitStore:
    """Timestamp lists per key, pruned lazily on every count."""

    def __init__(self) -> None:
        self._hits: dict[str, list[float]] = {}

    async def count_in_window(self, key: str, now_ms: float, window_ms: int) -> int:
        hits = [ts for ts in self._hits.get(key, []) if now_ms - ts < window_ms]
        if hits:
            self._hits[key] = hits
        else:
            self._hits.pop(key, None)
        return len(hits)

    async def increment(self, key: str, now_ms: float) -> None:
        self._hits.setdefault(key, []).append(now_ms)

    async def reset(self) -> None:
        self._hits.clear()


def _now_ms() -> float:
    return time.time() * 1000


class SlidingWindowRateLimiter:
    """Decides whether a user may perform an action right now."""

    def __init__(
        self,
        store: RateLimitStore | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock

    @staticmethod
    def key_for(user_id: UUID | str, action: str) -> str:
        return f"{action}:{user_id}"

    async def allow(self, user_id: UUID | str, action: str, rule: RateLimitRule) -> bool:
        """
        Record the call and return True, or return False when the window is full.

        Rejected calls are not recorded, so a client that keeps retrying
        regains access as soon as its oldest accepted call leaves the window.
        """
        key = self.key_for(user_id, action)
        now = self._clock()
        if await self.store.count_in_window(key, now, rule.window_ms) >= rule.max_requests:
            return False
        await self.store.increment(key, now)
        return True

    async def reset(self) -> None:
        await self.store.reset()
