"""Tests for the per-user sliding window rate limiter."""

from datetime import timedelta
from uuid import uuid4

import pytest

from socialfeed.services.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimitRule,
    SlidingWindowRateLimiter,
)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(clock=clock)


class TestRateLimitRule:
    """Parsing limit strings into rules."""

    @pytest.mark.parametrize(
        "value,max_requests,window_ms",
        [
            ("10/minute", 10, 60_000),
            ("3/5minutes", 3, 300_000),
            ("5/hour", 5, 3_600_000),
            ("20 per second", 20, 1_000),
        ],
    )
    def test_parse(self, value, max_requests, window_ms):
        rule = RateLimitRule.parse(value)
        assert rule.max_requests == max_requests
        assert rule.window_ms == window_ms

    def test_retry_after_rounds_up_to_whole_seconds(self):
        assert RateLimitRule(1, 1500).retry_after_seconds == 2
        assert RateLimitRule(1, 60_000).retry_after_seconds == 60


class TestSlidingWindow:
    """SlidingWindowRateLimiter.allow() behaviour."""

    async def test_calls_within_limit_are_allowed_and_next_is_rejected(
        self, limiter: SlidingWindowRateLimiter, clock: FakeClock
    ):
        rule = RateLimitRule(max_requests=3, window_ms=1000)
        user_id = uuid4()

        results = []
        for _ in range(4):
            results.append(await limiter.allow(user_id, "post:create", rule))
            clock.advance(100)

        assert results == [True, True, True, False]

    async def test_call_after_window_elapses_is_allowed(
        self, limiter: SlidingWindowRateLimiter, clock: FakeClock
    ):
        rule = RateLimitRule(max_requests=3, window_ms=1000)
        user_id = uuid4()
        for _ in range(3):
            assert await limiter.allow(user_id, "post:create", rule)
        assert not await limiter.allow(user_id, "post:create", rule)

        clock.advance(1000)

        assert await limiter.allow(user_id, "post:create", rule)

    async def test_window_slides_with_oldest_call(
        self, limiter: SlidingWindowRateLimiter, clock: FakeClock
    ):
        """Capacity frees up one call at a time as each call ages out."""
        rule = RateLimitRule(max_requests=2, window_ms=1000)
        user_id = uuid4()

        assert await limiter.allow(user_id, "like", rule)  # t=0
        clock.advance(600)
        assert await limiter.allow(user_id, "like", rule)  # t=600
        clock.advance(300)
        assert not await limiter.allow(user_id, "like", rule)  # t=900
        clock.advance(100)
        assert await limiter.allow(user_id, "like", rule)  # t=1000, first call expired
        assert not await limiter.allow(user_id, "like", rule)

    async def test_rejected_calls_do_not_extend_the_window(
        self, limiter: SlidingWindowRateLimiter, clock: FakeClock
    ):
        rule = RateLimitRule(max_requests=1, window_ms=1000)
        user_id = uuid4()

        assert await limiter.allow(user_id, "edit", rule)
        for _ in range(5):
            clock.advance(150)
            assert not await limiter.allow(user_id, "edit", rule)
        clock.advance(250)

        assert await limiter.allow(user_id, "edit", rule)

    async def test_limits_are_per_user(self, limiter: SlidingWindowRateLimiter):
        rule = RateLimitRule(max_requests=1, window_ms=1000)

        assert await limiter.allow(uuid4(), "post:create", rule)
        assert await limiter.allow(uuid4(), "post:create", rule)

    async def test_limits_are_per_action(self, limiter: SlidingWindowRateLimiter):
        rule = RateLimitRule(max_requests=1, window_ms=1000)
        user_id = uuid4()

        assert await limiter.allow(user_id, "post:create", rule)
        assert await limiter.allow(user_id, "comment:create", rule)
        assert not await limiter.allow(user_id, "post:create", rule)

    async def test_reset_clears_all_windows(self, limiter: SlidingWindowRateLimiter):
        rule = RateLimitRule(max_requests=1, window_ms=60_000)
        user_id = uuid4()
        assert await limiter.allow(user_id, "post:create", rule)

        await limiter.reset()

        assert await limiter.allow(user_id, "post:create", rule)

    async def test_default_clock_follows_wall_time(self, frozen_time):
        limiter = SlidingWindowRateLimiter()
        rule = RateLimitRule.parse("2/minute")
        user_id = uuid4()

        with frozen_time("2026-02-01 12:00:00") as frozen:
            assert await limiter.allow(user_id, "post:like", rule)
            assert await limiter.allow(user_id, "post:like", rule)
            assert not await limiter.allow(user_id, "post:like", rule)

            frozen.tick(timedelta(seconds=60))

            assert await limiter.allow(user_id, "post:like", rule)

    def test_key_format(self):
        assert SlidingWindowRateLimiter.key_for("u1", "post:create") == "post:create:u1"


class TestInMemoryStore:
    """InMemoryRateLimitStore pruning."""

    async def test_expired_entries_are_pruned(self):
        store = InMemoryRateLimitStore()
        await store.increment("k", 0)
        await store.increment("k", 500)

        assert await store.count_in_window("k", 1000, 1000) == 1
        assert await store.count_in_window("k", 1500, 1000) == 0

    async def test_unknown_key_counts_zero(self):
        assert await InMemoryRateLimitStore().count_in_window("nope", 0, 1000) == 0
