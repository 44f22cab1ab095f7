"""
Fixed-window limiter behaviour against an in-memory counter store.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.services.rate_limiter import RateLimiter, RateLimitPolicy
from src.domain.entities import RateLimitCounter

ACTION = "password_reset:email"
POLICY = RateLimitPolicy(max_requests=3, window=timedelta(hours=1), block_duration=timedelta(minutes=15))


class InMemoryCounters:
    def __init__(self):
        self.rows = {}

    async def get_or_create(self, identity, action, now):
        key = (identity, action)
        if key in self.rows:
            return self.rows[key], False
        counter = RateLimitCounter(
            id=uuid4(), identity=identity, action=action, request_count=1, window_start=now, updated_at=now
        )
        self.rows[key] = counter
        return counter, True

    def _by_id(self, counter_id):
        return next(c for c in self.rows.values() if c.id == counter_id)

    async def restart_window(self, counter_id, expected_window_start, now):
        counter = self._by_id(counter_id)
        if counter.window_start != expected_window_start:
            return False
        counter.window_start = now
        counter.request_count = 1
        counter.blocked_until = None
        return True

    async def increment(self, counter_id, now):
        counter = self._by_id(counter_id)
        counter.request_count += 1
        return counter.request_count

    async def block(self, counter_id, blocked_until, now):
        self._by_id(counter_id).blocked_until = blocked_until


class Clock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0)

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now += delta


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def counters():
    return InMemoryCounters()


@pytest.fixture
def limiter(counters, audit_log, clock):
    uow = MagicMock()
    uow.rate_limit_counters = counters
    uow.commit = AsyncMock()

    @asynccontextmanager
    async def factory():
        yield uow

    return RateLimiter(factory, {ACTION: POLICY}, audit_log, clock=clock)


@pytest.mark.asyncio
async def test_allows_up_to_the_ceiling(limiter):
    remaining = [(await limiter.check_and_consume("a@example.com", ACTION)).remaining_requests for _ in range(3)]

    assert remaining == [2, 1, 0]


@pytest.mark.asyncio
async def test_request_over_ceiling_is_rejected_and_blocks(limiter, clock):
    for _ in range(3):
        await limiter.check_and_consume("a@example.com", ACTION)

    decision = await limiter.check_and_consume("a@example.com", ACTION)

    assert decision.allowed is False
    assert decision.remaining_requests == 0
    # Blocked until the window ends plus the block duration
    assert decision.reset_time == clock.now + timedelta(hours=1, minutes=15)
    assert decision.wait_time_ms == 75 * 60 * 1000


@pytest.mark.asyncio
async def test_block_outlives_the_window(limiter, clock):
    for _ in range(4):
        await limiter.check_and_consume("a@example.com", ACTION)

    clock.advance(timedelta(hours=1, minutes=5))
    still_blocked = await limiter.check_and_consume("a@example.com", ACTION)
    clock.advance(timedelta(minutes=11))
    released = await limiter.check_and_consume("a@example.com", ACTION)

    assert still_blocked.allowed is False
    assert still_blocked.wait_time_ms == 10 * 60 * 1000
    assert released.allowed is True
    assert released.remaining_requests == 2


@pytest.mark.asyncio
async def test_window_restart(limiter, clock):
    for _ in range(3):
        await limiter.check_and_consume("a@example.com", ACTION)

    clock.advance(timedelta(hours=1))
    decision = await limiter.check_and_consume("a@example.com", ACTION)

    assert decision.allowed is True
    assert decision.remaining_requests == 2
    assert decision.reset_time == clock.now + timedelta(hours=1)


@pytest.mark.asyncio
async def test_identities_are_case_insensitive_and_independent(limiter):
    for _ in range(3):
        await limiter.check_and_consume("A@Example.com", ACTION)

    same = await limiter.check_and_consume("a@example.com", ACTION)
    other = await limiter.check_and_consume("b@example.com", ACTION)

    assert same.allowed is False
    assert other.allowed is True


@pytest.mark.asyncio
async def test_store_failure_fails_open(audit_log, clock, audit_calls):
    @asynccontextmanager
    async def broken_factory():
        raise ConnectionError("db down")
        yield

    limiter = RateLimiter(broken_factory, {ACTION: POLICY}, audit_log, clock=clock)

    decision = await limiter.check_and_consume("a@example.com", ACTION)

    assert decision.allowed is True
    assert decision.remaining_requests == 3
    (entry,) = audit_calls("rate_limit_store_unavailable")
    assert entry.args[1] is False
