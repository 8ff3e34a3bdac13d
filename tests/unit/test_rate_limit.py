"""Tests for the sliding-window rate limiter and in-memory usage accountant."""

from __future__ import annotations

import pytest

from lumen_ai.providers.rate_limit import (
    IRateLimiter,
    IUsageAccountant,
    MemoryUsageAccountant,
    SlidingWindowRateLimiter,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestSlidingWindowRateLimiter:
    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self) -> None:
        limiter = SlidingWindowRateLimiter(2, clock=FakeClock())
        assert (await limiter.check_and_consume("u1")).allowed
        assert (await limiter.check_and_consume("u1")).allowed
        decision = await limiter.check_and_consume("u1")
        assert not decision.allowed
        assert "2/2" in decision.reason

    @pytest.mark.asyncio
    async def test_window_slides(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(1, window_seconds=60, clock=clock)
        assert (await limiter.check_and_consume("u1")).allowed
        clock.now = 59.0
        assert not (await limiter.check_and_consume("u1")).allowed
        clock.now = 60.0
        assert (await limiter.check_and_consume("u1")).allowed

    @pytest.mark.asyncio
    async def test_subjects_are_independent(self) -> None:
        limiter = SlidingWindowRateLimiter(1, clock=FakeClock())
        assert (await limiter.check_and_consume("u1")).allowed
        assert (await limiter.check_and_consume("u2")).allowed

    @pytest.mark.asyncio
    async def test_denied_call_consumes_nothing(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(3, clock=clock)
        assert not (await limiter.check_and_consume("u1", cost=4)).allowed
        assert (await limiter.check_and_consume("u1", cost=3)).allowed

    @pytest.mark.asyncio
    async def test_idle_subject_is_forgotten(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(5, window_seconds=60, clock=clock)
        await limiter.check_and_consume("u1")
        assert len(limiter) == 1
        clock.now = 61.0
        await limiter.check_and_consume("u1", cost=0)
        assert len(limiter) == 0

    @pytest.mark.asyncio
    async def test_denied_first_call_tracks_nothing(self) -> None:
        limiter = SlidingWindowRateLimiter(1, clock=FakeClock())
        assert not (await limiter.check_and_consume("u1", cost=2)).allowed
        assert len(limiter) == 0

    @pytest.mark.asyncio
    async def test_prune_drops_every_expired_subject(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(5, window_seconds=60, clock=clock)
        for subject in ("u1", "u2", "u3"):
            await limiter.check_and_consume(subject)
        clock.now = 30.0
        await limiter.check_and_consume("u4")
        clock.now = 70.0
        assert await limiter.prune() == 3
        assert len(limiter) == 1

    def test_satisfies_protocol(self) -> None:
        assert isinstance(SlidingWindowRateLimiter(), IRateLimiter)


class TestMemoryUsageAccountant:
    @pytest.mark.asyncio
    async def test_totals_per_subject(self) -> None:
        accountant = MemoryUsageAccountant()
        await accountant.record("u1", "gpt-4o", 100, 50, 0.01)
        await accountant.record("u1", "gpt-4o", 10, 5, 0.002)
        await accountant.record("u2", "gemini-pro", 1, 1, 0.0)

        totals = accountant.totals_for("u1")
        assert totals.requests == 2
        assert totals.input_tokens == 110
        assert totals.output_tokens == 55
        assert totals.cost == pytest.approx(0.012)
        assert len(accountant.records) == 3

    def test_unknown_subject_has_zero_totals(self) -> None:
        assert MemoryUsageAccountant().totals_for("nobody").requests == 0

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryUsageAccountant(), IUsageAccountant)
