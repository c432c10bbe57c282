import asyncio

import pytest

from rate_limiter import RateLimiter


def _limiter(clock, max_requests=3):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.advance(seconds)

    return RateLimiter(max_requests, clock=clock, sleep=fake_sleep), sleeps


def test_requests_within_budget_do_not_wait(clock):
    limiter, sleeps = _limiter(clock)

    async def _run():
        for _ in range(3):
            await limiter.acquire()
            clock.advance(1.0)

    asyncio.run(_run())
    assert sleeps == []
    assert limiter.count == 3


def test_request_over_budget_waits_for_window_reset(clock):
    limiter, sleeps = _limiter(clock)

    async def _run():
        for _ in range(3):
            await limiter.acquire()
        clock.advance(20.0)
        await limiter.acquire()

    asyncio.run(_run())
    assert sleeps == [pytest.approx(40.0)]
    assert limiter.count == 1
    assert limiter.window_start == pytest.approx(60.0)


def test_window_expiry_resets_count_without_waiting(clock):
    limiter, sleeps = _limiter(clock)

    async def _run():
        for _ in range(3):
            await limiter.acquire()
        clock.advance(61.0)
        await limiter.acquire()

    asyncio.run(_run())
    assert sleeps == []
    assert limiter.count == 1
    assert limiter.window_start == 61.0


def test_zero_budget_is_rejected():
    with pytest.raises(ValueError):
        RateLimiter(0)
