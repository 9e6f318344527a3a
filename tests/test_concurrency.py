from __future__ import annotations

import asyncio

import pytest

from ridenav._concurrency import CancellationToken, RateLimiter
from ridenav.exceptions import RideNavCancelledError, RideNavError


def test_live_token_passes_check() -> None:
    token = CancellationToken("plan_routes")
    token.raise_if_cancelled()
    assert not token.cancelled


def test_cancelled_token_raises_on_check() -> None:
    token = CancellationToken("reroute")
    token.cancel()
    token.cancel()

    with pytest.raises(RideNavCancelledError, match="reroute#"):
        token.raise_if_cancelled()
    assert issubclass(RideNavCancelledError, RideNavError)
    assert "cancelled" in repr(token)


@pytest.mark.asyncio
async def test_cancel_interrupts_attached_task() -> None:
    token = CancellationToken("fuel_sync")
    task = asyncio.ensure_future(asyncio.sleep(10))
    token.attach(task)

    token.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()


@pytest.mark.asyncio
async def test_attach_after_cancel_cancels_immediately() -> None:
    token = CancellationToken()
    token.cancel()
    task = asyncio.ensure_future(asyncio.sleep(10))
    token.attach(task)

    with pytest.raises(asyncio.CancelledError):
        await task


def test_rate_limiter_drops_calls_inside_interval() -> None:
    now = [0.0]
    limiter = RateLimiter(2.0, clock=lambda: now[0])

    assert limiter.try_acquire()
    now[0] = 0.5
    assert not limiter.try_acquire()
    now[0] = 2.1
    assert limiter.try_acquire()
    now[0] = 2.2
    assert not limiter.try_acquire()
    limiter.reset()
    assert limiter.try_acquire()
