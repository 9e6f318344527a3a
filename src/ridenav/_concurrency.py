"""Admission control and cancellation primitives for async operations."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable

from ridenav.exceptions import RideNavCancelledError

_logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_token_ids = itertools.count(1)


class CancellationToken:
    """Cancellation state for exactly one asynchronous operation.

    A token is created per operation and never reused.  Completions check
    :attr:`cancelled` (or call :meth:`raise_if_cancelled`) before mutating
    anything; a token may optionally own the task running the operation so
    that :meth:`cancel` also interrupts it.
    """

    def __init__(self, name: str = "operation") -> None:
        self.name = name
        self.token_id = next(_token_ids)
        self._cancelled = False
        self._task: asyncio.Task[object] | None = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "live"
        return f"<CancellationToken {self.name}#{self.token_id} {state}>"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach(self, task: asyncio.Task[object]) -> None:
        """Bind *task* so it is cancelled together with the token."""
        self._task = task
        if self._cancelled:
            task.cancel()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        _logger.debug("Cancelled %r", self)
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RideNavCancelledError(f"{self.name}#{self.token_id} was cancelled")


class RateLimiter:
    """Admit at most one call per ``min_interval`` seconds.

    Calls arriving sooner are rejected, never queued.  The interval is
    measured from the last *admitted* call.
    """

    def __init__(self, min_interval: float, *, clock: Clock = time.monotonic) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._last_admitted: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def try_acquire(self) -> bool:
        now = self._clock()
        if self._last_admitted is not None and now - self._last_admitted < self._min_interval:
            return False
        self._last_admitted = now
        return True

    def reset(self) -> None:
        self._last_admitted = None
