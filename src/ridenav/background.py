"""Foreground/background tracking handoff."""

from __future__ import annotations

import logging
from typing import Protocol

from ridenav.models.motor import MotorProfile
from ridenav.models.trip import BackgroundSnapshot, StatsSnapshot, TrackingStats

_logger = logging.getLogger(__name__)


class BackgroundTracker(Protocol):
    """Host-provided tracker that keeps recording while the app is suspended."""

    async def start(self, session_id: str, motor: MotorProfile, stats: StatsSnapshot) -> bool:
        ...

    async def stop(self) -> None:
        ...

    async def resume(self) -> BackgroundSnapshot | None:
        ...


class BackgroundHandoff:
    """Moves live tracking between the foreground and a background tracker.

    :meth:`suspend` and :meth:`resume` are symmetric; repeating either one
    without the other in between is a no-op.
    """

    def __init__(self, tracker: BackgroundTracker) -> None:
        self._tracker = tracker
        self._session_id: str | None = None

    @property
    def suspended(self) -> bool:
        return self._session_id is not None

    async def suspend(self, session_id: str, motor: MotorProfile, stats: TrackingStats) -> bool:
        """Hand *session_id* to the background tracker.

        Returns whether background tracking is active afterwards.
        """
        if self._session_id is not None:
            _logger.debug("Background tracking already active for %s", self._session_id)
            return True
        started = await self._tracker.start(session_id, motor, StatsSnapshot.from_stats(stats))
        if not started:
            _logger.warning("Background tracker refused session %s", session_id)
            return False
        self._session_id = session_id
        _logger.info("Session %s handed to background tracking", session_id)
        return True

    async def resume(self) -> BackgroundSnapshot | None:
        """Stop background tracking and return what it accumulated.

        Samples recorded for a different session are discarded.
        """
        session_id, self._session_id = self._session_id, None
        if session_id is None:
            return None
        await self._tracker.stop()
        snapshot = await self._tracker.resume()
        if snapshot is None:
            return None
        if snapshot.session_id is not None and snapshot.session_id != session_id:
            _logger.warning("Ignoring background snapshot for session %s (expected %s)", snapshot.session_id, session_id)
            return None
        _logger.info("Session %s resumed with %d background sample(s)", session_id, len(snapshot.samples))
        return snapshot

    async def release(self) -> None:
        """Stop background tracking without collecting its data."""
        session_id, self._session_id = self._session_id, None
        if session_id is not None:
            await self._tracker.stop()
