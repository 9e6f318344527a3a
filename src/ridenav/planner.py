"""Route planning with throttling and supersession."""

from __future__ import annotations

import asyncio
import logging
import time

from ridenav._api.directions import fetch_directions
from ridenav._concurrency import CancellationToken, Clock, RateLimiter
from ridenav._transport import Transport
from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavCancelledError
from ridenav.models.location import Coordinate
from ridenav.models.motor import MotorProfile
from ridenav.models.route import RoutePlan

_logger = logging.getLogger(__name__)


class RoutePlanner:
    """Issues directions requests on behalf of the session controller.

    Two admission rules apply:

    * at most one request per ``config.plan_min_interval`` seconds; calls
      arriving sooner are dropped and :meth:`plan_routes` returns ``None``;
    * a new admitted request supersedes the one in flight, whose late
      result is discarded (its caller also receives ``None``).

    Failures surface as :class:`~ridenav.exceptions.RideNavError`
    subclasses; the planner never falls back to a previous plan.
    """

    def __init__(
        self,
        config: RideNavConfig,
        transport: Transport,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self._config = config
        self._transport = transport
        self._limiter = RateLimiter(config.plan_min_interval, clock=clock)
        self._current: CancellationToken | None = None

    @property
    def in_flight(self) -> bool:
        return self._current is not None

    def cancel(self) -> None:
        """Cancel the in-flight request, if any."""
        if self._current is not None:
            self._current.cancel()
            self._current = None

    def reset(self) -> None:
        self.cancel()
        self._limiter.reset()

    async def plan_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        motor: MotorProfile,
    ) -> RoutePlan | None:
        """Plan routes from *origin* to *destination* for *motor*.

        Returns
        -------
        RoutePlan or None
            ``None`` when the call was throttled or superseded.
        """
        if not self._limiter.try_acquire():
            _logger.debug("Route request throttled (min interval %.1fs)", self._limiter.min_interval)
            return None

        self.cancel()
        token = CancellationToken("plan_routes")
        self._current = token
        requested_at_ms = int(time.time() * 1000)

        task = asyncio.ensure_future(
            fetch_directions(
                self._config,
                self._transport,
                origin,
                destination,
                motor.fuel_efficiency_km_per_liter,
            )
        )
        token.attach(task)
        try:
            candidates = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if token.cancelled and (current is None or not current.cancelling()):
                _logger.debug("Discarded superseded route request %r", token)
                return None
            raise
        finally:
            if self._current is token:
                self._current = None

        try:
            token.raise_if_cancelled()
        except RideNavCancelledError:
            _logger.debug("Discarded late route response for %r", token)
            return None

        plan = RoutePlan(
            origin=origin,
            destination=destination,
            candidates=tuple(candidates),
            requested_at_ms=requested_at_ms,
        )
        _logger.info(
            "Planned %d route(s), primary %.2f km rating %d",
            len(plan.candidates),
            plan.primary.distance_km,
            plan.primary.traffic_rating,
        )
        return plan
