"""Off-route detection."""

from __future__ import annotations

import logging

from ridenav.config import RideNavConfig
from ridenav.geo import distance_to_polyline
from ridenav.models.location import LocationSample
from ridenav.models.route import RouteCandidate

_logger = logging.getLogger(__name__)


class OffRouteMonitor:
    """Decides when the rider has left the active route.

    A reroute is warranted when navigation has been running for at least
    ``config.off_route_settle_seconds`` (measured on sample timestamps) and
    the sample lies further than ``config.deviation_threshold_m`` from the
    route path.  Only one reroute may be outstanding; :meth:`evaluate`
    returns ``False`` between :meth:`begin` and :meth:`complete`.
    """

    def __init__(self, config: RideNavConfig) -> None:
        self._threshold_m = config.deviation_threshold_m
        self._settle_ms = config.off_route_settle_seconds * 1000.0
        self._in_flight = False
        self.last_deviation_m: float | None = None

    @property
    def threshold_m(self) -> float:
        return self._threshold_m

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def evaluate(
        self,
        sample: LocationSample,
        route: RouteCandidate | None,
        navigation_started_ms: int | None,
    ) -> bool:
        """Whether *sample* should trigger a reroute."""
        if self._in_flight or route is None or not route.path_points or navigation_started_ms is None:
            return False
        if sample.timestamp_ms - navigation_started_ms < self._settle_ms:
            return False
        deviation_m = distance_to_polyline(sample.as_tuple(), route.path_points)
        self.last_deviation_m = deviation_m
        if deviation_m <= self._threshold_m:
            return False
        _logger.info("Off route by %.0f m (threshold %.0f m)", deviation_m, self._threshold_m)
        return True

    def begin(self) -> None:
        self._in_flight = True

    def complete(self) -> None:
        self._in_flight = False

    def reset(self) -> None:
        self._in_flight = False
        self.last_deviation_m = None
