"""Arrival detection."""

from __future__ import annotations

import logging

from ridenav.config import RideNavConfig
from ridenav.geo import distance_between
from ridenav.models.location import Coordinate, LocationSample

_logger = logging.getLogger(__name__)


class ArrivalDetector:
    """Edge-triggered check for reaching the destination.

    :meth:`evaluate` returns ``True`` for the first sample within
    ``config.arrival_threshold_m`` of the destination and ``False`` for
    every later sample until :meth:`reset`.
    """

    def __init__(self, config: RideNavConfig) -> None:
        self._threshold_m = config.arrival_threshold_m
        self._arrived = False
        self.last_distance_m: float | None = None

    @property
    def arrived(self) -> bool:
        return self._arrived

    def evaluate(self, sample: LocationSample, destination: Coordinate | None) -> bool:
        if destination is None:
            return False
        distance_m = distance_between(sample.as_tuple(), destination.as_tuple())
        self.last_distance_m = distance_m
        if self._arrived or distance_m > self._threshold_m:
            return False
        self._arrived = True
        _logger.info("Arrived within %.0f m of destination", distance_m)
        return True

    def reset(self) -> None:
        self._arrived = False
        self.last_distance_m = None
