"""Typed entities used across the engine."""

from ridenav.models._base import RideNavBaseModel
from ridenav.models.location import Coordinate, Destination, LocationSample
from ridenav.models.motor import MotorProfile
from ridenav.models.route import RouteCandidate, RoutePlan
from ridenav.models.trip import (
    BackgroundSnapshot,
    FuelRange,
    StatsSnapshot,
    TrackingStats,
    TripLocation,
    TripRecord,
    TripSession,
    TripStatus,
)

__all__ = [
    "BackgroundSnapshot",
    "Coordinate",
    "Destination",
    "FuelRange",
    "LocationSample",
    "MotorProfile",
    "RideNavBaseModel",
    "RouteCandidate",
    "RoutePlan",
    "StatsSnapshot",
    "TrackingStats",
    "TripLocation",
    "TripRecord",
    "TripSession",
    "TripStatus",
]
