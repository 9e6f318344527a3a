"""ridenav - Navigation and trip lifecycle engine for motorcycle riders."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ridenav")
except PackageNotFoundError:
    __version__ = "0+local"
from ridenav.arrival import ArrivalDetector
from ridenav.background import BackgroundHandoff, BackgroundTracker
from ridenav.cache import CacheKind, LocalCache, MemoryCacheStore
from ridenav.config import RideNavConfig
from ridenav.controller import SessionController
from ridenav.exceptions import (
    RideNavApiError,
    RideNavCancelledError,
    RideNavConfigError,
    RideNavError,
    RideNavNoRouteError,
    RideNavPersistenceError,
    RideNavTransportError,
    RideNavValidationError,
)
from ridenav.models import (
    BackgroundSnapshot,
    Coordinate,
    Destination,
    FuelRange,
    LocationSample,
    MotorProfile,
    RouteCandidate,
    RoutePlan,
    StatsSnapshot,
    TrackingStats,
    TripRecord,
    TripSession,
    TripStatus,
)
from ridenav.persistence import TripPersistence
from ridenav.planner import RoutePlanner
from ridenav.reroute import OffRouteMonitor
from ridenav.state import FlowEvent, SessionState, Transition, TransitionRequest
from ridenav.tracker import LocationTracker, PositionSource, PositionSubscription

__all__ = [
    "__version__",
    "ArrivalDetector",
    "BackgroundHandoff",
    "BackgroundSnapshot",
    "BackgroundTracker",
    "CacheKind",
    "Coordinate",
    "Destination",
    "FlowEvent",
    "FuelRange",
    "LocalCache",
    "LocationSample",
    "LocationTracker",
    "MemoryCacheStore",
    "MotorProfile",
    "OffRouteMonitor",
    "PositionSource",
    "PositionSubscription",
    "RideNavApiError",
    "RideNavCancelledError",
    "RideNavConfig",
    "RideNavConfigError",
    "RideNavError",
    "RideNavNoRouteError",
    "RideNavPersistenceError",
    "RideNavTransportError",
    "RideNavValidationError",
    "RouteCandidate",
    "RoutePlan",
    "RoutePlanner",
    "SessionController",
    "SessionState",
    "StatsSnapshot",
    "TrackingStats",
    "Transition",
    "TransitionRequest",
    "TripPersistence",
    "TripRecord",
    "TripSession",
    "TripStatus",
]
