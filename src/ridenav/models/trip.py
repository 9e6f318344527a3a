"""Trip session, tracking statistics, and persisted trip record models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ridenav.models._base import RideNavBaseModel
from ridenav.models.location import Destination, LocationSample
from ridenav.models.route import RouteCandidate


class TripStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FuelRange(RideNavBaseModel):
    """Estimated fuel use in liters: ``min <= avg <= max``."""

    min: float
    max: float
    avg: float


class TrackingStats(RideNavBaseModel):
    """Derived live statistics for the current session."""

    distance_m: float = 0.0
    duration_s: float = 0.0
    current_speed_kmh: float = 0.0
    avg_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    remaining_distance_m: float | None = None
    eta_minutes: float | None = None
    fuel_consumed_liters: float = 0.0
    over_speed: bool = False

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0


class StatsSnapshot(RideNavBaseModel):
    """Summary handed to the background tracker when the app is suspended."""

    distance_km: float = 0.0
    duration_seconds: float = 0.0
    avg_speed_kmh: float = 0.0
    current_speed_kmh: float = 0.0
    fuel_consumed_liters: float = 0.0

    @classmethod
    def from_stats(cls, stats: TrackingStats) -> StatsSnapshot:
        return cls(
            distance_km=stats.distance_km,
            duration_seconds=stats.duration_s,
            avg_speed_kmh=stats.avg_speed_kmh,
            current_speed_kmh=stats.current_speed_kmh,
            fuel_consumed_liters=stats.fuel_consumed_liters,
        )


class BackgroundSnapshot(RideNavBaseModel):
    """What the background tracker accumulated while the app was suspended."""

    session_id: str | None = None
    samples: tuple[LocationSample, ...] = ()
    stats: StatsSnapshot | None = None


class TripSession(BaseModel):
    """Live state of one destination-to-completion navigation attempt.

    Mutated only by the session controller and the components it delegates
    to; observers receive deep copies.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    session_id: str
    user_id: str
    motor_id: str
    destination: Destination | None = None
    active_route: RouteCandidate | None = None
    planned_route: RouteCandidate | None = None
    path_history: list[LocationSample] = Field(default_factory=list)
    started_at_ms: int | None = None
    reroute_count: int = Field(default=0, ge=0)
    was_rerouted: bool = False
    was_in_background: bool = False
    status: TripStatus = TripStatus.ACTIVE

    @property
    def last_sample(self) -> LocationSample | None:
        return self.path_history[-1] if self.path_history else None

    @property
    def is_active(self) -> bool:
        return self.status == TripStatus.ACTIVE


class TripLocation(RideNavBaseModel):
    address: str
    lat: float
    lng: float


class TripRecord(RideNavBaseModel):
    """Finalized trip summary posted to the trip record store (``POST /api/trips``)."""

    session_id: str
    user_id: str
    motor_id: str
    destination: str

    # Planned
    distance: float = 0.0
    fuel_used_min: float = 0.0
    fuel_used_max: float = 0.0
    eta: datetime | None = None
    time_arrived: datetime | None = None

    # Actual
    trip_start_time: datetime
    trip_end_time: datetime
    actual_distance: float = 0.0
    actual_fuel_used_min: float = 0.0
    actual_fuel_used_max: float = 0.0
    duration: int = 0
    kmph: float = 0.0

    start_location: TripLocation
    end_location: TripLocation

    planned_path: tuple[tuple[float, float], ...] = ()
    actual_path: tuple[tuple[float, float], ...] = ()
    was_rerouted: bool = False
    reroute_count: int = 0
    was_in_background: bool = False

    is_successful: bool
    status: TripStatus
