"""Route candidate and planning result models."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import Field, model_validator

from ridenav.models._base import RideNavBaseModel
from ridenav.models.location import Coordinate


class RouteCandidate(RideNavBaseModel):
    """One proposed path between origin and destination.

    Immutable once constructed.  ``path_points`` are ``(lat, lng)`` pairs in
    travel order; ``turn_instructions`` are plain text (HTML already
    stripped).
    """

    id: str
    distance_meters: float = Field(ge=0.0)
    duration_seconds: float = Field(ge=0.0)
    duration_in_traffic_seconds: float | None = Field(default=None, ge=0.0)
    fuel_estimate_liters: float = Field(ge=0.0)
    traffic_rating: int = Field(ge=1, le=5)
    path_points: tuple[tuple[float, float], ...] = ()
    turn_instructions: tuple[str, ...] = ()
    encoded_polyline: str | None = None
    summary: str | None = None

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0

    @property
    def final_point(self) -> tuple[float, float] | None:
        return self.path_points[-1] if self.path_points else None


class RoutePlan(RideNavBaseModel):
    """Ordered candidate set from a single planning request.

    The first candidate is the primary route; the rest are alternatives in
    the order the directions service returned them.
    """

    origin: Coordinate
    destination: Coordinate
    candidates: tuple[RouteCandidate, ...]
    requested_at_ms: int | None = None

    @model_validator(mode="after")
    def _require_primary(self) -> RoutePlan:
        if not self.candidates:
            raise ValueError("a route plan needs at least one candidate")
        return self

    @property
    def primary(self) -> RouteCandidate:
        return self.candidates[0]

    @property
    def alternatives(self) -> tuple[RouteCandidate, ...]:
        return self.candidates[1:]

    def get(self, route_id: str) -> RouteCandidate | None:
        for candidate in self.candidates:
            if candidate.id == route_id:
                return candidate
        return None

    def sorted_by(self, key: Callable[[RouteCandidate], Any], *, reverse: bool = False) -> list[RouteCandidate]:
        """Candidates re-sorted for display; the plan itself keeps source order."""
        return sorted(self.candidates, key=key, reverse=reverse)
