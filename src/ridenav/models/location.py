"""Coordinate and location sample models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from ridenav.models._base import RideNavBaseModel


class Coordinate(RideNavBaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(ge=-180.0, le=180.0, validation_alias=AliasChoices("lng", "lon", "longitude"))

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class Destination(Coordinate):
    """A chosen destination with an optional human-readable label."""

    address: str | None = Field(
        default=None,
        validation_alias=AliasChoices("address", "formatted_address", "formattedAddress", "name"),
    )

    @property
    def label(self) -> str:
        return self.address or "Selected Destination"


class LocationSample(Coordinate):
    """One position fix delivered by a position source.

    Parameters
    ----------
    lat, lng : float
        Position in decimal degrees.
    timestamp_ms : int
        Fix time in epoch milliseconds.
    speed_mps : float or None
        Device-reported ground speed in m/s, when available.
    """

    timestamp_ms: int = Field(validation_alias=AliasChoices("timestampMs", "timestamp_ms", "timestamp"))
    speed_mps: float | None = Field(
        default=None,
        ge=0.0,
        validation_alias=AliasChoices("speedMps", "speed_mps", "speed"),
    )

    @field_validator("speed_mps", mode="before")
    @classmethod
    def _negative_speed_is_unknown(cls, value: Any) -> Any:
        # Position sources report -1 when speed is unavailable.
        if isinstance(value, (int, float)) and value < 0:
            return None
        return value

    def same_position(self, other: Coordinate | None) -> bool:
        """Whether *other* has identical coordinates."""
        return other is not None and self.lat == other.lat and self.lng == other.lng
