"""Motor profile model."""

from __future__ import annotations

import math

from pydantic import AliasChoices, Field

from ridenav._constants import FUEL_LEVEL_MAX, FUEL_LEVEL_MIN
from ridenav.models._base import RideNavBaseModel


class MotorProfile(RideNavBaseModel):
    """Fuel characteristics of the rider's motorcycle.

    Fields are mapped from the motor profile store (``/api/user-motors``).
    The authoritative copy lives server-side; instances held by the engine
    are an optimistic cache.
    """

    motor_id: str = Field(validation_alias=AliasChoices("motorId", "motor_id", "_id", "id"))
    """Motor identifier."""
    fuel_efficiency_km_per_liter: float = Field(
        gt=0.0,
        validation_alias=AliasChoices(
            "fuelEfficiencyKmPerLiter",
            "fuel_efficiency_km_per_liter",
            "fuelEfficiency",
            "fuelConsumption",
        ),
    )
    """Distance covered per liter, km/L."""
    fuel_tank_liters: float = Field(
        gt=0.0,
        validation_alias=AliasChoices("fuelTankLiters", "fuel_tank_liters", "fuelTank"),
    )
    """Tank capacity in liters."""
    current_fuel_level_percent: float = Field(
        ge=FUEL_LEVEL_MIN,
        le=FUEL_LEVEL_MAX,
        validation_alias=AliasChoices(
            "currentFuelLevelPercent",
            "current_fuel_level_percent",
            "currentFuelLevel",
        ),
    )
    """Tank level, always within ``[0, 100]``."""
    nickname: str | None = None
    user_id: str | None = Field(default=None, validation_alias=AliasChoices("userId", "user_id", "user"))

    @property
    def current_fuel_liters(self) -> float:
        return self.fuel_tank_liters * self.current_fuel_level_percent / 100.0

    def with_fuel_level(self, percent: float) -> MotorProfile:
        """Copy carrying *percent* clamped to ``[0, 100]``.

        Raises :class:`ValueError` for non-finite input, which has no
        meaningful clamp.
        """
        value = float(percent)
        if not math.isfinite(value):
            raise ValueError(f"fuel level must be finite, got {percent!r}")
        clamped = max(FUEL_LEVEL_MIN, min(FUEL_LEVEL_MAX, value))
        return self.model_copy(update={"current_fuel_level_percent": clamped})
