"""Fuel consumption and range model.

Pure functions: no I/O, no state, no exceptions over finite numeric input.
A non-positive efficiency or tank capacity is treated as "cannot estimate"
and yields zero consumption rather than a division error.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any

from ridenav._constants import (
    FUEL_LEVEL_MAX,
    FUEL_LEVEL_MIN,
    FUEL_RANGE_HIGH_FACTOR,
    FUEL_RANGE_LOW_FACTOR,
)
from ridenav.models.motor import MotorProfile
from ridenav.models.trip import FuelRange


def clamp_level(percent: float) -> float:
    """Clamp a fuel level to ``[0, 100]``."""
    return max(FUEL_LEVEL_MIN, min(FUEL_LEVEL_MAX, percent))


def fuel_estimate(distance_km: float, efficiency_km_per_liter: float) -> float:
    """Liters needed to cover *distance_km*."""
    if efficiency_km_per_liter <= 0 or distance_km <= 0:
        return 0.0
    return distance_km / efficiency_km_per_liter


def fuel_range(distance_km: float, efficiency_km_per_liter: float) -> FuelRange:
    """Consumption estimate with a ±10 % band around the average."""
    avg = fuel_estimate(distance_km, efficiency_km_per_liter)
    return FuelRange(min=avg * FUEL_RANGE_LOW_FACTOR, max=avg * FUEL_RANGE_HIGH_FACTOR, avg=avg)


def level_after_travel(profile: MotorProfile, incremental_distance_km: float) -> float:
    """Tank level after travelling *incremental_distance_km*."""
    used_liters = fuel_estimate(incremental_distance_km, profile.fuel_efficiency_km_per_liter)
    used_percent = used_liters / profile.fuel_tank_liters * 100.0
    return clamp_level(profile.current_fuel_level_percent - used_percent)


def level_after_refuel(profile: MotorProfile, liters_added: float) -> float:
    """Tank level after adding *liters_added*."""
    if liters_added <= 0:
        return clamp_level(profile.current_fuel_level_percent)
    added_percent = liters_added / profile.fuel_tank_liters * 100.0
    return clamp_level(profile.current_fuel_level_percent + added_percent)


def validate_level(value: Any) -> bool:
    """Whether *value* is a real, finite number within ``[0, 100]``.

    Booleans are rejected even though they are ``int`` subclasses.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    as_float = float(value)
    return math.isfinite(as_float) and FUEL_LEVEL_MIN <= as_float <= FUEL_LEVEL_MAX


def remaining_fuel_percent(tank_liters: float, efficiency_km_per_liter: float, distance_traveled_km: float) -> float:
    """Percent of a full tank left after *distance_traveled_km*."""
    distance_possible_km = tank_liters * efficiency_km_per_liter
    if tank_liters <= 0 or efficiency_km_per_liter <= 0:
        return 0.0
    remaining_km = max(0.0, distance_possible_km - distance_traveled_km)
    return clamp_level(remaining_km / distance_possible_km * 100.0)


def distance_possible(profile: MotorProfile) -> float:
    """Kilometres the current tank level can cover."""
    return max(0.0, profile.current_fuel_liters * profile.fuel_efficiency_km_per_liter)


def can_reach_destination(profile: MotorProfile, distance_km: float) -> bool:
    return distance_possible(profile) >= distance_km


def is_low_fuel(level_percent: float, threshold: float = 20.0) -> bool:
    return level_percent <= threshold


def is_critical_fuel(level_percent: float, threshold: float = 10.0) -> bool:
    return level_percent <= threshold
