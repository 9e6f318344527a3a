from __future__ import annotations

import math

import pytest

from ridenav.fuel import (
    can_reach_destination,
    clamp_level,
    distance_possible,
    fuel_estimate,
    fuel_range,
    is_critical_fuel,
    is_low_fuel,
    level_after_refuel,
    level_after_travel,
    remaining_fuel_percent,
    validate_level,
)
from ridenav.models.motor import MotorProfile


def _motor(level: float = 50.0, efficiency: float = 40.0, tank: float = 10.0) -> MotorProfile:
    return MotorProfile(
        motor_id="m1",
        fuel_efficiency_km_per_liter=efficiency,
        fuel_tank_liters=tank,
        current_fuel_level_percent=level,
    )


def test_fuel_estimate_is_distance_over_efficiency() -> None:
    assert fuel_estimate(1.1, 40.0) == pytest.approx(0.0275)
    assert fuel_estimate(10.0, 0.0) == 0.0
    assert fuel_estimate(-1.0, 40.0) == 0.0


@pytest.mark.parametrize(("distance", "efficiency"), [(0.1, 1.0), (1.1, 40.0), (250.0, 35.5), (1e4, 0.5)])
def test_fuel_range_bounds_are_ordered(distance: float, efficiency: float) -> None:
    result = fuel_range(distance, efficiency)
    assert result.min <= result.avg <= result.max
    assert result.avg == pytest.approx(distance / efficiency)
    assert result.min == pytest.approx(result.avg * 0.9)
    assert result.max == pytest.approx(result.avg * 1.1)


def test_level_after_travel_decreases_proportionally() -> None:
    # 40 km at 40 km/L uses 1 L, i.e. 10 % of a 10 L tank.
    assert level_after_travel(_motor(50.0), 40.0) == pytest.approx(40.0)


@pytest.mark.parametrize(("level", "km"), [(0.0, 5.0), (3.0, 1000.0), (100.0, 0.0), (55.5, 12.3)])
def test_level_after_travel_stays_in_range(level: float, km: float) -> None:
    assert 0.0 <= level_after_travel(_motor(level), km) <= 100.0


def test_level_after_refuel_clamps_at_full() -> None:
    assert level_after_refuel(_motor(50.0), 2.0) == pytest.approx(70.0)
    assert level_after_refuel(_motor(95.0), 5.0) == 100.0
    assert level_after_refuel(_motor(30.0), -1.0) == 30.0


@pytest.mark.parametrize("value", [0, 42, 42.5, 100, 100.0])
def test_validate_level_accepts(value: float) -> None:
    assert validate_level(value) is True


@pytest.mark.parametrize("value", [150, -5, math.nan, math.inf, "42", None, True])
def test_validate_level_rejects(value: object) -> None:
    assert validate_level(value) is False


def test_clamp_level() -> None:
    assert clamp_level(-3.0) == 0.0
    assert clamp_level(120.0) == 100.0
    assert clamp_level(12.5) == 12.5


def test_range_helpers() -> None:
    motor = _motor(level=50.0)
    # 5 L left at 40 km/L.
    assert distance_possible(motor) == pytest.approx(200.0)
    assert can_reach_destination(motor, 199.0)
    assert not can_reach_destination(motor, 201.0)
    assert remaining_fuel_percent(10.0, 40.0, 100.0) == pytest.approx(75.0)
    assert remaining_fuel_percent(10.0, 40.0, 1000.0) == 0.0
    assert remaining_fuel_percent(0.0, 40.0, 1.0) == 0.0


def test_low_and_critical_thresholds() -> None:
    assert is_low_fuel(20.0)
    assert not is_low_fuel(20.1)
    assert is_critical_fuel(10.0)
    assert not is_critical_fuel(15.0)


def test_motor_with_fuel_level_clamps_and_rejects_non_finite() -> None:
    motor = _motor(50.0)
    assert motor.with_fuel_level(130.0).current_fuel_level_percent == 100.0
    assert motor.with_fuel_level(-4.0).current_fuel_level_percent == 0.0
    with pytest.raises(ValueError):
        motor.with_fuel_level(math.nan)
