from __future__ import annotations

import dataclasses

import pytest

from conftest import sample
from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavConfigError
from ridenav.models.route import RouteCandidate
from ridenav.reroute import OffRouteMonitor

ROUTE = RouteCandidate(
    id="route-0",
    distance_meters=11_000.0,
    duration_seconds=900.0,
    fuel_estimate_liters=0.3,
    traffic_rating=1,
    path_points=((0.0, 0.0), (0.0, 0.1)),
)

# Roughly 500 m north of the route.
FAR_LAT = 0.0045


def test_no_trigger_before_settle_time_regardless_of_deviation(config: RideNavConfig) -> None:
    monitor = OffRouteMonitor(config)
    assert not monitor.evaluate(sample(FAR_LAT, 0.01, 5_000), ROUTE, 0)
    assert not monitor.evaluate(sample(0.5, 0.01, 29_999), ROUTE, 0)


def test_same_deviation_triggers_after_settle_time(config: RideNavConfig) -> None:
    monitor = OffRouteMonitor(config)
    assert monitor.evaluate(sample(FAR_LAT, 0.01, 35_000), ROUTE, 0)
    assert monitor.last_deviation_m == pytest.approx(500.0, rel=0.01)


def test_on_route_sample_does_not_trigger(config: RideNavConfig) -> None:
    monitor = OffRouteMonitor(config)
    assert not monitor.evaluate(sample(0.0002, 0.05, 60_000), ROUTE, 0)


def test_single_reroute_in_flight(config: RideNavConfig) -> None:
    monitor = OffRouteMonitor(config)
    assert monitor.evaluate(sample(FAR_LAT, 0.01, 35_000), ROUTE, 0)
    monitor.begin()
    assert not monitor.evaluate(sample(FAR_LAT, 0.011, 40_000), ROUTE, 0)
    monitor.complete()
    assert monitor.evaluate(sample(FAR_LAT, 0.012, 45_000), ROUTE, 0)


def test_threshold_variants(config: RideNavConfig) -> None:
    # About 75 m off the route.
    off = sample(0.000675, 0.02, 40_000)
    strict = OffRouteMonitor(config)
    tolerant = OffRouteMonitor(dataclasses.replace(config, off_route_variant="tolerant"))
    explicit = OffRouteMonitor(dataclasses.replace(config, off_route_threshold_m=80.0))

    assert strict.threshold_m == 50.0
    assert tolerant.threshold_m == 100.0
    assert strict.evaluate(off, ROUTE, 0)
    assert not tolerant.evaluate(off, ROUTE, 0)
    assert not explicit.evaluate(off, ROUTE, 0)


def test_unknown_variant_is_rejected() -> None:
    with pytest.raises(RideNavConfigError):
        RideNavConfig(off_route_variant="loose")


def test_missing_route_or_start_never_triggers(config: RideNavConfig) -> None:
    monitor = OffRouteMonitor(config)
    far = sample(FAR_LAT, 0.01, 60_000)
    assert not monitor.evaluate(far, None, 0)
    assert not monitor.evaluate(far, ROUTE, None)
    assert not monitor.evaluate(far, ROUTE.model_copy(update={"path_points": ()}), 0)
