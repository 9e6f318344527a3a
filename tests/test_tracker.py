from __future__ import annotations

import pytest

from conftest import FakePositionSource, sample
from ridenav.config import RideNavConfig
from ridenav.geo import haversine_distance
from ridenav.models.route import RouteCandidate
from ridenav.tracker import LocationTracker, PositionSubscription


def _route_to(lat: float, lng: float) -> RouteCandidate:
    return RouteCandidate(
        id="route-0",
        distance_meters=3000.0,
        duration_seconds=600.0,
        fuel_estimate_liters=0.075,
        traffic_rating=1,
        path_points=((0.0, 0.0), (lat, lng)),
    )


def test_duplicate_samples_are_dropped(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    assert tracker.process_sample(sample(0.0, 0.0, 0)) is not None
    assert tracker.process_sample(sample(0.0, 0.0, 5000)) is None
    assert tracker.process_sample(sample(0.0, 0.001, 10000)) is not None
    assert len(tracker.path) == 2


def test_distance_speed_and_duration(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    tracker.reset(started_at_ms=0)
    tracker.process_sample(sample(0.0, 0.0, 0))
    update = tracker.process_sample(sample(0.0, 0.001, 10_000))

    assert update is not None
    step_m = haversine_distance(0.0, 0.0, 0.0, 0.001)
    assert update.increment_m == pytest.approx(step_m)
    assert update.stats.distance_m == pytest.approx(step_m)
    assert update.stats.duration_s == pytest.approx(10.0)
    # Derived from position change when the fix carries no speed.
    assert update.stats.current_speed_kmh == pytest.approx(step_m / 10.0 * 3.6)
    assert update.stats.avg_speed_kmh == pytest.approx(step_m / 10.0 * 3.6)


def test_reported_speed_is_converted_to_kmh(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    update = tracker.process_sample(sample(0.0, 0.0, 0, speed_mps=10.0))
    assert update is not None
    assert update.stats.current_speed_kmh == pytest.approx(36.0)
    assert update.stats.max_speed_kmh == pytest.approx(36.0)


def test_negative_reported_speed_means_unknown() -> None:
    assert sample(0.0, 0.0, 0, speed_mps=-1.0).speed_mps is None


def test_eta_uses_speed_floor(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    tracker.set_route(_route_to(0.0, 0.03))
    update = tracker.process_sample(sample(0.0, 0.0, 0, speed_mps=2.0))

    assert update is not None
    remaining_m = haversine_distance(0.0, 0.0, 0.0, 0.03)
    assert update.stats.remaining_distance_m == pytest.approx(remaining_m)
    # 7.2 km/h is below the 30 km/h floor.
    assert update.stats.eta_minutes == pytest.approx(remaining_m / 1000.0 / 30.0 * 60.0)

    fast = tracker.process_sample(sample(0.0, 0.001, 1000, speed_mps=25.0))
    assert fast is not None
    remaining_m = haversine_distance(0.0, 0.001, 0.0, 0.03)
    assert fast.stats.eta_minutes == pytest.approx(remaining_m / 1000.0 / 90.0 * 60.0)


def test_no_eta_without_route(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    update = tracker.process_sample(sample(0.0, 0.0, 0))
    assert update is not None
    assert update.stats.remaining_distance_m is None
    assert update.stats.eta_minutes is None


def test_over_speed_warning_is_throttled(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    warnings = []
    for i, ts in enumerate([0, 5_000, 9_999, 11_000, 15_000, 21_000]):
        update = tracker.process_sample(sample(0.0, 0.001 * i, ts, speed_mps=25.0))
        assert update is not None
        assert update.stats.over_speed
        warnings.append(update.speed_warning)
    assert warnings == [True, False, False, True, False, True]


def test_speed_below_limit_is_not_over_speed(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    update = tracker.process_sample(sample(0.0, 0.0, 0, speed_mps=22.0))
    assert update is not None
    assert not update.stats.over_speed
    assert not update.speed_warning


def test_fuel_consumption_follows_distance(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    tracker.set_fuel_efficiency(40.0)
    tracker.process_sample(sample(0.0, 0.0, 0))
    update = tracker.process_sample(sample(0.0, 0.01, 60_000))
    assert update is not None
    assert update.stats.fuel_consumed_liters == pytest.approx(update.stats.distance_m / 1000.0 / 40.0)


def test_subscription_lifecycle(config: RideNavConfig, position_source: FakePositionSource) -> None:
    tracker = LocationTracker(config, position_source)
    received = []

    subscription = tracker.start(received.append)
    assert tracker.running
    assert tracker.start(received.append) is subscription
    assert position_source.subscribe_calls == [
        {"min_distance_m": 10.0, "min_interval_seconds": 5.0, "high_accuracy": True}
    ]

    position_source.emit(1.0, 1.0, 0)
    assert len(received) == 1

    tracker.stop()
    tracker.stop()
    assert not tracker.running
    assert position_source.unsubscribed == 1


def test_start_without_source_fails(config: RideNavConfig) -> None:
    with pytest.raises(RuntimeError):
        LocationTracker(config).start(lambda _s: None)


def test_subscription_context_manager_releases_on_error() -> None:
    released = []
    with pytest.raises(KeyError), PositionSubscription(lambda: released.append(True)) as subscription:
        assert subscription.active
        raise KeyError("boom")
    assert released == [True]
    assert not subscription.active
    subscription.close()
    assert released == [True]


def test_merge_samples_orders_and_deduplicates(config: RideNavConfig) -> None:
    tracker = LocationTracker(config)
    tracker.reset(started_at_ms=0)
    tracker.process_sample(sample(0.0, 0.0, 0))
    tracker.process_sample(sample(0.0, 0.003, 30_000))

    added = tracker.merge_samples(
        [
            sample(0.0, 0.002, 20_000),
            sample(0.0, 0.001, 10_000),
            sample(0.0, 0.001, 10_000),
            sample(0.0, 0.003, 40_000),
        ]
    )

    assert added == 2
    assert [s.timestamp_ms for s in tracker.path] == [0, 10_000, 20_000, 30_000]
    assert tracker.distance_m == pytest.approx(haversine_distance(0.0, 0.0, 0.0, 0.003), rel=1e-6)
