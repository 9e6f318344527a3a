from __future__ import annotations

from typing import Any

import polyline
import pytest

from conftest import directions_payload
from ridenav._api.directions import (
    build_directions_params,
    parse_directions_response,
    strip_html,
    traffic_rating,
)
from ridenav.config import RideNavConfig
from ridenav.exceptions import (
    RideNavApiError,
    RideNavNoRouteError,
    RideNavTransportError,
    RideNavValidationError,
)
from ridenav.models.location import Coordinate


@pytest.mark.parametrize(
    ("ratio", "expected"),
    [
        (0.8, 1),
        (1.0, 1),
        (1.2, 1),
        (1.21, 2),
        (1.5, 2),
        (1.51, 3),
        (2.0, 3),
        (2.01, 4),
        (2.5, 4),
        (2.51, 5),
        (7.0, 5),
    ],
)
def test_traffic_rating_breakpoints(ratio: float, expected: int) -> None:
    assert traffic_rating(100.0, 100.0 * ratio) == expected


def test_traffic_rating_is_monotonic() -> None:
    ratios = [0.5 + i * 0.05 for i in range(80)]
    ratings = [traffic_rating(60.0, 60.0 * r) for r in ratios]
    assert ratings == sorted(ratings)
    assert set(ratings) == {1, 2, 3, 4, 5}


def test_traffic_rating_missing_durations() -> None:
    assert traffic_rating(None, 100.0) == 1
    assert traffic_rating(0.0, 100.0) == 1
    assert traffic_rating(100.0, None) == 1


def test_strip_html() -> None:
    assert strip_html("Turn <b>left</b> onto <span>Rizal&nbsp;Ave</span>") == "Turn left onto Rizal Ave"
    assert strip_html("<div style='x'></div>") == ""


def test_build_directions_params() -> None:
    config = RideNavConfig(directions_api_key="k", avoid=("tolls", "highways"))
    params = build_directions_params(config, Coordinate(lat=1.5, lng=2.5), Coordinate(lat=3.0, lng=4.0))
    assert params["origin"] == "1.5,2.5"
    assert params["destination"] == "3.0,4.0"
    assert params["alternatives"] == "true"
    assert params["avoid"] == "tolls|highways"
    assert params["departure_time"] == "now"
    assert params["key"] == "k"


def test_scenario_short_route_fuel_and_rating() -> None:
    payload = directions_payload((0.0, 0.0), (0.0, 0.01), traffic_ratio=1.0)
    [primary] = parse_directions_response(payload, 40.0)
    assert primary.distance_km == pytest.approx(1.11, abs=0.01)
    assert primary.fuel_estimate_liters == pytest.approx(0.0275, abs=0.001)
    assert primary.traffic_rating == 1
    assert primary.path_points[0] == pytest.approx((0.0, 0.0))
    assert primary.final_point == pytest.approx((0.0, 0.01))
    assert primary.turn_instructions == ("Head east on Main St", "Arrive at destination")


def test_source_order_preserved_with_alternatives() -> None:
    payload = directions_payload((0.0, 0.0), (0.0, 0.01), alternatives=2, traffic_ratio=2.2)
    candidates = parse_directions_response(payload, 40.0)
    assert [c.id for c in candidates] == ["route-0", "route-1", "route-2"]
    assert [c.summary for c in candidates] == ["Route 0", "Route 1", "Route 2"]
    assert all(c.traffic_rating == 4 for c in candidates)


def test_multi_leg_routes_are_summed() -> None:
    leg = {"distance": {"value": 1000}, "duration": {"value": 100}, "duration_in_traffic": {"value": 130}}
    payload = {"status": "OK", "routes": [{"legs": [leg, leg]}]}
    [route] = parse_directions_response(payload, 20.0)
    assert route.distance_meters == 2000
    assert route.duration_seconds == 200
    assert route.duration_in_traffic_seconds == 260
    assert route.traffic_rating == 2
    assert route.fuel_estimate_liters == pytest.approx(0.1)
    assert route.path_points == ()


def test_missing_traffic_duration_rates_as_free_flow() -> None:
    payload = {"routes": [{"legs": [{"distance": {"value": 500}, "duration": {"value": 60}}]}]}
    [route] = parse_directions_response(payload, 40.0)
    assert route.duration_in_traffic_seconds is None
    assert route.traffic_rating == 1


def test_malformed_routes_are_skipped() -> None:
    good = directions_payload((0.0, 0.0), (0.0, 0.01))["routes"][0]
    payload: dict[str, Any] = {"status": "OK", "routes": ["junk", {"legs": []}, {"legs": [{"distance": {}}]}, good]}
    [route] = parse_directions_response(payload, 40.0)
    assert route.id == "route-3"


def test_undecodable_polyline_keeps_route_without_points() -> None:
    payload = directions_payload((0.0, 0.0), (0.0, 0.01))
    payload["routes"][0]["overview_polyline"]["points"] = "~"
    [route] = parse_directions_response(payload, 40.0)
    assert route.path_points == ()


@pytest.mark.parametrize("status", ["ZERO_RESULTS", "NOT_FOUND"])
def test_no_route_statuses(status: str) -> None:
    with pytest.raises(RideNavNoRouteError):
        parse_directions_response({"status": status, "routes": []}, 40.0)


def test_empty_routes_is_no_route() -> None:
    with pytest.raises(RideNavNoRouteError):
        parse_directions_response({"status": "OK", "routes": []}, 40.0)


def test_error_statuses_are_classified() -> None:
    with pytest.raises(RideNavTransportError):
        parse_directions_response({"status": "OVER_QUERY_LIMIT"}, 40.0)
    with pytest.raises(RideNavValidationError):
        parse_directions_response({"status": "REQUEST_DENIED", "error_message": "bad key"}, 40.0)


def test_unusable_payloads_fail_closed() -> None:
    with pytest.raises(RideNavApiError):
        parse_directions_response(["not", "a", "mapping"], 40.0)
    with pytest.raises(RideNavApiError):
        parse_directions_response({"status": "OK", "routes": [{"legs": "x"}]}, 40.0)


def test_polyline_round_trip_through_candidate() -> None:
    points = [(14.5995, 120.9842), (14.6, 120.99), (14.61, 121.0)]
    leg = {"distance": {"value": 2500}, "duration": {"value": 300}}
    payload = {"routes": [{"legs": [leg], "overview_polyline": {"points": polyline.encode(points)}}]}
    [route] = parse_directions_response(payload, 30.0)
    assert len(route.path_points) == 3
    assert route.path_points[-1] == pytest.approx(points[-1], abs=1e-5)
