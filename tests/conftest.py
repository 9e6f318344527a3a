from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import polyline
import pytest

from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavTransportError
from ridenav.geo import haversine_distance
from ridenav.models.location import LocationSample
from ridenav.models.motor import MotorProfile

DIRECTIONS_URL = "https://directions.test/json"
API_BASE_URL = "https://backend.test"


def directions_payload(
    origin: tuple[float, float],
    destination: tuple[float, float],
    *,
    traffic_ratio: float = 1.0,
    alternatives: int = 0,
) -> dict[str, Any]:
    """Directions response with a straight primary route and bent alternatives."""
    routes = []
    for index in range(alternatives + 1):
        if index == 0:
            points = [origin, destination]
        else:
            mid = ((origin[0] + destination[0]) / 2 + 0.001 * index, (origin[1] + destination[1]) / 2)
            points = [origin, mid, destination]
        distance = sum(haversine_distance(*a, *b) for a, b in zip(points, points[1:], strict=False))
        duration = distance / 10.0
        routes.append(
            {
                "summary": f"Route {index}",
                "overview_polyline": {"points": polyline.encode(points)},
                "legs": [
                    {
                        "distance": {"value": distance, "text": "x km"},
                        "duration": {"value": duration},
                        "duration_in_traffic": {"value": duration * traffic_ratio},
                        "steps": [
                            {"html_instructions": "Head <b>east</b> on Main&nbsp;St"},
                            {"html_instructions": "Arrive at <div>destination</div>"},
                        ],
                    }
                ],
            }
        )
    return {"status": "OK", "routes": routes}


def _parse_latlng(value: str) -> tuple[float, float]:
    lat, lng = value.split(",")
    return float(lat), float(lng)


@dataclass
class FakeBackend:
    """In-memory stand-in for the directions service and the backend."""

    calls: list[tuple[str, str, dict[str, Any] | None, dict[str, Any] | None]] = field(default_factory=list)
    directions_status: str = "OK"
    traffic_ratio: float = 1.0
    alternatives: int = 0
    fuel_error: Exception | None = None
    trip_errors: list[Exception] = field(default_factory=list)
    motors: list[dict[str, Any]] = field(default_factory=list)
    directions_gate: asyncio.Event | None = None
    directions_started: asyncio.Event = field(default_factory=asyncio.Event)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        self.calls.append((method, url, dict(params) if params else None, dict(payload) if payload else None))
        if url == DIRECTIONS_URL:
            self.directions_started.set()
            if self.directions_gate is not None:
                await self.directions_gate.wait()
            if self.directions_status != "OK":
                return {"status": self.directions_status, "routes": []}
            assert params is not None
            return directions_payload(
                _parse_latlng(params["origin"]),
                _parse_latlng(params["destination"]),
                traffic_ratio=self.traffic_ratio,
                alternatives=self.alternatives,
            )
        if method == "PUT" and url.endswith("/fuel"):
            if self.fuel_error is not None:
                raise self.fuel_error
            return {"ok": True}
        if method == "POST" and url.endswith("/api/trips"):
            if self.trip_errors:
                raise self.trip_errors.pop(0)
            return {"data": payload}
        if method == "GET" and "/api/user-motors/user/" in url:
            return self.motors
        raise RideNavTransportError(f"unexpected request {method} {url}", endpoint=url)

    def requests(self, method: str, suffix: str = "") -> list[tuple[str, str, Any, Any]]:
        return [call for call in self.calls if call[0] == method and call[1].endswith(suffix)]

    @property
    def directions_calls(self) -> list[tuple[str, str, Any, Any]]:
        return [call for call in self.calls if call[1] == DIRECTIONS_URL]


class FakePositionSource:
    def __init__(self) -> None:
        self.callback: Callable[[LocationSample], None] | None = None
        self.subscribe_calls: list[dict[str, Any]] = []
        self.unsubscribed = 0

    def subscribe(
        self,
        callback: Callable[[LocationSample], None],
        *,
        min_distance_m: float,
        min_interval_seconds: float,
        high_accuracy: bool = True,
    ) -> Callable[[], None]:
        self.callback = callback
        self.subscribe_calls.append(
            {
                "min_distance_m": min_distance_m,
                "min_interval_seconds": min_interval_seconds,
                "high_accuracy": high_accuracy,
            }
        )

        def _unsubscribe() -> None:
            self.unsubscribed += 1
            self.callback = None

        return _unsubscribe

    @property
    def active(self) -> bool:
        return self.callback is not None

    def emit(self, lat: float, lng: float, timestamp_ms: int, speed_mps: float | None = None) -> None:
        assert self.callback is not None, "no active subscription"
        self.callback(LocationSample(lat=lat, lng=lng, timestamp_ms=timestamp_ms, speed_mps=speed_mps))


def sample(lat: float, lng: float, timestamp_ms: int, speed_mps: float | None = None) -> LocationSample:
    return LocationSample(lat=lat, lng=lng, timestamp_ms=timestamp_ms, speed_mps=speed_mps)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.001)


async def instant_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def config() -> RideNavConfig:
    return RideNavConfig(
        api_base_url=API_BASE_URL,
        directions_url=DIRECTIONS_URL,
        directions_api_key="test-key",
        plan_min_interval=0.0,
    )


@pytest.fixture
def motor() -> MotorProfile:
    return MotorProfile(
        motor_id="motor-1",
        fuel_efficiency_km_per_liter=40.0,
        fuel_tank_liters=10.0,
        current_fuel_level_percent=50.0,
        user_id="user-1",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def position_source() -> FakePositionSource:
    return FakePositionSource()
