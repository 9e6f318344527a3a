"""Directions service boundary.

Builds the query for a Google-style directions JSON endpoint and converts
its response into :class:`~ridenav.models.route.RouteCandidate` objects.

Response shape consumed::

    {"status": "OK",
     "routes": [{"summary": "...",
                 "overview_polyline": {"points": "<encoded>"},
                 "legs": [{"distance": {"value": m},
                           "duration": {"value": s},
                           "duration_in_traffic": {"value": s},
                           "steps": [{"html_instructions": "..."}]}]}]}
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

import polyline

from ridenav._api._common import nested_value, safe_float
from ridenav._constants import (
    NO_ROUTE_STATUSES,
    TRAFFIC_RATING_MAX,
    TRAFFIC_RATING_MIN,
    TRAFFIC_RATIO_BREAKPOINTS,
)
from ridenav._transport import Transport
from ridenav.config import RideNavConfig
from ridenav.exceptions import (
    RideNavApiError,
    RideNavNoRouteError,
    RideNavTransportError,
    RideNavValidationError,
)
from ridenav.fuel import fuel_estimate
from ridenav.models.location import Coordinate
from ridenav.models.route import RouteCandidate

_logger = logging.getLogger(__name__)

# Service statuses worth retrying later; anything else non-OK is terminal.
_TRANSIENT_STATUSES = frozenset({"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"})

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def traffic_rating(duration_s: float | None, duration_in_traffic_s: float | None) -> int:
    """Classify congestion from the traffic/free-flow duration ratio.

    ratio <= 1.2 -> 1, <= 1.5 -> 2, <= 2.0 -> 3, <= 2.5 -> 4, else 5.
    Missing or non-positive durations rate as 1.
    """
    if not duration_s or duration_s <= 0 or duration_in_traffic_s is None:
        return TRAFFIC_RATING_MIN
    ratio = duration_in_traffic_s / duration_s
    for rating, upper in enumerate(TRAFFIC_RATIO_BREAKPOINTS, start=TRAFFIC_RATING_MIN):
        if ratio <= upper:
            return rating
    return TRAFFIC_RATING_MAX


def strip_html(text: str) -> str:
    """Plain text of an HTML turn instruction."""
    without_tags = _TAG_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", html.unescape(without_tags)).strip()


def build_directions_params(
    config: RideNavConfig,
    origin: Coordinate,
    destination: Coordinate,
    *,
    alternatives: bool = True,
) -> dict[str, str]:
    params = {
        "origin": f"{origin.lat},{origin.lng}",
        "destination": f"{destination.lat},{destination.lng}",
        "alternatives": "true" if alternatives else "false",
        "traffic_model": "best_guess",
        "departure_time": "now",
    }
    if config.avoid:
        params["avoid"] = "|".join(config.avoid)
    if config.directions_api_key:
        params["key"] = config.directions_api_key
    return params


def _decode_path(route: Mapping[str, Any]) -> tuple[str | None, tuple[tuple[float, float], ...]]:
    encoded = nested_value(route, "overview_polyline", "points")
    if not isinstance(encoded, str) or not encoded:
        return None, ()
    try:
        points = polyline.decode(encoded)
    except (ValueError, IndexError, TypeError):
        _logger.debug("Undecodable polyline (%d chars)", len(encoded))
        return encoded, ()
    return encoded, tuple((float(lat), float(lng)) for lat, lng in points)


def _parse_route(
    route: Any,
    index: int,
    efficiency_km_per_liter: float,
) -> RouteCandidate | None:
    """Convert one raw route; ``None`` when its shape is unusable."""
    if not isinstance(route, Mapping):
        return None
    legs = route.get("legs")
    if not isinstance(legs, Sequence) or not legs:
        return None

    distance_m = 0.0
    duration_s = 0.0
    traffic_s: float | None = 0.0
    instructions: list[str] = []
    for leg in legs:
        leg_distance = safe_float(nested_value(leg, "distance", "value"))
        leg_duration = safe_float(nested_value(leg, "duration", "value"))
        if leg_distance is None or leg_duration is None:
            return None
        distance_m += leg_distance
        duration_s += leg_duration
        leg_traffic = safe_float(nested_value(leg, "duration_in_traffic", "value"))
        traffic_s = None if traffic_s is None or leg_traffic is None else traffic_s + leg_traffic
        for step in leg.get("steps") or ():
            raw = nested_value(step, "html_instructions")
            if isinstance(raw, str) and (text := strip_html(raw)):
                instructions.append(text)

    encoded, points = _decode_path(route)
    summary = route.get("summary")
    return RouteCandidate(
        id=f"route-{index}",
        distance_meters=distance_m,
        duration_seconds=duration_s,
        duration_in_traffic_seconds=traffic_s,
        fuel_estimate_liters=fuel_estimate(distance_m / 1000.0, efficiency_km_per_liter),
        traffic_rating=traffic_rating(duration_s, traffic_s),
        path_points=points,
        turn_instructions=tuple(instructions),
        encoded_polyline=encoded,
        summary=summary if isinstance(summary, str) and summary else None,
    )


def parse_directions_response(payload: Any, efficiency_km_per_liter: float) -> list[RouteCandidate]:
    """Convert a directions response into route candidates in source order.

    Raises
    ------
    RideNavNoRouteError
        The service reported no route, or returned an empty route list.
    RideNavTransportError
        The service reported a transient failure.
    RideNavValidationError
        The service rejected the request.
    RideNavApiError
        The response could not be interpreted at all.
    """
    if not isinstance(payload, Mapping):
        raise RideNavApiError(f"Malformed directions response: {type(payload).__name__}")

    status = str(payload.get("status") or "OK")
    if status in NO_ROUTE_STATUSES:
        raise RideNavNoRouteError(f"No route found ({status})")
    if status in _TRANSIENT_STATUSES:
        raise RideNavTransportError(f"Directions service unavailable ({status})", endpoint="directions")
    if status != "OK":
        message = payload.get("error_message") or status
        raise RideNavValidationError(f"Directions request rejected: {message}", endpoint="directions")

    raw_routes = payload.get("routes")
    if not isinstance(raw_routes, list) or not raw_routes:
        raise RideNavNoRouteError("Directions service returned no routes")

    candidates: list[RouteCandidate] = []
    for index, raw in enumerate(raw_routes):
        candidate = _parse_route(raw, index, efficiency_km_per_liter)
        if candidate is None:
            _logger.debug("Skipping malformed route at index %d", index)
            continue
        candidates.append(candidate)

    if not candidates:
        raise RideNavApiError("Malformed directions response: no usable routes", endpoint="directions")
    return candidates


async def fetch_directions(
    config: RideNavConfig,
    transport: Transport,
    origin: Coordinate,
    destination: Coordinate,
    efficiency_km_per_liter: float,
) -> list[RouteCandidate]:
    """Request routes from *origin* to *destination* and parse them."""
    params = build_directions_params(config, origin, destination)
    payload = await transport.request_json("GET", config.directions_url, params=params)
    return parse_directions_response(payload, efficiency_km_per_liter)
