"""Great-circle geometry helpers.

Pure functions over ``(lat, lng)`` pairs in decimal degrees; all distances are
in metres.  Nothing here performs I/O or keeps state, and every function is
total over finite inputs: degenerate polylines yield ``math.inf`` rather than
raising.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from ridenav._constants import EARTH_RADIUS_M

LatLng = tuple[float, float]


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in metres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(a: LatLng, b: LatLng) -> float:
    """:func:`haversine_distance` over two ``(lat, lng)`` pairs."""
    return haversine_distance(a[0], a[1], b[0], b[1])


def calculate_bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Forward azimuth from point 1 to point 2 in degrees ``[0, 360)``."""
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    d_lng = math.radians(lng2 - lng1)
    y = math.sin(d_lng) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lng)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def path_length(points: Iterable[LatLng]) -> float:
    """Sum of consecutive great-circle segment lengths."""
    total = 0.0
    previous: LatLng | None = None
    for point in points:
        if previous is not None:
            total += distance_between(previous, point)
        previous = point
    return total


def point_to_segment_distance(point: LatLng, start: LatLng, end: LatLng) -> float:
    """Distance from *point* to the great-circle segment ``start → end``.

    Uses the cross-track distance when the point projects onto the segment
    and the distance to the nearer endpoint otherwise.
    """
    segment_m = distance_between(start, end)
    start_to_point_m = distance_between(start, point)
    if segment_m == 0.0:
        return start_to_point_m

    d13 = start_to_point_m / EARTH_RADIUS_M
    theta13 = math.radians(calculate_bearing(start[0], start[1], point[0], point[1]))
    theta12 = math.radians(calculate_bearing(start[0], start[1], end[0], end[1]))
    delta = theta13 - theta12

    cross_track = math.asin(max(-1.0, min(1.0, math.sin(d13) * math.sin(delta))))
    cos_ratio = math.cos(d13) / max(math.cos(cross_track), 1e-12)
    along_track_m = math.acos(max(-1.0, min(1.0, cos_ratio))) * EARTH_RADIUS_M
    if math.cos(delta) < 0:
        along_track_m = -along_track_m

    if along_track_m < 0:
        return start_to_point_m
    if along_track_m > segment_m:
        return distance_between(end, point)
    return abs(cross_track) * EARTH_RADIUS_M


def distance_to_polyline(point: LatLng, polyline: Sequence[LatLng]) -> float:
    """Shortest distance from *point* to any segment of *polyline*.

    Returns ``math.inf`` for an empty polyline.
    """
    if not polyline:
        return math.inf
    if len(polyline) == 1:
        return distance_between(point, polyline[0])
    return min(point_to_segment_distance(point, polyline[i], polyline[i + 1]) for i in range(len(polyline) - 1))
