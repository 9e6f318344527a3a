"""Helpers for safe debug logging.

Directions requests carry the API key, backend requests a bearer token, and
both carry rider positions.  ``redact_for_log`` masks credentials, coarsens
coordinates to roughly 1 km and collapses paths and encoded polylines to a
size summary before anything is emitted at DEBUG level.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_SECRET_KEYS: frozenset[str] = frozenset(
    {"key", "apikey", "api_key", "token", "authtoken", "auth_token", "authorization", "password", "cookie"}
)
_POLYLINE_KEYS: frozenset[str] = frozenset({"points", "polyline", "encodedpolyline", "encoded_polyline"})
_COORD_KEYS: frozenset[str] = frozenset({"lat", "lng", "latitude", "longitude"})

# "lat,lng" query values such as directions origin/destination.
_LATLNG_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")

COORD_DECIMALS = 2


def _coarse(value: float) -> float:
    return round(value, COORD_DECIMALS)


def _is_point(value: Any) -> bool:
    return (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes, bytearray))
        and len(value) == 2
        and all(isinstance(part, (int, float)) and not isinstance(part, bool) for part in value)
    )


def _redact_string(value: str, max_string: int) -> str:
    match = _LATLNG_RE.match(value)
    if match:
        return f"{_coarse(float(match.group(1)))},{_coarse(float(match.group(2)))}"
    if len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value


def redact_for_log(value: Any, *, max_string: int = 256, max_items: int = 20, _depth: int = 0) -> Any:
    """Return a copy of *value* that is safe to log.

    Parameters
    ----------
    value : Any
        Request params, payload or decoded response.
    max_string : int
        Longer strings are cut with a ``<truncated>`` marker.
    max_items : int
        Longer sequences keep their first items and a ``<+N items>`` marker.
    """
    if _depth > 20:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _redact_string(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for raw_key, item in value.items():
            key = str(raw_key)
            lowered = key.lower()
            if lowered in _SECRET_KEYS:
                out[key] = "<redacted>"
            elif lowered in _POLYLINE_KEYS and isinstance(item, str):
                out[key] = f"<polyline:{len(item)} chars>"
            elif lowered in _COORD_KEYS and isinstance(item, (int, float)) and not isinstance(item, bool):
                out[key] = _coarse(float(item))
            else:
                out[key] = redact_for_log(item, max_string=max_string, max_items=max_items, _depth=_depth + 1)
        return out

    if isinstance(value, Sequence):
        if value and all(_is_point(item) for item in value):
            return f"<path:{len(value)} points>"
        items = [
            redact_for_log(item, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for item in list(value)[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<+{len(value) - max_items} items>")
        return items

    return repr(value)
