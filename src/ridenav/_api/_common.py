"""Shared helpers for ridenav endpoint modules.

Raw backend payloads are loosely typed; these helpers convert individual
values and fail closed (``None``) instead of raising.

It is internal to ridenav and may change at any time.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any


def safe_float(value: Any) -> float | None:
    """Convert a value to float, returning None on failure."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(result):
        return None
    return result


def nested_value(payload: Any, *keys: str) -> Any:
    """Walk *keys* through nested mappings, returning None on any gap."""
    current = payload
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def unwrap_data(payload: Any) -> Any:
    """Return ``payload["data"]`` when the backend wrapped its response."""
    if isinstance(payload, Mapping) and "data" in payload and isinstance(payload["data"], (Mapping, list)):
        return payload["data"]
    return payload
