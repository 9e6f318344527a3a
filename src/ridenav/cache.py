"""Best-effort local cache of per-user data for instant display.

Entries are JSON documents ``{"timestamp": <epoch ms>, "data": ...}`` kept
in a pluggable key-value store.  Reads of missing, expired or corrupt
entries are misses; store failures are logged and never raised.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

from pydantic import ValidationError

from ridenav.models.motor import MotorProfile

_logger = logging.getLogger(__name__)


class CacheKind(StrEnum):
    MOTORS = "motors"
    TRIPS = "trips"
    FUEL_LOGS = "fuel_logs"
    DESTINATIONS = "destinations"


class CacheStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryCacheStore:
    """Process-local store used when the host provides none."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


def _normalize_timestamp_seconds(value: Any) -> float | None:
    """Normalize timestamps to seconds since epoch."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return None
    if ts <= 0:
        return None
    # Treat values above 1e11 as milliseconds.
    if ts > 1e11:
        ts /= 1000.0
    return ts


def _cache_key(user_id: str, kind: CacheKind) -> str:
    return f"ridenav:{kind}:{user_id}"


class LocalCache:
    """Timestamped per-user cache of motors, trips, fuel logs and destinations."""

    def __init__(
        self,
        store: CacheStore | None = None,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: CacheStore = store if store is not None else MemoryCacheStore()
        self._ttl = ttl_seconds
        self._clock = clock

    def _read_entry(self, user_id: str, kind: CacheKind) -> dict[str, Any] | None:
        key = _cache_key(user_id, kind)
        try:
            raw = self._store.get(key)
        except (OSError, RuntimeError) as exc:
            _logger.debug("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
        except (TypeError, ValueError):
            _logger.debug("Discarding corrupt cache entry %s", key)
            return None
        if not isinstance(entry, dict) or "data" not in entry:
            return None
        return entry

    def age_seconds(self, user_id: str, kind: CacheKind) -> float | None:
        entry = self._read_entry(user_id, kind)
        if entry is None:
            return None
        ts = _normalize_timestamp_seconds(entry.get("timestamp"))
        if ts is None:
            return None
        return self._clock() - ts

    def get(self, user_id: str, kind: CacheKind) -> Any | None:
        """Cached data for *user_id*, or ``None`` on a miss or expired entry."""
        entry = self._read_entry(user_id, kind)
        if entry is None:
            return None
        ts = _normalize_timestamp_seconds(entry.get("timestamp"))
        if ts is None or self._clock() - ts > self._ttl:
            return None
        return copy.deepcopy(entry["data"])

    def put(self, user_id: str, kind: CacheKind, data: Any) -> bool:
        """Store *data*; returns whether the write succeeded."""
        key = _cache_key(user_id, kind)
        try:
            raw = json.dumps({"timestamp": int(self._clock() * 1000), "data": data})
            self._store.set(key, raw)
        except (OSError, RuntimeError, TypeError, ValueError) as exc:
            _logger.debug("Cache write failed for %s: %s", key, exc)
            return False
        return True

    def invalidate(self, user_id: str, kind: CacheKind | None = None) -> None:
        kinds = [kind] if kind is not None else list(CacheKind)
        for item in kinds:
            key = _cache_key(user_id, item)
            try:
                self._store.delete(key)
            except (OSError, RuntimeError) as exc:
                _logger.debug("Cache delete failed for %s: %s", key, exc)

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def put_motors(self, user_id: str, motors: list[MotorProfile]) -> bool:
        return self.put(user_id, CacheKind.MOTORS, [motor.to_payload() for motor in motors])

    def get_motors(self, user_id: str) -> list[MotorProfile] | None:
        data = self.get(user_id, CacheKind.MOTORS)
        if not isinstance(data, list):
            return None
        motors: list[MotorProfile] = []
        for item in data:
            try:
                motors.append(MotorProfile.model_validate(item))
            except ValidationError:
                _logger.debug("Skipping cached motor that no longer validates")
        return motors
