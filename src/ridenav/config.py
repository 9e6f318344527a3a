"""Engine configuration for ridenav."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from ridenav._constants import API_BASE_URL, DIRECTIONS_URL, OFF_ROUTE_THRESHOLDS_M
from ridenav.exceptions import RideNavConfigError


def _env_float(value: str | None, name: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise RideNavConfigError(f"{name} must be numeric, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class RideNavConfig:
    """Engine configuration.

    Parameters
    ----------
    api_base_url : str
        Base URL of the backend hosting motor profiles and trip records.
    directions_url : str
        Full URL of the directions JSON endpoint.
    directions_api_key : str or None
        Key sent as ``key`` with every directions request.
    auth_token : str or None
        Bearer token for backend requests.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    plan_min_interval : float
        Minimum seconds between two directions requests.  Requests arriving
        sooner are dropped, not queued.
    avoid : tuple of str
        Features the directions service should avoid (e.g. ``"tolls"``).
    off_route_variant : str
        ``"strict"`` (50 m) or ``"tolerant"`` (100 m).
    off_route_threshold_m : float or None
        Explicit deviation threshold.  ``None`` derives it from the variant.
    off_route_settle_seconds : float
        Navigation time before off-route detection is armed.
    arrival_threshold_m : float
        Distance to the destination that counts as arrived.
    arrival_grace_seconds : float
        Delay between detecting arrival and completing the session.
    min_distance_m : float
        Minimum movement requested from the position source.
    min_interval_seconds : float
        Minimum interval requested from the position source.
    speed_limit_kmh : float
        Speed above which an over-speed warning is emitted.
    speed_warning_interval_seconds : float
        Minimum seconds between two over-speed warnings.
    eta_floor_kmh : float
        Lower bound on the speed used for ETA computation.
    persist_attempts : int
        Maximum attempts when saving a finalized trip.
    persist_backoff_seconds : float
        Base delay of the exponential backoff between save attempts.
    fuel_sync_distance_km : float
        Unsynced travel after which the fuel level is written to the backend.
    low_fuel_percent : float
        Level at or below which fuel is considered low.
    critical_fuel_percent : float
        Level at or below which fuel is considered critical.
    cache_ttl_seconds : float
        Lifetime of local cache entries.
    """

    api_base_url: str = API_BASE_URL
    directions_url: str = DIRECTIONS_URL
    directions_api_key: str | None = None
    auth_token: str | None = None
    request_timeout: float = 10.0
    plan_min_interval: float = 2.0
    avoid: tuple[str, ...] = ("tolls",)
    off_route_variant: str = "strict"
    off_route_threshold_m: float | None = None
    off_route_settle_seconds: float = 30.0
    arrival_threshold_m: float = 50.0
    arrival_grace_seconds: float = 3.0
    min_distance_m: float = 10.0
    min_interval_seconds: float = 5.0
    speed_limit_kmh: float = 80.0
    speed_warning_interval_seconds: float = 10.0
    eta_floor_kmh: float = 30.0
    persist_attempts: int = 3
    persist_backoff_seconds: float = 1.0
    fuel_sync_distance_km: float = 1.0
    low_fuel_percent: float = 20.0
    critical_fuel_percent: float = 10.0
    cache_ttl_seconds: float = 300.0

    def __post_init__(self) -> None:
        if self.off_route_threshold_m is None and self.off_route_variant not in OFF_ROUTE_THRESHOLDS_M:
            raise RideNavConfigError(
                f"off_route_variant must be one of {sorted(OFF_ROUTE_THRESHOLDS_M)}, got {self.off_route_variant!r}"
            )
        if self.persist_attempts < 1:
            raise RideNavConfigError("persist_attempts must be at least 1")
        if self.plan_min_interval < 0:
            raise RideNavConfigError("plan_min_interval must not be negative")

    @property
    def deviation_threshold_m(self) -> float:
        """Effective off-route distance threshold in metres."""
        if self.off_route_threshold_m is not None:
            return self.off_route_threshold_m
        return OFF_ROUTE_THRESHOLDS_M[self.off_route_variant]

    @classmethod
    def from_env(cls, **overrides: Any) -> RideNavConfig:
        """Create configuration from ``RIDENAV_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "RIDENAV_API_BASE_URL": "api_base_url",
            "RIDENAV_DIRECTIONS_URL": "directions_url",
            "RIDENAV_DIRECTIONS_API_KEY": "directions_api_key",
            "RIDENAV_AUTH_TOKEN": "auth_token",
            "RIDENAV_OFF_ROUTE_VARIANT": "off_route_variant",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout = _env_float(env.get("RIDENAV_REQUEST_TIMEOUT"), "RIDENAV_REQUEST_TIMEOUT")
        if timeout is not None:
            config_kwargs["request_timeout"] = timeout

        interval = _env_float(env.get("RIDENAV_PLAN_MIN_INTERVAL"), "RIDENAV_PLAN_MIN_INTERVAL")
        if interval is not None:
            config_kwargs["plan_min_interval"] = interval

        attempts = _env_float(env.get("RIDENAV_PERSIST_ATTEMPTS"), "RIDENAV_PERSIST_ATTEMPTS")
        if attempts is not None:
            config_kwargs["persist_attempts"] = int(attempts)

        avoid_env = env.get("RIDENAV_AVOID")
        if avoid_env is not None:
            config_kwargs["avoid"] = tuple(part.strip() for part in avoid_env.split(",") if part.strip())

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
