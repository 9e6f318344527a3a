from __future__ import annotations

import pytest

from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavConfigError


def test_defaults() -> None:
    config = RideNavConfig()
    assert config.plan_min_interval == 2.0
    assert config.deviation_threshold_m == 50.0
    assert config.arrival_threshold_m == 50.0
    assert config.arrival_grace_seconds == 3.0
    assert config.persist_attempts == 3
    assert config.avoid == ("tolls",)


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RIDENAV_DIRECTIONS_API_KEY", "env-key")
    monkeypatch.setenv("RIDENAV_OFF_ROUTE_VARIANT", "tolerant")
    monkeypatch.setenv("RIDENAV_REQUEST_TIMEOUT", "4.5")
    monkeypatch.setenv("RIDENAV_PERSIST_ATTEMPTS", "5")
    monkeypatch.setenv("RIDENAV_AVOID", "tolls, highways,,")

    config = RideNavConfig.from_env()

    assert config.directions_api_key == "env-key"
    assert config.deviation_threshold_m == 100.0
    assert config.request_timeout == 4.5
    assert config.persist_attempts == 5
    assert config.avoid == ("tolls", "highways")


def test_overrides_win_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RIDENAV_PLAN_MIN_INTERVAL", "9")
    config = RideNavConfig.from_env(plan_min_interval=1.0)
    assert config.plan_min_interval == 1.0


def test_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RIDENAV_REQUEST_TIMEOUT", "soon")
    with pytest.raises(RideNavConfigError):
        RideNavConfig.from_env()
    with pytest.raises(RideNavConfigError):
        RideNavConfig(persist_attempts=0)
    with pytest.raises(RideNavConfigError):
        RideNavConfig(plan_min_interval=-1.0)
