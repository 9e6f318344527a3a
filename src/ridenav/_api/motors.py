"""Motor profile store endpoints.

Endpoints:
  - GET /api/user-motors/{motorId}
  - GET /api/user-motors/user/{userId}
  - PUT /api/user-motors/{motorId}/fuel
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ridenav._api._common import join_url, unwrap_data
from ridenav._transport import Transport
from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavApiError, RideNavValidationError
from ridenav.fuel import validate_level
from ridenav.models.motor import MotorProfile

_logger = logging.getLogger(__name__)


def parse_motor_profile(payload: Any) -> MotorProfile:
    """Validate a motor record, raising :class:`RideNavApiError` when unusable."""
    data = unwrap_data(payload)
    if not isinstance(data, Mapping):
        raise RideNavApiError(f"Malformed motor profile: {type(data).__name__}", endpoint="user-motors")
    try:
        return MotorProfile.model_validate(data)
    except ValidationError as exc:
        raise RideNavApiError(f"Malformed motor profile: {exc.error_count()} invalid field(s)") from exc


def parse_motor_list(payload: Any) -> list[MotorProfile]:
    """Parse a list of motor records, skipping entries that do not validate."""
    data = unwrap_data(payload)
    if not isinstance(data, list):
        return []
    motors: list[MotorProfile] = []
    for item in data:
        try:
            motors.append(MotorProfile.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping malformed motor record")
    return motors


async def fetch_motor_profile(config: RideNavConfig, transport: Transport, motor_id: str) -> MotorProfile:
    url = join_url(config.api_base_url, f"/api/user-motors/{motor_id}")
    return parse_motor_profile(await transport.request_json("GET", url))


async def fetch_user_motors(config: RideNavConfig, transport: Transport, user_id: str) -> list[MotorProfile]:
    url = join_url(config.api_base_url, f"/api/user-motors/user/{user_id}")
    return parse_motor_list(await transport.request_json("GET", url))


async def update_fuel_level(
    config: RideNavConfig,
    transport: Transport,
    motor_id: str,
    level_percent: float,
) -> Any:
    """Write a new fuel level.

    The level is validated before any request is made.

    Raises
    ------
    RideNavValidationError
        The level is not a finite number within ``[0, 100]``.
    """
    if not validate_level(level_percent):
        raise RideNavValidationError(f"Fuel level must be within [0, 100], got {level_percent!r}")
    url = join_url(config.api_base_url, f"/api/user-motors/{motor_id}/fuel")
    return await transport.request_json("PUT", url, payload={"currentFuelLevel": float(level_percent)})
