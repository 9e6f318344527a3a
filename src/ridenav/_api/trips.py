"""Trip record store endpoint (``POST /api/trips``)."""

from __future__ import annotations

from typing import Any

from ridenav._api._common import join_url, unwrap_data
from ridenav._transport import Transport
from ridenav.config import RideNavConfig
from ridenav.models.trip import TripRecord


async def post_trip_record(config: RideNavConfig, transport: Transport, record: TripRecord) -> Any:
    """Send one finalized trip; returns the stored record as echoed by the backend."""
    url = join_url(config.api_base_url, "/api/trips")
    return unwrap_data(await transport.request_json("POST", url, payload=record.to_payload()))
