"""Trip finalization and durable persistence."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from ridenav._api.trips import post_trip_record
from ridenav._transport import Transport
from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavError, RideNavPersistenceError, is_retryable
from ridenav.fuel import fuel_range
from ridenav.geo import path_length
from ridenav.models.motor import MotorProfile
from ridenav.models.trip import TripLocation, TripRecord, TripSession, TripStatus

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _to_datetime(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=UTC)


def build_trip_record(
    session: TripSession,
    *,
    arrived: bool,
    motor: MotorProfile,
    ended_at_ms: int,
) -> TripRecord:
    """Summarize *session* into the record posted to the trip store.

    Actual distance comes from the path history and duration from the
    wall-clock time between navigation start and *ended_at_ms*.
    """
    path = [sample.as_tuple() for sample in session.path_history]
    started_at_ms = session.started_at_ms if session.started_at_ms is not None else ended_at_ms
    duration_s = max(0.0, (ended_at_ms - started_at_ms) / 1000.0)
    actual_km = path_length(path) / 1000.0
    actual_fuel = fuel_range(actual_km, motor.fuel_efficiency_km_per_liter)

    planned = session.planned_route or session.active_route
    planned_km = planned.distance_km if planned is not None else 0.0
    planned_fuel = fuel_range(planned_km, motor.fuel_efficiency_km_per_liter)
    start_time = _to_datetime(started_at_ms)
    end_time = _to_datetime(ended_at_ms)
    eta = start_time + timedelta(seconds=planned.duration_seconds) if planned is not None else None

    first = session.path_history[0] if session.path_history else None
    last = session.last_sample
    destination = session.destination
    if destination is not None:
        end_location = TripLocation(address=destination.label, lat=destination.lat, lng=destination.lng)
    else:
        end_location = TripLocation(
            address="End Location",
            lat=last.lat if last else 0.0,
            lng=last.lng if last else 0.0,
        )

    return TripRecord(
        session_id=session.session_id,
        user_id=session.user_id,
        motor_id=session.motor_id,
        destination=destination.label if destination is not None else "Free Drive",
        distance=planned_km,
        fuel_used_min=planned_fuel.min,
        fuel_used_max=planned_fuel.max,
        eta=eta,
        time_arrived=end_time if arrived else None,
        trip_start_time=start_time,
        trip_end_time=end_time,
        actual_distance=actual_km,
        actual_fuel_used_min=actual_fuel.min,
        actual_fuel_used_max=actual_fuel.max,
        duration=round(duration_s / 60.0),
        kmph=actual_km / (duration_s / 3600.0) if duration_s > 0 else 0.0,
        start_location=TripLocation(
            address="Start Location",
            lat=first.lat if first else 0.0,
            lng=first.lng if first else 0.0,
        ),
        end_location=end_location,
        planned_path=planned.path_points if planned is not None else (),
        actual_path=tuple(path),
        was_rerouted=session.was_rerouted,
        reroute_count=session.reroute_count,
        was_in_background=session.was_in_background,
        is_successful=arrived,
        status=TripStatus.COMPLETED if arrived else TripStatus.CANCELLED,
    )


class TripPersistence:
    """Finalizes sessions and saves them with bounded retries.

    Only network-class failures (:func:`~ridenav.exceptions.is_retryable`)
    are retried, up to ``config.persist_attempts`` attempts in total with
    exponential backoff starting at ``config.persist_backoff_seconds``.
    Validation failures are terminal and surface after the first attempt.
    """

    def __init__(
        self,
        config: RideNavConfig,
        transport: Transport,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sleep = sleep

    def _retrying(self) -> AsyncRetrying:
        def _log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            _logger.warning(
                "Trip save attempt %d failed (%s), retrying in %.1fs",
                retry_state.attempt_number,
                exc,
                retry_state.next_action.sleep if retry_state.next_action else 0.0,
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self._config.persist_attempts),
            wait=wait_exponential(multiplier=self._config.persist_backoff_seconds, exp_base=2),
            retry=retry_if_exception(is_retryable),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

    async def save(self, record: TripRecord) -> TripRecord:
        """Post *record* under the retry policy.

        Raises
        ------
        RideNavPersistenceError
            The record could not be saved; ``record`` is attached.
        """
        attempts = 0
        try:
            async for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    await post_trip_record(self._config, self._transport, record)
        except RideNavError as exc:
            _logger.error("Trip %s may not be saved after %d attempt(s): %s", record.session_id, attempts, exc)
            raise RideNavPersistenceError(
                f"Trip may not be saved: {exc}",
                record=record,
                attempts=attempts,
            ) from exc
        _logger.info("Saved trip %s (%s, %d attempt(s))", record.session_id, record.status, attempts)
        return record

    async def finalize(
        self,
        session: TripSession,
        arrived: bool,
        motor: MotorProfile,
        *,
        ended_at_ms: int | None = None,
    ) -> TripRecord:
        """Build the trip record for *session* and save it."""
        if ended_at_ms is None:
            ended_at_ms = int(time.time() * 1000)
        record = build_trip_record(session, arrived=arrived, motor=motor, ended_at_ms=ended_at_ms)
        return await self.save(record)
