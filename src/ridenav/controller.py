"""Session controller: the navigation lifecycle state machine."""

from __future__ import annotations

import asyncio
import logging
import math
import time
import uuid
from collections.abc import Callable, Coroutine
from typing import Any

import aiohttp

from ridenav._api import motors as _motors_api
from ridenav._concurrency import CancellationToken, Clock
from ridenav._transport import HttpTransport, Transport
from ridenav.arrival import ArrivalDetector
from ridenav.background import BackgroundHandoff, BackgroundTracker
from ridenav.cache import LocalCache
from ridenav.config import RideNavConfig
from ridenav.exceptions import (
    RideNavCancelledError,
    RideNavError,
    RideNavPersistenceError,
    RideNavValidationError,
    is_retryable,
)
from ridenav.fuel import is_critical_fuel, is_low_fuel, level_after_refuel, level_after_travel, validate_level
from ridenav.models.location import Coordinate, Destination, LocationSample
from ridenav.models.motor import MotorProfile
from ridenav.models.route import RouteCandidate, RoutePlan
from ridenav.models.trip import TrackingStats, TripRecord, TripSession, TripStatus
from ridenav.persistence import Sleep, TripPersistence
from ridenav.planner import RoutePlanner
from ridenav.reroute import OffRouteMonitor
from ridenav.state import FlowEvent, SessionState, Transition, TransitionRequest, next_state
from ridenav.state.policy import DATA_RESETTING_EVENTS
from ridenav.tracker import LocationTracker, PositionSource

_logger = logging.getLogger(__name__)

StateCallback = Callable[[Transition], None]
EventCallback = Callable[[str, dict[str, Any]], None]
ErrorCallback = Callable[[RideNavError, bool], None]


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class SessionController:
    """Owns the session state and wires planner, tracker and monitors together.

    Usage::

        async with SessionController(config, user_id=uid, motor=motor,
                                     position_source=gps) as nav:
            await nav.select_destination(dest, origin=here)
            nav.start_navigation(first_fix)
            ...

    Only this class changes :attr:`state`.  Every asynchronous completion
    re-checks that the session it belongs to is still live before touching
    anything; stale completions are dropped.

    Parameters
    ----------
    config : RideNavConfig
        Engine configuration.
    user_id : str
        Rider the session belongs to.
    motor : MotorProfile
        Current motor profile; the controller keeps an optimistic copy.
    position_source : PositionSource or None
        Push-based location provider.  Without one, samples must be fed
        through :meth:`handle_sample`.
    background_tracker : BackgroundTracker or None
        Host tracker used while the app is suspended.
    transport : Transport or None
        JSON transport.  When omitted an aiohttp-backed transport is
        created on ``__aenter__``.
    cache : LocalCache or None
        Local best-effort cache for instant display.
    clock : callable
        Monotonic clock for request throttling.
    sleep : callable
        Awaitable sleep used for the arrival grace delay and retry backoff.
    now_ms : callable
        Wall clock in epoch milliseconds used for trip end times.
    on_state_change, on_event, on_error : callable or None
        Observer callbacks.  Exceptions raised by them are logged and
        otherwise ignored.
    """

    def __init__(
        self,
        config: RideNavConfig,
        *,
        user_id: str,
        motor: MotorProfile,
        position_source: PositionSource | None = None,
        background_tracker: BackgroundTracker | None = None,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
        cache: LocalCache | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        now_ms: Callable[[], int] = _now_ms,
        on_state_change: StateCallback | None = None,
        on_event: EventCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._config = config
        self._user_id = user_id
        self._motor = motor
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._cache = cache if cache is not None else LocalCache(ttl_seconds=config.cache_ttl_seconds)
        self._clock = clock
        self._sleep = sleep
        self._now_ms = now_ms
        self._on_state_change = on_state_change
        self._on_event = on_event
        self._on_error = on_error

        self._planner: RoutePlanner | None = None
        self._persistence: TripPersistence | None = None
        if transport is not None:
            self._build_services(transport)
        self._tracker = LocationTracker(config, position_source)
        self._off_route = OffRouteMonitor(config)
        self._arrival = ArrivalDetector(config)
        self._handoff = BackgroundHandoff(background_tracker) if background_tracker is not None else None

        self._state = SessionState.SEARCHING
        self._destination: Destination | None = None
        self._plan: RoutePlan | None = None
        self._selected: RouteCandidate | None = None
        self._session: TripSession | None = None
        self._last_record: TripRecord | None = None
        self._pending_record: TripRecord | None = None
        self._last_error: RideNavError | None = None
        self._open_modals: set[str] = set()
        self._finalizing = False

        self._tasks: set[asyncio.Task[Any]] = set()
        self._arrival_task: asyncio.Task[Any] | None = None
        self._reroute_token: CancellationToken | None = None
        self._fuel_tokens: set[CancellationToken] = set()
        self._unsynced_km = 0.0
        self._low_fuel_notified = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    def _build_services(self, transport: Transport) -> None:
        self._transport = transport
        self._planner = RoutePlanner(self._config, transport, clock=self._clock)
        self._persistence = TripPersistence(self._config, transport, sleep=self._sleep)

    async def __aenter__(self) -> SessionController:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._build_services(HttpTransport(self._config, self._http_session))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.shutdown()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    async def shutdown(self) -> None:
        """Release the subscription, in-flight operations and timers."""
        await self._teardown()
        pending = [task for task in self._tasks if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def motor(self) -> MotorProfile:
        return self._motor

    @property
    def destination(self) -> Destination | None:
        return self._destination

    @property
    def plan(self) -> RoutePlan | None:
        return self._plan

    @property
    def selected_route(self) -> RouteCandidate | None:
        return self._selected

    @property
    def session(self) -> TripSession | None:
        """Deep copy of the live session."""
        return self._session.model_copy(deep=True) if self._session is not None else None

    @property
    def stats(self) -> TrackingStats:
        return self._tracker.stats()

    @property
    def last_record(self) -> TripRecord | None:
        return self._last_record

    @property
    def pending_record(self) -> TripRecord | None:
        """Finalized trip whose save failed, awaiting :meth:`retry_save`."""
        return self._pending_record

    @property
    def last_error(self) -> RideNavError | None:
        return self._last_error

    @property
    def open_modals(self) -> frozenset[str]:
        return frozenset(self._open_modals)

    @property
    def cache(self) -> LocalCache:
        return self._cache

    def open_modal(self, name: str) -> None:
        """Register a transient dialog closed by ``close_modals`` transitions."""
        self._open_modals.add(name)

    # ------------------------------------------------------------------
    # Observer dispatch
    # ------------------------------------------------------------------

    def _emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(name, payload or {})
        except Exception:
            _logger.debug("on_event callback failed for %s", name, exc_info=True)

    def _report(self, error: RideNavError) -> None:
        self._last_error = error
        retryable = is_retryable(error) or isinstance(error, RideNavPersistenceError)
        if self._on_error is None:
            return
        try:
            self._on_error(error, retryable)
        except Exception:
            _logger.debug("on_error callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def request_transition(
        self,
        request: TransitionRequest,
        mutate: Callable[[], None] | None = None,
    ) -> bool:
        """Apply *request* if the transition table allows it.

        *mutate* performs the data side effects; it runs together with the
        ``reset_data``/``close_modals`` directives and the state write
        before any observer is notified.  Returns whether the request was
        applied.  Requests targeting the current state apply their data
        side effects but are not reported as state changes.
        """
        previous = self._state
        target = next_state(previous, request.event)
        if target is None:
            _logger.debug("Ignoring %s in state %s", request.event, previous)
            return False

        reset_data = request.reset_data or request.event in DATA_RESETTING_EVENTS
        if reset_data:
            self._clear_session_data()
        if mutate is not None:
            mutate()
        modals_closed = request.close_modals and bool(self._open_modals)
        if request.close_modals:
            self._open_modals.clear()
        self._state = target

        if target == previous and not reset_data:
            _logger.debug("Re-entered %s via %s", target, request.event)
            return True

        _logger.info("Session %s -> %s (%s)", previous, target, request.event)
        transition = Transition(
            previous=previous,
            current=target,
            event=request.event,
            data_reset=reset_data,
            modals_closed=modals_closed,
        )
        if self._on_state_change is not None:
            try:
                self._on_state_change(transition)
            except Exception:
                _logger.debug("on_state_change callback failed", exc_info=True)
        return True

    def _clear_session_data(self) -> None:
        self._cancel_operations()
        self._tracker.stop()
        self._tracker.reset()
        self._tracker.set_route(None)
        self._off_route.reset()
        self._arrival.reset()
        self._destination = None
        self._plan = None
        self._selected = None
        self._session = None
        self._pending_record = None
        self._last_error = None
        self._unsynced_km = 0.0
        self._low_fuel_notified = False
        self._finalizing = False

    def _cancel_operations(self) -> None:
        if self._planner is not None:
            self._planner.cancel()
        if self._reroute_token is not None:
            self._reroute_token.cancel()
            self._reroute_token = None
        current = asyncio.current_task() if self._has_loop() else None
        if self._arrival_task is not None and self._arrival_task is not current:
            self._arrival_task.cancel()
        self._arrival_task = None
        for token in self._fuel_tokens:
            token.cancel()
        self._fuel_tokens.clear()

    @staticmethod
    def _has_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    async def _teardown(self) -> None:
        self._cancel_operations()
        self._tracker.stop()
        if self._handoff is not None:
            await self._handoff.release()

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Background task %s failed", task.get_name(), exc_info=exc)

    def _is_live(self, session_id: str) -> bool:
        return (
            self._session is not None
            and self._session.session_id == session_id
            and self._state == SessionState.NAVIGATING
            and not self._finalizing
        )

    # ------------------------------------------------------------------
    # Destination and planning
    # ------------------------------------------------------------------

    async def select_destination(
        self,
        destination: Destination,
        origin: Coordinate | None = None,
    ) -> RoutePlan | None:
        """Store *destination* and, given an *origin*, plan routes to it."""

        def _store() -> None:
            self._destination = destination
            self._plan = None
            self._selected = None

        if not self.request_transition(TransitionRequest(event=FlowEvent.DESTINATION_CHOSEN), _store):
            return None
        if origin is None:
            return None
        return await self.plan_routes(origin)

    async def plan_routes(self, origin: Coordinate) -> RoutePlan | None:
        """Plan routes from *origin* to the selected destination.

        Returns ``None`` when planning is not possible in the current state,
        when the request was throttled or superseded, or when it failed; a
        failure is reported through ``on_error`` and :attr:`last_error`.
        """
        if self._state not in (SessionState.DESTINATION_SELECTED, SessionState.ROUTES_FOUND):
            _logger.debug("plan_routes ignored in state %s", self._state)
            return None
        planner = self._require_planner()
        destination = self._destination
        assert destination is not None  # noqa: S101
        try:
            plan = await planner.plan_routes(origin, destination, self._motor)
        except RideNavError as exc:
            if self._destination is not destination:
                return None
            self._report(exc)

            def _drop() -> None:
                self._plan = None
                self._selected = None

            self.request_transition(TransitionRequest(event=FlowEvent.ROUTES_FAILED), _drop)
            return None

        if plan is None or self._destination is not destination:
            return None
        if self._state not in (SessionState.DESTINATION_SELECTED, SessionState.ROUTES_FOUND):
            return None

        def _store() -> None:
            self._plan = plan
            self._selected = plan.primary
            self._last_error = None

        self.request_transition(TransitionRequest(event=FlowEvent.ROUTES_FETCHED), _store)
        return plan

    def select_route(self, route_id: str) -> bool:
        """Make candidate *route_id* the route used when navigation starts."""
        if self._state != SessionState.ROUTES_FOUND or self._plan is None:
            return False
        candidate = self._plan.get(route_id)
        if candidate is None:
            return False
        self._selected = candidate
        return True

    def _require_planner(self) -> RoutePlanner:
        if self._planner is None:
            raise RideNavError("Controller not initialized. Use 'async with SessionController(...) as nav:'")
        return self._planner

    def _require_persistence(self) -> TripPersistence:
        if self._persistence is None:
            raise RideNavError("Controller not initialized. Use 'async with SessionController(...) as nav:'")
        return self._persistence

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def start_navigation(self, current: LocationSample) -> TripSession | None:
        """Start navigating the selected route from *current*.

        The session start time is the timestamp of *current*, which also
        seeds the path history.
        """
        route = self._selected
        if self._state != SessionState.ROUTES_FOUND or route is None:
            _logger.debug("start_navigation ignored in state %s", self._state)
            return None

        def _begin() -> None:
            self._session = TripSession(
                session_id=uuid.uuid4().hex,
                user_id=self._user_id,
                motor_id=self._motor.motor_id,
                destination=self._destination,
                active_route=route,
                planned_route=route,
                started_at_ms=current.timestamp_ms,
            )
            self._tracker.reset(started_at_ms=current.timestamp_ms)
            self._tracker.set_route(route)
            self._tracker.set_fuel_efficiency(self._motor.fuel_efficiency_km_per_liter)
            self._off_route.reset()
            self._arrival.reset()
            self._unsynced_km = 0.0
            self._low_fuel_notified = False
            self._finalizing = False
            if self._tracker.process_sample(current) is not None:
                self._session.path_history.append(current)

        self.request_transition(TransitionRequest(event=FlowEvent.NAVIGATION_STARTED), _begin)
        session = self._session
        assert session is not None  # noqa: S101
        if self._tracker.has_source:
            self._tracker.start(self.handle_sample)
        # The seed fix counts for arrival like any later one.
        if self._arrival.evaluate(current, session.destination):
            self._emit("arrived", {"distance_m": self._arrival.last_distance_m})
            self._schedule_arrival(session.session_id)
        return self.session

    def handle_sample(self, sample: LocationSample) -> None:
        """Process one position fix while navigating.

        Runs the tracker, fuel model, arrival detector and off-route monitor
        in order, synchronously.
        """
        session = self._session
        if session is None or not self._is_live(session.session_id):
            return
        update = self._tracker.process_sample(sample)
        if update is None:
            return
        session.path_history.append(sample)
        self._emit("stats", update.stats.model_dump())
        if update.speed_warning:
            self._emit(
                "speed_warning",
                {"speed_kmh": update.stats.current_speed_kmh, "limit_kmh": self._config.speed_limit_kmh},
            )

        self._apply_travel(update.increment_m / 1000.0)

        if self._arrival.evaluate(sample, session.destination):
            self._emit("arrived", {"distance_m": self._arrival.last_distance_m})
            self._schedule_arrival(session.session_id)
            return

        if self._arrival.arrived:
            return
        if self._off_route.evaluate(sample, session.active_route, session.started_at_ms):
            self._trigger_reroute(session, sample)

    def _schedule_arrival(self, session_id: str) -> None:
        if self._arrival_task is not None and not self._arrival_task.done():
            return
        self._arrival_task = self._spawn(self._complete_after_grace(session_id), "ridenav-arrival")

    async def _complete_after_grace(self, session_id: str) -> None:
        await self._sleep(self._config.arrival_grace_seconds)
        if not self._is_live(session_id):
            return
        await self._complete(arrived=True)

    async def stop_navigation(self) -> TripRecord | None:
        """Stop navigating at the rider's request and save the trip.

        A trip counts as arrived when the destination was reached before the
        grace delay elapsed.
        """
        if self._state != SessionState.NAVIGATING or self._finalizing:
            return None
        return await self._complete(arrived=self._arrival.arrived)

    async def _complete(self, *, arrived: bool) -> TripRecord | None:
        session = self._session
        if session is None or not self._is_live(session.session_id):
            return None
        self._finalizing = True
        ended_at_ms = self._now_ms()
        self._cancel_operations()
        self._tracker.stop()
        if self._handoff is not None:
            await self._handoff.release()
        if self._unsynced_km > 0:
            self._schedule_fuel_sync(self._motor.current_fuel_level_percent)

        def _close() -> None:
            session.status = TripStatus.COMPLETED if arrived else TripStatus.CANCELLED

        event = FlowEvent.ARRIVED if arrived else FlowEvent.MANUAL_STOP
        self.request_transition(TransitionRequest(event=event), _close)

        persistence = self._require_persistence()
        motor = self._motor
        snapshot = session.model_copy(deep=True)
        self._session = None
        try:
            record = await persistence.finalize(snapshot, arrived, motor, ended_at_ms=ended_at_ms)
        except RideNavPersistenceError as exc:
            if self._state == SessionState.COMPLETED:
                self._pending_record = exc.record
                self._report(exc)
            return None
        finally:
            self._finalizing = False
        self._last_record = record
        self._emit("trip_saved", {"session_id": record.session_id, "status": str(record.status)})
        return record

    async def retry_save(self) -> TripRecord | None:
        """Retry saving the trip whose save failed."""
        record = self._pending_record
        if record is None:
            return None
        persistence = self._require_persistence()
        try:
            saved = await persistence.save(record)
        except RideNavPersistenceError as exc:
            self._report(exc)
            return None
        if self._pending_record is record:
            self._pending_record = None
        self._last_record = saved
        self._emit("trip_saved", {"session_id": saved.session_id, "status": str(saved.status)})
        return saved

    def new_trip(self) -> bool:
        """Return from a completed trip to destination search."""
        return self.request_transition(TransitionRequest(event=FlowEvent.NEW_TRIP, reset_data=True))

    async def reset(self, *, close_modals: bool = True) -> None:
        """Abandon everything and return to destination search."""
        await self._teardown()
        self.request_transition(
            TransitionRequest(event=FlowEvent.RESET, reset_data=True, close_modals=close_modals),
        )

    # ------------------------------------------------------------------
    # Rerouting
    # ------------------------------------------------------------------

    def _trigger_reroute(self, session: TripSession, sample: LocationSample) -> None:
        self._off_route.begin()
        session.was_rerouted = True
        session.reroute_count += 1
        token = CancellationToken("reroute")
        self._reroute_token = token
        _logger.info("Rerouting session %s (count %d)", session.session_id, session.reroute_count)
        task = self._spawn(self._reroute(session.session_id, sample, token), "ridenav-reroute")
        token.attach(task)

    async def _reroute(self, session_id: str, sample: LocationSample, token: CancellationToken) -> None:
        planner = self._require_planner()
        destination = self._destination
        try:
            if destination is None:
                return
            origin = Coordinate(lat=sample.lat, lng=sample.lng)
            try:
                plan = await planner.plan_routes(origin, destination, self._motor)
                token.raise_if_cancelled()
            except RideNavCancelledError:
                _logger.debug("Discarded reroute result for %r", token)
                return
            except RideNavError as exc:
                if not token.cancelled and self._is_live(session_id):
                    _logger.warning("Reroute failed, keeping current route: %s", exc)
                    self._report(exc)
                return
            if plan is None or not self._is_live(session_id):
                return
            session = self._session
            assert session is not None  # noqa: S101
            session.active_route = plan.primary
            self._plan = plan
            self._selected = plan.primary
            self._tracker.set_route(plan.primary)
            self._emit(
                "rerouted",
                {"reroute_count": session.reroute_count, "distance_m": plan.primary.distance_meters},
            )
        finally:
            if self._reroute_token is token:
                self._reroute_token = None
                self._off_route.complete()

    # ------------------------------------------------------------------
    # Fuel
    # ------------------------------------------------------------------

    def _apply_travel(self, increment_km: float) -> None:
        if increment_km <= 0:
            return
        self._motor = self._motor.with_fuel_level(level_after_travel(self._motor, increment_km))
        self._check_low_fuel()
        self._unsynced_km += increment_km
        if self._unsynced_km >= self._config.fuel_sync_distance_km:
            self._unsynced_km = 0.0
            self._schedule_fuel_sync(self._motor.current_fuel_level_percent)

    def _check_low_fuel(self) -> None:
        level = self._motor.current_fuel_level_percent
        if self._low_fuel_notified or not is_low_fuel(level, self._config.low_fuel_percent):
            return
        self._low_fuel_notified = True
        _logger.warning("Low fuel: %.1f%%", level)
        self._emit(
            "low_fuel",
            {"level_percent": level, "critical": is_critical_fuel(level, self._config.critical_fuel_percent)},
        )

    def set_fuel_level(self, percent: float) -> MotorProfile:
        """Optimistically set the fuel level and sync it in the background.

        Raises
        ------
        RideNavValidationError
            *percent* is not a finite number within ``[0, 100]``.
        """
        if not validate_level(percent):
            raise RideNavValidationError(f"Fuel level must be within [0, 100], got {percent!r}")
        self._motor = self._motor.with_fuel_level(float(percent))
        self._unsynced_km = 0.0
        self._low_fuel_notified = is_low_fuel(self._motor.current_fuel_level_percent, self._config.low_fuel_percent)
        self._schedule_fuel_sync(self._motor.current_fuel_level_percent)
        return self._motor

    def refuel(self, liters: float) -> MotorProfile:
        """Add *liters* to the tank and sync the resulting level."""
        if isinstance(liters, bool) or not isinstance(liters, (int, float)) or not math.isfinite(liters) or liters <= 0:
            raise RideNavValidationError(f"Refuel amount must be a positive number of liters, got {liters!r}")
        return self.set_fuel_level(level_after_refuel(self._motor, liters))

    def _schedule_fuel_sync(self, level_percent: float) -> None:
        if self._transport is None:
            return
        token = CancellationToken("fuel_sync")
        self._fuel_tokens.add(token)
        task = self._spawn(self._sync_fuel(level_percent, token), "ridenav-fuel-sync")
        token.attach(task)

    async def _sync_fuel(self, level_percent: float, token: CancellationToken) -> None:
        transport = self._transport
        assert transport is not None  # noqa: S101
        try:
            await _motors_api.update_fuel_level(self._config, transport, self._motor.motor_id, level_percent)
        except RideNavError as exc:
            if not token.cancelled:
                _logger.warning("Fuel level sync failed (keeping local value): %s", exc)
                self._report(exc)
            return
        finally:
            self._fuel_tokens.discard(token)
        if not token.cancelled:
            self._emit("fuel_synced", {"level_percent": level_percent})

    # ------------------------------------------------------------------
    # Motor data
    # ------------------------------------------------------------------

    def cached_motors(self) -> list[MotorProfile] | None:
        """Last known motors for the rider, for display before a refresh."""
        return self._cache.get_motors(self._user_id)

    async def refresh_motors(self) -> list[MotorProfile]:
        """Fetch the rider's motors, cache them and refresh the active profile."""
        transport = self._transport
        if transport is None:
            raise RideNavError("Controller not initialized. Use 'async with SessionController(...) as nav:'")
        motors = await _motors_api.fetch_user_motors(self._config, transport, self._user_id)
        self._cache.put_motors(self._user_id, motors)
        for motor in motors:
            if motor.motor_id == self._motor.motor_id and self._state != SessionState.NAVIGATING:
                self._motor = motor
        return motors

    # ------------------------------------------------------------------
    # Background handoff
    # ------------------------------------------------------------------

    async def enter_background(self) -> bool:
        """Hand live tracking to the background tracker while navigating."""
        session = self._session
        if self._handoff is None or session is None or not self._is_live(session.session_id):
            return False
        handed_off = await self._handoff.suspend(session.session_id, self._motor, self._tracker.stats())
        if not handed_off:
            return False
        if not self._is_live(session.session_id):
            await self._handoff.release()
            return False
        self._tracker.stop()
        session.was_in_background = True
        return True

    async def enter_foreground(self) -> int:
        """Take tracking back from the background tracker.

        Returns the number of background samples merged into the path.
        """
        if self._handoff is None or not self._handoff.suspended:
            return 0
        snapshot = await self._handoff.resume()
        session = self._session
        if session is None or not self._is_live(session.session_id):
            return 0
        added = 0
        if snapshot is not None and snapshot.samples:
            before_m = self._tracker.distance_m
            added = self._tracker.merge_samples(snapshot.samples)
            session.path_history = self._tracker.path
            self._apply_travel(max(0.0, self._tracker.distance_m - before_m) / 1000.0)
        if self._tracker.has_source:
            self._tracker.start(self.handle_sample)
        last = self._tracker.last_sample
        if last is not None and self._arrival.evaluate(last, session.destination):
            self._emit("arrived", {"distance_m": self._arrival.last_distance_m})
            self._schedule_arrival(session.session_id)
        return added
