"""Live location tracking.

The tracker owns the position subscription and the traveled path.  Each
accepted sample produces a :class:`SampleUpdate` value which the session
controller passes on to the off-route monitor, the arrival detector and
the fuel model.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from ridenav._constants import MPS_TO_KMH
from ridenav.config import RideNavConfig
from ridenav.fuel import fuel_estimate
from ridenav.geo import distance_between, path_length
from ridenav.models.location import LocationSample
from ridenav.models.route import RouteCandidate
from ridenav.models.trip import TrackingStats

_logger = logging.getLogger(__name__)

SampleCallback = Callable[[LocationSample], None]


class PositionSource(Protocol):
    """Push-based position provider.

    ``subscribe`` starts delivering samples to *callback* and returns a
    callable that stops delivery.
    """

    def subscribe(
        self,
        callback: SampleCallback,
        *,
        min_distance_m: float,
        min_interval_seconds: float,
        high_accuracy: bool = True,
    ) -> Callable[[], None]:
        ...


class PositionSubscription:
    """Cancellable handle on an active position subscription.

    Usable as a context manager; :meth:`close` is idempotent so every exit
    path can release it.
    """

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def close(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def __enter__(self) -> PositionSubscription:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


@dataclass(frozen=True, slots=True)
class SampleUpdate:
    """Result of processing one accepted sample."""

    sample: LocationSample
    stats: TrackingStats
    increment_m: float
    speed_warning: bool = False


class LocationTracker:
    """Accumulates the traveled path and derives live statistics.

    Parameters
    ----------
    config : RideNavConfig
        Source of the position request, speed limit and ETA floor.
    source : PositionSource or None
        Provider used by :meth:`start`.  May be ``None`` when samples are
        pushed directly through :meth:`process_sample`.
    """

    def __init__(self, config: RideNavConfig, source: PositionSource | None = None) -> None:
        self._config = config
        self._source = source
        self._subscription: PositionSubscription | None = None
        self._route: RouteCandidate | None = None
        self._efficiency: float = 0.0
        self._path: list[LocationSample] = []
        self._distance_m = 0.0
        self._max_speed_kmh = 0.0
        self._current_speed_kmh = 0.0
        self._started_at_ms: int | None = None
        self._last_warning_ms: int | None = None

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    @property
    def has_source(self) -> bool:
        return self._source is not None

    @property
    def running(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self, on_sample: SampleCallback) -> PositionSubscription:
        """Subscribe to the position source; a second call is a no-op."""
        if self._subscription is not None and self._subscription.active:
            return self._subscription
        if self._source is None:
            raise RuntimeError("LocationTracker has no position source")
        unsubscribe = self._source.subscribe(
            on_sample,
            min_distance_m=self._config.min_distance_m,
            min_interval_seconds=self._config.min_interval_seconds,
            high_accuracy=True,
        )
        self._subscription = PositionSubscription(unsubscribe)
        _logger.debug("Position subscription started")
        return self._subscription

    def stop(self) -> None:
        """Release the position subscription; safe to call repeatedly."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()
            _logger.debug("Position subscription released")

    # ------------------------------------------------------------------
    # Session data
    # ------------------------------------------------------------------

    @property
    def path(self) -> list[LocationSample]:
        return list(self._path)

    @property
    def last_sample(self) -> LocationSample | None:
        return self._path[-1] if self._path else None

    @property
    def distance_m(self) -> float:
        return self._distance_m

    def set_route(self, route: RouteCandidate | None) -> None:
        self._route = route

    def set_fuel_efficiency(self, km_per_liter: float) -> None:
        self._efficiency = km_per_liter

    def reset(self, started_at_ms: int | None = None) -> None:
        """Forget the traveled path and throttle state."""
        self._path.clear()
        self._distance_m = 0.0
        self._max_speed_kmh = 0.0
        self._current_speed_kmh = 0.0
        self._started_at_ms = started_at_ms
        self._last_warning_ms = None

    # ------------------------------------------------------------------
    # Sample processing
    # ------------------------------------------------------------------

    def _speed_kmh(self, sample: LocationSample, previous: LocationSample | None, increment_m: float) -> float:
        if sample.speed_mps is not None:
            return sample.speed_mps * MPS_TO_KMH
        if previous is None:
            return 0.0
        elapsed_s = (sample.timestamp_ms - previous.timestamp_ms) / 1000.0
        if elapsed_s <= 0:
            return self._current_speed_kmh
        return increment_m / elapsed_s * MPS_TO_KMH

    def _speed_warning_due(self, timestamp_ms: int) -> bool:
        interval_ms = self._config.speed_warning_interval_seconds * 1000.0
        if self._last_warning_ms is not None and timestamp_ms - self._last_warning_ms < interval_ms:
            return False
        self._last_warning_ms = timestamp_ms
        return True

    def process_sample(self, sample: LocationSample) -> SampleUpdate | None:
        """Record *sample* and return the derived update.

        Returns ``None`` when the sample repeats the last recorded point.
        """
        previous = self.last_sample
        if sample.same_position(previous):
            _logger.debug("Dropped duplicate sample at %s", sample.as_tuple())
            return None

        increment_m = distance_between(previous.as_tuple(), sample.as_tuple()) if previous else 0.0
        self._path.append(sample)
        self._distance_m += increment_m
        if self._started_at_ms is None:
            self._started_at_ms = sample.timestamp_ms

        speed_kmh = self._speed_kmh(sample, previous, increment_m)
        self._current_speed_kmh = speed_kmh
        self._max_speed_kmh = max(self._max_speed_kmh, speed_kmh)

        over_speed = speed_kmh > self._config.speed_limit_kmh
        speed_warning = over_speed and self._speed_warning_due(sample.timestamp_ms)
        if speed_warning:
            _logger.warning("Over speed: %.0f km/h (limit %.0f)", speed_kmh, self._config.speed_limit_kmh)

        return SampleUpdate(
            sample=sample,
            stats=self.stats(over_speed=over_speed),
            increment_m=increment_m,
            speed_warning=speed_warning,
        )

    def stats(self, *, over_speed: bool = False) -> TrackingStats:
        """Current statistics derived from the recorded path."""
        last = self.last_sample
        duration_s = 0.0
        if last is not None and self._started_at_ms is not None:
            duration_s = max(0.0, (last.timestamp_ms - self._started_at_ms) / 1000.0)
        avg_speed = self._distance_m / duration_s * MPS_TO_KMH if duration_s > 0 else 0.0

        remaining_m: float | None = None
        eta_minutes: float | None = None
        final_point = self._route.final_point if self._route is not None else None
        if last is not None and final_point is not None:
            remaining_m = distance_between(last.as_tuple(), final_point)
            effective_kmh = max(self._current_speed_kmh, self._config.eta_floor_kmh)
            eta_minutes = remaining_m / 1000.0 / effective_kmh * 60.0

        return TrackingStats(
            distance_m=self._distance_m,
            duration_s=duration_s,
            current_speed_kmh=self._current_speed_kmh,
            avg_speed_kmh=avg_speed,
            max_speed_kmh=self._max_speed_kmh,
            remaining_distance_m=remaining_m,
            eta_minutes=eta_minutes,
            fuel_consumed_liters=fuel_estimate(self._distance_m / 1000.0, self._efficiency),
            over_speed=over_speed,
        )

    def merge_samples(self, samples: Iterable[LocationSample]) -> int:
        """Merge externally collected samples into the path.

        The merged path is ordered by timestamp with consecutive duplicate
        positions and repeated timestamps removed; the traveled distance is
        recomputed from it.  Returns the number of samples added.
        """
        before = len(self._path)
        combined = sorted([*self._path, *samples], key=lambda s: s.timestamp_ms)
        merged: list[LocationSample] = []
        for sample in combined:
            if merged and (sample.timestamp_ms == merged[-1].timestamp_ms or sample.same_position(merged[-1])):
                continue
            merged.append(sample)
        self._path = merged
        self._distance_m = path_length(s.as_tuple() for s in merged)
        if merged and (self._started_at_ms is None or merged[0].timestamp_ms < self._started_at_ms):
            self._started_at_ms = merged[0].timestamp_ms
        added = len(merged) - before
        _logger.debug("Merged %d background sample(s)", added)
        return added
