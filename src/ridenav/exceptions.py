"""Custom exception hierarchy for ridenav."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ridenav.models.trip import TripRecord


class RideNavError(Exception):
    """Base exception for all ridenav errors."""


class RideNavConfigError(RideNavError):
    """Invalid or missing configuration."""


class RideNavTransportError(RideNavError):
    """Network-class failure (connection, timeout, 5xx, invalid JSON).

    Always safe to retry.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RideNavApiError(RideNavError):
    """Backend answered with a status that must not be retried."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RideNavValidationError(RideNavApiError):
    """Request rejected as invalid (HTTP 4xx or local pre-flight validation).

    Terminal: retrying the same request cannot succeed.
    """


class RideNavNoRouteError(RideNavError):
    """The directions service found no route between origin and destination."""


class RideNavCancelledError(RideNavError):
    """An operation was superseded or torn down before it completed.

    Raised internally when a cancellation token is checked; the controller
    discards it silently instead of reporting it.
    """


class RideNavPersistenceError(RideNavError):
    """A finalized trip could not be saved.

    Raised after all retry attempts are exhausted, or immediately for a
    terminal failure.  ``record`` carries the unsaved trip so callers can
    offer a manual retry.
    """

    def __init__(
        self,
        message: str,
        *,
        record: TripRecord | None = None,
        attempts: int = 0,
    ) -> None:
        self.record = record
        self.attempts = attempts
        super().__init__(message)


def is_retryable(exc: BaseException) -> bool:
    """Whether *exc* belongs to the retryable (network/timeout) class."""
    return isinstance(exc, RideNavTransportError)
