"""Session states, flow events, and transition requests.

Every change to the visible session state is expressed as a
:class:`TransitionRequest`; only the session controller applies them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SessionState(StrEnum):
    SEARCHING = "searching"
    DESTINATION_SELECTED = "destination_selected"
    ROUTES_FOUND = "routes_found"
    NAVIGATING = "navigating"
    COMPLETED = "completed"


class FlowEvent(StrEnum):
    DESTINATION_CHOSEN = "destination_chosen"
    ROUTES_FETCHED = "routes_fetched"
    ROUTES_FAILED = "routes_failed"
    NAVIGATION_STARTED = "navigation_started"
    ARRIVED = "arrived"
    MANUAL_STOP = "manual_stop"
    NEW_TRIP = "new_trip"
    RESET = "reset"


class TransitionRequest(BaseModel):
    """A requested state change plus the directives applied with it."""

    model_config = ConfigDict(frozen=True)

    event: FlowEvent
    reset_data: bool = False
    close_modals: bool = False
    requested_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Transition(BaseModel):
    """An applied transition, as delivered to observers."""

    model_config = ConfigDict(frozen=True)

    previous: SessionState
    current: SessionState
    event: FlowEvent
    data_reset: bool = False
    modals_closed: bool = False
