"""Explicit session transition table.

This module contains no side effects; the controller consults it and then
applies the side effects for the transition it gets back.
"""

from __future__ import annotations

from ridenav.state.events import FlowEvent, SessionState

TRANSITIONS: dict[tuple[SessionState, FlowEvent], SessionState] = {
    (SessionState.SEARCHING, FlowEvent.DESTINATION_CHOSEN): SessionState.DESTINATION_SELECTED,
    # Choosing another destination before routes arrive replaces the first one.
    (SessionState.DESTINATION_SELECTED, FlowEvent.DESTINATION_CHOSEN): SessionState.DESTINATION_SELECTED,
    (SessionState.DESTINATION_SELECTED, FlowEvent.ROUTES_FAILED): SessionState.DESTINATION_SELECTED,
    (SessionState.DESTINATION_SELECTED, FlowEvent.ROUTES_FETCHED): SessionState.ROUTES_FOUND,
    # A refreshed plan replaces the current candidates; a failed refresh drops them.
    (SessionState.ROUTES_FOUND, FlowEvent.ROUTES_FETCHED): SessionState.ROUTES_FOUND,
    (SessionState.ROUTES_FOUND, FlowEvent.ROUTES_FAILED): SessionState.DESTINATION_SELECTED,
    (SessionState.ROUTES_FOUND, FlowEvent.NAVIGATION_STARTED): SessionState.NAVIGATING,
    (SessionState.NAVIGATING, FlowEvent.ARRIVED): SessionState.COMPLETED,
    (SessionState.NAVIGATING, FlowEvent.MANUAL_STOP): SessionState.COMPLETED,
    (SessionState.COMPLETED, FlowEvent.NEW_TRIP): SessionState.SEARCHING,
}

# Events that clear all session data whenever they are applied.
DATA_RESETTING_EVENTS: frozenset[FlowEvent] = frozenset({FlowEvent.NEW_TRIP, FlowEvent.RESET})


def next_state(current: SessionState, event: FlowEvent) -> SessionState | None:
    """Target state for *event* in *current*, or ``None`` if not allowed.

    ``RESET`` is legal from every state.
    """
    if event == FlowEvent.RESET:
        return SessionState.SEARCHING
    return TRANSITIONS.get((current, event))


def is_allowed(current: SessionState, event: FlowEvent) -> bool:
    return next_state(current, event) is not None
