"""Session state layer.

The transition table in :mod:`ridenav.state.policy` is the single source of
truth for which lifecycle changes are legal; the session controller is the
only component that applies them.
"""

from ridenav.state.events import FlowEvent, SessionState, Transition, TransitionRequest
from ridenav.state.policy import TRANSITIONS, is_allowed, next_state

__all__ = [
    "FlowEvent",
    "SessionState",
    "TRANSITIONS",
    "Transition",
    "TransitionRequest",
    "is_allowed",
    "next_state",
]
