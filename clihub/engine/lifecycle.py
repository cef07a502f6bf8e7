"""Session lifecycle state machine.

Defines valid transitions and enforces them. Invalid transitions
raise InvalidTransitionError rather than silently proceeding.

State Diagram:

    SPAWNING ──> RUNNING ──┬──> COMPLETED
        │                  │
        │                  ├──> FAILED
        │                  │
        │                  └──> CANCELLED
        │
        ├──> FAILED     (spawn error)
        └──> CANCELLED

Terminal states are final.
"""
from __future__ import annotations

from .errors import InvalidTransitionError
from .models import SessionState

VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.SPAWNING: {
        SessionState.RUNNING,
        SessionState.FAILED,
        SessionState.CANCELLED,
    },
    SessionState.RUNNING: {
        SessionState.COMPLETED,
        SessionState.FAILED,
        SessionState.CANCELLED,
    },
    SessionState.COMPLETED: set(),
    SessionState.FAILED: set(),
    SessionState.CANCELLED: set(),
}


def validate_transition(current: SessionState, target: SessionState) -> None:
    """Validate a state transition. Raises InvalidTransitionError if invalid."""
    allowed = VALID_TRANSITIONS.get(current, set())
    if target not in allowed:
        allowed_str = ", ".join(s.value for s in allowed) or "none (terminal)"
        raise InvalidTransitionError(
            f"Invalid state transition: {current.value} -> {target.value}. "
            f"Allowed from {current.value}: {allowed_str}"
        )
