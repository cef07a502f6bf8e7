"""Tests for the session lifecycle state machine."""
from __future__ import annotations

import pytest

from clihub.engine.errors import InvalidTransitionError
from clihub.engine.lifecycle import VALID_TRANSITIONS, validate_transition
from clihub.engine.models import SessionState


@pytest.mark.parametrize("current, target", [
    (SessionState.SPAWNING, SessionState.RUNNING),
    (SessionState.SPAWNING, SessionState.FAILED),
    (SessionState.SPAWNING, SessionState.CANCELLED),
    (SessionState.RUNNING, SessionState.COMPLETED),
    (SessionState.RUNNING, SessionState.FAILED),
    (SessionState.RUNNING, SessionState.CANCELLED),
])
def test_valid_transitions(current, target):
    validate_transition(current, target)


@pytest.mark.parametrize("current, target", [
    (SessionState.SPAWNING, SessionState.COMPLETED),
    (SessionState.RUNNING, SessionState.SPAWNING),
    (SessionState.COMPLETED, SessionState.CANCELLED),
    (SessionState.CANCELLED, SessionState.COMPLETED),
    (SessionState.FAILED, SessionState.RUNNING),
])
def test_invalid_transitions(current, target):
    with pytest.raises(InvalidTransitionError):
        validate_transition(current, target)


def test_invalid_transition_is_value_error():
    with pytest.raises(ValueError, match="terminal"):
        validate_transition(SessionState.COMPLETED, SessionState.FAILED)


def test_terminal_states_have_no_exits():
    for state in SessionState:
        assert (VALID_TRANSITIONS[state] == set()) is state.is_terminal
