"""Charge capture state machine enforced by the lifecycle engine."""

from enum import Enum


class ChargeState(str, Enum):
    UNCAPTURED = "uncaptured"
    CAPTURED = "captured"


ALLOWED_TRANSITIONS: dict[ChargeState, set[ChargeState]] = {
    ChargeState.UNCAPTURED: {ChargeState.CAPTURED},
    ChargeState.CAPTURED: set(),
}


def state_for(captured: bool) -> ChargeState:
    """Map the wire-level `captured` flag onto a state."""

    return ChargeState.CAPTURED if captured else ChargeState.UNCAPTURED


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine.

    Accepts either `ChargeState` members or their string values; unknown states
    are rejected with the same `ValueError`.
    """

    if ChargeState(new) not in ALLOWED_TRANSITIONS.get(ChargeState(current), set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")
