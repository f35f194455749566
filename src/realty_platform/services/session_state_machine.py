"""AI closer session state machine: validates status transitions.

Sessions start ``active`` and may move once, to ``completed`` (buyer
qualified) or ``abandoned`` (buyer walked away). Nothing moves backward.
"""

from realty_platform.domain.enums import SessionStatus


class InvalidTransitionError(Exception):
    """Raised when a session status transition is not allowed."""

    def __init__(
        self,
        current_status: SessionStatus,
        target_status: SessionStatus,
        reason: str,
    ):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )


S = SessionStatus

TRANSITION_MAP: dict[SessionStatus, set[SessionStatus]] = {
    S.ACTIVE: {S.COMPLETED, S.ABANDONED},
}

TERMINAL_STATES = {S.COMPLETED, S.ABANDONED}

# States that still accept new chat turns. A completed session may keep
# talking after qualification.
MESSAGEABLE_STATES = {S.ACTIVE, S.COMPLETED}


def _coerce(status) -> SessionStatus:
    return status if isinstance(status, SessionStatus) else SessionStatus(status)


def validate_transition(current_status, target_status) -> bool:
    """Return True if the transition is valid. Raise InvalidTransitionError if not."""
    current = _coerce(current_status)
    target = _coerce(target_status)

    allowed = TRANSITION_MAP.get(current)
    if allowed is None:
        raise InvalidTransitionError(current, target, f"{current.value} is terminal")
    if target not in allowed:
        raise InvalidTransitionError(
            current,
            target,
            f"Transition from {current.value} to {target.value} is not allowed",
        )
    return True


def can_transition(current_status, target_status) -> bool:
    """Non-raising variant of ``validate_transition``."""
    try:
        return validate_transition(current_status, target_status)
    except InvalidTransitionError:
        return False


def ensure_messageable(current_status) -> None:
    """Raise InvalidTransitionError when a session no longer accepts turns."""
    current = _coerce(current_status)
    if current not in MESSAGEABLE_STATES:
        raise InvalidTransitionError(current, current, "session no longer accepts messages")
