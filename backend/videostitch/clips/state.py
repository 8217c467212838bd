"""
State transition validation for clip processing.

Lifecycle: PENDING -> PROCESSING -> READY | FAILED

INVARIANT: READY and FAILED are terminal for automatic transitions.
Polling, refresh, or a late pipeline write must never move a clip out of
a terminal state. The one exception is an EXPLICIT re-ingest of a FAILED
clip (FAILED -> PROCESSING), which only the ingestion service requests.
Nothing ever leaves READY.
"""

from typing import FrozenSet, Set, Tuple

from .errors import InvalidStateTransitionError
from .models import ProcessingStatus


TERMINAL_CLIP_STATES: FrozenSet[ProcessingStatus] = frozenset({
    ProcessingStatus.READY,
    ProcessingStatus.FAILED,
})


_CLIP_TRANSITIONS: Set[Tuple[ProcessingStatus, ProcessingStatus]] = {
    (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING),
    (ProcessingStatus.PROCESSING, ProcessingStatus.READY),
    (ProcessingStatus.PROCESSING, ProcessingStatus.FAILED),
}

# Allowed only when explicitly requested (re-ingest)
_EXPLICIT_TRANSITIONS: Set[Tuple[ProcessingStatus, ProcessingStatus]] = {
    (ProcessingStatus.FAILED, ProcessingStatus.PROCESSING),
}


def is_clip_terminal(status: ProcessingStatus) -> bool:
    """Check if a processing status is terminal."""
    return status in TERMINAL_CLIP_STATES


def can_transition_clip(
    from_status: ProcessingStatus,
    to_status: ProcessingStatus,
    explicit: bool = False,
) -> bool:
    """
    Check if a clip state transition is legal.

    Args:
        from_status: Current status
        to_status: Target status
        explicit: True for an operator-requested re-ingest

    Returns:
        True if the transition is allowed, False otherwise
    """
    # Allow staying in same state (idempotent operations)
    if from_status == to_status:
        return True

    if explicit and (from_status, to_status) in _EXPLICIT_TRANSITIONS:
        return True

    if is_clip_terminal(from_status):
        return False

    return (from_status, to_status) in _CLIP_TRANSITIONS


def validate_clip_transition(
    from_status: ProcessingStatus,
    to_status: ProcessingStatus,
    explicit: bool = False,
) -> None:
    """
    Validate a clip state transition, raising an exception if illegal.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    if not can_transition_clip(from_status, to_status, explicit=explicit):
        raise InvalidStateTransitionError("clip", from_status.value, to_status.value)
