"""
Clip domain: projects, clips, marks and the processing state machine.

This package holds data and rules only. It does NOT run ffmpeg or
touch storage; see videostitch.pipeline and videostitch.persistence.
"""

from .errors import (
    ClipError,
    ProjectNotFoundError,
    ClipNotFoundError,
    MarkNotFoundError,
    InvalidRangeError,
    InvalidStateTransitionError,
)
from .models import (
    ProcessingStatus,
    Project,
    Clip,
    Mark,
    MUTABLE_CLIP_FIELDS,
)
from .state import (
    TERMINAL_CLIP_STATES,
    is_clip_terminal,
    can_transition_clip,
    validate_clip_transition,
)

__all__ = [
    # Errors
    "ClipError",
    "ProjectNotFoundError",
    "ClipNotFoundError",
    "MarkNotFoundError",
    "InvalidRangeError",
    "InvalidStateTransitionError",
    # Models
    "ProcessingStatus",
    "Project",
    "Clip",
    "Mark",
    "MUTABLE_CLIP_FIELDS",
    # State validation
    "TERMINAL_CLIP_STATES",
    "is_clip_terminal",
    "can_transition_clip",
    "validate_clip_transition",
]
