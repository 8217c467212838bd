"""
Clip-specific error types.

All errors inherit from ClipError for easy catching.
These are raised by synchronous operations and returned to the caller;
the background pipeline never raises them outward.
"""


class ClipError(Exception):
    """Base exception for all clip-related failures."""
    pass


class ProjectNotFoundError(ClipError):
    """Raised when a project cannot be found."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class ClipNotFoundError(ClipError):
    """Raised when a clip cannot be found."""

    def __init__(self, clip_id: str):
        self.clip_id = clip_id
        super().__init__(f"Clip not found: {clip_id}")


class MarkNotFoundError(ClipError):
    """Raised when a mark cannot be found."""

    def __init__(self, mark_id: str):
        self.mark_id = mark_id
        super().__init__(f"Mark not found: {mark_id}")


class InvalidRangeError(ClipError):
    """Raised when a mark's in/out points do not form a valid range."""

    def __init__(self, in_point: float, out_point: float, reason: str):
        self.in_point = in_point
        self.out_point = out_point
        self.reason = reason
        super().__init__(f"InvalidRange [{in_point}, {out_point}]: {reason}")


class InvalidStateTransitionError(ClipError):
    """Raised when attempting an illegal processing status transition."""

    def __init__(self, entity_type: str, current_state: str, target_state: str):
        self.entity_type = entity_type
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid {entity_type} state transition: "
            f"{current_state} -> {target_state}"
        )
