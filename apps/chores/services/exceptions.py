"""
Domain-specific exceptions for chores app.

Trust errors raised by the ledger are not wrapped; views handle both
hierarchies.
"""


class ChoresServiceError(Exception):
    """Base exception for all chores service errors."""
    pass


class ChoreNotFoundError(ChoresServiceError):
    pass


class InvalidChoreStateError(ChoresServiceError):
    """Raised when a chore event does not fit the chore's current status."""
    pass


class ChorePermissionError(ChoresServiceError):
    """Raised when a user may not act on a chore."""
    pass


class InsufficientTrustError(ChorePermissionError):
    """Raised when a user's trust score does not unlock the action."""
    pass


class WeeklyChoreLimitError(ChoresServiceError):
    """Raised when the assignee already has their weekly quota of chores."""
    pass


class InvalidAssigneeError(ChoresServiceError):
    pass
