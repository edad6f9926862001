"""
Domain-specific exceptions for rooms app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class RoomsServiceError(Exception):
    """Base exception for all rooms service errors."""
    pass


class RoomNotFoundError(RoomsServiceError):
    """Raised when a room does not exist or is inaccessible."""
    pass


class InvalidInviteCodeError(RoomsServiceError):
    """Raised when an invite code is incorrect."""
    pass


class AlreadyMemberError(RoomsServiceError):
    """Raised when a user tries to join a room they're already in."""
    pass


class RoomFullError(RoomsServiceError):
    """Raised when a room has reached its member limit."""
    pass


class NotMemberError(RoomsServiceError):
    """Raised when a user tries to perform an action requiring membership."""
    pass


class OwnerCannotLeaveError(RoomsServiceError):
    """Raised when a room owner tries to leave their room."""
    pass


class InsufficientPermissionsError(RoomsServiceError):
    """Raised when a user lacks the role or trust level for an action."""
    pass
