"""
Rooms app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    RoomsServiceError,
    RoomNotFoundError,
    InvalidInviteCodeError,
    AlreadyMemberError,
    RoomFullError,
    NotMemberError,
    OwnerCannotLeaveError,
    InsufficientPermissionsError,
)

from .room_management import (
    create_room,
    get_room_by_id,
    get_membership,
    shares_room,
)

from .membership_management import (
    join_room,
    leave_room,
    get_room_members,
)

from .invite_management import (
    get_invite_code,
    regenerate_invite_code,
)


__all__ = [
    # Exceptions
    'RoomsServiceError',
    'RoomNotFoundError',
    'InvalidInviteCodeError',
    'AlreadyMemberError',
    'RoomFullError',
    'NotMemberError',
    'OwnerCannotLeaveError',
    'InsufficientPermissionsError',

    # Room Management
    'create_room',
    'get_room_by_id',
    'get_membership',
    'shares_room',

    # Membership Management
    'join_room',
    'leave_room',
    'get_room_members',

    # Invite Management
    'get_invite_code',
    'regenerate_invite_code',
]
