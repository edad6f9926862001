"""
Membership management service.

Handles room membership operations with concurrency protection.
"""

from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.rooms.models import Room, RoomMembership, RoomRole

from .exceptions import (
    RoomNotFoundError,
    InvalidInviteCodeError,
    AlreadyMemberError,
    RoomFullError,
    NotMemberError,
    OwnerCannotLeaveError,
)


@transaction.atomic
def join_room(
    *,
    room_id: UUID,
    user: User,
    invite_code: str
) -> RoomMembership:
    """
    Join a room using an invite code.

    The room row is locked so concurrent joins cannot overshoot
    max_members.

    Raises:
        RoomNotFoundError: If room doesn't exist
        InvalidInviteCodeError: If invite code is incorrect
        AlreadyMemberError: If user is already a member
        RoomFullError: If the room is at capacity
    """
    try:
        room = Room.objects.select_for_update().get(id=room_id)
    except Room.DoesNotExist:
        raise RoomNotFoundError(f"Room with ID {room_id} not found")

    if room.invite_code != invite_code:
        raise InvalidInviteCodeError("Invalid invite code")

    if room.has_member(user):
        raise AlreadyMemberError(f"User is already a member of {room.name}")

    if room.is_full():
        raise RoomFullError(f"{room.name} already has {room.max_members} members")

    try:
        membership = RoomMembership.objects.create(
            user=user,
            room=room,
            role=RoomRole.MEMBER
        )
    except IntegrityError:
        raise AlreadyMemberError(f"User is already a member of {room.name}")

    return membership


@transaction.atomic
def leave_room(*, room_id: UUID, user: User) -> None:
    """
    Leave a room. The owner cannot leave their own room.

    Raises:
        RoomNotFoundError: If room doesn't exist
        NotMemberError: If user is not a member
        OwnerCannotLeaveError: If user is the owner
    """
    try:
        room = Room.objects.get(id=room_id)
    except Room.DoesNotExist:
        raise RoomNotFoundError(f"Room with ID {room_id} not found")

    if room.owner_id == user.id:
        raise OwnerCannotLeaveError("Room owner cannot leave. Delete the room instead.")

    try:
        membership = (
            RoomMembership.objects
            .select_for_update()
            .get(user=user, room=room)
        )
    except RoomMembership.DoesNotExist:
        raise NotMemberError(f"User is not a member of {room.name}")
    membership.delete()


def get_room_members(*, room_id: UUID) -> QuerySet:
    """
    Get all members of a room.

    Raises:
        RoomNotFoundError: If room doesn't exist
    """
    if not Room.objects.filter(id=room_id).exists():
        raise RoomNotFoundError(f"Room with ID {room_id} not found")

    return (
        RoomMembership.objects
        .filter(room_id=room_id)
        .select_related('user')
        .order_by('-role', 'joined_at')
    )
