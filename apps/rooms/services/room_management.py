"""
Room management service.

Creates rooms and looks them up for the other services.
"""

from uuid import UUID

from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.rooms.models import Room, RoomMembership, RoomRole, generate_invite_code

from .exceptions import RoomNotFoundError, NotMemberError


def create_room(
    *,
    name: str,
    owner: User,
    description: str = '',
    max_members: int = 8,
    max_retries: int = 5
) -> Room:
    """
    Create a room and add the creator as owner.

    Each attempt is its own transaction so an invite code collision can
    be retried with a fresh code.

    Raises:
        RuntimeError: If no unique invite code was found after retries
    """
    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                room = Room.objects.create(
                    name=name,
                    owner=owner,
                    description=description,
                    max_members=max_members,
                    invite_code=generate_invite_code(),
                )
                RoomMembership.objects.create(user=owner, room=room, role=RoomRole.OWNER)
                return room
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique invite code after {max_retries} attempts"
                )

    raise RuntimeError("Unexpected error in room creation")


def get_room_by_id(*, room_id: UUID) -> Room:
    try:
        return Room.objects.select_related('owner').get(id=room_id)
    except Room.DoesNotExist:
        raise RoomNotFoundError(f"Room with ID {room_id} not found")


def get_membership(*, room_id: UUID, user: User) -> RoomMembership:
    """
    Return a user's membership in a room.

    Raises:
        RoomNotFoundError: If room doesn't exist
        NotMemberError: If the user is not in the room
    """
    room = get_room_by_id(room_id=room_id)
    try:
        return RoomMembership.objects.select_related('room').get(room=room, user=user)
    except RoomMembership.DoesNotExist:
        raise NotMemberError(f"User is not a member of {room.name}")


def shares_room(user_a, user_b_id) -> bool:
    """True when both users belong to at least one common room."""
    return RoomMembership.objects.filter(
        user_id=user_b_id,
        room__memberships__user=user_a,
    ).exists()
