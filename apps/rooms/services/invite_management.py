"""
Invite management service.

Inviting roommates is a trust-gated capability: only room admins whose
score unlocks 'invite_members' may see or rotate the invite code.
"""

from uuid import UUID

from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.rooms.models import Room, generate_invite_code
from apps.trust.policy import Capability, can_perform_action

from .exceptions import (
    RoomNotFoundError,
    InsufficientPermissionsError,
)


def check_can_invite(room: Room, user: User) -> None:
    """
    Raises:
        InsufficientPermissionsError: If the user may not invite members
    """
    if not room.is_admin(user):
        raise InsufficientPermissionsError("Only room admins can manage invites")
    if not can_perform_action(user.current_trust_score, Capability.INVITE_MEMBERS):
        raise InsufficientPermissionsError(
            "Your trust score is too low to invite members"
        )


def get_invite_code(*, room_id: UUID, user: User) -> str:
    try:
        room = Room.objects.get(id=room_id)
    except Room.DoesNotExist:
        raise RoomNotFoundError(f"Room with ID {room_id} not found")

    check_can_invite(room, user)
    return room.invite_code


def regenerate_invite_code(
    *,
    room_id: UUID,
    user: User,
    max_retries: int = 5
) -> str:
    """
    Rotate a room's invite code.

    Raises:
        RoomNotFoundError: If room doesn't exist
        InsufficientPermissionsError: If the user may not invite members
        RuntimeError: If no unique code was found after retries
    """
    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                try:
                    room = Room.objects.select_for_update().get(id=room_id)
                except Room.DoesNotExist:
                    raise RoomNotFoundError(f"Room with ID {room_id} not found")

                check_can_invite(room, user)

                room.invite_code = generate_invite_code()
                room.save(update_fields=['invite_code', 'updated_at'])
                return room.invite_code
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique invite code after {max_retries} attempts"
                )

    raise RuntimeError("Unexpected error regenerating invite code")
