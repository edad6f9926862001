"""
Chore management service.

Creation and lookup of chores. Creating a chore is trust-gated: the
creator needs the 'create_chore' capability and the assignee must still
have room in their weekly quota.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.chores.models import Chore, ChorePriority, ChoreStatus
from apps.rooms.models import RoomMembership
from apps.rooms.services import get_room_by_id
from apps.trust.policy import Capability
from apps.trust.services import get_trust_restrictions, week_bounds

from .exceptions import (
    ChoreNotFoundError,
    ChorePermissionError,
    InsufficientTrustError,
    InvalidAssigneeError,
    WeeklyChoreLimitError,
)


logger = logging.getLogger(__name__)


def _is_member(room_id, user_id) -> bool:
    return RoomMembership.objects.filter(room_id=room_id, user_id=user_id).exists()


def count_chores_due_in_week(*, room_id, user_id, when: datetime) -> int:
    """Chores assigned to a user in a room, due in the week containing ``when``."""
    start, end = week_bounds(when)
    return (
        Chore.objects
        .filter(room_id=room_id, assigned_to_id=user_id, due_date__gte=start, due_date__lt=end)
        .exclude(status=ChoreStatus.SKIPPED)
        .count()
    )


@transaction.atomic
def create_chore(
    *,
    room_id: UUID,
    created_by: User,
    title: str,
    due_date: datetime,
    assigned_to_id: Optional[UUID] = None,
    description: str = '',
    priority: str = ChorePriority.MEDIUM,
    recurring: bool = False
) -> Chore:
    """
    Create a chore in a room.

    The assignee defaults to the creator.

    Raises:
        RoomNotFoundError: If room doesn't exist
        ChorePermissionError: If the creator is not a room member
        InsufficientTrustError: If the creator's trust score is too low
        InvalidAssigneeError: If the assignee is not a room member
        WeeklyChoreLimitError: If the assignee's weekly quota is used up
    """
    room = get_room_by_id(room_id=room_id)

    if not _is_member(room.id, created_by.id):
        raise ChorePermissionError("You must be a room member to create chores")

    creator_restrictions = get_trust_restrictions(created_by.current_trust_score)
    if not creator_restrictions.allows(Capability.CREATE_CHORE):
        raise InsufficientTrustError("Your trust score is too low to create chores")

    if assigned_to_id is None:
        assignee = created_by
    else:
        assignee = User.objects.filter(id=assigned_to_id, is_active=True).first()
        if assignee is None or not _is_member(room.id, assignee.id):
            raise InvalidAssigneeError("Chores can only be assigned to room members")

    weekly_cap = get_trust_restrictions(assignee.current_trust_score).max_chores_per_week
    if weekly_cap is not None:
        already_due = count_chores_due_in_week(room_id=room.id, user_id=assignee.id, when=due_date)
        if already_due >= weekly_cap:
            raise WeeklyChoreLimitError(
                f"{assignee.get_display_name()} already has {already_due} chores due that week "
                f"(limit {weekly_cap})"
            )

    chore = Chore.objects.create(
        room=room,
        title=title,
        description=description,
        assigned_to=assignee,
        created_by=created_by,
        priority=priority,
        recurring=recurring,
        due_date=due_date,
    )
    logger.info("Chore %s created in room %s for user %s", chore.id, room.id, assignee.id)
    return chore


def get_chore(*, chore_id: UUID, user: User) -> Chore:
    """
    Raises:
        ChoreNotFoundError: If the chore doesn't exist or the user can't see it
    """
    try:
        chore = Chore.objects.select_related('room', 'assigned_to').get(id=chore_id)
    except Chore.DoesNotExist:
        raise ChoreNotFoundError(f"Chore with ID {chore_id} not found")

    if not _is_member(chore.room_id, user.id):
        raise ChoreNotFoundError(f"Chore with ID {chore_id} not found")
    return chore


def list_chores(*, user: User, room_id: Optional[UUID] = None, status: Optional[str] = None) -> QuerySet:
    """Chores in the user's rooms, optionally narrowed to one room and status."""
    queryset = (
        Chore.objects
        .filter(room__memberships__user=user)
        .select_related('room', 'assigned_to')
    )
    if room_id:
        queryset = queryset.filter(room_id=room_id)
    if status:
        queryset = queryset.filter(status=status)
    return queryset.distinct()
