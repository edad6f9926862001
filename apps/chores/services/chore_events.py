"""
Chore lifecycle events.

Each event moves a chore through its status machine and hands the trust
consequence to the trust handlers:

    pending/in_progress --complete--> completed --confirm--> confirmed
                                      completed --dispute--> disputed
    disputed --resolve(valid)--> pending
    disputed --resolve(invalid)--> confirmed

Completion and confirmation touch one user, so the status change and the
trust write share a transaction. Dispute resolution touches up to two
users; the status change commits first and each trust step then commits
on its own.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.chores.models import Chore, ChoreStatus
from apps.rooms.models import RoomMembership, RoomRole
from apps.trust.policy import Capability
from apps.trust.services import (
    DisputeResolution,
    PartialFailureError,
    TrustLedger,
    get_trust_ledger,
    get_trust_restrictions,
    handle_chore_completion,
    handle_chore_confirmation,
    handle_chore_dispute,
)
from apps.trust.types import TrustChange

from .exceptions import (
    ChoreNotFoundError,
    ChorePermissionError,
    InsufficientTrustError,
    InvalidChoreStateError,
)


logger = logging.getLogger(__name__)

COMPLETABLE_STATUSES = (ChoreStatus.PENDING, ChoreStatus.IN_PROGRESS)


def _lock_chore(chore_id: UUID) -> Chore:
    try:
        return Chore.objects.select_for_update().get(id=chore_id)
    except Chore.DoesNotExist:
        raise ChoreNotFoundError(f"Chore with ID {chore_id} not found")


def _role_in_room(chore: Chore, user: User) -> Optional[str]:
    membership = RoomMembership.objects.filter(room_id=chore.room_id, user=user).first()
    if membership is None:
        # Non-members are not told the chore exists
        raise ChoreNotFoundError(f"Chore with ID {chore.id} not found")
    return membership.role


def _require_status(chore: Chore, *allowed) -> None:
    if chore.status not in allowed:
        raise InvalidChoreStateError(
            f"Chore is {chore.status}; expected {' or '.join(str(s) for s in allowed)}"
        )


def complete_chore(
    *,
    chore_id: UUID,
    user: User,
    ledger: Optional[TrustLedger] = None
) -> Tuple[Chore, TrustChange]:
    """
    Mark a chore completed by its assignee and reward them.

    Raises:
        ChoreNotFoundError: If chore doesn't exist or user is not in its room
        ChorePermissionError: If user is not the assignee
        InvalidChoreStateError: If chore is not pending or in progress
        TrustServiceError: If the trust change could not be applied; the
            status change is rolled back with it
    """
    ledger = ledger or get_trust_ledger()
    now = timezone.now()

    with transaction.atomic():
        chore = _lock_chore(chore_id)
        _role_in_room(chore, user)

        if chore.assigned_to_id != user.id:
            raise ChorePermissionError("Only the assignee can complete this chore")
        _require_status(chore, *COMPLETABLE_STATUSES)

        chore.status = ChoreStatus.COMPLETED
        chore.completed_at = now
        chore.save(update_fields=['status', 'completed_at', 'updated_at'])

        # Runs after the status update so the streak includes this chore
        change = handle_chore_completion(
            ledger=ledger,
            chore=chore,
            completed_by=user.id,
            now=now,
        )

        chore.trust_impact = change.points
        chore.save(update_fields=['trust_impact', 'updated_at'])

    return chore, change


def confirm_chore(
    *,
    chore_id: UUID,
    user: User,
    ledger: Optional[TrustLedger] = None
) -> Tuple[Chore, TrustChange]:
    """
    Confirm a roommate's completed chore.

    Raises:
        ChoreNotFoundError: If chore doesn't exist or user is not in its room
        ChorePermissionError: If user is the assignee
        InvalidChoreStateError: If chore is not completed
    """
    ledger = ledger or get_trust_ledger()

    with transaction.atomic():
        chore = _lock_chore(chore_id)
        _role_in_room(chore, user)

        if chore.assigned_to_id == user.id:
            raise ChorePermissionError("You cannot confirm your own chore")
        _require_status(chore, ChoreStatus.COMPLETED)

        chore.status = ChoreStatus.CONFIRMED
        chore.confirmed_by = user
        chore.save(update_fields=['status', 'confirmed_by', 'updated_at'])

        change = handle_chore_confirmation(ledger=ledger, chore=chore, confirmed_by=user.id)

        chore.trust_impact = change.points
        chore.save(update_fields=['trust_impact', 'updated_at'])

    return chore, change


@transaction.atomic
def dispute_chore(*, chore_id: UUID, user: User, reason: str = '') -> Chore:
    """
    Flag a completed chore as not actually done.

    No trust change happens until the dispute is resolved.

    Raises:
        ChoreNotFoundError: If chore doesn't exist or user is not in its room
        ChorePermissionError: If user is the assignee
        InsufficientTrustError: If user's trust score does not allow disputes
        InvalidChoreStateError: If chore is not completed
    """
    chore = _lock_chore(chore_id)
    _role_in_room(chore, user)

    if chore.assigned_to_id == user.id:
        raise ChorePermissionError("You cannot dispute your own chore")
    if not get_trust_restrictions(user.current_trust_score).allows(Capability.DISPUTE_CHORE):
        raise InsufficientTrustError("Your trust score is too low to dispute chores")
    _require_status(chore, ChoreStatus.COMPLETED)

    chore.status = ChoreStatus.DISPUTED
    chore.disputed_by = user
    chore.dispute_reason = reason
    chore.save(update_fields=['status', 'disputed_by', 'dispute_reason', 'updated_at'])

    logger.info("Chore %s disputed by user %s", chore.id, user.id)
    return chore


def _record_assignee_impact(chore: Chore, resolution: DisputeResolution) -> None:
    for step in resolution.succeeded:
        if step.user_id == str(chore.assigned_to_id):
            chore.trust_impact = step.change.points
            Chore.objects.filter(id=chore.id).update(trust_impact=step.change.points)


def resolve_dispute(
    *,
    chore_id: UUID,
    user: User,
    is_valid_dispute: bool,
    ledger: Optional[TrustLedger] = None
) -> Tuple[Chore, DisputeResolution]:
    """
    Settle a disputed chore (room admins only).

    A valid dispute sends the chore back to pending and penalises the
    assignee. An invalid one confirms the chore, penalises the disputer and
    rewards the assignee.

    Raises:
        ChoreNotFoundError: If chore doesn't exist or user is not in its room
        ChorePermissionError: If user is not a room admin
        InvalidChoreStateError: If chore is not disputed, or an invalid dispute
            has no disputer left to penalise
        PartialFailureError: If only some trust changes were applied
        TrustServiceError: If the only trust change failed
    """
    ledger = ledger or get_trust_ledger()

    with transaction.atomic():
        chore = _lock_chore(chore_id)
        role = _role_in_room(chore, user)

        if role not in (RoomRole.OWNER, RoomRole.ADMIN):
            raise ChorePermissionError("Only room admins can resolve disputes")
        _require_status(chore, ChoreStatus.DISPUTED)

        disputed_by_id = chore.disputed_by_id
        if not is_valid_dispute and disputed_by_id is None:
            raise InvalidChoreStateError(
                "The roommate who raised this dispute no longer has an account"
            )
        if is_valid_dispute:
            chore.status = ChoreStatus.PENDING
            chore.completed_at = None
            chore.save(update_fields=['status', 'completed_at', 'updated_at'])
        else:
            chore.status = ChoreStatus.CONFIRMED
            chore.save(update_fields=['status', 'updated_at'])

    logger.info(
        "Dispute on chore %s resolved by %s as %s",
        chore.id, user.id, 'valid' if is_valid_dispute else 'invalid'
    )

    try:
        resolution = handle_chore_dispute(
            ledger=ledger,
            chore=chore,
            disputed_by=disputed_by_id,
            is_valid_dispute=is_valid_dispute,
        )
    except PartialFailureError as e:
        _record_assignee_impact(chore, e.result)
        raise

    _record_assignee_impact(chore, resolution)
    return chore, resolution
