"""
Trust action handlers.

Use-case orchestrators that gather context for a trust change and route
it through the ledger. None of them write scores themselves.

Multi-user handlers (dispute resolution, weekly sweep) run one ledger
transaction per user. Completed steps are never rolled back; when some
steps fail the handler raises PartialFailureError carrying its result so
the caller can see exactly which users were updated.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from django.db import DatabaseError
from django.utils import timezone

from apps.trust.policy import (
    TrustActionType,
    TrustContext,
    bill_payment_action,
)
from apps.trust.types import SYSTEM_ACTOR, TrustChange

from .exceptions import PartialFailureError, PersistenceError, TrustServiceError
from .ledger import TrustLedger


logger = logging.getLogger(__name__)

STREAK_WINDOW = timedelta(days=30)
SWEEP_MIN_CHORES = 3
SWEEP_MIN_RATE = 0.9
DONE_STATUSES = ('completed', 'confirmed')


@dataclass
class StepOutcome:
    """One ledger call inside a multi-step handler."""

    user_id: str
    action: TrustActionType
    change: Optional[TrustChange] = None
    error: Optional[str] = None
    exception: Optional[Exception] = field(default=None, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.change is not None


@dataclass
class DisputeResolution:
    chore_id: str
    is_valid_dispute: bool
    steps: List[StepOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[StepOutcome]:
        return [s for s in self.steps if s.succeeded]

    @property
    def failed(self) -> List[StepOutcome]:
        return [s for s in self.steps if not s.succeeded]


@dataclass
class SweepResult:
    room_id: str
    week_start: datetime
    week_end: datetime
    awarded: List[str] = field(default_factory=list)
    # Bonus for this week was already on record, from an earlier or concurrent run
    already_awarded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    already_swept: bool = False

    @property
    def bonuses_applied(self) -> int:
        return len(self.awarded)


def _run_step(ledger: TrustLedger, *, user_id, action, **kwargs) -> StepOutcome:
    outcome = StepOutcome(user_id=str(user_id), action=TrustActionType(action))
    try:
        outcome.change = ledger.apply(user_id=user_id, action_type=action, **kwargs)
    except TrustServiceError as e:
        logger.error("Trust step %s for user %s failed: %s", action, user_id, e)
        outcome.error = str(e)
        outcome.exception = e
    return outcome


def handle_chore_completion(
    *,
    ledger: TrustLedger,
    chore,
    completed_by,
    now: Optional[datetime] = None
) -> TrustChange:
    """
    Reward a chore completion.

    The streak is the number of chores the user completed in the same room
    over the trailing 30 days.

    Args:
        ledger: TrustLedger to write through
        chore: Chore with id, room_id, title and recurring
        completed_by: ID of the user who completed it
        now: Reference time (defaults to timezone.now())
    """
    now = now or timezone.now()
    consecutive_count = ledger.store.count_completed_chores(
        user_id=str(completed_by),
        room_id=str(chore.room_id),
        since=now - STREAK_WINDOW,
    )

    return ledger.apply(
        user_id=completed_by,
        room_id=chore.room_id,
        action_type=TrustActionType.CHORE_COMPLETED,
        reason=f"Completed chore: {chore.title}",
        related_id=chore.id,
        created_by=completed_by,
        context=TrustContext(
            is_recurring=bool(chore.recurring),
            consecutive_count=consecutive_count,
        ),
    )


def handle_chore_confirmation(*, ledger: TrustLedger, chore, confirmed_by) -> TrustChange:
    """Reward the assignee when a roommate confirms their chore."""
    return ledger.apply(
        user_id=chore.assigned_to_id,
        room_id=chore.room_id,
        action_type=TrustActionType.CHORE_CONFIRMED,
        reason=f"Chore completion confirmed: {chore.title}",
        related_id=chore.id,
        created_by=confirmed_by,
    )


def handle_chore_dispute(
    *,
    ledger: TrustLedger,
    chore,
    disputed_by,
    is_valid_dispute: bool
) -> DisputeResolution:
    """
    Apply the trust outcome of a resolved dispute.

    A valid dispute penalises the completer for a false completion. An
    invalid one penalises the disputer and rewards the completer, as two
    independent ledger calls.

    Raises:
        PartialFailureError: If some but not all steps were applied
        TrustServiceError: If the only step failed
    """
    resolution = DisputeResolution(chore_id=str(chore.id), is_valid_dispute=is_valid_dispute)
    completer = chore.assigned_to_id

    if is_valid_dispute:
        resolution.steps.append(_run_step(
            ledger,
            user_id=completer,
            action=TrustActionType.FALSE_COMPLETION,
            room_id=chore.room_id,
            reason=f"False completion disputed: {chore.title}",
            related_id=chore.id,
            created_by=disputed_by,
        ))
    else:
        resolution.steps.append(_run_step(
            ledger,
            user_id=disputed_by,
            action=TrustActionType.CHORE_DISPUTED_INVALID,
            room_id=chore.room_id,
            reason=f"Invalid dispute raised: {chore.title}",
            related_id=chore.id,
            created_by=completer,
        ))
        resolution.steps.append(_run_step(
            ledger,
            user_id=completer,
            action=TrustActionType.CHORE_CONFIRMED,
            room_id=chore.room_id,
            reason=f"Chore completion confirmed: {chore.title}",
            related_id=chore.id,
            created_by=disputed_by,
        ))

    failed = resolution.failed
    if failed:
        if len(resolution.steps) == 1:
            raise failed[0].exception
        raise PartialFailureError(
            f"Dispute resolution for chore {chore.id}: "
            f"{len(resolution.succeeded)} of {len(resolution.steps)} trust changes applied",
            resolution,
        )
    return resolution


def handle_bill_payment(
    *,
    ledger: TrustLedger,
    user_id,
    room_id,
    bill_id,
    bill_title: str,
    due_date: datetime,
    paid_at: Optional[datetime] = None
) -> TrustChange:
    """Reward an on-time bill payment or penalise a late one."""
    paid_at = paid_at or timezone.now()
    was_on_time = paid_at <= due_date
    action = bill_payment_action(was_on_time)
    reason = f"Bill paid {'on time' if was_on_time else 'late'}: {bill_title}"

    return ledger.apply(
        user_id=user_id,
        room_id=room_id,
        action_type=action,
        reason=reason,
        related_id=bill_id,
        created_by=user_id,
        context=TrustContext(was_on_time=was_on_time),
    )


def week_bounds(now: Optional[datetime] = None):
    """Return [Sunday 00:00, next Sunday 00:00) around ``now`` in local time."""
    local = timezone.localtime(now or timezone.now())
    days_since_sunday = (local.weekday() + 1) % 7
    start = (local - timedelta(days=days_since_sunday)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return start, start + timedelta(days=7)


def run_weekly_sweep(
    *,
    ledger: TrustLedger,
    room_id,
    now: Optional[datetime] = None
) -> SweepResult:
    """
    Award the weekly consistency bonus in a room.

    Every assignee with at least SWEEP_MIN_CHORES chores due this week and
    a completion rate of at least SWEEP_MIN_RATE gets a helpful_action
    bonus attributed to the system. Each bonus is recorded at most once per
    user and week, so a retry after a partial failure, or two overlapping
    runs, never pay anyone twice. A room/week is marked once its sweep
    finishes without failures, and marked weeks are skipped.

    Raises:
        PersistenceError: If the week's chores cannot be fetched
        PartialFailureError: If some bonuses could not be applied
    """
    room_id = str(room_id)
    week_start, week_end = week_bounds(now)
    result = SweepResult(room_id=room_id, week_start=week_start, week_end=week_end)
    store = ledger.store

    if store.has_sweep_marker(room_id=room_id, week_start=week_start):
        logger.info("Weekly sweep for room %s already ran for %s", room_id, week_start.date())
        result.already_swept = True
        return result

    try:
        chores = store.chores_due_between(room_id=room_id, start=week_start, end=week_end)
    except DatabaseError as e:
        logger.error("Weekly sweep for room %s aborted: %s", room_id, e)
        raise PersistenceError(f"Could not load chores for room {room_id}: {e}")

    sweep_ref = f"weekly-sweep:{week_start:%Y-%m-%d}"
    by_user = OrderedDict()
    for chore in sorted(chores, key=lambda c: (c.assigned_to_id, c.due_date)):
        by_user.setdefault(chore.assigned_to_id, []).append(chore)

    for user_id, user_chores in by_user.items():
        done = sum(1 for c in user_chores if c.status in DONE_STATUSES)
        rate = done / len(user_chores)

        if rate < SWEEP_MIN_RATE or len(user_chores) < SWEEP_MIN_CHORES:
            continue

        try:
            change = ledger.apply_once(
                user_id=user_id,
                room_id=room_id,
                action_type=TrustActionType.HELPFUL_ACTION,
                reason=f"Weekly consistency bonus ({int(rate * 100 + 0.5)}% completion)",
                related_id=sweep_ref,
                created_by=SYSTEM_ACTOR,
            )
        except TrustServiceError as e:
            logger.error("Weekly bonus for user %s in room %s failed: %s", user_id, room_id, e)
            result.failed[user_id] = str(e)
            continue

        if change is None:
            result.already_awarded.append(user_id)
        else:
            result.awarded.append(user_id)

    if result.failed:
        raise PartialFailureError(
            f"Weekly sweep for room {room_id}: {result.bonuses_applied} bonuses applied, "
            f"{len(result.failed)} failed",
            result,
        )

    store.add_sweep_marker(
        room_id=room_id,
        week_start=week_start,
        bonuses_applied=result.bonuses_applied,
    )
    logger.info(
        "Weekly sweep for room %s applied %d bonuses",
        room_id, result.bonuses_applied
    )
    return result


def reset_trust_score(
    *,
    ledger: TrustLedger,
    user_id,
    room_id,
    new_score: int,
    reason: str,
    reset_by
) -> TrustChange:
    """Admin reset of a user's score."""
    logger.info("User %s resetting trust score of %s to %s", reset_by, user_id, new_score)
    return ledger.reset(
        user_id=user_id,
        room_id=room_id,
        new_score=new_score,
        reason=reason,
        reset_by=reset_by,
    )
