"""
Trust score policy.

Pure rules for the trust system: how many points an action is worth,
which tier a score falls into and which capabilities that tier unlocks.
Nothing in this module touches the database.
"""

from dataclasses import dataclass
from typing import Optional

from django.db import models


INITIAL_SCORE = 100
MIN_SCORE = 0
MAX_SCORE = 150

THRESHOLD_LOW = 30
THRESHOLD_MEDIUM = 70
THRESHOLD_HIGH = 100

# Streak bonus for chore completions
STREAK_START = 5
STREAK_BONUS_CAP = 3
RECURRING_BONUS = 1


class TrustActionType(models.TextChoices):
    CHORE_COMPLETED = 'chore_completed', 'Chore completed'
    CHORE_CONFIRMED = 'chore_confirmed', 'Chore confirmed'
    CHORE_DISPUTED_VALID = 'chore_disputed_valid', 'Chore disputed (valid)'
    CHORE_DISPUTED_INVALID = 'chore_disputed_invalid', 'Chore disputed (invalid)'
    FALSE_COMPLETION = 'false_completion', 'False completion'
    BILL_PAID_ON_TIME = 'bill_paid_on_time', 'Bill paid on time'
    BILL_PAID_LATE = 'bill_paid_late', 'Bill paid late'
    HELPFUL_ACTION = 'helpful_action', 'Helpful action'
    MANUAL_ADJUSTMENT = 'manual_adjustment', 'Manual adjustment'


class TrustTier(models.TextChoices):
    CRITICAL = 'critical', 'Critical'
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'


class Capability(models.TextChoices):
    CREATE_CHORE = 'create_chore', 'Create chores'
    DISPUTE_CHORE = 'dispute_chore', 'Dispute chores'
    MANAGE_BILLS = 'manage_bills', 'Manage bills'
    INVITE_MEMBERS = 'invite_members', 'Invite members'
    DELETE_ITEMS = 'delete_items', 'Delete items'


ACTION_POINTS = {
    TrustActionType.CHORE_COMPLETED: 2,
    TrustActionType.CHORE_CONFIRMED: 1,
    TrustActionType.CHORE_DISPUTED_VALID: -5,
    TrustActionType.CHORE_DISPUTED_INVALID: -1,
    TrustActionType.FALSE_COMPLETION: -10,
    TrustActionType.BILL_PAID_ON_TIME: 3,
    TrustActionType.BILL_PAID_LATE: -2,
    TrustActionType.HELPFUL_ACTION: 5,
}

TIER_DESCRIPTIONS = {
    TrustTier.CRITICAL: 'Critical - Limited privileges, requires supervision',
    TrustTier.LOW: 'Low - Some restrictions may apply',
    TrustTier.MEDIUM: 'Medium - Good standing with room',
    TrustTier.HIGH: 'High - Excellent reliability and trustworthiness',
}


@dataclass(frozen=True)
class TrustContext:
    """Modifiers supplied by the caller alongside an action type."""

    is_recurring: bool = False
    was_on_time: Optional[bool] = None
    consecutive_count: int = 0
    dispute_was_valid: Optional[bool] = None
    # Only read for manual_adjustment
    points: Optional[int] = None


def clamp_score(score: int) -> int:
    """Saturate a score into [MIN_SCORE, MAX_SCORE]."""
    return max(MIN_SCORE, min(MAX_SCORE, int(score)))


def get_trust_tier(score: int) -> TrustTier:
    if score < THRESHOLD_LOW:
        return TrustTier.CRITICAL
    if score < THRESHOLD_MEDIUM:
        return TrustTier.LOW
    if score < THRESHOLD_HIGH:
        return TrustTier.MEDIUM
    return TrustTier.HIGH


def get_trust_description(score: int) -> str:
    return TIER_DESCRIPTIONS[get_trust_tier(score)]


def streak_bonus(consecutive_count: int) -> int:
    """
    Bonus for a run of recent completions.

    Nothing below STREAK_START completions, then one point per completion
    past four, capped at STREAK_BONUS_CAP.
    """
    if consecutive_count < STREAK_START:
        return 0
    return min(consecutive_count - (STREAK_START - 1), STREAK_BONUS_CAP)


def bill_payment_action(was_on_time: bool) -> TrustActionType:
    """Name the bill payment action by its outcome."""
    if was_on_time:
        return TrustActionType.BILL_PAID_ON_TIME
    return TrustActionType.BILL_PAID_LATE


def bill_paid_on_time_points(context: TrustContext) -> int:
    """
    Points for a 'bill_paid_on_time' action.

    The bonus is only paid when the context says the bill was on time.
    A late payment, or one with no timing at all, gets the late penalty.
    Callers that know the outcome should use bill_payment_action() instead.
    """
    if context.was_on_time:
        return ACTION_POINTS[TrustActionType.BILL_PAID_ON_TIME]
    return ACTION_POINTS[TrustActionType.BILL_PAID_LATE]


def calculate_trust_change(action_type, context: Optional[TrustContext] = None) -> int:
    """
    Compute the point delta for an action.

    Args:
        action_type: TrustActionType (or its string value)
        context: Optional modifiers for the action

    Returns:
        Signed point delta. Unrecognised action types are worth 0.
    """
    context = context or TrustContext()

    try:
        action_type = TrustActionType(action_type)
    except ValueError:
        return 0

    if action_type == TrustActionType.CHORE_COMPLETED:
        points = ACTION_POINTS[action_type]
        if context.is_recurring:
            points += RECURRING_BONUS
        return points + streak_bonus(context.consecutive_count or 0)

    if action_type == TrustActionType.BILL_PAID_ON_TIME:
        return bill_paid_on_time_points(context)

    if action_type == TrustActionType.MANUAL_ADJUSTMENT:
        return int(context.points or 0)

    return ACTION_POINTS.get(action_type, 0)


def can_perform_action(score: int, capability) -> bool:
    """
    Check whether a score unlocks a capability.

    Unknown capabilities are allowed, matching the permissive default of
    the restriction table.
    """
    try:
        capability = Capability(capability)
    except ValueError:
        return True

    if capability == Capability.CREATE_CHORE:
        return get_trust_tier(score) != TrustTier.CRITICAL
    if capability == Capability.DISPUTE_CHORE:
        return score >= THRESHOLD_LOW
    if capability in (Capability.MANAGE_BILLS, Capability.DELETE_ITEMS):
        return score >= THRESHOLD_MEDIUM
    if capability == Capability.INVITE_MEMBERS:
        return score >= THRESHOLD_HIGH
    return True
