"""Trust-based restrictions derived from a score. Pure, no I/O."""

from dataclasses import asdict, dataclass
from typing import Optional

from apps.trust.policy import (
    Capability,
    TrustTier,
    can_perform_action,
    get_trust_tier,
)


MAX_CHORES_PER_WEEK = {
    TrustTier.CRITICAL: 2,
    TrustTier.LOW: 5,
}

STATUS_MESSAGES = {
    TrustTier.CRITICAL: 'Your trust score is critically low. Some features are restricted.',
    TrustTier.LOW: 'Your trust score is low. Complete chores reliably to improve it.',
    TrustTier.MEDIUM: 'Good standing! Keep up the reliable work.',
    TrustTier.HIGH: 'Excellent trustworthiness! You have full privileges.',
}


@dataclass(frozen=True)
class TrustRestrictions:
    tier: TrustTier
    can_create_chores: bool
    can_dispute_chores: bool
    can_manage_bills: bool
    can_invite_members: bool
    can_delete_items: bool
    requires_confirmation: bool
    message: str
    max_chores_per_week: Optional[int] = None

    def allows(self, capability) -> bool:
        flags = {
            Capability.CREATE_CHORE: self.can_create_chores,
            Capability.DISPUTE_CHORE: self.can_dispute_chores,
            Capability.MANAGE_BILLS: self.can_manage_bills,
            Capability.INVITE_MEMBERS: self.can_invite_members,
            Capability.DELETE_ITEMS: self.can_delete_items,
        }
        return flags.get(capability, True)

    def as_dict(self) -> dict:
        data = asdict(self)
        data['tier'] = str(self.tier)
        return data


def get_trust_restrictions(score: int) -> TrustRestrictions:
    tier = get_trust_tier(score)
    return TrustRestrictions(
        tier=tier,
        can_create_chores=can_perform_action(score, Capability.CREATE_CHORE),
        can_dispute_chores=can_perform_action(score, Capability.DISPUTE_CHORE),
        can_manage_bills=can_perform_action(score, Capability.MANAGE_BILLS),
        can_invite_members=can_perform_action(score, Capability.INVITE_MEMBERS),
        can_delete_items=can_perform_action(score, Capability.DELETE_ITEMS),
        requires_confirmation=tier in (TrustTier.CRITICAL, TrustTier.LOW),
        message=STATUS_MESSAGES[tier],
        max_chores_per_week=MAX_CHORES_PER_WEEK.get(tier),
    )
