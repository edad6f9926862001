"""Record types passed between the trust ledger and its stores."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from apps.trust.policy import TrustActionType


SYSTEM_ACTOR = 'system'


@dataclass(frozen=True)
class TrustActionDraft:
    """An audit record that has not been written yet."""

    user_id: str
    room_id: Optional[str]
    action: TrustActionType
    points: int
    reason: str
    related_id: Optional[str] = None
    created_by: Optional[str] = None


@dataclass(frozen=True)
class TrustActionRecord:
    """Immutable audit entry pairing an action with its point delta."""

    id: str
    user_id: str
    room_id: Optional[str]
    action: TrustActionType
    points: int
    reason: str
    related_id: Optional[str]
    created_by: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class ScoreWrite:
    """What a ledger computation asks the store to commit."""

    new_score: int
    action: TrustActionDraft


@dataclass(frozen=True)
class TrustChange:
    """Outcome of a committed ledger write."""

    user_id: str
    previous_score: int
    new_score: int
    points: int
    # The raw tag when an unknown action was ignored
    action: Union[TrustActionType, str]
    record_id: Optional[str] = None


@dataclass(frozen=True)
class ChoreSnapshot:
    """The chore fields the weekly sweep needs."""

    id: str
    assigned_to_id: str
    status: str
    due_date: datetime


@dataclass
class SweepMarker:
    room_id: str
    week_start: datetime
    bonuses_applied: int = 0
    created_at: Optional[datetime] = field(default=None)
