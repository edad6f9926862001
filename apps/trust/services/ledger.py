"""
Trust ledger service.

The ledger is the only code path allowed to change a user's trust score.
Each change reads the current score, applies the policy delta, clamps it,
writes it back and appends the matching audit record in one store
transaction. Conflicting writers are retried up to a fixed budget.
"""

import logging
from typing import List, Optional

from django.conf import settings

from apps.trust.policy import (
    INITIAL_SCORE,
    TrustActionType,
    TrustContext,
    calculate_trust_change,
    clamp_score,
)
from apps.trust.storage.interface import TrustStore
from apps.trust.types import (
    SYSTEM_ACTOR,
    ScoreWrite,
    TrustActionDraft,
    TrustActionRecord,
    TrustChange,
)

from .exceptions import ConflictError, PersistenceError, ValidationError


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
ACCOUNT_CREATED_REASON = 'Account created'


class _AlreadyRecorded(Exception):
    pass


def _require_id(value, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value)


class TrustLedger:
    """
    Transactional mutation engine for trust scores.

    Args:
        store: TrustStore used for all reads and writes
        max_attempts: How many times a conflicting transaction is tried
            before giving up with PersistenceError
    """

    def __init__(self, store: TrustStore, max_attempts: Optional[int] = None):
        if max_attempts is None:
            max_attempts = getattr(settings, 'TRUST_LEDGER_MAX_ATTEMPTS', 5)
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts

    def apply(
        self,
        *,
        user_id,
        room_id,
        action_type,
        reason: str,
        related_id=None,
        created_by=None,
        context: Optional[TrustContext] = None
    ) -> TrustChange:
        """
        Apply a policy-driven trust change to a user.

        The audit record stores the raw policy delta, even when clamping
        reduced the effect on the score.

        An action type the policy does not know is worth 0 points and
        changes nothing: no score write, no audit record.

        Raises:
            ValidationError: If an identifier or the reason is missing
            NotFoundError: If the user does not exist
            PersistenceError: If the change could not be committed
        """
        user_id = _require_id(user_id, 'user_id')
        room_id = _require_id(room_id, 'room_id')
        if not reason:
            raise ValidationError("reason is required")

        try:
            action = TrustActionType(action_type)
        except ValueError:
            logger.warning(
                "Ignoring unknown trust action %r for user %s", action_type, user_id
            )
            score = self.get_score(user_id=user_id)
            return TrustChange(
                user_id=user_id,
                previous_score=score,
                new_score=score,
                points=0,
                action=str(action_type),
            )

        points = calculate_trust_change(action, context)
        return self._commit(user_id, self._policy_write(
            user_id=user_id,
            room_id=room_id,
            action=action,
            points=points,
            reason=reason,
            related_id=related_id,
            created_by=created_by,
        ))

    def apply_once(
        self,
        *,
        user_id,
        room_id,
        action_type: TrustActionType,
        reason: str,
        related_id,
        created_by=None,
        context: Optional[TrustContext] = None
    ) -> Optional[TrustChange]:
        """
        Like apply(), but at most once per (user, action, related_id).

        The check for an earlier record runs inside the store transaction,
        after the user's record is read. A concurrent writer that lands the
        same record first bumps the version, so this attempt conflicts,
        retries and then sees the record.

        Returns None when the action was already recorded.
        """
        user_id = _require_id(user_id, 'user_id')
        room_id = _require_id(room_id, 'room_id')
        related_id = _require_id(related_id, 'related_id')
        if not reason:
            raise ValidationError("reason is required")
        action = TrustActionType(action_type)

        write = self._policy_write(
            user_id=user_id,
            room_id=room_id,
            action=action,
            points=calculate_trust_change(action, context),
            reason=reason,
            related_id=related_id,
            created_by=created_by,
        )

        def compute(current: Optional[int]) -> ScoreWrite:
            earlier = self.store.query_actions(
                user_id=user_id,
                limit=1,
                action=action,
                related_id=related_id,
            )
            if earlier:
                raise _AlreadyRecorded()
            return write(current)

        try:
            return self._commit(user_id, compute)
        except _AlreadyRecorded:
            logger.info(
                "Trust action %s %s already recorded for user %s",
                action, related_id, user_id
            )
            return None

    def _policy_write(self, *, user_id, room_id, action, points, reason, related_id, created_by):
        def compute(current: Optional[int]) -> ScoreWrite:
            base = INITIAL_SCORE if current is None else current
            return ScoreWrite(
                new_score=clamp_score(base + points),
                action=TrustActionDraft(
                    user_id=user_id,
                    room_id=room_id,
                    action=action,
                    points=points,
                    reason=reason,
                    related_id=str(related_id) if related_id is not None else None,
                    created_by=str(created_by) if created_by is not None else None,
                ),
            )

        return compute

    def reset(
        self,
        *,
        user_id,
        room_id,
        new_score: int,
        reason: str = 'Manual reset',
        reset_by
    ) -> TrustChange:
        """
        Set a user's score directly, bypassing the policy.

        The target is clamped, not rejected. The audit record's points are
        measured from INITIAL_SCORE, not from the score being replaced.
        """
        user_id = _require_id(user_id, 'user_id')
        room_id = _require_id(room_id, 'room_id')
        reset_by = _require_id(reset_by, 'reset_by')
        try:
            target = clamp_score(new_score)
        except (TypeError, ValueError):
            raise ValidationError(f"new_score must be an integer, got {new_score!r}")

        def compute(current: Optional[int]) -> ScoreWrite:
            return ScoreWrite(
                new_score=target,
                action=TrustActionDraft(
                    user_id=user_id,
                    room_id=room_id,
                    action=TrustActionType.MANUAL_ADJUSTMENT,
                    points=target - INITIAL_SCORE,
                    reason=reason or 'Manual reset',
                    created_by=reset_by,
                ),
            )

        return self._commit(user_id, compute)

    def open_account(self, *, user_id) -> TrustActionRecord:
        """Write the zero-point 'Account created' entry for a new user."""
        user_id = _require_id(user_id, 'user_id')
        return self.store.append_action(TrustActionDraft(
            user_id=user_id,
            room_id=None,
            action=TrustActionType.MANUAL_ADJUSTMENT,
            points=0,
            reason=ACCOUNT_CREATED_REASON,
            created_by=SYSTEM_ACTOR,
        ))

    def history(self, *, user_id, limit: int = DEFAULT_HISTORY_LIMIT) -> List[TrustActionRecord]:
        """Audit records for a user, most recent first."""
        user_id = _require_id(user_id, 'user_id')
        max_limit = getattr(settings, 'TRUST_HISTORY_MAX_LIMIT', 500)
        if not isinstance(limit, int) or limit < 1 or limit > max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}")
        return self.store.query_actions(user_id=user_id, limit=limit)

    def get_score(self, *, user_id) -> int:
        user_id = _require_id(user_id, 'user_id')
        score = self.store.get_score(user_id)
        return INITIAL_SCORE if score is None else score

    def _commit(self, user_id: str, compute) -> TrustChange:
        # Captured from inside compute so the last successful read wins
        seen = {}

        def tracked(current):
            seen['previous'] = INITIAL_SCORE if current is None else current
            write = compute(current)
            seen['write'] = write
            return write

        for attempt in range(1, self.max_attempts + 1):
            try:
                record = self.store.commit_change(user_id, tracked)
            except ConflictError as e:
                logger.warning(
                    "Trust write conflict for user %s (attempt %d/%d): %s",
                    user_id, attempt, self.max_attempts, e
                )
                continue
            except PersistenceError:
                logger.exception("Trust write failed for user %s", user_id)
                raise

            write = seen['write']
            logger.info(
                "Trust score for user %s: %d -> %d (%s, %+d)",
                user_id, seen['previous'], write.new_score, record.action, record.points
            )
            return TrustChange(
                user_id=user_id,
                previous_score=seen['previous'],
                new_score=write.new_score,
                points=record.points,
                action=record.action,
                record_id=record.id,
            )

        logger.error(
            "Giving up on trust write for user %s after %d attempts",
            user_id, self.max_attempts
        )
        raise PersistenceError(
            f"Could not commit trust change for user {user_id} "
            f"after {self.max_attempts} attempts"
        )


def get_trust_ledger(store: Optional[TrustStore] = None) -> TrustLedger:
    """Build a ledger, backed by the database unless a store is given."""
    if store is None:
        from apps.trust.storage.orm import OrmTrustStore
        store = OrmTrustStore()
    return TrustLedger(store)
