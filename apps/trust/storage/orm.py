import logging
from datetime import datetime
from typing import List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.chores.models import Chore, ChoreStatus
from apps.trust.models import TrustAction, WeeklySweepMarker
from apps.trust.policy import TrustActionType
from apps.trust.services.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from apps.trust.storage.interface import ComputeWrite, TrustStore
from apps.trust.types import ChoreSnapshot, TrustActionDraft, TrustActionRecord


logger = logging.getLogger(__name__)


def to_record(action: TrustAction) -> TrustActionRecord:
    return TrustActionRecord(
        id=str(action.id),
        user_id=str(action.user_id),
        room_id=str(action.room_id) if action.room_id else None,
        action=TrustActionType(action.action),
        points=action.points,
        reason=action.reason,
        related_id=action.related_id,
        created_by=action.created_by,
        created_at=action.created_at,
    )


class OrmTrustStore(TrustStore):
    """
    Trust store backed by the Django ORM.

    A score change is one atomic block: the user row is read under
    select_for_update(), then written with a conditional UPDATE on the
    version that was read. If no row matches, another writer got there
    first and the block rolls back with ConflictError. Lock timeouts and
    serialization failures surface from the database as OperationalError
    and are reported as conflicts too.
    """

    def commit_change(self, user_id: str, compute: ComputeWrite) -> TrustActionRecord:
        try:
            with transaction.atomic():
                try:
                    current_score, read_version = (
                        User.objects
                        .select_for_update()
                        .values_list('trust_score', 'trust_version')
                        .get(id=user_id)
                    )
                except User.DoesNotExist:
                    raise NotFoundError(f"User with ID {user_id} not found")

                write = compute(current_score)

                updated = (
                    User.objects
                    .filter(id=user_id, trust_version=read_version)
                    .update(
                        trust_score=write.new_score,
                        trust_version=F('trust_version') + 1,
                        updated_at=timezone.now(),
                    )
                )
                if updated != 1:
                    raise ConflictError(
                        f"Trust record for user {user_id} changed during the transaction"
                    )

                try:
                    action = self._create(write.action)
                except DjangoValidationError:
                    raise ValidationError(f"Malformed room ID: {write.action.room_id!r}")
        except DjangoValidationError:
            raise ValidationError(f"Malformed user ID: {user_id!r}")
        except OperationalError as e:
            logger.warning("Trust transaction for user %s hit a lock: %s", user_id, e)
            raise ConflictError(f"Trust transaction for user {user_id} conflicted: {e}")
        except DatabaseError as e:
            raise PersistenceError(f"Trust transaction for user {user_id} failed: {e}")

        return to_record(action)

    def get_score(self, user_id: str) -> Optional[int]:
        try:
            return User.objects.values_list('trust_score', flat=True).get(id=user_id)
        except User.DoesNotExist:
            raise NotFoundError(f"User with ID {user_id} not found")
        except DjangoValidationError:
            raise ValidationError(f"Malformed user ID: {user_id!r}")

    def append_action(self, draft: TrustActionDraft) -> TrustActionRecord:
        try:
            return to_record(self._create(draft))
        except DjangoValidationError:
            raise ValidationError(f"Malformed room ID: {draft.room_id!r}")
        except DatabaseError as e:
            raise PersistenceError(f"Could not write trust action: {e}")

    def _create(self, draft: TrustActionDraft) -> TrustAction:
        return TrustAction.objects.create(
            user_id=draft.user_id,
            room_id=draft.room_id,
            action=draft.action,
            points=draft.points,
            reason=draft.reason,
            related_id=draft.related_id,
            created_by=draft.created_by,
        )

    def query_actions(
        self,
        *,
        user_id: str,
        limit: int,
        since: Optional[datetime] = None,
        action: Optional[str] = None,
        related_id: Optional[str] = None,
    ) -> List[TrustActionRecord]:
        queryset = TrustAction.objects.filter(user_id=user_id)
        if since is not None:
            queryset = queryset.filter(created_at__gte=since)
        if action is not None:
            queryset = queryset.filter(action=action)
        if related_id is not None:
            queryset = queryset.filter(related_id=related_id)
        return [to_record(a) for a in queryset.order_by('-created_at')[:limit]]

    def count_completed_chores(self, *, user_id: str, room_id: str, since: datetime) -> int:
        return Chore.objects.filter(
            assigned_to_id=user_id,
            room_id=room_id,
            status=ChoreStatus.COMPLETED,
            completed_at__gte=since,
        ).count()

    def chores_due_between(self, *, room_id: str, start: datetime, end: datetime) -> List[ChoreSnapshot]:
        chores = (
            Chore.objects
            .filter(room_id=room_id, due_date__gte=start, due_date__lt=end)
            .values('id', 'assigned_to_id', 'status', 'due_date')
        )
        return [
            ChoreSnapshot(
                id=str(c['id']),
                assigned_to_id=str(c['assigned_to_id']),
                status=c['status'],
                due_date=c['due_date'],
            )
            for c in chores
        ]

    def has_sweep_marker(self, *, room_id: str, week_start: datetime) -> bool:
        return WeeklySweepMarker.objects.filter(room_id=room_id, week_start=week_start).exists()

    def add_sweep_marker(self, *, room_id: str, week_start: datetime, bonuses_applied: int) -> None:
        WeeklySweepMarker.objects.get_or_create(
            room_id=room_id,
            week_start=week_start,
            defaults={'bonuses_applied': bonuses_applied},
        )
