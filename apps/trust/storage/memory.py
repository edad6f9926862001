import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from django.utils import timezone

from apps.trust.policy import INITIAL_SCORE, TrustActionType
from apps.trust.services.exceptions import ConflictError, NotFoundError
from apps.trust.storage.interface import ComputeWrite, TrustStore
from apps.trust.types import (
    ChoreSnapshot,
    SweepMarker,
    TrustActionDraft,
    TrustActionRecord,
)


class MemoryTrustStore(TrustStore):
    """
    In-process trust store for tests and scripts.

    Writes use optimistic concurrency: the user's version is read with the
    score and checked again before the write. ``between_read_and_write`` is
    called after the read and before the version check, which lets tests
    play a concurrent writer.
    """

    def __init__(self, between_read_and_write: Optional[Callable[[str], None]] = None):
        self._lock = threading.RLock()
        self._users: Dict[str, dict] = {}
        self._actions: List[TrustActionRecord] = []
        self._chores: List[dict] = []
        self._markers: Dict[tuple, SweepMarker] = {}
        self.between_read_and_write = between_read_and_write

    # --- Fixtures ------------------------------------------------------------

    def add_user(self, user_id: str, trust_score: Optional[int] = INITIAL_SCORE) -> None:
        with self._lock:
            self._users[str(user_id)] = {
                'trust_score': trust_score,
                'version': 0,
                'updated_at': timezone.now(),
            }

    def add_chore(
        self,
        *,
        room_id: str,
        assigned_to_id: str,
        status: str,
        due_date: datetime,
        completed_at: Optional[datetime] = None,
        chore_id: Optional[str] = None
    ) -> str:
        chore_id = chore_id or str(uuid.uuid4())
        with self._lock:
            self._chores.append({
                'id': chore_id,
                'room_id': str(room_id),
                'assigned_to_id': str(assigned_to_id),
                'status': status,
                'due_date': due_date,
                'completed_at': completed_at,
            })
        return chore_id

    @property
    def actions(self) -> List[TrustActionRecord]:
        with self._lock:
            return list(self._actions)

    # --- Scores --------------------------------------------------------------

    def get_score(self, user_id: str) -> Optional[int]:
        with self._lock:
            user = self._users.get(str(user_id))
            if user is None:
                raise NotFoundError(f"User with ID {user_id} not found")
            return user['trust_score']

    def commit_change(self, user_id: str, compute: ComputeWrite) -> TrustActionRecord:
        user_id = str(user_id)
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError(f"User with ID {user_id} not found")
            read_version = user['version']
            current = user['trust_score']

        write = compute(current)

        if self.between_read_and_write is not None:
            self.between_read_and_write(user_id)

        with self._lock:
            user = self._users[user_id]
            if user['version'] != read_version:
                raise ConflictError(
                    f"Trust record for user {user_id} changed during the transaction"
                )
            user['trust_score'] = write.new_score
            user['version'] = read_version + 1
            user['updated_at'] = timezone.now()
            return self._append(write.action)

    def bump(self, user_id: str, trust_score: int) -> None:
        """Write a score outside the ledger, as a competing writer would."""
        with self._lock:
            user = self._users[str(user_id)]
            user['trust_score'] = trust_score
            user['version'] += 1

    # --- Audit records -------------------------------------------------------

    def append_action(self, draft: TrustActionDraft) -> TrustActionRecord:
        with self._lock:
            return self._append(draft)

    def _append(self, draft: TrustActionDraft) -> TrustActionRecord:
        record = TrustActionRecord(
            id=str(uuid.uuid4()),
            user_id=str(draft.user_id),
            room_id=str(draft.room_id) if draft.room_id is not None else None,
            action=TrustActionType(draft.action),
            points=draft.points,
            reason=draft.reason,
            related_id=draft.related_id,
            created_by=draft.created_by,
            created_at=timezone.now(),
        )
        self._actions.append(record)
        return record

    def query_actions(
        self,
        *,
        user_id: str,
        limit: int,
        since: Optional[datetime] = None,
        action: Optional[str] = None,
        related_id: Optional[str] = None,
    ) -> List[TrustActionRecord]:
        with self._lock:
            matches = [
                record for record in self._actions
                if record.user_id == str(user_id)
                and (since is None or record.created_at >= since)
                and (action is None or record.action == action)
                and (related_id is None or record.related_id == related_id)
            ]
        # Newest first; insertion order breaks created_at ties
        matches = list(reversed(matches))
        matches.sort(key=lambda record: record.created_at, reverse=True)
        return matches[:limit]

    # --- Chores --------------------------------------------------------------

    def count_completed_chores(self, *, user_id: str, room_id: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1 for chore in self._chores
                if chore['assigned_to_id'] == str(user_id)
                and chore['room_id'] == str(room_id)
                and chore['status'] == 'completed'
                and chore['completed_at'] is not None
                and chore['completed_at'] >= since
            )

    def chores_due_between(self, *, room_id: str, start: datetime, end: datetime) -> List[ChoreSnapshot]:
        with self._lock:
            return [
                ChoreSnapshot(
                    id=chore['id'],
                    assigned_to_id=chore['assigned_to_id'],
                    status=chore['status'],
                    due_date=chore['due_date'],
                )
                for chore in self._chores
                if chore['room_id'] == str(room_id)
                and start <= chore['due_date'] < end
            ]

    # --- Sweep markers -------------------------------------------------------

    def has_sweep_marker(self, *, room_id: str, week_start: datetime) -> bool:
        with self._lock:
            return (str(room_id), week_start) in self._markers

    def add_sweep_marker(self, *, room_id: str, week_start: datetime, bonuses_applied: int) -> None:
        with self._lock:
            self._markers.setdefault((str(room_id), week_start), SweepMarker(
                room_id=str(room_id),
                week_start=week_start,
                bonuses_applied=bonuses_applied,
                created_at=timezone.now(),
            ))
