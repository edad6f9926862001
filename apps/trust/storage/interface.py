from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

from apps.trust.types import (
    ChoreSnapshot,
    ScoreWrite,
    TrustActionDraft,
    TrustActionRecord,
)


# compute(current_score) -> ScoreWrite. current_score is None when the
# user row exists but has no score yet.
ComputeWrite = Callable[[Optional[int]], ScoreWrite]


class TrustStore(ABC):
    """
    Persistence contract for the trust ledger.

    The ledger needs three things from a store: an atomic
    read-modify-write on one user's score (with the paired audit record
    written in the same commit), an append-only audit collection, and
    filtered, ordered, limited range queries.

    Implementations must raise NotFoundError for a missing user and
    ConflictError when the record changed between read and write.
    """

    # --- Scores --------------------------------------------------------------

    @abstractmethod
    def commit_change(self, user_id: str, compute: ComputeWrite) -> TrustActionRecord:
        """
        Read the user's score, call ``compute`` and commit its result.

        The score write and the audit record commit together or not at all.
        Returns the written audit record.
        """
        ...

    @abstractmethod
    def get_score(self, user_id: str) -> Optional[int]:
        ...

    # --- Audit records -------------------------------------------------------

    @abstractmethod
    def append_action(self, draft: TrustActionDraft) -> TrustActionRecord:
        ...

    @abstractmethod
    def query_actions(
        self,
        *,
        user_id: str,
        limit: int,
        since: Optional[datetime] = None,
        action: Optional[str] = None,
        related_id: Optional[str] = None,
    ) -> List[TrustActionRecord]:
        """Audit records for a user, most recent first."""
        ...

    # --- Chores --------------------------------------------------------------

    @abstractmethod
    def count_completed_chores(
        self,
        *,
        user_id: str,
        room_id: str,
        since: datetime
    ) -> int:
        ...

    @abstractmethod
    def chores_due_between(
        self,
        *,
        room_id: str,
        start: datetime,
        end: datetime
    ) -> List[ChoreSnapshot]:
        """Chores in a room with start <= due_date < end."""
        ...

    # --- Sweep markers -------------------------------------------------------

    @abstractmethod
    def has_sweep_marker(self, *, room_id: str, week_start: datetime) -> bool:
        ...

    @abstractmethod
    def add_sweep_marker(
        self,
        *,
        room_id: str,
        week_start: datetime,
        bonuses_applied: int
    ) -> None:
        ...
