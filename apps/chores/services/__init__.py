"""
Chores app services layer.

Chore events change chore status and route their trust consequences
through the trust handlers.
"""

from .exceptions import (
    ChoresServiceError,
    ChoreNotFoundError,
    InvalidChoreStateError,
    ChorePermissionError,
    InsufficientTrustError,
    WeeklyChoreLimitError,
    InvalidAssigneeError,
)

from .chore_management import (
    create_chore,
    get_chore,
    list_chores,
    count_chores_due_in_week,
)

from .chore_events import (
    complete_chore,
    confirm_chore,
    dispute_chore,
    resolve_dispute,
)


__all__ = [
    # Exceptions
    'ChoresServiceError',
    'ChoreNotFoundError',
    'InvalidChoreStateError',
    'ChorePermissionError',
    'InsufficientTrustError',
    'WeeklyChoreLimitError',
    'InvalidAssigneeError',

    # Chore Management
    'create_chore',
    'get_chore',
    'list_chores',
    'count_chores_due_in_week',

    # Chore Events
    'complete_chore',
    'confirm_chore',
    'dispute_chore',
    'resolve_dispute',
]
