"""
Trust app services layer.

The ledger is the single writer of trust scores. Handlers orchestrate
domain events into ledger calls; restrictions are the read-only gate.
"""

from .exceptions import (
    TrustServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    PersistenceError,
    PartialFailureError,
)

from .ledger import (
    TrustLedger,
    get_trust_ledger,
)

from .handlers import (
    DisputeResolution,
    StepOutcome,
    SweepResult,
    handle_chore_completion,
    handle_chore_confirmation,
    handle_chore_dispute,
    handle_bill_payment,
    run_weekly_sweep,
    reset_trust_score,
    week_bounds,
)

from .restrictions import (
    TrustRestrictions,
    get_trust_restrictions,
)


__all__ = [
    # Exceptions
    'TrustServiceError',
    'ValidationError',
    'NotFoundError',
    'ConflictError',
    'PersistenceError',
    'PartialFailureError',

    # Ledger
    'TrustLedger',
    'get_trust_ledger',

    # Handlers
    'DisputeResolution',
    'StepOutcome',
    'SweepResult',
    'handle_chore_completion',
    'handle_chore_confirmation',
    'handle_chore_dispute',
    'handle_bill_payment',
    'run_weekly_sweep',
    'reset_trust_score',
    'week_bounds',

    # Restrictions
    'TrustRestrictions',
    'get_trust_restrictions',
]
