"""
Domain-specific exceptions for the trust app.

These exceptions represent ledger and orchestration failures and should be
caught in views and converted to appropriate HTTP responses.
"""


class TrustServiceError(Exception):
    """Base exception for all trust service errors."""
    pass


class ValidationError(TrustServiceError):
    """Raised when an identifier is malformed or a required field is missing."""
    pass


class NotFoundError(TrustServiceError):
    """Raised when the target user record does not exist."""
    pass


class ConflictError(TrustServiceError):
    """
    Raised by a store when a concurrent writer changed the record.

    The ledger retries these; callers only ever see PersistenceError.
    """
    pass


class PersistenceError(TrustServiceError):
    """Raised when a trust change could not be committed."""
    pass


class PartialFailureError(TrustServiceError):
    """
    Raised when a multi-step orchestration finished only some of its steps.

    Completed steps are not rolled back. The ``result`` attribute holds the
    handler's result object describing what succeeded and what failed.
    """

    def __init__(self, message, result):
        super().__init__(message)
        self.result = result
