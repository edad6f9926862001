"""Translate trust service errors into HTTP responses."""

from dataclasses import asdict

from rest_framework import status
from rest_framework.response import Response

from apps.trust.services import (
    ConflictError,
    NotFoundError,
    PartialFailureError,
    PersistenceError,
    TrustServiceError,
    ValidationError,
)


TRUST_ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def step_payload(step) -> dict:
    return {
        'user_id': step.user_id,
        'action': str(step.action),
        'succeeded': step.succeeded,
        'change': asdict(step.change) if step.change else None,
        'error': step.error,
    }


def trust_error_response(error: TrustServiceError) -> Response:
    """
    Partial failures answer 207 Multi-Status with the per-user outcome, so
    clients can tell which trust changes were kept.
    """
    if isinstance(error, PartialFailureError):
        result = error.result
        body = {'error': str(error)}
        if hasattr(result, 'steps'):
            body['steps'] = [step_payload(s) for s in result.steps]
        else:
            body['awarded'] = list(result.awarded)
            body['already_awarded'] = list(result.already_awarded)
            body['failed'] = dict(result.failed)
        return Response(body, status=status.HTTP_207_MULTI_STATUS)

    for error_class, http_status in TRUST_ERROR_STATUS.items():
        if isinstance(error, error_class):
            return Response({'error': str(error)}, status=http_status)
    return Response({'error': str(error)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
