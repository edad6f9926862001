"""
Trust API views.

Thin HTTP handlers over the trust services. Score changes never happen
here directly; every write goes through the ledger.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.models import User
from apps.rooms.models import RoomMembership
from apps.trust.permissions import CanViewTrustHistory, IsRoomAdminForTrust
from apps.trust.policy import get_trust_description, get_trust_tier
from apps.trust.responses import trust_error_response
from apps.trust.services import (
    TrustServiceError,
    get_trust_ledger,
    get_trust_restrictions,
    reset_trust_score,
    run_weekly_sweep,
)

from .serializers import (
    HistoryQuerySerializer,
    RestrictionsQuerySerializer,
    SweepResultSerializer,
    TrustActionRecordSerializer,
    TrustChangeSerializer,
    TrustResetSerializer,
    TrustRestrictionsSerializer,
    TrustStatusSerializer,
)


logger = logging.getLogger(__name__)


def _status_payload(score: int) -> dict:
    return {
        'trust_score': score,
        'tier': get_trust_tier(score).value,
        'description': get_trust_description(score),
        'restrictions': get_trust_restrictions(score).as_dict(),
    }


@extend_schema(responses=TrustStatusSerializer, tags=['trust'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_trust(request):
    """Current user's score, tier and the restrictions it implies."""
    try:
        score = get_trust_ledger().get_score(user_id=request.user.id)
    except TrustServiceError as e:
        return trust_error_response(e)
    return Response(TrustStatusSerializer(_status_payload(score)).data)


@extend_schema(
    parameters=[OpenApiParameter('limit', int, description='Max records (default 50)')],
    responses=TrustActionRecordSerializer(many=True),
    tags=['trust'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewTrustHistory])
def trust_history(request, user_id):
    """Audit trail of a user's trust changes, newest first."""
    query = HistoryQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    try:
        records = get_trust_ledger().history(
            user_id=user_id,
            limit=query.validated_data['limit'],
        )
    except TrustServiceError as e:
        return trust_error_response(e)

    return Response(TrustActionRecordSerializer(records, many=True).data)


@extend_schema(
    parameters=[OpenApiParameter('score', int, required=True)],
    responses=TrustRestrictionsSerializer,
    tags=['trust'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def trust_restrictions(request):
    """What a given score allows. Pure lookup, no user data involved."""
    query = RestrictionsQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    restrictions = get_trust_restrictions(query.validated_data['score'])
    return Response(TrustRestrictionsSerializer(restrictions.as_dict()).data)


@extend_schema(request=TrustResetSerializer, responses=TrustChangeSerializer, tags=['trust'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsRoomAdminForTrust])
def reset_score(request, room_id):
    """Room admin sets a roommate's score directly."""
    serializer = TrustResetSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    target_id = serializer.validated_data['user_id']

    if not RoomMembership.objects.filter(room_id=room_id, user_id=target_id).exists():
        return Response(
            {'error': 'User is not a member of this room'},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        change = reset_trust_score(
            ledger=get_trust_ledger(),
            user_id=target_id,
            room_id=room_id,
            new_score=serializer.validated_data['new_score'],
            reason=serializer.validated_data['reason'],
            reset_by=request.user.id,
        )
    except TrustServiceError as e:
        return trust_error_response(e)

    return Response(TrustChangeSerializer(change).data)


@extend_schema(request=None, responses=SweepResultSerializer, tags=['trust'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsRoomAdminForTrust])
def weekly_sweep(request, room_id):
    """Run this week's consistency bonus for the room."""
    try:
        result = run_weekly_sweep(ledger=get_trust_ledger(), room_id=room_id)
    except TrustServiceError as e:
        return trust_error_response(e)

    return Response(SweepResultSerializer(result).data)


@extend_schema(responses=TrustStatusSerializer, tags=['trust'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewTrustHistory])
def user_trust(request, user_id):
    """Score and tier of a roommate."""
    if not User.objects.filter(id=user_id).exists():
        return Response({'error': 'User not found'}, status=status.HTTP_404_NOT_FOUND)

    try:
        score = get_trust_ledger().get_score(user_id=user_id)
    except TrustServiceError as e:
        return trust_error_response(e)
    return Response(TrustStatusSerializer(_status_payload(score)).data)
