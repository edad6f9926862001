from dataclasses import asdict

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .serializers import (
    ChoreSerializer,
    ChoreCreateSerializer,
    ChoreListQuerySerializer,
    ChoreDisputeSerializer,
    DisputeResolutionInputSerializer,
)

from apps.chores.services import (
    create_chore,
    get_chore,
    list_chores,
    complete_chore,
    confirm_chore,
    dispute_chore,
    resolve_dispute,
    # Exceptions
    ChoreNotFoundError,
    InvalidChoreStateError,
    ChorePermissionError,
    WeeklyChoreLimitError,
    InvalidAssigneeError,
)
from apps.rooms.services import RoomNotFoundError
from apps.trust.permissions import HasTrustCapability
from apps.trust.policy import Capability
from apps.trust.responses import step_payload, trust_error_response
from apps.trust.services import TrustServiceError


class ChorePagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


def _event_response(chore, change, request):
    return Response({
        'chore': ChoreSerializer(chore, context={'request': request}).data,
        'trust_change': asdict(change),
    })


class ChoreViewSet(viewsets.GenericViewSet):
    """
    Chores in the current user's rooms.

    Lifecycle events are POST actions; views only translate service
    results and errors into HTTP.
    """

    serializer_class = ChoreSerializer
    permission_classes = [IsAuthenticated, HasTrustCapability]
    pagination_class = ChorePagination
    required_capabilities = {
        'create': Capability.CREATE_CHORE,
        'dispute': Capability.DISPUTE_CHORE,
    }

    def get_queryset(self):
        query = ChoreListQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        return list_chores(
            user=self.request.user,
            room_id=query.validated_data.get('room_id'),
            status=query.validated_data.get('status'),
        )

    @extend_schema(
        parameters=[
            OpenApiParameter('room_id', str, description='Only chores in this room'),
            OpenApiParameter('status', str, description='Only chores with this status'),
        ],
        tags=['chores'],
    )
    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        serializer = ChoreSerializer(page, many=True, context={'request': request})
        return self.get_paginated_response(serializer.data)

    @extend_schema(request=ChoreCreateSerializer, responses=ChoreSerializer, tags=['chores'])
    def create(self, request):
        serializer = ChoreCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            chore = create_chore(created_by=request.user, **serializer.validated_data)
        except RoomNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ChorePermissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (InvalidAssigneeError, WeeklyChoreLimitError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            ChoreSerializer(chore, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )

    @extend_schema(responses=ChoreSerializer, tags=['chores'])
    def retrieve(self, request, pk=None):
        try:
            chore = get_chore(chore_id=pk, user=request.user)
        except ChoreNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(ChoreSerializer(chore, context={'request': request}).data)

    @extend_schema(request=None, tags=['chores'])
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Assignee marks the chore done."""
        try:
            chore, change = complete_chore(chore_id=pk, user=request.user)
        except ChoreNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ChorePermissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidChoreStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except TrustServiceError as e:
            return trust_error_response(e)
        return _event_response(chore, change, request)

    @extend_schema(request=None, tags=['chores'])
    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        """A roommate confirms the chore was done."""
        try:
            chore, change = confirm_chore(chore_id=pk, user=request.user)
        except ChoreNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ChorePermissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidChoreStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except TrustServiceError as e:
            return trust_error_response(e)
        return _event_response(chore, change, request)

    @extend_schema(request=ChoreDisputeSerializer, responses=ChoreSerializer, tags=['chores'])
    @action(detail=True, methods=['post'])
    def dispute(self, request, pk=None):
        serializer = ChoreDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            chore = dispute_chore(
                chore_id=pk,
                user=request.user,
                reason=serializer.validated_data['reason'],
            )
        except ChoreNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ChorePermissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidChoreStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        return Response(ChoreSerializer(chore, context={'request': request}).data)

    @extend_schema(request=DisputeResolutionInputSerializer, tags=['chores'])
    @action(detail=True, methods=['post'])
    def resolve_dispute(self, request, pk=None):
        """Room admin decides whether a dispute was justified."""
        serializer = DisputeResolutionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            chore, resolution = resolve_dispute(
                chore_id=pk,
                user=request.user,
                is_valid_dispute=serializer.validated_data['is_valid_dispute'],
            )
        except ChoreNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ChorePermissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidChoreStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except TrustServiceError as e:
            return trust_error_response(e)

        return Response({
            'chore': ChoreSerializer(chore, context={'request': request}).data,
            'is_valid_dispute': resolution.is_valid_dispute,
            'steps': [step_payload(s) for s in resolution.steps],
        })
