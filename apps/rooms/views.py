from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination

from .models import Room
from .serializers import (
    RoomSerializer,
    RoomCreateSerializer,
    RoomMemberSerializer,
    JoinRoomSerializer,
)
from .permissions import IsRoomMember

from apps.rooms.services import (
    create_room,
    join_room,
    leave_room,
    get_room_members,
    get_invite_code,
    regenerate_invite_code,
    # Exceptions
    RoomNotFoundError,
    InvalidInviteCodeError,
    AlreadyMemberError,
    RoomFullError,
    NotMemberError,
    OwnerCannotLeaveError,
    InsufficientPermissionsError,
)


class RoomPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class RoomViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet
):
    """
    Rooms the current user belongs to.

    Business logic lives in services; views only translate HTTP.
    """

    serializer_class = RoomSerializer
    permission_classes = [IsAuthenticated, IsRoomMember]
    pagination_class = RoomPagination

    def get_queryset(self):
        """Return only rooms where user is a member."""
        return Room.objects.filter(
            memberships__user=self.request.user
        ).select_related('owner').prefetch_related('memberships').distinct()

    def get_serializer_class(self):
        if self.action == 'create':
            return RoomCreateSerializer
        return RoomSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        room = create_room(
            name=serializer.validated_data['name'],
            owner=request.user,
            description=serializer.validated_data.get('description', ''),
            max_members=serializer.validated_data.get('max_members', 8),
        )

        output_serializer = RoomSerializer(room, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Room members with their trust scores."""
        room = self.get_object()
        memberships = get_room_members(room_id=room.id)
        return Response(RoomMemberSerializer(memberships, many=True).data)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def join(self, request, pk=None):
        """Join a room using invite code."""
        serializer = JoinRoomSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = join_room(
                room_id=pk,
                user=request.user,
                invite_code=serializer.validated_data['invite_code']
            )
        except RoomNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (InvalidInviteCodeError, AlreadyMemberError, RoomFullError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(RoomMemberSerializer(membership).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def leave(self, request, pk=None):
        try:
            leave_room(room_id=pk, user=request.user)
        except RoomNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (OwnerCannotLeaveError, NotMemberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'])
    def invite(self, request, pk=None):
        """Show the invite code (admins with enough trust only)."""
        room = self.get_object()
        try:
            code = get_invite_code(room_id=room.id, user=request.user)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        return Response({'invite_code': code})

    @action(detail=True, methods=['post'])
    def regenerate_invite(self, request, pk=None):
        room = self.get_object()
        try:
            new_code = regenerate_invite_code(room_id=room.id, user=request.user)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        return Response({
            'invite_code': new_code,
            'message': 'Invite code regenerated successfully'
        })
