import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.rooms.models import Room, RoomMembership, RoomRole, generate_invite_code


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def room_owner(db):
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Room Owner',
    )


@pytest.fixture
def member_user(db):
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        display_name='Room Member',
    )


@pytest.fixture
def other_user(db):
    """A user not in any room."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        display_name='Other User',
    )


@pytest.fixture
def low_trust_owner(db):
    """Room owner whose score is below the invite threshold."""
    return User.objects.create_user(
        email='lowtrust@example.com',
        password='TestPass123!',
        display_name='Low Trust',
        trust_score=80,
    )


@pytest.fixture
def owner_client(room_owner):
    return client_for(room_owner)


@pytest.fixture
def member_client(member_user):
    return client_for(member_user)


@pytest.fixture
def other_client(other_user):
    return client_for(other_user)


@pytest.fixture
def room(db, room_owner):
    """A room with only its owner."""
    room = Room.objects.create(
        name='Flat 4B',
        description='Top floor',
        owner=room_owner,
        invite_code=generate_invite_code(),
    )
    RoomMembership.objects.create(user=room_owner, room=room, role=RoomRole.OWNER)
    return room


@pytest.fixture
def room_with_member(room, member_user):
    RoomMembership.objects.create(user=member_user, room=room, role=RoomRole.MEMBER)
    return room
