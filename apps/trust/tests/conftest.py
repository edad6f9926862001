import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.rooms.models import Room, RoomMembership, RoomRole, generate_invite_code
from apps.trust.services import TrustLedger
from apps.trust.storage import MemoryTrustStore


ROOM_ID = 'room-1'
ALICE = 'alice'
BOB = 'bob'


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


# =============================================================================
# In-memory ledger (no database)
# =============================================================================

@pytest.fixture
def store():
    """Memory store with two users at the initial score."""
    store = MemoryTrustStore()
    store.add_user(ALICE)
    store.add_user(BOB)
    return store


@pytest.fixture
def ledger(store):
    return TrustLedger(store, max_attempts=5)


# =============================================================================
# Database fixtures
# =============================================================================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def room_owner(db):
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Room Owner',
    )


@pytest.fixture
def roommate(db):
    return User.objects.create_user(
        email='roommate@example.com',
        password='TestPass123!',
        display_name='Roommate',
    )


@pytest.fixture
def stranger(db):
    return User.objects.create_user(
        email='stranger@example.com',
        password='TestPass123!',
        display_name='Stranger',
    )


@pytest.fixture
def room(db, room_owner, roommate):
    room = Room.objects.create(
        name='Flat 4B',
        owner=room_owner,
        invite_code=generate_invite_code(),
    )
    RoomMembership.objects.create(user=room_owner, room=room, role=RoomRole.OWNER)
    RoomMembership.objects.create(user=roommate, room=room, role=RoomRole.MEMBER)
    return room


@pytest.fixture
def owner_client(room_owner):
    return client_for(room_owner)


@pytest.fixture
def roommate_client(roommate):
    return client_for(roommate)


@pytest.fixture
def stranger_client(stranger):
    return client_for(stranger)
