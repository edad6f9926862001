import pytest
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.chores.models import Chore, ChoreStatus
from apps.rooms.models import Room, RoomMembership, RoomRole, generate_invite_code


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


def make_user(email, display_name, **extra):
    return User.objects.create_user(
        email=email,
        password='TestPass123!',
        display_name=display_name,
        **extra
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def room_owner(db):
    return make_user('owner@example.com', 'Room Owner')


@pytest.fixture
def assignee(db):
    return make_user('assignee@example.com', 'Assignee')


@pytest.fixture
def roommate(db):
    return make_user('roommate@example.com', 'Roommate')


@pytest.fixture
def outsider(db):
    return make_user('outsider@example.com', 'Outsider')


@pytest.fixture
def room(db, room_owner, assignee, roommate):
    """Owner plus two members."""
    room = Room.objects.create(
        name='Flat 4B',
        owner=room_owner,
        invite_code=generate_invite_code(),
    )
    RoomMembership.objects.create(user=room_owner, room=room, role=RoomRole.OWNER)
    RoomMembership.objects.create(user=assignee, room=room, role=RoomRole.MEMBER)
    RoomMembership.objects.create(user=roommate, room=room, role=RoomRole.MEMBER)
    return room


@pytest.fixture
def due_soon():
    return timezone.now() + timedelta(days=1)


@pytest.fixture
def pending_chore(room, room_owner, assignee, due_soon):
    return Chore.objects.create(
        room=room,
        title='Take out the bins',
        assigned_to=assignee,
        created_by=room_owner,
        due_date=due_soon,
    )


@pytest.fixture
def completed_chore(pending_chore):
    pending_chore.status = ChoreStatus.COMPLETED
    pending_chore.completed_at = timezone.now()
    pending_chore.save()
    return pending_chore


@pytest.fixture
def disputed_chore(completed_chore, roommate):
    completed_chore.status = ChoreStatus.DISPUTED
    completed_chore.disputed_by = roommate
    completed_chore.dispute_reason = 'Bins are still full'
    completed_chore.save()
    return completed_chore


@pytest.fixture
def owner_client(room_owner):
    return client_for(room_owner)


@pytest.fixture
def assignee_client(assignee):
    return client_for(assignee)


@pytest.fixture
def roommate_client(roommate):
    return client_for(roommate)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)
