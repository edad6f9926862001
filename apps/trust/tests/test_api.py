"""
Tests for the trust API endpoints.
"""

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.accounts.models import User
from apps.chores.models import Chore, ChoreStatus
from apps.rooms.models import RoomMembership, RoomRole
from apps.trust.models import TrustAction, WeeklySweepMarker
from apps.trust.policy import TrustActionType
from apps.trust.services import get_trust_ledger, week_bounds


@pytest.mark.django_db
class TestMyTrust:

    def test_new_user_status(self, roommate_client):
        response = roommate_client.get(reverse('trust:my-trust'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['trust_score'] == 100
        assert response.data['tier'] == 'high'
        assert response.data['restrictions']['can_create_chores'] is True
        assert response.data['restrictions']['max_chores_per_week'] is None

    def test_low_score_status(self, roommate, roommate_client):
        User.objects.filter(id=roommate.id).update(trust_score=20)

        response = roommate_client.get(reverse('trust:my-trust'))

        assert response.data['tier'] == 'critical'
        assert response.data['restrictions']['can_create_chores'] is False
        assert response.data['restrictions']['requires_confirmation'] is True
        assert response.data['restrictions']['max_chores_per_week'] == 2

    def test_requires_auth(self, api_client):
        response = api_client.get(reverse('trust:my-trust'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestTrustHistory:

    def url(self, user):
        return reverse('trust:history', kwargs={'user_id': user.id})

    def test_own_history(self, room, roommate, roommate_client):
        get_trust_ledger().apply(
            user_id=roommate.id,
            room_id=room.id,
            action_type=TrustActionType.HELPFUL_ACTION,
            reason='Fixed the sink',
        )

        response = roommate_client.get(self.url(roommate))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['action'] == 'helpful_action'
        assert response.data[0]['points'] == 5
        assert response.data[0]['reason'] == 'Fixed the sink'

    def test_roommate_can_view(self, room, roommate, owner_client):
        response = owner_client.get(self.url(roommate))
        assert response.status_code == status.HTTP_200_OK

    def test_stranger_cannot_view(self, room, roommate, stranger_client):
        response = stranger_client.get(self.url(roommate))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_limit(self, room, roommate, roommate_client):
        ledger = get_trust_ledger()
        for _ in range(3):
            ledger.apply(
                user_id=roommate.id,
                room_id=room.id,
                action_type=TrustActionType.HELPFUL_ACTION,
                reason='Helped',
            )

        response = roommate_client.get(self.url(roommate), {'limit': 2})

        assert len(response.data) == 2

    @pytest.mark.parametrize('limit', [0, 501, 'many'])
    def test_invalid_limit(self, roommate, roommate_client, limit):
        response = roommate_client.get(self.url(roommate), {'limit': limit})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestUserTrust:

    def test_roommate_score(self, room, roommate, owner_client):
        User.objects.filter(id=roommate.id).update(trust_score=65)

        response = owner_client.get(reverse('trust:user-trust', kwargs={'user_id': roommate.id}))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['trust_score'] == 65
        assert response.data['tier'] == 'low'

    def test_stranger_forbidden(self, room, roommate, stranger_client):
        response = stranger_client.get(reverse('trust:user-trust', kwargs={'user_id': roommate.id}))
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestRestrictions:

    @pytest.mark.parametrize('score,tier,can_dispute', [
        (10, 'critical', False),
        (50, 'low', True),
        (80, 'medium', True),
        (150, 'high', True),
    ])
    def test_lookup(self, roommate_client, score, tier, can_dispute):
        response = roommate_client.get(reverse('trust:restrictions'), {'score': score})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['tier'] == tier
        assert response.data['can_dispute_chores'] is can_dispute

    def test_score_required(self, roommate_client):
        response = roommate_client.get(reverse('trust:restrictions'))
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestResetScore:

    def url(self, room):
        return reverse('trust:reset', kwargs={'room_id': room.id})

    def test_owner_resets_roommate(self, room, roommate, owner_client):
        User.objects.filter(id=roommate.id).update(trust_score=40)

        response = owner_client.post(self.url(room), {
            'user_id': str(roommate.id),
            'new_score': 90,
            'reason': 'Fresh start',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['new_score'] == 90
        assert response.data['previous_score'] == 40

        roommate.refresh_from_db()
        assert roommate.trust_score == 90
        record = TrustAction.objects.get(user=roommate)
        assert record.action == TrustActionType.MANUAL_ADJUSTMENT
        assert record.points == -10
        assert record.reason == 'Fresh start'

    def test_out_of_range_target_is_clamped(self, room, roommate, owner_client):
        response = owner_client.post(self.url(room), {
            'user_id': str(roommate.id),
            'new_score': 200,
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['new_score'] == 150

    def test_member_cannot_reset(self, room, room_owner, roommate_client):
        response = roommate_client.post(self.url(room), {
            'user_id': str(room_owner.id),
            'new_score': 10,
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not TrustAction.objects.exists()

    def test_admin_can_reset(self, room, room_owner, roommate, roommate_client):
        RoomMembership.objects.filter(room=room, user=roommate).update(role=RoomRole.ADMIN)

        response = roommate_client.post(self.url(room), {
            'user_id': str(room_owner.id),
            'new_score': 110,
        }, format='json')

        assert response.status_code == status.HTTP_200_OK

    def test_target_must_be_member(self, room, stranger, owner_client):
        response = owner_client.post(self.url(room), {
            'user_id': str(stranger.id),
            'new_score': 10,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        stranger.refresh_from_db()
        assert stranger.trust_score == 100


@pytest.mark.django_db
class TestWeeklySweep:

    def url(self, room):
        return reverse('trust:sweep', kwargs={'room_id': room.id})

    def test_owner_runs_sweep(self, room, roommate, owner_client):
        start, _ = week_bounds(timezone.now())
        for i in range(3):
            Chore.objects.create(
                room=room,
                title=f'Chore {i}',
                assigned_to=roommate,
                status=ChoreStatus.CONFIRMED,
                due_date=start + timedelta(hours=i + 1),
            )

        response = owner_client.post(self.url(room))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['bonuses_applied'] == 1
        assert response.data['awarded'] == [str(roommate.id)]
        roommate.refresh_from_db()
        assert roommate.trust_score == 105

        again = owner_client.post(self.url(room))
        assert again.data['already_swept'] is True
        roommate.refresh_from_db()
        assert roommate.trust_score == 105

    def test_unmarked_week_does_not_pay_twice(self, room, roommate, owner_client):
        start, _ = week_bounds(timezone.now())
        for i in range(3):
            Chore.objects.create(
                room=room,
                title=f'Chore {i}',
                assigned_to=roommate,
                status=ChoreStatus.CONFIRMED,
                due_date=start + timedelta(hours=i + 1),
            )
        owner_client.post(self.url(room))
        # As if the first run had failed before writing its marker
        WeeklySweepMarker.objects.all().delete()

        response = owner_client.post(self.url(room))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['bonuses_applied'] == 0
        assert response.data['already_awarded'] == [str(roommate.id)]
        roommate.refresh_from_db()
        assert roommate.trust_score == 105

    def test_member_cannot_sweep(self, room, roommate_client):
        response = roommate_client.post(self.url(room))
        assert response.status_code == status.HTTP_403_FORBIDDEN
