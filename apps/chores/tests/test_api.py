"""
Tests for the chores API endpoints.
"""

import pytest
from datetime import timedelta
from unittest.mock import patch
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.accounts.models import User
from apps.chores.models import Chore, ChoreStatus
from apps.trust.services import PersistenceError
from apps.trust.storage.orm import OrmTrustStore


def set_score(user, score):
    User.objects.filter(id=user.id).update(trust_score=score)


def list_url():
    return reverse('chores:chore-list')


@pytest.mark.django_db
class TestChoreCreate:

    def payload(self, room, **extra):
        data = {
            'room_id': str(room.id),
            'title': 'Water the plants',
            'due_date': (timezone.now() + timedelta(days=2)).isoformat(),
        }
        data.update(extra)
        return data

    def test_create_for_self(self, room, assignee, assignee_client):
        response = assignee_client.post(list_url(), self.payload(room), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['title'] == 'Water the plants'
        assert response.data['status'] == 'pending'
        assert response.data['assigned_to']['id'] == str(assignee.id)

    def test_critical_trust_blocked(self, room, assignee, assignee_client):
        set_score(assignee, 10)

        response = assignee_client.post(list_url(), self.payload(room), format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Chore.objects.exists()

    def test_outsider_forbidden(self, room, outsider_client):
        response = outsider_client.post(list_url(), self.payload(room), format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_assignee_outside_room(self, room, outsider, owner_client):
        response = owner_client.post(
            list_url(),
            self.payload(room, assigned_to_id=str(outsider.id)),
            format='json'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_weekly_cap(self, room, assignee, owner_client):
        set_score(assignee, 20)
        due = timezone.now() + timedelta(days=2)
        for i in range(2):
            Chore.objects.create(room=room, title=f'Chore {i}', assigned_to=assignee, due_date=due)

        response = owner_client.post(
            list_url(),
            self.payload(room, assigned_to_id=str(assignee.id), due_date=due.isoformat()),
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'limit 2' in response.data['error']

    def test_missing_fields(self, room, owner_client):
        response = owner_client.post(list_url(), {'room_id': str(room.id)}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestChoreList:

    def test_list_room_chores(self, room, pending_chore, roommate, roommate_client):
        Chore.objects.create(
            room=room,
            title='Dust shelves',
            assigned_to=roommate,
            status=ChoreStatus.CONFIRMED,
            due_date=timezone.now(),
        )

        response = roommate_client.get(list_url())
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2

        response = roommate_client.get(list_url(), {'status': 'confirmed'})
        assert response.data['count'] == 1
        assert response.data['results'][0]['title'] == 'Dust shelves'

    def test_outsider_sees_nothing(self, pending_chore, outsider_client):
        response = outsider_client.get(list_url())
        assert response.data['count'] == 0

    def test_invalid_status_filter(self, roommate_client):
        response = roommate_client.get(list_url(), {'status': 'vanished'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_retrieve(self, pending_chore, roommate_client, outsider_client):
        url = reverse('chores:chore-detail', kwargs={'pk': pending_chore.id})

        assert roommate_client.get(url).status_code == status.HTTP_200_OK
        assert outsider_client.get(url).status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestChoreEvents:

    def test_complete(self, pending_chore, assignee, assignee_client):
        url = reverse('chores:chore-complete', kwargs={'pk': pending_chore.id})

        response = assignee_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['chore']['status'] == 'completed'
        assert response.data['chore']['trust_impact'] == 2
        assert response.data['trust_change']['new_score'] == 102

    def test_complete_by_roommate_forbidden(self, pending_chore, roommate_client):
        url = reverse('chores:chore-complete', kwargs={'pk': pending_chore.id})
        assert roommate_client.post(url).status_code == status.HTTP_403_FORBIDDEN

    def test_complete_wrong_state(self, completed_chore, assignee_client):
        url = reverse('chores:chore-complete', kwargs={'pk': completed_chore.id})
        assert assignee_client.post(url).status_code == status.HTTP_409_CONFLICT

    def test_complete_when_ledger_unavailable(self, pending_chore, assignee_client):
        url = reverse('chores:chore-complete', kwargs={'pk': pending_chore.id})

        with patch(
            'apps.chores.services.chore_events.handle_chore_completion',
            side_effect=PersistenceError('database unavailable'),
        ):
            response = assignee_client.post(url)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        pending_chore.refresh_from_db()
        assert pending_chore.status == ChoreStatus.PENDING

    def test_confirm(self, completed_chore, roommate_client):
        url = reverse('chores:chore-confirm', kwargs={'pk': completed_chore.id})

        response = roommate_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['chore']['status'] == 'confirmed'
        assert response.data['trust_change']['points'] == 1

    def test_dispute(self, completed_chore, roommate_client):
        url = reverse('chores:chore-dispute', kwargs={'pk': completed_chore.id})

        response = roommate_client.post(url, {'reason': 'Bins still full'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'disputed'
        assert response.data['dispute_reason'] == 'Bins still full'

    def test_dispute_blocked_by_low_trust(self, completed_chore, roommate, roommate_client):
        set_score(roommate, 25)
        url = reverse('chores:chore-dispute', kwargs={'pk': completed_chore.id})

        response = roommate_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        completed_chore.refresh_from_db()
        assert completed_chore.status == ChoreStatus.COMPLETED


@pytest.mark.django_db
class TestResolveDispute:

    def url(self, chore):
        return reverse('chores:chore-resolve-dispute', kwargs={'pk': chore.id})

    def test_valid_dispute(self, disputed_chore, assignee, owner_client):
        response = owner_client.post(self.url(disputed_chore), {'is_valid_dispute': True}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['chore']['status'] == 'pending'
        assert response.data['is_valid_dispute'] is True
        [step] = response.data['steps']
        assert step['user_id'] == str(assignee.id)
        assert step['succeeded'] is True
        assert step['change']['points'] == -10

    def test_invalid_dispute(self, disputed_chore, owner_client):
        response = owner_client.post(self.url(disputed_chore), {'is_valid_dispute': False}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['chore']['status'] == 'confirmed'
        assert [s['change']['points'] for s in response.data['steps']] == [-1, 1]

    def test_partial_failure_is_multi_status(self, disputed_chore, roommate, assignee, owner_client):
        real_commit = OrmTrustStore.commit_change

        def fail_for_roommate(store, user_id, compute):
            if user_id == str(roommate.id):
                raise PersistenceError('database unavailable')
            return real_commit(store, user_id, compute)

        with patch.object(OrmTrustStore, 'commit_change', autospec=True, side_effect=fail_for_roommate):
            response = owner_client.post(self.url(disputed_chore), {'is_valid_dispute': False}, format='json')

        assert response.status_code == status.HTTP_207_MULTI_STATUS
        outcomes = [s['succeeded'] for s in response.data['steps']]
        assert outcomes == [False, True]
        assignee.refresh_from_db()
        assert assignee.trust_score == 101

    def test_invalid_ruling_without_disputer_conflicts(self, disputed_chore, roommate, owner_client):
        roommate.delete()

        response = owner_client.post(self.url(disputed_chore), {'is_valid_dispute': False}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert 'no longer has an account' in response.data['error']
        disputed_chore.refresh_from_db()
        assert disputed_chore.status == ChoreStatus.DISPUTED

    def test_member_cannot_resolve(self, disputed_chore, assignee_client):
        response = assignee_client.post(self.url(disputed_chore), {'is_valid_dispute': True}, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_decision(self, disputed_chore, owner_client):
        response = owner_client.post(self.url(disputed_chore), {}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
