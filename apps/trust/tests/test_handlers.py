"""
Action handler scenarios against the in-memory store.
"""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone

from apps.trust.policy import TrustActionType
from apps.trust.services import (
    NotFoundError,
    PartialFailureError,
    PersistenceError,
    handle_bill_payment,
    handle_chore_completion,
    handle_chore_confirmation,
    handle_chore_dispute,
    reset_trust_score,
    run_weekly_sweep,
    week_bounds,
)

from .conftest import ALICE, BOB, ROOM_ID


def make_chore(assigned_to=ALICE, recurring=False, title='Dishes'):
    return SimpleNamespace(
        id='chore-1',
        room_id=ROOM_ID,
        title=title,
        recurring=recurring,
        assigned_to_id=assigned_to,
    )


# A Wednesday; its week runs Sunday 2026-03-08 to Sunday 2026-03-15
WEDNESDAY = timezone.make_aware(datetime(2026, 3, 11, 15, 30))


class TestChoreCompletion:

    def test_happy_path(self, ledger, store):
        change = handle_chore_completion(ledger=ledger, chore=make_chore(), completed_by=ALICE)

        assert change.new_score == 102
        [record] = store.actions
        assert record.points == 2
        assert record.reason == 'Completed chore: Dishes'
        assert record.created_by == ALICE
        assert record.related_id == 'chore-1'

    def test_streak_counts_recent_completions_in_room(self, ledger, store):
        now = timezone.now()
        for days_ago in range(6):
            store.add_chore(
                room_id=ROOM_ID,
                assigned_to_id=ALICE,
                status='completed',
                due_date=now - timedelta(days=days_ago),
                completed_at=now - timedelta(days=days_ago),
            )
        # Outside the 30 day window, other rooms and other users do not count
        store.add_chore(room_id=ROOM_ID, assigned_to_id=ALICE, status='completed',
                        due_date=now - timedelta(days=40), completed_at=now - timedelta(days=40))
        store.add_chore(room_id='room-2', assigned_to_id=ALICE, status='completed',
                        due_date=now, completed_at=now)
        store.add_chore(room_id=ROOM_ID, assigned_to_id=BOB, status='completed',
                        due_date=now, completed_at=now)

        change = handle_chore_completion(
            ledger=ledger,
            chore=make_chore(recurring=True),
            completed_by=ALICE,
            now=now,
        )

        # base 2 + recurring 1 + streak min(6 - 4, 3)
        assert change.points == 5

    def test_unknown_user_propagates(self, ledger):
        with pytest.raises(NotFoundError):
            handle_chore_completion(ledger=ledger, chore=make_chore('ghost'), completed_by='ghost')


class TestChoreConfirmation:

    def test_assignee_rewarded(self, ledger, store):
        change = handle_chore_confirmation(ledger=ledger, chore=make_chore(), confirmed_by=BOB)

        assert change.user_id == ALICE
        assert change.new_score == 101
        assert store.actions[0].created_by == BOB


class TestDisputeResolution:

    def test_valid_dispute_penalises_completer(self, ledger, store):
        resolution = handle_chore_dispute(
            ledger=ledger,
            chore=make_chore(),
            disputed_by=BOB,
            is_valid_dispute=True,
        )

        assert len(resolution.steps) == 1
        assert resolution.failed == []
        assert store.get_score(ALICE) == 90
        assert store.get_score(BOB) == 100
        assert store.actions[0].action == TrustActionType.FALSE_COMPLETION

    def test_invalid_dispute_penalises_disputer_and_rewards_completer(self, ledger, store):
        resolution = handle_chore_dispute(
            ledger=ledger,
            chore=make_chore(),
            disputed_by=BOB,
            is_valid_dispute=False,
        )

        assert len(resolution.succeeded) == 2
        assert store.get_score(BOB) == 99
        assert store.get_score(ALICE) == 101
        actions = {(r.user_id, r.action) for r in store.actions}
        assert actions == {
            (BOB, TrustActionType.CHORE_DISPUTED_INVALID),
            (ALICE, TrustActionType.CHORE_CONFIRMED),
        }

    def test_partial_failure_reports_which_step_succeeded(self, ledger, store):
        # The disputer's record is gone; the completer's reward still lands
        with pytest.raises(PartialFailureError) as exc_info:
            handle_chore_dispute(
                ledger=ledger,
                chore=make_chore(),
                disputed_by='ghost',
                is_valid_dispute=False,
            )

        resolution = exc_info.value.result
        assert [s.user_id for s in resolution.succeeded] == [ALICE]
        assert [s.user_id for s in resolution.failed] == ['ghost']
        assert 'not found' in resolution.failed[0].error
        # Completed steps are kept
        assert store.get_score(ALICE) == 101

    def test_single_step_failure_reraises(self, ledger):
        with pytest.raises(NotFoundError):
            handle_chore_dispute(
                ledger=ledger,
                chore=make_chore('ghost'),
                disputed_by=BOB,
                is_valid_dispute=True,
            )


class TestBillPayment:

    def test_on_time(self, ledger, store):
        due = timezone.now()
        change = handle_bill_payment(
            ledger=ledger,
            user_id=ALICE,
            room_id=ROOM_ID,
            bill_id='bill-1',
            bill_title='Electricity',
            due_date=due,
            paid_at=due - timedelta(days=1),
        )

        assert change.points == 3
        assert change.action == TrustActionType.BILL_PAID_ON_TIME
        assert store.actions[0].reason == 'Bill paid on time: Electricity'

    def test_late(self, ledger, store):
        due = timezone.now()
        change = handle_bill_payment(
            ledger=ledger,
            user_id=ALICE,
            room_id=ROOM_ID,
            bill_id='bill-1',
            bill_title='Electricity',
            due_date=due,
            paid_at=due + timedelta(hours=1),
        )

        assert change.points == -2
        assert change.action == TrustActionType.BILL_PAID_LATE


class TestWeekBounds:

    def test_week_starts_on_sunday(self):
        start, end = week_bounds(WEDNESDAY)

        assert start.weekday() == 6
        assert (start.year, start.month, start.day) == (2026, 3, 8)
        assert (start.hour, start.minute) == (0, 0)
        assert end - start == timedelta(days=7)

    def test_sunday_is_its_own_week_start(self):
        sunday = WEDNESDAY - timedelta(days=3)
        start, _ = week_bounds(sunday)

        assert start.day == 8


class TestWeeklySweep:

    def add_week(self, store, user_id, statuses, room_id=ROOM_ID):
        start, _ = week_bounds(WEDNESDAY)
        for i, status in enumerate(statuses):
            store.add_chore(
                room_id=room_id,
                assigned_to_id=user_id,
                status=status,
                due_date=start + timedelta(days=i % 7, hours=10),
            )

    def test_threshold(self, ledger, store):
        self.add_week(store, ALICE, ['completed', 'confirmed', 'completed'])
        self.add_week(store, BOB, ['completed', 'completed'])

        result = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert result.bonuses_applied == 1
        assert result.awarded == [ALICE]
        assert store.get_score(ALICE) == 105
        assert store.get_score(BOB) == 100

        [record] = store.actions
        assert record.action == TrustActionType.HELPFUL_ACTION
        assert record.created_by == 'system'
        assert record.reason == 'Weekly consistency bonus (100% completion)'
        assert record.related_id == 'weekly-sweep:2026-03-08'

    def test_rate_below_ninety_percent(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 8 + ['pending', 'overdue'])

        result = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert result.bonuses_applied == 0

    def test_ninety_percent_qualifies(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 9 + ['pending'])

        result = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert result.awarded == [ALICE]
        assert store.actions[0].reason == 'Weekly consistency bonus (90% completion)'

    def test_ignores_other_weeks_and_rooms(self, ledger, store):
        start, _ = week_bounds(WEDNESDAY)
        for offset in (-1, 7, 8):
            store.add_chore(room_id=ROOM_ID, assigned_to_id=ALICE, status='completed',
                            due_date=start + timedelta(days=offset))
        self.add_week(store, ALICE, ['completed'] * 3, room_id='room-2')

        result = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert result.bonuses_applied == 0

    def test_second_run_same_week_is_skipped(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 3)

        run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)
        again = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY + timedelta(days=1))

        assert again.already_swept is True
        assert again.bonuses_applied == 0
        assert store.get_score(ALICE) == 105

    def test_fetch_failure_aborts_whole_sweep(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 3)

        with patch.object(store, 'chores_due_between', side_effect=DatabaseError('down')):
            with pytest.raises(PersistenceError):
                run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert store.actions == []
        assert not store.has_sweep_marker(room_id=ROOM_ID, week_start=week_bounds(WEDNESDAY)[0])

    def test_partial_failure_is_reported_and_not_marked(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 3)
        self.add_week(store, 'ghost', ['completed'] * 3)

        with pytest.raises(PartialFailureError) as exc_info:
            run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        result = exc_info.value.result
        assert result.awarded == [ALICE]
        assert list(result.failed) == ['ghost']
        assert store.get_score(ALICE) == 105
        # A failed week can be swept again
        assert not store.has_sweep_marker(room_id=ROOM_ID, week_start=result.week_start)

    def test_retry_after_partial_failure_pays_each_user_once(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 3)
        self.add_week(store, 'ghost', ['completed'] * 3)

        with pytest.raises(PartialFailureError):
            run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)
        with pytest.raises(PartialFailureError) as exc_info:
            run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        result = exc_info.value.result
        assert result.awarded == []
        assert result.already_awarded == [ALICE]
        assert store.get_score(ALICE) == 105

        store.add_user('ghost')
        result = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert result.awarded == ['ghost']
        assert result.already_awarded == [ALICE]
        assert result.bonuses_applied == 1
        assert store.get_score(ALICE) == 105
        assert store.get_score('ghost') == 105
        assert len([r for r in store.actions if r.user_id == ALICE]) == 1
        assert store.has_sweep_marker(room_id=ROOM_ID, week_start=result.week_start)

    def test_overlapping_sweeps_pay_once(self, ledger, store):
        self.add_week(store, ALICE, ['completed'] * 3)
        inner = {}

        def second_sweep_lands_first(user_id):
            # Runs once, while the first sweep is between its read and its write
            store.between_read_and_write = None
            inner['result'] = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        store.between_read_and_write = second_sweep_lands_first

        outer = run_weekly_sweep(ledger=ledger, room_id=ROOM_ID, now=WEDNESDAY)

        assert inner['result'].awarded == [ALICE]
        assert outer.awarded == []
        assert outer.already_awarded == [ALICE]
        assert store.get_score(ALICE) == 105
        assert len(store.actions) == 1
        assert store.has_sweep_marker(room_id=ROOM_ID, week_start=outer.week_start)


class TestResetHandler:

    def test_reset_baseline(self, ledger, store):
        store.bump(ALICE, 60)

        change = reset_trust_score(
            ledger=ledger,
            user_id=ALICE,
            room_id=ROOM_ID,
            new_score=120,
            reason='promotion',
            reset_by='admin-1',
        )

        assert change.new_score == 120
        assert store.actions[-1].points == 20
