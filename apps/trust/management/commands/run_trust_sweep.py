"""
Management command to award the weekly consistency bonus.

A sweep covers the Sunday-to-Sunday week containing the given day, which
defaults to today. Scheduled once a week, run it early in the new week
with --week-of pointing into the week that just ended, so every chore of
that week is already due. Weeks already swept are skipped, so running it
twice is harmless.

Usage:
    python manage.py run_trust_sweep
    python manage.py run_trust_sweep --week-of 2026-03-11
    python manage.py run_trust_sweep --room <room_id>
"""

from datetime import datetime, time

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.rooms.models import Room
from apps.trust.services import (
    PartialFailureError,
    TrustServiceError,
    get_trust_ledger,
    run_weekly_sweep,
)


class Command(BaseCommand):
    help = 'Award weekly consistency bonuses in every room (or one room)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--room',
            dest='room_id',
            help='Only sweep this room',
        )
        parser.add_argument(
            '--week-of',
            dest='week_of',
            help='Any day (YYYY-MM-DD) in the week to sweep; defaults to today',
        )

    def handle(self, *args, **options):
        now = self.parse_week_of(options.get('week_of'))

        room_id = options.get('room_id')
        if room_id:
            if not Room.objects.filter(id=room_id).exists():
                raise CommandError(f'Room {room_id} does not exist')
            room_ids = [room_id]
        else:
            room_ids = list(Room.objects.values_list('id', flat=True))

        ledger = get_trust_ledger()
        failures = 0

        for rid in room_ids:
            try:
                result = run_weekly_sweep(ledger=ledger, room_id=rid, now=now)
            except PartialFailureError as e:
                failures += 1
                self.stdout.write(self.style.WARNING(f'  {rid}: {e}'))
                continue
            except TrustServiceError as e:
                failures += 1
                self.stdout.write(self.style.ERROR(f'  {rid}: {e}'))
                continue

            if result.already_swept:
                self.stdout.write(f'  {rid}: already swept for week of {result.week_start.date()}')
            else:
                self.stdout.write(f'  {rid}: {result.bonuses_applied} bonus(es) applied')

        if failures:
            raise CommandError(f'{failures} of {len(room_ids)} room(s) had failures')

        self.stdout.write(self.style.SUCCESS(f'Swept {len(room_ids)} room(s)'))

    def parse_week_of(self, value):
        if not value:
            return None
        try:
            day = parse_date(value)
        except ValueError:
            day = None
        if day is None:
            raise CommandError(f'--week-of must be a date like 2026-03-11, got {value!r}')
        # Noon, since some zones skip midnight on DST days
        return timezone.make_aware(datetime.combine(day, time(12)))
