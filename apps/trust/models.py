from django.db import models
import uuid

from apps.trust.policy import TrustActionType


class TrustAction(models.Model):
    """Append-only audit record of a trust score change."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='trust_actions')
    # Null only for the account opening entry
    room = models.ForeignKey(
        'rooms.Room',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='trust_actions'
    )
    action = models.CharField(max_length=32, choices=TrustActionType.choices)
    points = models.IntegerField()
    reason = models.CharField(max_length=500)
    related_id = models.CharField(max_length=64, blank=True, null=True)
    created_by = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'trust_actions'
        indexes = [
            models.Index(fields=['user', 'created_at'], name='trust_user_created_idx'),
            models.Index(fields=['room', 'created_at'], name='trust_room_created_idx'),
            models.Index(fields=['user', 'action', 'created_at'], name='trust_user_action_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        sign = '+' if self.points > 0 else ''
        return f"{self.user_id}: {self.action} ({sign}{self.points})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise TypeError("Trust actions are append-only and cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError("Trust actions are append-only and cannot be deleted")


class WeeklySweepMarker(models.Model):
    """Marks a room's weekly consistency sweep as done for one week."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='sweep_markers')
    week_start = models.DateTimeField()
    bonuses_applied = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trust_weekly_sweep_markers'
        unique_together = [['room', 'week_start']]
        ordering = ['-week_start']

    def __str__(self):
        return f"{self.room_id} week of {self.week_start:%Y-%m-%d}"
