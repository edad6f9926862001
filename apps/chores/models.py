from django.db import models
import uuid


class ChoreStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETED = 'completed', 'Completed'
    CONFIRMED = 'confirmed', 'Confirmed'
    DISPUTED = 'disputed', 'Disputed'
    OVERDUE = 'overdue', 'Overdue'
    SKIPPED = 'skipped', 'Skipped'


class ChorePriority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'


class Chore(models.Model):
    """A household task assigned to one room member."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room = models.ForeignKey('rooms.Room', on_delete=models.CASCADE, related_name='chores')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    assigned_to = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='assigned_chores'
    )
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_chores'
    )

    status = models.CharField(
        max_length=20,
        choices=ChoreStatus.choices,
        default=ChoreStatus.PENDING,
        db_index=True
    )
    priority = models.CharField(
        max_length=10,
        choices=ChorePriority.choices,
        default=ChorePriority.MEDIUM
    )
    recurring = models.BooleanField(default=False)
    due_date = models.DateTimeField(db_index=True)

    completed_at = models.DateTimeField(null=True, blank=True)
    confirmed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='confirmed_chores'
    )
    disputed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='disputed_chores'
    )
    dispute_reason = models.TextField(blank=True)

    # Last trust delta applied to the assignee because of this chore
    trust_impact = models.IntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'chores'
        indexes = [
            models.Index(fields=['room', 'due_date'], name='chores_room_id_due_idx'),
            models.Index(fields=['assigned_to', 'status', 'completed_at'], name='chores_assignee_status_idx'),
        ]
        ordering = ['due_date']

    def __str__(self):
        return f"{self.title} ({self.status})"
