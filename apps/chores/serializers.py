from rest_framework import serializers

from apps.accounts.serializers import UserPublicSerializer
from .models import Chore, ChorePriority, ChoreStatus


class ChoreSerializer(serializers.ModelSerializer):
    """Read serializer for chores."""

    assigned_to = UserPublicSerializer(read_only=True)
    room_id = serializers.UUIDField(read_only=True)
    created_by_id = serializers.UUIDField(read_only=True)
    confirmed_by_id = serializers.UUIDField(read_only=True)
    disputed_by_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Chore
        fields = [
            'id',
            'room_id',
            'title',
            'description',
            'assigned_to',
            'created_by_id',
            'status',
            'priority',
            'recurring',
            'due_date',
            'completed_at',
            'confirmed_by_id',
            'disputed_by_id',
            'dispute_reason',
            'trust_impact',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ChoreCreateSerializer(serializers.Serializer):
    room_id = serializers.UUIDField()
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    assigned_to_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    priority = serializers.ChoiceField(choices=ChorePriority.choices, default=ChorePriority.MEDIUM)
    recurring = serializers.BooleanField(default=False)
    due_date = serializers.DateTimeField()


class ChoreListQuerySerializer(serializers.Serializer):
    room_id = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=ChoreStatus.choices, required=False)


class ChoreDisputeSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class DisputeResolutionInputSerializer(serializers.Serializer):
    is_valid_dispute = serializers.BooleanField()
