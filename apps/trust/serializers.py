from rest_framework import serializers

from apps.trust.policy import MAX_SCORE, MIN_SCORE, TrustTier


class TrustActionRecordSerializer(serializers.Serializer):
    """Serializes TrustActionRecord dataclasses from the ledger."""

    id = serializers.CharField()
    user_id = serializers.CharField()
    room_id = serializers.CharField(allow_null=True)
    action = serializers.CharField()
    points = serializers.IntegerField()
    reason = serializers.CharField()
    related_id = serializers.CharField(allow_null=True)
    created_by = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()


class TrustRestrictionsSerializer(serializers.Serializer):
    tier = serializers.ChoiceField(choices=TrustTier.choices)
    can_create_chores = serializers.BooleanField()
    can_dispute_chores = serializers.BooleanField()
    can_manage_bills = serializers.BooleanField()
    can_invite_members = serializers.BooleanField()
    can_delete_items = serializers.BooleanField()
    requires_confirmation = serializers.BooleanField()
    message = serializers.CharField()
    max_chores_per_week = serializers.IntegerField(allow_null=True)


class TrustStatusSerializer(serializers.Serializer):
    trust_score = serializers.IntegerField()
    tier = serializers.CharField()
    description = serializers.CharField()
    restrictions = TrustRestrictionsSerializer()


class TrustChangeSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    previous_score = serializers.IntegerField()
    new_score = serializers.IntegerField()
    points = serializers.IntegerField()
    action = serializers.CharField()
    record_id = serializers.CharField(allow_null=True)


class HistoryQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False, default=50)


class RestrictionsQuerySerializer(serializers.Serializer):
    score = serializers.IntegerField()


class TrustResetSerializer(serializers.Serializer):
    """Input for an admin score reset. Out-of-range targets are clamped."""

    user_id = serializers.UUIDField()
    new_score = serializers.IntegerField()
    reason = serializers.CharField(max_length=500, required=False, default='Manual reset')

    def validate_new_score(self, value):
        # Clamped by the ledger; anything wildly off is almost certainly a typo
        if value < MIN_SCORE - 1000 or value > MAX_SCORE + 1000:
            raise serializers.ValidationError(
                f"new_score must be near the {MIN_SCORE}-{MAX_SCORE} range"
            )
        return value


class SweepResultSerializer(serializers.Serializer):
    room_id = serializers.CharField()
    week_start = serializers.DateTimeField()
    week_end = serializers.DateTimeField()
    awarded = serializers.ListField(child=serializers.CharField())
    already_awarded = serializers.ListField(child=serializers.CharField())
    bonuses_applied = serializers.IntegerField()
    already_swept = serializers.BooleanField()
