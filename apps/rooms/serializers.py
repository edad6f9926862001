from rest_framework import serializers

from apps.accounts.serializers import UserPublicSerializer
from .models import Room, RoomMembership


class RoomSerializer(serializers.ModelSerializer):
    """Main serializer for rooms. The invite code is served separately."""

    owner = UserPublicSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    user_role = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = [
            'id',
            'name',
            'description',
            'owner',
            'max_members',
            'member_count',
            'user_role',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'owner', 'created_at', 'updated_at']

    def get_member_count(self, obj):
        return obj.memberships.count()

    def get_user_role(self, obj):
        """Get current user's role in the room."""
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.get_user_role(request.user)
        return None


class RoomCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating rooms."""

    max_members = serializers.IntegerField(min_value=2, max_value=20, required=False, default=8)

    class Meta:
        model = Room
        fields = ['name', 'description', 'max_members']


class RoomMemberSerializer(serializers.ModelSerializer):
    """Member with public trust info."""

    user = UserPublicSerializer(read_only=True)

    class Meta:
        model = RoomMembership
        fields = ['id', 'user', 'role', 'joined_at']
        read_only_fields = fields


class JoinRoomSerializer(serializers.Serializer):
    invite_code = serializers.CharField(max_length=16)
