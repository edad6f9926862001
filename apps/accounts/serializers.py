from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password

from apps.trust.policy import get_trust_tier
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    trust_score = serializers.IntegerField(source='current_trust_score', read_only=True)
    trust_tier = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'phone',
            'avatar',
            'bio',
            'trust_score',
            'trust_tier',
            'created_at',
            'last_login',
            'preferences',
        ]
        read_only_fields = ['id', 'email', 'created_at', 'last_login']

    def get_trust_tier(self, obj):
        return get_trust_tier(obj.current_trust_score).value


class UserRegistrationSerializer(serializers.Serializer):
    """Input serializer for user registration."""

    email = serializers.EmailField(required=True)
    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class UserPublicSerializer(serializers.ModelSerializer):
    """Public user info for room member lists and chore assignees."""

    trust_score = serializers.IntegerField(source='current_trust_score', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'display_name', 'avatar', 'trust_score']
        read_only_fields = fields
