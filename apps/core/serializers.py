"""
Serializers for authentication, staff profiles and audit events.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import AuditEvent, StaffProfile
from .permissions import get_user_role

User = get_user_model()


class StaffProfileSerializer(serializers.ModelSerializer):
    """Serializer for StaffProfile model."""

    class Meta:
        model = StaffProfile
        fields = [
            'id',
            'role',
            'translation_language',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User with nested profile."""

    profile = StaffProfileSerializer(source='staff_profile', read_only=True)
    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'is_active',
            'role',
            'profile',
        ]
        read_only_fields = fields

    def get_role(self, obj):
        return get_user_role(obj)


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user reference used inside workflow payloads."""

    name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'name']

    def get_name(self, obj):
        return obj.get_full_name() or obj.get_username()


class NewsroomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Token serializer that adds the newsroom role to the JWT and response.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        token['username'] = user.get_username()
        token['role'] = get_user_role(user)

        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data


class AuditEventSerializer(serializers.ModelSerializer):
    """Read-only audit trail entry."""

    actor = UserSummarySerializer(read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            'id',
            'action',
            'actor',
            'target_type',
            'target_id',
            'from_state',
            'to_state',
            'details',
            'request_id',
            'created_at',
        ]
        read_only_fields = fields
