"""
Authentication serializers.

Related files:
    - views.py: API views using these serializers
    - tokens.py: Version claim stamped onto issued tokens
"""

from rest_framework import serializers
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.serializers import (
    TokenObtainPairSerializer,
    TokenRefreshSerializer,
)
from rest_framework_simplejwt.settings import api_settings

from authentication.models import User
from authentication.tokens import TOKEN_VERSION_CLAIM, add_version_claim


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used for the current-user endpoint, user search and every place a chat
    payload embeds a participant or a sender.
    """

    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "full_name"]
        read_only_fields = fields

    def get_full_name(self, obj):
        return obj.get_full_name()


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    first_name = serializers.CharField(max_length=150, required=False, default="")
    last_name = serializers.CharField(max_length=150, required=False, default="")


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, trim_whitespace=False)
    new_password = serializers.CharField(write_only=True, trim_whitespace=False)


class UpdateProfileSerializer(serializers.Serializer):
    """Partial profile update. current_password is required for an email change."""

    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.EmailField(required=False)
    current_password = serializers.CharField(
        write_only=True, required=False, trim_whitespace=False
    )


class TokenPairSerializer(serializers.Serializer):
    """Response shape for endpoints that hand out a token pair."""

    access = serializers.CharField()
    refresh = serializers.CharField()


class VersionedTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Email/password login that stamps the credential version on the tokens."""

    @classmethod
    def get_token(cls, user):
        return add_version_claim(super().get_token(user), user)


class VersionedTokenRefreshSerializer(TokenRefreshSerializer):
    """Refuse to refresh tokens issued before the last credential version bump."""

    def validate(self, attrs):
        refresh = self.token_class(attrs["refresh"])
        user = User.objects.filter(
            **{api_settings.USER_ID_FIELD: refresh.get(api_settings.USER_ID_CLAIM)}
        ).first()
        if user is None or refresh.get(TOKEN_VERSION_CLAIM) != user.token_version:
            raise InvalidToken("Token has been revoked. Please log in again.")
        return super().validate(attrs)
