"""
Token issuance and the shared credential check (Identity Gate).

Every token carries two claims the gate relies on:
    user_id: Subject of the token (SIMPLE_JWT["USER_ID_CLAIM"])
    token_version: The user's credential version when the token was issued

authenticate_token() is the only place the version comparison happens.
Both transports call it:
    - REST: authentication.backends.VersionedJWTAuthentication
    - WebSocket: chat.middleware.JWTAuthMiddleware

Usage:
    from authentication.tokens import authenticate_token, issue_token_pair

    tokens = issue_token_pair(user)      # {"access": "...", "refresh": "..."}
    user = authenticate_token(tokens["access"])

    user.bump_token_version()
    authenticate_token(tokens["access"])  # raises AuthenticationError
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from authentication.models import User
from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_VERSION_CLAIM = "token_version"


def add_version_claim(token, user):
    """Stamp the user's current credential version onto a token."""
    token[TOKEN_VERSION_CLAIM] = user.token_version
    return token


def issue_token_pair(user) -> dict[str, str]:
    """
    Issue a refresh/access token pair for a user.

    The access token copies the version claim from the refresh token.
    """
    refresh = add_version_claim(RefreshToken.for_user(user), user)
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }


def authenticate_token(raw_token) -> User:
    """
    Resolve a raw bearer access token to an active user.

    Args:
        raw_token: Encoded JWT as str or bytes

    Returns:
        The authenticated User

    Raises:
        AuthenticationError: Missing, malformed, expired or revoked token,
            or the user is unknown or inactive
    """
    if not raw_token:
        raise AuthenticationError("Authentication credentials were not provided.")

    if isinstance(raw_token, bytes):
        raw_token = raw_token.decode("utf-8", errors="replace")

    try:
        token = AccessToken(raw_token)
    except TokenError as e:
        raise AuthenticationError("Token is invalid or expired") from e

    user_id = token.get(api_settings.USER_ID_CLAIM)
    if user_id is None:
        raise AuthenticationError("Token contained no recognizable user identification")

    try:
        user = User.objects.get(**{api_settings.USER_ID_FIELD: user_id})
    except (User.DoesNotExist, DjangoValidationError) as e:
        raise AuthenticationError("User not found") from e

    if not user.is_active:
        raise AuthenticationError("User is inactive")

    if token.get(TOKEN_VERSION_CLAIM) != user.token_version:
        logger.info(f"Rejected revoked token for user {user.id}")
        raise AuthenticationError("Token has been revoked. Please log in again.")

    return user
