"""
REST authentication class built on the shared credential check.
"""

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from authentication.tokens import authenticate_token
from core.exceptions import AuthenticationError


class VersionedJWTAuthentication(JWTAuthentication):
    """
    Bearer JWT authentication that also enforces the credential version.

    Header parsing is inherited from simplejwt. Token validation and user
    resolution are delegated to authenticate_token() so REST and realtime
    apply the same rule.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            user = authenticate_token(raw_token)
        except AuthenticationError as e:
            raise AuthenticationFailed(e.message, code="token_not_valid") from e

        return user, raw_token
