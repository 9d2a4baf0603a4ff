"""
WebSocket authentication middleware.

Provides JWT authentication for WebSocket connections. The token is checked
once, at handshake time, by the same gate the REST API uses.

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers
    - config/asgi.py: ASGI configuration
    - authentication/tokens.py: authenticate_token()

Token Passing Methods (in order of precedence):
    1. Query string: ws://host/ws/chat/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>
    3. Header: Authorization: Bearer <jwt_token>

Usage in config/asgi.py:
    from chat.middleware import JWTAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from authentication.tokens import authenticate_token
from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

JWT_SUBPROTOCOL = "jwt"


def get_token_from_query(scope) -> str | None:
    """Extract token from query string."""
    query_string = scope.get("query_string", b"").decode()
    token_list = parse_qs(query_string).get("token", [])
    return token_list[0] if token_list else None


def get_token_from_subprotocol(scope) -> str | None:
    """
    Extract token from WebSocket subprotocol.

    Expects: Sec-WebSocket-Protocol: jwt, <token>
    """
    subprotocols = scope.get("subprotocols") or []
    if len(subprotocols) >= 2 and subprotocols[0] == JWT_SUBPROTOCOL:
        return subprotocols[1]
    return None


def get_token_from_header(scope) -> str | None:
    """Extract token from an Authorization: Bearer header."""
    for name, value in scope.get("headers") or []:
        if name.lower() == b"authorization":
            scheme, _, credential = value.decode().partition(" ")
            if scheme.lower() == "bearer" and credential.strip():
                return credential.strip()
    return None


@database_sync_to_async
def get_user_for_token(token: str | None):
    """
    Resolve a token to a user.

    Returns:
        User instance if valid, AnonymousUser otherwise
    """
    try:
        return authenticate_token(token)
    except AuthenticationError as e:
        logger.warning(f"Rejected WebSocket credential: {e}")
        return AnonymousUser()


class JWTAuthMiddleware(BaseMiddleware):
    """
    JWT authentication middleware for WebSocket connections.

    Adds scope["user"] before the consumer runs. The consumer closes
    connections whose user is anonymous, before processing any event.
    """

    async def __call__(self, scope, receive, send):
        token = (
            get_token_from_query(scope)
            or get_token_from_subprotocol(scope)
            or get_token_from_header(scope)
        )
        scope = dict(scope, user=await get_user_for_token(token))
        return await super().__call__(scope, receive, send)
