"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Single multiplexed connection per session; rooms are joined
               with joinChat frames

Authentication:
    JWT token passed as ?token=<jwt_access_token>, as the subprotocol pair
    "jwt, <token>", or as an Authorization: Bearer header. JWTAuthMiddleware
    validates it and attaches the user to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
