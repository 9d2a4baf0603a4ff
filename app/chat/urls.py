"""
URL configuration for chat API.

URL Structure:
    Rooms:
        /conversations/                  GET, POST
        /conversations/{id}/             DELETE
        /chats/                          GET, POST
        /chats/{id}/                     DELETE
        /chats/{id}/add-member/          PUT

    Messages:
        /messages/                       POST
        /messages/{id}/                  GET (room id), PUT, DELETE (message id)
        /messages/{room_id}/read/        POST

    Presence:
        /online-users/                   GET
        /online-users/{user_id}/         GET

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import (
    ConversationViewSet,
    GroupChatViewSet,
    MarkRoomReadView,
    MessageCreateView,
    MessageDetailView,
    OnlineUsersView,
    UserOnlineStatusView,
)

app_name = "chat"

urlpatterns = [
    # Private conversations (list also includes groups)
    path(
        "conversations/",
        ConversationViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-list",
    ),
    path(
        "conversations/<uuid:pk>/",
        ConversationViewSet.as_view({"delete": "destroy"}),
        name="conversation-detail",
    ),
    # Group chats
    path(
        "chats/",
        GroupChatViewSet.as_view({"get": "list", "post": "create"}),
        name="group-list",
    ),
    path(
        "chats/<uuid:pk>/",
        GroupChatViewSet.as_view({"delete": "destroy"}),
        name="group-detail",
    ),
    path(
        "chats/<uuid:pk>/add-member/",
        GroupChatViewSet.as_view({"put": "add_member"}),
        name="group-add-member",
    ),
    # Messages
    path("messages/", MessageCreateView.as_view(), name="message-create"),
    path("messages/<uuid:pk>/", MessageDetailView.as_view(), name="message-detail"),
    path(
        "messages/<uuid:room_id>/read/",
        MarkRoomReadView.as_view(),
        name="message-room-read",
    ),
    # Presence
    path("online-users/", OnlineUsersView.as_view(), name="online-users"),
    path(
        "online-users/<uuid:user_id>/",
        UserOnlineStatusView.as_view(),
        name="online-user-status",
    ),
]
