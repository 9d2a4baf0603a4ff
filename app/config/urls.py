"""
URL configuration for the chat backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints
        register/                  - Create account
        login/                     - Obtain token pair
        token/refresh/             - Refresh access token
        me/                        - Current user
        password/change/           - Change password (revokes tokens)
        logout-all/                - Revoke every token
        users/search/              - User search
    /api/v1/chat/                  - Chat endpoints
        conversations/             - Room summaries / get-or-create private conversation
        conversations/{id}/        - Delete private conversation
        chats/                     - Group list / create
        chats/{id}/                - Delete group
        chats/{id}/add-member/     - Add group member
        messages/                  - Send message
        messages/{id}/             - Room messages (GET) / edit, delete message
        messages/{id}/read/        - Mark room as read
        online-users/              - Online user ids
        online-users/{id}/         - Single user presence

WebSocket routes live in chat/routing.py (/ws/chat/).
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Conversations, groups and messages"
