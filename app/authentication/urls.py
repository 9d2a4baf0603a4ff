"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/          - Create account (POST)
    /api/v1/auth/login/             - Obtain token pair (POST)
    /api/v1/auth/token/refresh/     - Refresh access token (POST)
    /api/v1/auth/me/                - Current user (GET, PUT, DELETE)
    /api/v1/auth/password/change/   - Change password, revoke tokens (POST)
    /api/v1/auth/logout-all/        - Revoke all tokens (POST)
    /api/v1/auth/users/search/      - User search (GET)
"""

from django.urls import path

from authentication.views import (
    ChangePasswordView,
    LoginView,
    LogoutAllView,
    MeView,
    RefreshView,
    RegisterView,
    UserSearchView,
)

app_name = "authentication"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("token/refresh/", RefreshView.as_view(), name="token-refresh"),
    path("me/", MeView.as_view(), name="me"),
    path("password/change/", ChangePasswordView.as_view(), name="password-change"),
    path("logout-all/", LogoutAllView.as_view(), name="logout-all"),
    path("users/search/", UserSearchView.as_view(), name="user-search"),
]
