"""
Authentication views.

This module provides API views for:
- Registration and login (JWT token pair)
- Current user lookup, profile update and account deletion
- Password change and logout-everywhere (credential version bump)
- User search for starting conversations

Related files:
    - serializers.py: Request/response serialization
    - services.py: Business logic (AuthService)
    - tokens.py: Token issuance and verification
    - urls.py: URL routing
"""

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from authentication.models import User
from authentication.serializers import (
    ChangePasswordSerializer,
    RegisterSerializer,
    TokenPairSerializer,
    UpdateProfileSerializer,
    UserSerializer,
    VersionedTokenObtainPairSerializer,
    VersionedTokenRefreshSerializer,
)
from authentication.services import AuthService
from authentication.tokens import issue_token_pair
from core.exceptions import ErrorCode
from core.views import service_error_response

USER_SEARCH_LIMIT = 20


class RegisterView(APIView):
    """
    API view for account creation.

    POST: Create an account and return the user with a token pair

    URL: /api/v1/auth/register/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Register new account",
        request=RegisterSerializer,
        responses={201: UserSerializer},
        tags=["Auth"],
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.register(**serializer.validated_data)
        if not result.success:
            return service_error_response(result)

        return Response(
            {
                "user": UserSerializer(result.data).data,
                "tokens": issue_token_pair(result.data),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(TokenObtainPairView):
    """
    Email/password login.

    URL: /api/v1/auth/login/
    """

    serializer_class = VersionedTokenObtainPairSerializer


class MeView(APIView):
    """
    GET: Return the authenticated user
    PUT: Update names and/or email (email change revokes existing tokens)
    DELETE: Delete the account

    URL: /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get current user", responses=UserSerializer, tags=["Auth"])
    def get(self, request):
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        summary="Update current user",
        description=(
            "Changing the email requires current_password. It revokes every "
            "previously issued token, so the response carries a fresh pair "
            "and logout is true."
        ),
        request=UpdateProfileSerializer,
        responses={200: OpenApiResponse(description="Updated user")},
        tags=["Auth"],
    )
    def put(self, request):
        serializer = UpdateProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)

        user, rotated = result.data
        data = {"user": UserSerializer(user).data, "logout": rotated}
        if rotated:
            data["tokens"] = issue_token_pair(user)
        return Response(data)

    @extend_schema(
        summary="Delete current user",
        responses={204: OpenApiResponse(description="Deleted")},
        tags=["Auth"],
    )
    def delete(self, request):
        AuthService.delete_account(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ChangePasswordView(APIView):
    """
    POST: Change password, revoke every existing token and return a new pair

    URL: /api/v1/auth/password/change/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change password",
        description=(
            "Change the password of the current user. All previously issued "
            "tokens stop working immediately; use the returned pair instead."
        ),
        request=ChangePasswordSerializer,
        responses=TokenPairSerializer,
        tags=["Auth"],
    )
    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        if not result.success:
            return service_error_response(result)

        return Response(issue_token_pair(result.data))


class LogoutAllView(APIView):
    """
    POST: Invalidate every token issued to the current user

    URL: /api/v1/auth/logout-all/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Log out everywhere", request=None, tags=["Auth"])
    def post(self, request):
        AuthService.revoke_all_tokens(request.user)
        return Response({"detail": "Logged out from all devices"})


class UserSearchView(APIView):
    """
    GET: Search users by first name, last name or email

    URL: /api/v1/auth/users/search/?query=<text>
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Search users",
        parameters=[OpenApiParameter("query", str, required=True)],
        responses=UserSerializer(many=True),
        tags=["Auth"],
    )
    def get(self, request):
        query = request.query_params.get("query", "").strip()
        if not query:
            return Response(
                {"error": "Query parameter is required", "error_code": ErrorCode.INVALID_INPUT},
                status=status.HTTP_400_BAD_REQUEST,
            )

        users = User.objects.search(query, exclude=request.user)[:USER_SEARCH_LIMIT]
        return Response(UserSerializer(users, many=True).data)


class RefreshView(TokenRefreshView):
    """
    Exchange a refresh token for a new access token.

    URL: /api/v1/auth/token/refresh/
    """

    serializer_class = VersionedTokenRefreshSerializer
