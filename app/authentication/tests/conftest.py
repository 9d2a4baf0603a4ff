"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/auth/me/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from authentication.tokens import issue_token_pair


@pytest.fixture
def user(db):
    """Create a basic active user with a known password."""
    return UserFactory(password="TestPass123!")


@pytest.fixture
def other_user(db):
    return UserFactory()


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


@pytest.fixture
def api_client():
    """Unauthenticated API client for public endpoints."""
    return APIClient()


@pytest.fixture
def tokens(user):
    """Token pair issued for the default user fixture."""
    return issue_token_pair(user)


@pytest.fixture
def authenticated_client(tokens):
    """
    API client authenticated with a real JWT access token.

    Goes through VersionedJWTAuthentication, so revoking the user's tokens
    makes this client fail with 401.
    """
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    return client
