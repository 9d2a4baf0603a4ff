"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures (alice, bob, carol, outsider)
- Room fixtures (a private conversation and a group chat)
- API clients authenticated with real JWT access tokens
- Isolation of process-wide realtime state (presence, channel layer)

Usage:
    def test_example(conversation, alice_client):
        response = alice_client.get(f"/api/v1/chat/messages/{conversation.id}/")
        assert response.status_code == 200
"""

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from authentication.tokens import issue_token_pair
from chat.presence import get_presence_registry
from chat.tests.factories import ConversationFactory, GroupChatFactory


# =============================================================================
# Realtime State Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_realtime_state():
    """Every test starts with nobody online and empty channel groups."""
    get_presence_registry().reset()
    yield
    get_presence_registry().reset()
    layer = get_channel_layer()
    if hasattr(layer, "flush"):
        async_to_sync(layer.flush)()


@pytest.fixture
def short_grace(settings):
    """Shrink the offline grace period so debounce tests run fast."""
    settings.CHAT_PRESENCE_GRACE_SECONDS = 0.05
    return settings.CHAT_PRESENCE_GRACE_SECONDS


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(first_name="Alice")


@pytest.fixture
def bob(db):
    return UserFactory(first_name="Bob")


@pytest.fixture
def carol(db):
    return UserFactory(first_name="Carol")


@pytest.fixture
def outsider(db):
    """A user who belongs to none of the room fixtures."""
    return UserFactory(first_name="Oscar")


# =============================================================================
# Room Fixtures
# =============================================================================


@pytest.fixture
def conversation(alice, bob):
    """Private conversation between alice and bob."""
    return ConversationFactory(users=(alice, bob))


@pytest.fixture
def group(alice, bob, carol):
    """Group chat of alice (admin), bob and carol."""
    return GroupChatFactory(admin=alice, participants=[alice, bob, carol])


# =============================================================================
# API Clients
# =============================================================================


def make_client(user) -> APIClient:
    client = APIClient()
    client.credentials(
        HTTP_AUTHORIZATION=f"Bearer {issue_token_pair(user)['access']}"
    )
    return client


@pytest.fixture
def alice_client(alice):
    return make_client(alice)


@pytest.fixture
def bob_client(bob):
    return make_client(bob)


@pytest.fixture
def outsider_client(outsider):
    return make_client(outsider)
