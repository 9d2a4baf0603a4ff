"""
Tests for chat API views.

Testing Philosophy:
    Tests focus on observable HTTP behavior:
    - Response status codes derived from the error taxonomy
    - Response body structure
    - Realtime notifications triggered by successful mutations (the
      FanoutService entry points are patched and inspected)
"""

import uuid
from unittest.mock import patch

import pytest
from rest_framework import status
from rest_framework.test import APIClient

from chat.constants import ERROR_MESSAGES, ServerEvent
from chat.delivery import FanoutService
from chat.models import Conversation, GroupChat, Message
from chat.presence import get_presence_registry
from chat.tests.factories import MessageFactory
from core.exceptions import ErrorCode

pytestmark = pytest.mark.django_db


# =============================================================================
# URL Constants
# =============================================================================


CONVERSATIONS_URL = "/api/v1/chat/conversations/"
GROUPS_URL = "/api/v1/chat/chats/"
MESSAGES_URL = "/api/v1/chat/messages/"
ONLINE_USERS_URL = "/api/v1/chat/online-users/"


def conversation_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/"


def group_url(group_id):
    return f"{GROUPS_URL}{group_id}/"


def add_member_url(group_id):
    return f"{GROUPS_URL}{group_id}/add-member/"


def message_url(object_id):
    return f"{MESSAGES_URL}{object_id}/"


def read_url(room_id):
    return f"{MESSAGES_URL}{room_id}/read/"


@pytest.fixture
def notify_users():
    with patch.object(FanoutService, "notify_users") as mock:
        yield mock


@pytest.fixture
def notify_room():
    with patch.object(FanoutService, "notify_room") as mock:
        yield mock


class TestAuthenticationRequired:
    """
    Why it matters: Every chat endpoint is private to its participants.
    """

    @pytest.mark.parametrize(
        "url",
        [CONVERSATIONS_URL, GROUPS_URL, ONLINE_USERS_URL],
    )
    def test_anonymous_requests_are_rejected(self, url):
        response = APIClient().get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestConversationViews:
    def test_create_returns_201_then_200(self, alice_client, bob, notify_users):
        """
        Why it matters: Clients use the status to know whether the other
        user has just been notified of a new conversation.
        """
        first = alice_client.post(
            CONVERSATIONS_URL, {"receiver_id": str(bob.id)}, format="json"
        )
        second = alice_client.post(
            CONVERSATIONS_URL, {"receiver_id": str(bob.id)}, format="json"
        )

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert first.data["id"] == second.data["id"]
        assert first.data["kind"] == "private"
        assert Conversation.objects.count() == 1
        notify_users.assert_called_once()
        user_ids, event, _ = notify_users.call_args.args
        assert list(user_ids) == [bob.id]
        assert event == ServerEvent.CONVERSATION_CREATED

    def test_create_with_self_is_400(self, alice_client, alice):
        response = alice_client.post(
            CONVERSATIONS_URL, {"receiver_id": str(alice.id)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == ErrorCode.INVALID_INPUT

    def test_create_with_unknown_user_is_404(self, alice_client):
        response = alice_client.post(
            CONVERSATIONS_URL, {"receiver_id": str(uuid.uuid4())}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_merges_conversations_and_groups(self, alice_client, conversation, group):
        response = alice_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert {room["kind"] for room in response.data} == {"private", "group"}
        assert {room["id"] for room in response.data} == {
            str(conversation.id),
            str(group.id),
        }

    def test_delete_notifies_former_participants(
        self, alice_client, conversation, alice, bob, notify_users
    ):
        MessageFactory(conversation=conversation, sender=alice)

        response = alice_client.delete(conversation_url(conversation.id))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Conversation.objects.exists()
        assert not Message.objects.exists()
        user_ids, event, payload = notify_users.call_args.args
        assert set(user_ids) == {alice.id, bob.id}
        assert event == ServerEvent.ROOM_DELETED
        assert payload == {"roomId": str(conversation.id)}

    def test_delete_by_outsider_is_403(self, outsider_client, conversation):
        response = outsider_client.delete(conversation_url(conversation.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_unknown_is_404(self, alice_client):
        response = alice_client.delete(conversation_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestGroupViews:
    def test_create_group(self, alice_client, alice, bob, carol, notify_users):
        response = alice_client.post(
            GROUPS_URL,
            {"chat_name": "Trip", "members": [str(bob.id), str(carol.id)]},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["name"] == "Trip"
        assert response.data["is_group"] is True
        assert response.data["admin"]["id"] == str(alice.id)
        assert len(response.data["participants"]) == 3
        user_ids, event, _ = notify_users.call_args.args
        assert set(user_ids) == {alice.id, bob.id, carol.id}
        assert event == ServerEvent.GROUP_CREATED

    def test_too_small_group_is_400(self, alice_client, bob):
        response = alice_client.post(
            GROUPS_URL,
            {"chat_name": "Pair", "members": [str(bob.id)]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not GroupChat.objects.exists()

    def test_blank_name_is_400(self, alice_client, bob, carol):
        response = alice_client.post(
            GROUPS_URL,
            {"chat_name": "  ", "members": [str(bob.id), str(carol.id)]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_only_returns_own_groups(self, alice_client, outsider_client, group):
        assert [g["id"] for g in alice_client.get(GROUPS_URL).data] == [str(group.id)]
        assert outsider_client.get(GROUPS_URL).data == []

    def test_add_member(self, bob_client, group, outsider, notify_users):
        response = bob_client.put(
            add_member_url(group.id), {"user_id": str(outsider.id)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert group.has_participant(outsider.id)
        user_ids, event, _ = notify_users.call_args.args
        assert list(user_ids) == [outsider.id]
        assert event == ServerEvent.ADDED_TO_GROUP

    def test_add_existing_member_is_409(self, alice_client, group, bob):
        response = alice_client.put(
            add_member_url(group.id), {"user_id": str(bob.id)}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == ErrorCode.CONFLICT

    def test_add_member_by_outsider_is_403(self, outsider_client, group, outsider):
        response = outsider_client.put(
            add_member_url(group.id), {"user_id": str(outsider.id)}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_any_member_may_delete_group(self, bob_client, group, notify_users):
        response = bob_client.delete(group_url(group.id))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not GroupChat.objects.exists()


class TestMessageViews:
    def test_send_message_fans_out_to_room(self, alice_client, conversation, notify_room):
        response = alice_client.post(
            MESSAGES_URL,
            {"conversation_id": str(conversation.id), "content": "hello"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["content"] == "hello"
        assert response.data["room_id"] == str(conversation.id)
        assert response.data["chat_id"] is None
        room_id, event, payload = notify_room.call_args.args
        assert room_id == conversation.id
        assert event == ServerEvent.RECEIVE_MESSAGE
        assert payload["id"] == response.data["id"]

    def test_send_with_both_ids_is_400(self, alice_client, conversation, group, notify_room):
        response = alice_client.post(
            MESSAGES_URL,
            {
                "conversation_id": str(conversation.id),
                "chat_id": str(group.id),
                "content": "hello",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == ERROR_MESSAGES.BOTH_ROOM_IDS
        notify_room.assert_not_called()

    def test_send_to_foreign_room_is_403(self, outsider_client, group, notify_room):
        response = outsider_client.post(
            MESSAGES_URL, {"chat_id": str(group.id), "content": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        notify_room.assert_not_called()

    def test_send_with_attachment_only(self, alice_client, group, notify_room):
        response = alice_client.post(
            MESSAGES_URL,
            {
                "chat_id": str(group.id),
                "attachments": [
                    {
                        "url": "https://cdn.example.com/doc.pdf",
                        "file_name": "doc.pdf",
                        "file_type": "application/pdf",
                    }
                ],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["message_type"] == "file"
        assert response.data["attachments"][0]["file_name"] == "doc.pdf"

    def test_get_lists_room_history(self, bob_client, conversation, alice, bob):
        MessageFactory(conversation=conversation, sender=alice, content="one")

        response = bob_client.get(message_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert [m["content"] for m in response.data] == ["one"]

    def test_get_foreign_room_is_403(self, outsider_client, conversation):
        response = outsider_client.get(message_url(conversation.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_get_unknown_room_is_404(self, alice_client):
        response = alice_client.get(message_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_edit_own_message(self, alice_client, conversation, alice, notify_room):
        message = MessageFactory(conversation=conversation, sender=alice)

        response = alice_client.put(
            message_url(message.id), {"content": "edited"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["content"] == "edited"
        _, event, _ = notify_room.call_args.args
        assert event == ServerEvent.MESSAGE_UPDATED

    def test_edit_others_message_is_403(self, bob_client, conversation, alice):
        message = MessageFactory(conversation=conversation, sender=alice, content="mine")

        response = bob_client.put(
            message_url(message.id), {"content": "yours"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        message.refresh_from_db()
        assert message.content == "mine"

    def test_delete_own_message(self, alice_client, conversation, alice, notify_room):
        message = MessageFactory(conversation=conversation, sender=alice)

        response = alice_client.delete(message_url(message.id))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        room_id, event, payload = notify_room.call_args.args
        assert room_id == conversation.id
        assert event == ServerEvent.MESSAGE_DELETED
        assert payload == {"messageId": str(message.id), "roomId": str(conversation.id)}

    def test_delete_unknown_message_is_404(self, alice_client):
        response = alice_client.delete(message_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_mark_room_read(self, alice_client, conversation, alice, bob):
        message = MessageFactory(conversation=conversation, sender=bob)

        response = alice_client.post(read_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"marked": 1}
        assert message.read_by.filter(id=alice.id).exists()


class TestOnlineUserViews:
    def test_lists_online_users(self, alice_client, alice, bob):
        get_presence_registry().add_session(bob.id, "session-1")

        response = alice_client.get(ONLINE_USERS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"online_users": [str(bob.id)]}

    def test_single_user_status(self, alice_client, bob):
        url = f"{ONLINE_USERS_URL}{bob.id}/"

        offline = alice_client.get(url).data
        get_presence_registry().add_session(bob.id, "session-1")
        online = alice_client.get(url).data

        assert offline == {"user_id": str(bob.id), "online": False}
        assert online == {"user_id": str(bob.id), "online": True}

