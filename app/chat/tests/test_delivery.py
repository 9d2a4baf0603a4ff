"""
Tests for channel layer fan-out.

Testing Philosophy:
    A bare channel is subscribed to the in-memory layer in place of a
    consumer, so the exact chat.event envelope can be inspected.
"""

import datetime
import uuid
from unittest.mock import AsyncMock, patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from chat.constants import REALTIME_CONFIG, ServerEvent
from chat.delivery import FanoutService, build_event, to_wire, user_group_name
from chat.rooms import room_group_name


def subscribe(group_name) -> str:
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(group_name, channel)
    return channel


def receive(channel) -> dict:
    return async_to_sync(get_channel_layer().receive)(channel)


class TestEnvelope:
    def test_payload_is_normalized_to_json_types(self):
        room_id = uuid.uuid4()
        when = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)

        assert to_wire({"roomId": room_id, "at": when}) == {
            "roomId": str(room_id),
            "at": "2024-01-02T03:04:05Z",
        }

    def test_build_event_targets_the_consumer_handler(self):
        event = build_event(ServerEvent.USER_TYPING, {"isTyping": True}, "chan-1")

        assert event == {
            "type": REALTIME_CONFIG.EVENT_HANDLER_TYPE,
            "event": ServerEvent.USER_TYPING,
            "payload": {"isTyping": True},
            "exclude_channel": "chan-1",
        }


class TestNotify:
    """
    Tests for the sync entry points used by REST views.

    Why it matters: A message created over REST must reach sessions that
    joined the room over WebSockets.
    """

    def test_notify_room_reaches_room_subscribers(self):
        room_id = uuid.uuid4()
        channel = subscribe(room_group_name(room_id))

        FanoutService.notify_room(room_id, ServerEvent.MESSAGE_DELETED, {"roomId": room_id})

        message = receive(channel)
        assert message["event"] == ServerEvent.MESSAGE_DELETED
        assert message["payload"] == {"roomId": str(room_id)}
        assert message["exclude_channel"] is None

    def test_notify_users_reaches_each_user_group(self):
        user_ids = [uuid.uuid4(), uuid.uuid4()]
        channels = [subscribe(user_group_name(user_id)) for user_id in user_ids]

        FanoutService.notify_users(user_ids, ServerEvent.ROOM_DELETED, {"roomId": "r1"})

        for channel in channels:
            assert receive(channel)["event"] == ServerEvent.ROOM_DELETED

    def test_layer_failure_is_logged_not_raised(self):
        with (
            patch.object(
                FanoutService,
                "broadcast_to_room",
                new=AsyncMock(side_effect=ConnectionError("redis down")),
            ),
            patch.object(FanoutService, "get_logger") as get_logger,
        ):
            FanoutService.notify_room(uuid.uuid4(), ServerEvent.MESSAGE_UPDATED, {})

        get_logger.return_value.exception.assert_called_once()
