"""
Delivery fan-out over the Channels layer.

Subscriber sets live in channel layer groups:
    room.<room_id>   Sessions that joined the room
    user.<user_id>   Every session of one user
    presence         Every authenticated session

Every fan-out is a single "chat.event" message carrying the client-facing
event name and payload. ChatConsumer.chat_event forwards it to the socket,
skipping the session named in exclude_channel.

Payloads are normalized to plain JSON types before sending, since the Redis
layer serializes with msgpack.

Usage:
    # From a consumer
    await FanoutService.broadcast_to_room(room_id, ServerEvent.RECEIVE_MESSAGE,
                                          data, exclude_channel=self.channel_name)

    # From a REST view (sync)
    FanoutService.notify_room(room_id, ServerEvent.MESSAGE_UPDATED, data)
"""

from __future__ import annotations

import json

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.serializers.json import DjangoJSONEncoder

from chat.constants import REALTIME_CONFIG
from chat.rooms import room_group_name
from core.services import BaseService


def user_group_name(user_id) -> str:
    return f"{REALTIME_CONFIG.USER_GROUP_PREFIX}.{user_id}"


def to_wire(payload):
    """Round-trip through JSON so UUIDs and datetimes become strings."""
    return json.loads(json.dumps(payload, cls=DjangoJSONEncoder))


def build_event(event: str, payload, exclude_channel: str | None = None) -> dict:
    return {
        "type": REALTIME_CONFIG.EVENT_HANDLER_TYPE,
        "event": event,
        "payload": to_wire(payload),
        "exclude_channel": exclude_channel,
    }


class FanoutService(BaseService):
    """Room, user and presence broadcasts plus room subscription management."""

    @classmethod
    async def subscribe(cls, room_id, channel_name: str):
        await get_channel_layer().group_add(room_group_name(room_id), channel_name)

    @classmethod
    async def unsubscribe(cls, room_id, channel_name: str):
        await get_channel_layer().group_discard(room_group_name(room_id), channel_name)

    @classmethod
    async def attach_session(cls, user_id, channel_name: str):
        """Join the per-user and presence groups for a new session."""
        layer = get_channel_layer()
        await layer.group_add(user_group_name(user_id), channel_name)
        await layer.group_add(REALTIME_CONFIG.PRESENCE_GROUP, channel_name)

    @classmethod
    async def detach_session(cls, user_id, channel_name: str):
        layer = get_channel_layer()
        await layer.group_discard(user_group_name(user_id), channel_name)
        await layer.group_discard(REALTIME_CONFIG.PRESENCE_GROUP, channel_name)

    @classmethod
    async def broadcast_to_room(
        cls, room_id, event: str, payload, exclude_channel: str | None = None
    ):
        await get_channel_layer().group_send(
            room_group_name(room_id), build_event(event, payload, exclude_channel)
        )

    @classmethod
    async def broadcast_to_user(cls, user_id, event: str, payload):
        await get_channel_layer().group_send(
            user_group_name(user_id), build_event(event, payload)
        )

    @classmethod
    async def broadcast_presence(
        cls, event: str, payload, exclude_channel: str | None = None
    ):
        await get_channel_layer().group_send(
            REALTIME_CONFIG.PRESENCE_GROUP,
            build_event(event, payload, exclude_channel),
        )

    # -------------------------------------------------------------------------
    # Sync entry points for REST views
    # -------------------------------------------------------------------------

    @classmethod
    def notify_room(cls, room_id, event: str, payload):
        """
        Fan out to a room from synchronous code.

        The write has already been committed, so a channel layer outage is
        logged rather than turned into a failed request.
        """
        try:
            async_to_sync(cls.broadcast_to_room)(room_id, event, payload)
        except Exception:
            cls.get_logger().exception(f"Failed to deliver {event} to room {room_id}")

    @classmethod
    def notify_users(cls, user_ids, event: str, payload):
        """Fan out to every session of each user from synchronous code."""
        for user_id in user_ids:
            try:
                async_to_sync(cls.broadcast_to_user)(user_id, event, payload)
            except Exception:
                cls.get_logger().exception(f"Failed to deliver {event} to user {user_id}")
