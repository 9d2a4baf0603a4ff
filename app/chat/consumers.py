"""
WebSocket consumers for the chat application.

This module implements the realtime session hub: one ChatConsumer per
connection, multiplexing every room the user joins over a single socket.

Consumers:
    ChatConsumer: Handles WebSocket connections at /ws/chat/

Authentication:
    JWTAuthMiddleware resolves the bearer token at handshake time and puts
    the user in self.scope["user"]. Anonymous connections are closed with
    code 4001 before any event is processed.

Channel Groups:
    room.<room_id>   Joined via joinChat, left via leaveChat or disconnect
    user.<user_id>   Every session of the user (private notifications)
    presence         Every authenticated session (online/offline updates)

Message Types (from client):
    - joinChat {roomId}
    - leaveChat {roomId}
    - sendMessage {conversationId | chatId, content, attachments, messageType}
    - typing {roomId, isTyping}
    - getOnlineUsers {}

Message Types (to client):
    Every frame is {"type": <event>, "data": <payload>}; see ServerEvent.

Error Handling:
    Failures of a single event are answered with errorMessage {error} and
    the connection stays open. Unexpected exceptions are logged and answered
    with a generic error.
"""

from __future__ import annotations

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from chat.constants import ERROR_MESSAGES, REALTIME_CONFIG, ClientEvent, ServerEvent
from chat.delivery import FanoutService
from chat.middleware import JWT_SUBPROTOCOL
from chat.presence import get_presence_registry
from chat.rooms import parse_uuid
from chat.serializers import MessageSerializer, normalize_attachments
from chat.services import MessageService, RoomService
from core.services import ServiceResult

logger = logging.getLogger(__name__)


async def announce_offline(user_id: str):
    """Tell every session that a user's grace period ran out."""
    await FanoutService.broadcast_presence(ServerEvent.USER_OFFLINE, {"userId": user_id})


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat functionality.

    Handles:
        - Connection authentication and presence registration
        - Joining/leaving room channel groups
        - Sending messages (with or without a prior join)
        - Typing indicators
        - Online user queries

    Attributes:
        user: Authenticated user (None until connect succeeds)
        joined_rooms: Room ids this session is subscribed to
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.joined_rooms: set = set()

    async def connect(self):
        """
        Handle WebSocket connection.

        On success:
            1. Accept (echoing the jwt subprotocol if the client used it)
            2. Join the per-user and presence groups
            3. Register the session; announce userOnline on the first session
            4. Send the current onlineUsers list to this session
        """
        user = self.scope.get("user")

        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated WebSocket connection")
            await self.close(code=REALTIME_CONFIG.CLOSE_CODE_UNAUTHENTICATED)
            return

        self.user = user
        if JWT_SUBPROTOCOL in (self.scope.get("subprotocols") or []):
            await self.accept(subprotocol=JWT_SUBPROTOCOL)
        else:
            await self.accept()

        await FanoutService.attach_session(user.id, self.channel_name)

        registry = get_presence_registry()
        if registry.add_session(user.id, self.channel_name):
            await FanoutService.broadcast_presence(
                ServerEvent.USER_ONLINE,
                {"userId": str(user.id)},
                exclude_channel=self.channel_name,
            )

        await self.send_event(ServerEvent.ONLINE_USERS, registry.list_online())
        logger.info(f"User {user.id} connected ({self.channel_name})")

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Unregisters the session first, then leaves every group. The user is
        announced offline only if no session reappears within the grace
        period. A channel layer failure while leaving a group is logged and
        does not stop the remaining cleanup.
        """
        if self.user is None:
            return

        get_presence_registry().remove_session(
            self.user.id, self.channel_name, on_offline=announce_offline
        )

        for room_id in list(self.joined_rooms):
            try:
                await FanoutService.unsubscribe(room_id, self.channel_name)
            except Exception:
                logger.exception(
                    f"Failed to leave room {room_id} for {self.channel_name}"
                )
        self.joined_rooms.clear()

        try:
            await FanoutService.detach_session(self.user.id, self.channel_name)
        except Exception:
            logger.exception(f"Failed to detach session {self.channel_name}")
        logger.info(f"User {self.user.id} disconnected (code={close_code})")

    # -------------------------------------------------------------------------
    # Frame decoding
    # -------------------------------------------------------------------------

    @classmethod
    async def encode_json(cls, content):
        return json.dumps(content, cls=DjangoJSONEncoder)

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode a frame, answering malformed JSON instead of crashing."""
        if not text_data:
            await self.send_error(ERROR_MESSAGES.MALFORMED_FRAME)
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self.send_error(ERROR_MESSAGES.MALFORMED_FRAME)
            return
        if not isinstance(content, dict):
            await self.send_error(ERROR_MESSAGES.MALFORMED_FRAME)
            return
        await self.receive_json(content)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an inbound frame by its type.

        Expected message format:
            {"type": "joinChat", "roomId": "<uuid>"}
            {"type": "sendMessage", "conversationId": "<uuid>", "content": "hi"}
            {"type": "typing", "roomId": "<uuid>", "isTyping": true}
        """
        handlers = {
            ClientEvent.JOIN_CHAT: self.handle_join_chat,
            ClientEvent.LEAVE_CHAT: self.handle_leave_chat,
            ClientEvent.SEND_MESSAGE: self.handle_send_message,
            ClientEvent.TYPING: self.handle_typing,
            ClientEvent.GET_ONLINE_USERS: self.handle_get_online_users,
        }
        event_type = content.get("type")
        handler = handlers.get(event_type) if isinstance(event_type, str) else None
        if handler is None:
            await self.send_error(f"{ERROR_MESSAGES.UNKNOWN_EVENT}: {event_type}")
            return

        try:
            await handler(content)
        except Exception:
            logger.exception(f"Unhandled error in {event_type} for user {self.user.id}")
            await self.send_error(ERROR_MESSAGES.INTERNAL)

    # -------------------------------------------------------------------------
    # Client events
    # -------------------------------------------------------------------------

    async def handle_join_chat(self, content):
        room_id = content.get("roomId")
        if not room_id:
            await self.send_error(ERROR_MESSAGES.ROOM_ID_REQUIRED)
            return

        result = await self._authorize_room(room_id)
        if not result.success:
            await self.send_error(result.error)
            return

        room = result.data
        await FanoutService.subscribe(room.room_id, self.channel_name)
        self.joined_rooms.add(room.room_id)
        logger.debug(f"User {self.user.id} joined room {room}")

    async def handle_leave_chat(self, content):
        room_id = parse_uuid(content.get("roomId"))
        if room_id is None:
            await self.send_error(ERROR_MESSAGES.ROOM_ID_REQUIRED)
            return

        await FanoutService.unsubscribe(room_id, self.channel_name)
        self.joined_rooms.discard(room_id)

    async def handle_send_message(self, content):
        """
        Persist a message, then fan it out.

        The room receives receiveMessage (except this session) and this
        session receives messageSent. Nothing is sent when storing fails.
        """
        attachments = normalize_attachments(content.get("attachments"))
        if attachments is None:
            await self.send_error(ERROR_MESSAGES.INVALID_MESSAGE)
            return

        text = content.get("content")
        if text is None:
            text = content.get("message", "")
        if not isinstance(text, str):
            await self.send_error(ERROR_MESSAGES.INVALID_MESSAGE)
            return

        result = await self._send_message(
            conversation_id=content.get("conversationId"),
            group_id=content.get("chatId"),
            content=text,
            message_type=content.get("messageType"),
            attachments=attachments,
        )
        if not result.success:
            await self.send_error(result.error)
            return

        message_data = result.data
        await FanoutService.broadcast_to_room(
            message_data["room_id"],
            ServerEvent.RECEIVE_MESSAGE,
            message_data,
            exclude_channel=self.channel_name,
        )
        await self.send_event(ServerEvent.MESSAGE_SENT, message_data)

    async def handle_typing(self, content):
        room_id = parse_uuid(content.get("roomId"))
        if room_id is None or room_id not in self.joined_rooms:
            await self.send_error(ERROR_MESSAGES.JOIN_BEFORE_TYPING)
            return

        is_typing = content.get("isTyping", False)
        if not isinstance(is_typing, bool):
            await self.send_error(ERROR_MESSAGES.INVALID_TYPING_FLAG)
            return

        await FanoutService.broadcast_to_room(
            room_id,
            ServerEvent.USER_TYPING,
            {
                "userId": str(self.user.id),
                "roomId": str(room_id),
                "isTyping": is_typing,
            },
            exclude_channel=self.channel_name,
        )

    async def handle_get_online_users(self, content):
        await self.send_event(
            ServerEvent.ONLINE_USERS, get_presence_registry().list_online()
        )

    # -------------------------------------------------------------------------
    # Channel layer events
    # -------------------------------------------------------------------------

    async def chat_event(self, event):
        """
        Handle chat.event messages from the channel layer.

        Forwards the event to the WebSocket client unless this session is
        the one the sender excluded.
        """
        if event.get("exclude_channel") == self.channel_name:
            return
        await self.send_event(event["event"], event["payload"])

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def send_event(self, event: str, data):
        await self.send_json({"type": event, "data": data})

    async def send_error(self, error: str):
        await self.send_event(ServerEvent.ERROR_MESSAGE, {"error": error})

    @database_sync_to_async
    def _authorize_room(self, room_id) -> ServiceResult:
        return RoomService.authorize(room_id, self.user)

    @database_sync_to_async
    def _send_message(self, **kwargs) -> ServiceResult:
        """Send via MessageService and serialize while still on the sync side."""
        result = MessageService.send_message(sender=self.user, **kwargs)
        if not result.success:
            return result
        return ServiceResult.success(dict(MessageSerializer(result.data).data))
