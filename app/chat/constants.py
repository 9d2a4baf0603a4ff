"""
Constants and configuration for the chat module.

This module centralizes:
- Message limits
- Group chat rules
- Realtime event names (client -> server and server -> client)
- Channel layer group naming
- WebSocket close codes

Import example:
    from chat.constants import MESSAGE_CONFIG, ServerEvent
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MAX_ATTACHMENTS_PER_MESSAGE: Final[int] = 10


# =============================================================================
# Group Chat Configuration
# =============================================================================


class GROUP_CONFIG:
    """Configuration for group chats."""

    # Unique participants at creation, creator included
    MIN_PARTICIPANTS: Final[int] = 3
    MAX_NAME_LENGTH: Final[int] = 255


# =============================================================================
# Realtime Configuration
# =============================================================================


class REALTIME_CONFIG:
    """Channel layer group naming and WebSocket close codes."""

    ROOM_GROUP_PREFIX: Final[str] = "room"
    USER_GROUP_PREFIX: Final[str] = "user"
    PRESENCE_GROUP: Final[str] = "presence"

    # Channel layer message type routed to ChatConsumer.chat_event
    EVENT_HANDLER_TYPE: Final[str] = "chat.event"

    CLOSE_CODE_UNAUTHENTICATED: Final[int] = 4001

    # Fallback when the setting is missing
    DEFAULT_PRESENCE_GRACE_SECONDS: Final[float] = 3.0


class ClientEvent:
    """Frame types accepted from clients."""

    JOIN_CHAT = "joinChat"
    LEAVE_CHAT = "leaveChat"
    SEND_MESSAGE = "sendMessage"
    TYPING = "typing"
    GET_ONLINE_USERS = "getOnlineUsers"


class ServerEvent:
    """Frame types pushed to clients."""

    ONLINE_USERS = "onlineUsers"
    USER_ONLINE = "userOnline"
    USER_OFFLINE = "userOffline"
    RECEIVE_MESSAGE = "receiveMessage"
    MESSAGE_SENT = "messageSent"
    MESSAGE_UPDATED = "messageUpdated"
    MESSAGE_DELETED = "messageDeleted"
    USER_TYPING = "userTyping"
    ERROR_MESSAGE = "errorMessage"
    # Private notifications delivered to every session of a user
    CONVERSATION_CREATED = "conversationCreated"
    GROUP_CREATED = "groupCreated"
    ADDED_TO_GROUP = "addedToGroup"
    ROOM_DELETED = "roomDeleted"


# =============================================================================
# Error Messages
# =============================================================================


class ERROR_MESSAGES:
    """Client-facing error strings shared by REST and realtime surfaces."""

    BOTH_ROOM_IDS: Final[str] = "Provide either conversationId or chatId, not both"
    INVALID_MESSAGE: Final[str] = "Invalid message data"
    ROOM_ID_REQUIRED: Final[str] = "Chat ID is required to join."
    ROOM_NOT_FOUND: Final[str] = "Chat not found"
    GROUP_NOT_FOUND: Final[str] = "Group chat not found"
    CONVERSATION_NOT_FOUND: Final[str] = "Conversation not found"
    MESSAGE_NOT_FOUND: Final[str] = "Message not found"
    USER_NOT_FOUND: Final[str] = "User not found"
    NOT_PARTICIPANT: Final[str] = "Unauthorized to join this chat"
    SEND_FAILED: Final[str] = "Failed to send message"
    UNKNOWN_EVENT: Final[str] = "Unknown event type"
    MALFORMED_FRAME: Final[str] = "Malformed message frame"
    JOIN_BEFORE_TYPING: Final[str] = "Join the chat before sending typing updates"
    INVALID_TYPING_FLAG: Final[str] = "isTyping must be true or false"
    INTERNAL: Final[str] = "Something went wrong"
