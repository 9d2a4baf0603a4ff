"""
Room references.

A message, a subscription and a fan-out target all address a room, which is
either a private conversation or a group chat. RoomRef is the tagged variant
used everywhere instead of a pair of nullable ids, so "both or neither" can
only happen at the edge where raw client input is parsed.

Usage:
    from chat.rooms import RoomKind, RoomRef, build_room_ref

    ref = RoomRef.private(conversation.id)
    ref.group_name          # "room.<uuid>"

    result = build_room_ref(conversation_id=payload.get("conversationId"),
                            group_id=payload.get("chatId"))
    if not result.success:
        ...
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

from chat.constants import ERROR_MESSAGES, REALTIME_CONFIG
from core.exceptions import ErrorCode
from core.services import ServiceResult


class RoomKind(str, Enum):
    PRIVATE = "private"
    GROUP = "group"


def parse_uuid(value) -> uuid.UUID | None:
    """Coerce a UUID, its string form, or junk (returns None)."""
    if isinstance(value, uuid.UUID):
        return value
    if value in (None, ""):
        return None
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def room_group_name(room_id) -> str:
    """Channel layer group for a room. Room ids are unique across both kinds."""
    return f"{REALTIME_CONFIG.ROOM_GROUP_PREFIX}.{room_id}"


@dataclass(frozen=True)
class RoomRef:
    """Exactly one room: Private(conversation_id) or Group(group_id)."""

    kind: RoomKind
    room_id: uuid.UUID

    @classmethod
    def private(cls, conversation_id) -> RoomRef:
        return cls(RoomKind.PRIVATE, parse_uuid(conversation_id))

    @classmethod
    def group(cls, group_id) -> RoomRef:
        return cls(RoomKind.GROUP, parse_uuid(group_id))

    @property
    def is_private(self) -> bool:
        return self.kind is RoomKind.PRIVATE

    @property
    def group_name(self) -> str:
        return room_group_name(self.room_id)

    def message_filter(self) -> dict:
        """Queryset filter selecting this room's messages."""
        if self.is_private:
            return {"conversation_id": self.room_id}
        return {"group_id": self.room_id}

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.room_id}"


def build_room_ref(conversation_id=None, group_id=None) -> ServiceResult[RoomRef]:
    """
    Build a RoomRef from client input naming at most one of the two ids.

    Fails with INVALID_INPUT when both or neither are given, or when the
    given id is not a UUID.
    """
    has_conversation = conversation_id not in (None, "")
    has_group = group_id not in (None, "")

    if has_conversation and has_group:
        return ServiceResult.failure(
            ERROR_MESSAGES.BOTH_ROOM_IDS, error_code=ErrorCode.INVALID_INPUT
        )
    if not has_conversation and not has_group:
        return ServiceResult.failure(
            ERROR_MESSAGES.INVALID_MESSAGE, error_code=ErrorCode.INVALID_INPUT
        )

    room_id = parse_uuid(conversation_id if has_conversation else group_id)
    if room_id is None:
        return ServiceResult.failure(
            ERROR_MESSAGES.INVALID_MESSAGE, error_code=ErrorCode.INVALID_INPUT
        )

    kind = RoomKind.PRIVATE if has_conversation else RoomKind.GROUP
    return ServiceResult.success(RoomRef(kind, room_id))
