"""
Serializers for chat API.

This module provides serializers for the chat system:
- Room serializers (private conversations, group chats, merged summaries)
- Message serializers (read, create, update)
- Request serializers for directory operations

Serializer Hierarchy:
    ConversationSerializer: Private room with both participants
    GroupChatSerializer: Group room with participants and admin
    RoomSummarySerializer: Dispatches to one of the two above

    MessageSerializer: Full message (REST responses and realtime payloads)
    LatestMessageSerializer: Minimal message for chat list previews
    MessageCreateSerializer: Send new message
    MessageUpdateSerializer: Edit content

Design Decisions:
    - Read and write serializers are separate for clarity
    - MessageSerializer is the single message shape for both transports, so
      a message looks the same in a REST response and a receiveMessage frame
    - Business rules (exclusivity, membership) live in services, serializers
      only check shape
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG
from chat.models import Conversation, GroupChat, Message


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Serializer for Message model (read operations).

    Fields:
        sender: Nested author
        conversation_id / chat_id: Exactly one is set
        room_id: Whichever of the two is set
        read_by: Ids of users who read the message
    """

    sender = UserSerializer(read_only=True)
    sender_id = serializers.UUIDField(read_only=True)
    conversation_id = serializers.UUIDField(read_only=True)
    chat_id = serializers.UUIDField(source="group_id", read_only=True)
    room_id = serializers.SerializerMethodField()
    read_by = serializers.PrimaryKeyRelatedField(
        many=True,
        read_only=True,
        pk_field=serializers.UUIDField(format="hex_verbose"),
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "sender",
            "sender_id",
            "conversation_id",
            "chat_id",
            "room_id",
            "content",
            "message_type",
            "attachments",
            "read_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_room_id(self, obj) -> str:
        return str(obj.room.room_id)


class LatestMessageSerializer(serializers.ModelSerializer):
    """Preview of a room's latest message for chat lists."""

    sender_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "sender_id", "content", "message_type", "created_at"]
        read_only_fields = fields


class AttachmentSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=2048)
    file_name = serializers.CharField(max_length=255)
    file_type = serializers.CharField(max_length=100)


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending a message over REST.

    Exactly one of conversation_id and chat_id must be given. That rule and
    the non-empty check are enforced by MessageService, so both transports
    fail with the same messages.
    """

    conversation_id = serializers.UUIDField(required=False, allow_null=True)
    chat_id = serializers.UUIDField(required=False, allow_null=True)
    content = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
    )
    message_type = serializers.ChoiceField(
        choices=Message.MessageType.choices, required=False, allow_null=True
    )
    attachments = AttachmentSerializer(
        many=True,
        required=False,
        max_length=MESSAGE_CONFIG.MAX_ATTACHMENTS_PER_MESSAGE,
    )


class MessageUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH)


# =============================================================================
# Room Serializers
# =============================================================================


class ConversationSerializer(serializers.ModelSerializer):
    """Private conversation with both participants and the latest message."""

    kind = serializers.SerializerMethodField()
    participants = UserSerializer(many=True, read_only=True)
    latest_message = LatestMessageSerializer(read_only=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "kind",
            "participants",
            "latest_message",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_kind(self, obj) -> str:
        return obj.kind.value


class GroupChatSerializer(serializers.ModelSerializer):
    """Group chat with members, admin and the latest message."""

    kind = serializers.SerializerMethodField()
    is_group = serializers.BooleanField(read_only=True)
    participants = UserSerializer(many=True, read_only=True)
    admin = UserSerializer(read_only=True)
    latest_message = LatestMessageSerializer(read_only=True)

    class Meta:
        model = GroupChat
        fields = [
            "id",
            "kind",
            "is_group",
            "name",
            "participants",
            "admin",
            "latest_message",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_kind(self, obj) -> str:
        return obj.kind.value


class RoomSummarySerializer(serializers.BaseSerializer):
    """Chat list entry for either room kind."""

    def to_representation(self, instance):
        if isinstance(instance, GroupChat):
            return GroupChatSerializer(instance, context=self.context).data
        return ConversationSerializer(instance, context=self.context).data


# =============================================================================
# Directory Request Serializers
# =============================================================================


class ConversationCreateSerializer(serializers.Serializer):
    receiver_id = serializers.UUIDField()


class GroupChatCreateSerializer(serializers.Serializer):
    """
    Serializer for creating a group chat.

    The creator is added by GroupChatService, so members may omit them.
    """

    chat_name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH)
    members = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
    )

    def validate_chat_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Group name is required")
        return value.strip()


class AddMemberSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()


def normalize_attachments(raw) -> list[dict] | None:
    """
    Accept realtime attachment dicts in either camelCase or snake_case.

    Returns the validated list, or None if any entry is malformed.
    """
    if raw in (None, ""):
        return []
    if not isinstance(raw, list):
        return None

    normalized = []
    for item in raw:
        if not isinstance(item, dict):
            return None
        normalized.append(
            {
                "url": item.get("url"),
                "file_name": item.get("file_name", item.get("fileName")),
                "file_type": item.get("file_type", item.get("fileType")),
            }
        )

    serializer = AttachmentSerializer(data=normalized, many=True)
    if not serializer.is_valid():
        return None
    return [dict(item) for item in serializer.validated_data]


