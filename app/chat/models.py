"""
Chat models.

Rooms:
    Conversation: Private room between exactly two users
    GroupChat: Named room with three or more participants at creation

Messages:
    Message: Belongs to exactly one room, enforced by a check constraint

Both room kinds keep a weak latest_message pointer (SET_NULL) used to
render chat lists without scanning messages.
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from chat.rooms import RoomKind, RoomRef
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Conversation(UUIDPrimaryKeyMixin, BaseModel):
    """
    Private conversation between exactly two users.

    The pair is stored in canonical order (lower user id first), so the
    unique constraint covers the unordered pair regardless of who started
    the conversation. Concurrent creation for the same pair is serialized
    by that constraint.

    Fields:
        user_lower: Participant with the lower id
        user_higher: Participant with the higher id
        latest_message: Most recent message (weak reference)

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    kind = RoomKind.PRIVATE

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the lower id",
    )
    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the higher id",
    )
    latest_message = models.ForeignKey(
        "chat.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent message in this conversation",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_private_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="conversation_user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical_pair(user_a_id, user_b_id) -> tuple[uuid.UUID, uuid.UUID]:
        """Order two user ids the way the table stores them."""
        a, b = uuid.UUID(str(user_a_id)), uuid.UUID(str(user_b_id))
        return (a, b) if a < b else (b, a)

    @property
    def participant_ids(self) -> tuple:
        return (self.user_lower_id, self.user_higher_id)

    @property
    def participants(self) -> list:
        return [self.user_lower, self.user_higher]

    @property
    def room_ref(self) -> RoomRef:
        return RoomRef.private(self.id)

    def has_participant(self, user_id) -> bool:
        return str(user_id) in {str(pk) for pk in self.participant_ids}

    def other_participant_id(self, user_id):
        lower, higher = self.participant_ids
        return higher if str(lower) == str(user_id) else lower


class GroupChat(UUIDPrimaryKeyMixin, BaseModel):
    """
    Named group chat.

    Any current participant may add members or delete the group. The admin
    is the creator and is always a participant at creation.

    Fields:
        name: Display name of the group
        participants: Current members
        admin: Creator of the group
        latest_message: Most recent message (weak reference)
    """

    kind = RoomKind.GROUP
    is_group = True

    name = models.CharField(max_length=255)
    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="group_chats",
    )
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="administered_group_chats",
    )
    latest_message = models.ForeignKey(
        "chat.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent message in this group",
    )

    class Meta:
        db_table = "chat_group_chat"
        ordering = ["-updated_at"]

    def __str__(self) -> str:
        return self.name

    @property
    def room_ref(self) -> RoomRef:
        return RoomRef.group(self.id)

    def has_participant(self, user_id) -> bool:
        return self.participants.filter(pk=user_id).exists()


class Message(UUIDPrimaryKeyMixin, BaseModel):
    """
    A message in exactly one room.

    Sender and room are fixed at creation. Content may be edited by the
    sender; attachments are set once. Content may be empty only when the
    message carries attachments (enforced by MessageService).

    Fields:
        sender: Author
        conversation: Private room (set iff group is NULL)
        group: Group room (set iff conversation is NULL)
        content: Message text
        message_type: text, image, video or file
        attachments: Ordered list of {url, file_name, file_type}
        read_by: Users who have read the message
    """

    class MessageType(models.TextChoices):
        TEXT = "text", "Text"
        IMAGE = "image", "Image"
        VIDEO = "video", "Video"
        FILE = "file", "File"

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
    )
    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
    )
    group = models.ForeignKey(
        GroupChat,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
    )
    content = models.TextField(blank=True, default="")
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    attachments = models.JSONField(default=list, blank=True)
    read_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="read_chat_messages",
        blank=True,
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(conversation__isnull=False, group__isnull=True)
                    | Q(conversation__isnull=True, group__isnull=False)
                ),
                name="message_in_exactly_one_room",
            ),
        ]
        indexes = [
            models.Index(
                fields=["conversation", "created_at"],
                name="chat_msg_conv_created_idx",
            ),
            models.Index(
                fields=["group", "created_at"],
                name="chat_msg_group_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message({self.id}) in {self.room}"

    @property
    def room(self) -> RoomRef:
        if self.conversation_id is not None:
            return RoomRef.private(self.conversation_id)
        return RoomRef.group(self.group_id)
