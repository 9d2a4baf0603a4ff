"""
Chat system service layer.

This module provides the business logic for rooms and messages. Services
never perform network I/O; every mutation returns enough information (the
room) for the caller to drive fan-out.

Services:
    RoomService: Kind-agnostic room lookup, membership, deletion and listing
    ConversationService: Private conversations (get-or-create per pair)
    GroupChatService: Group creation and membership
    MessageService: Send, list, edit, remove and mark-as-read

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an ErrorCode
    - Unexpected failures raise exceptions
    - Send runs {persist message, move latest pointer} as one transactional
      unit; a pointer failure is tolerated, a lost message is not

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.get_or_create_private(user, other_user.id)
    if result.success:
        conversation, created = result.data

    result = MessageService.send_message(
        sender=user,
        conversation_id=conversation.id,
        content="hi",
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError
from django.db.models import Q

from authentication.models import User
from chat.constants import ERROR_MESSAGES, GROUP_CONFIG, MESSAGE_CONFIG
from chat.models import Conversation, GroupChat, Message
from chat.rooms import RoomKind, RoomRef, build_room_ref, parse_uuid
from core.exceptions import ErrorCode
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from django.db.models import QuerySet


class RoomService(BaseService):
    """
    Operations that work on either room kind.

    Methods:
        resolve: Find which kind of room an id refers to
        get_room: Load the Conversation or GroupChat behind a RoomRef
        is_participant: Membership check used before any room-scoped operation
        authorize: resolve + is_participant with NOT_FOUND/FORBIDDEN failures
        participant_ids: Current member ids of a room
        delete_room: Participant-only cascade delete
        list_rooms: Merged chat list for a user
    """

    @classmethod
    def resolve(cls, room_id, kind: RoomKind | None = None) -> RoomRef | None:
        room_uuid = parse_uuid(room_id)
        if room_uuid is None:
            return None

        if kind in (None, RoomKind.PRIVATE):
            if Conversation.objects.filter(id=room_uuid).exists():
                return RoomRef.private(room_uuid)
        if kind in (None, RoomKind.GROUP):
            if GroupChat.objects.filter(id=room_uuid).exists():
                return RoomRef.group(room_uuid)
        return None

    @classmethod
    def get_room(cls, room: RoomRef) -> Conversation | GroupChat | None:
        model = Conversation if room.is_private else GroupChat
        return model.objects.filter(id=room.room_id).first()

    @classmethod
    def is_participant(cls, room: RoomRef, user_id) -> bool:
        if room.is_private:
            return Conversation.objects.filter(
                Q(user_lower_id=user_id) | Q(user_higher_id=user_id),
                id=room.room_id,
            ).exists()
        return GroupChat.objects.filter(
            id=room.room_id, participants__id=user_id
        ).exists()

    @classmethod
    def authorize(
        cls, room_id, user, kind: RoomKind | None = None
    ) -> ServiceResult[RoomRef]:
        """
        Resolve a room id and check the user belongs to it.

        Error codes:
            NOT_FOUND: No room with this id
            FORBIDDEN: User is not a participant
        """
        room = cls.resolve(room_id, kind)
        if room is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.ROOM_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )
        if not cls.is_participant(room, user.id):
            cls.get_logger().warning(f"User {user.id} denied access to room {room}")
            return ServiceResult.failure(
                ERROR_MESSAGES.NOT_PARTICIPANT, error_code=ErrorCode.FORBIDDEN
            )
        return ServiceResult.success(room)

    @classmethod
    def participant_ids(cls, room: RoomRef) -> list:
        if room.is_private:
            pair = (
                Conversation.objects.filter(id=room.room_id)
                .values_list("user_lower_id", "user_higher_id")
                .first()
            )
            return list(pair) if pair else []
        return list(
            GroupChat.participants.through.objects.filter(
                groupchat_id=room.room_id
            ).values_list("user_id", flat=True)
        )

    @classmethod
    def delete_room(cls, room: RoomRef, requester) -> ServiceResult[list]:
        """
        Delete a room and all of its messages.

        Any participant may delete, including non-admin group members.
        Messages are deleted before the room record, so an interruption
        leaves orphaned messages rather than a room whose history is gone
        but which still appears in chat lists.

        Returns:
            ServiceResult with the former participant ids (for notifications)

        Error codes:
            NOT_FOUND: Room does not exist
            FORBIDDEN: Requester is not a participant
        """
        room_obj = cls.get_room(room)
        if room_obj is None:
            not_found = (
                ERROR_MESSAGES.CONVERSATION_NOT_FOUND
                if room.is_private
                else ERROR_MESSAGES.GROUP_NOT_FOUND
            )
            return ServiceResult.failure(not_found, error_code=ErrorCode.NOT_FOUND)

        if not cls.is_participant(room, requester.id):
            return ServiceResult.failure(
                "Only participants can delete this chat",
                error_code=ErrorCode.FORBIDDEN,
            )

        participant_ids = cls.participant_ids(room)

        deleted_messages, _ = Message.objects.filter(**room.message_filter()).delete()
        room_obj.delete()

        cls.get_logger().info(
            f"User {requester.id} deleted room {room} "
            f"({deleted_messages} related rows removed)"
        )
        return ServiceResult.success(participant_ids)

    @classmethod
    def list_rooms(cls, user) -> list[Conversation | GroupChat]:
        """Conversations and groups of a user, most recently active first."""
        conversations = Conversation.objects.filter(
            Q(user_lower=user) | Q(user_higher=user)
        ).select_related(
            "user_lower", "user_higher", "latest_message", "latest_message__sender"
        )
        groups = (
            GroupChat.objects.filter(participants=user)
            .select_related("admin", "latest_message", "latest_message__sender")
            .prefetch_related("participants")
        )
        return sorted(
            [*conversations, *groups],
            key=lambda room: room.updated_at,
            reverse=True,
        )


class ConversationService(BaseService):
    """
    Private conversation operations.

    Methods:
        get_or_create_private: Idempotent lookup/creation per unordered pair
    """

    @classmethod
    def _find_pair(cls, user_lower_id, user_higher_id) -> Conversation | None:
        return Conversation.objects.filter(
            user_lower_id=user_lower_id, user_higher_id=user_higher_id
        ).first()

    @classmethod
    def get_or_create_private(
        cls, user, other_user_id
    ) -> ServiceResult[tuple[Conversation, bool]]:
        """
        Return the conversation between two users, creating it if needed.

        Implementation:
            1. Canonicalize the pair (lower user id first)
            2. Return the existing row if there is one
            3. Otherwise insert; the unique constraint on the pair makes a
               concurrent insert fail, and the loser re-reads the winner's row

        Returns:
            ServiceResult with (conversation, created)

        Error codes:
            INVALID_INPUT: Conversation with yourself
            NOT_FOUND: Other user does not exist or is inactive
        """
        other_uuid = parse_uuid(other_user_id)
        if other_uuid is not None and other_uuid == user.id:
            return ServiceResult.failure(
                "Cannot start a conversation with yourself",
                error_code=ErrorCode.INVALID_INPUT,
            )

        other = (
            User.objects.filter(id=other_uuid, is_active=True).first()
            if other_uuid
            else None
        )
        if other is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.USER_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )

        user_lower_id, user_higher_id = Conversation.canonical_pair(user.id, other.id)

        existing = cls._find_pair(user_lower_id, user_higher_id)
        if existing is not None:
            return ServiceResult.success((existing, False))

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(
                    user_lower_id=user_lower_id,
                    user_higher_id=user_higher_id,
                )
        except IntegrityError:
            conversation = cls._find_pair(user_lower_id, user_higher_id)
            if conversation is None:
                raise
            cls.get_logger().debug(
                f"Lost creation race for pair ({user_lower_id}, {user_higher_id}); "
                f"reusing {conversation.id}"
            )
            return ServiceResult.success((conversation, False))

        cls.get_logger().info(
            f"Created conversation {conversation.id} "
            f"between users {user_lower_id} and {user_higher_id}"
        )
        return ServiceResult.success((conversation, True))


class GroupChatService(BaseService):
    """
    Group chat operations.

    Methods:
        create_group: Create a named group of at least three users
        add_member: Any member adds another user
    """

    @classmethod
    def create_group(cls, creator, name: str, member_ids) -> ServiceResult[GroupChat]:
        """
        Create a group with the creator as admin.

        Members are deduplicated and the creator is always included before
        the minimum size is checked.

        Error codes:
            INVALID_INPUT: Blank name, malformed id, fewer than 3 participants
            NOT_FOUND: A member id matches no active user
        """
        name = (name or "").strip()
        if not name:
            return ServiceResult.failure(
                "Group name is required", error_code=ErrorCode.INVALID_INPUT
            )

        unique_ids = {parse_uuid(member_id) for member_id in member_ids or []}
        if None in unique_ids:
            return ServiceResult.failure(
                "Invalid member id", error_code=ErrorCode.INVALID_INPUT
            )
        unique_ids.add(creator.id)

        if len(unique_ids) < GROUP_CONFIG.MIN_PARTICIPANTS:
            return ServiceResult.failure(
                f"A group chat needs at least {GROUP_CONFIG.MIN_PARTICIPANTS} "
                f"unique participants, including you",
                error_code=ErrorCode.INVALID_INPUT,
            )

        members = list(User.objects.filter(id__in=unique_ids, is_active=True))
        if len(members) != len(unique_ids):
            return ServiceResult.failure(
                "One or more members were not found",
                error_code=ErrorCode.NOT_FOUND,
            )

        with cls.atomic():
            group = GroupChat.objects.create(name=name, admin=creator)
            group.participants.set(members)

        cls.get_logger().info(
            f"User {creator.id} created group {group.id} with {len(members)} members"
        )
        return ServiceResult.success(group)

    @classmethod
    def add_member(cls, group_id, requester, user_id) -> ServiceResult[GroupChat]:
        """
        Add a user to a group.

        Error codes:
            NOT_FOUND: Group (or user) does not exist
            FORBIDDEN: Requester is not a member
            CONFLICT: User is already a member
        """
        group_uuid = parse_uuid(group_id)
        group = GroupChat.objects.filter(id=group_uuid).first() if group_uuid else None
        if group is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.GROUP_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )

        if not group.has_participant(requester.id):
            return ServiceResult.failure(
                "Only group members can add participants",
                error_code=ErrorCode.FORBIDDEN,
            )

        user_uuid = parse_uuid(user_id)
        new_member = (
            User.objects.filter(id=user_uuid, is_active=True).first()
            if user_uuid
            else None
        )
        if new_member is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.USER_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )

        if group.has_participant(new_member.id):
            return ServiceResult.failure(
                "User is already a member of this group",
                error_code=ErrorCode.CONFLICT,
            )

        with cls.atomic():
            group.participants.add(new_member)
            group.save(update_fields=["updated_at"])

        cls.get_logger().info(
            f"User {requester.id} added {new_member.id} to group {group.id}"
        )
        return ServiceResult.success(group)


class MessageService(BaseService):
    """
    Message Store operations.

    Methods:
        send_message: Parse the room reference from client fields, then append
        append: Validate, authorize, persist and move the latest pointer
        list_by_room: Full room history, oldest first
        edit_message: Sender-only content edit
        remove_message: Sender or staff deletion
        mark_room_read: Add the reader to read_by for others' messages
    """

    @classmethod
    def send_message(
        cls,
        sender,
        conversation_id=None,
        group_id=None,
        content: str = "",
        message_type: str | None = None,
        attachments: list | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to the room named by exactly one of the two ids.

        Error codes:
            INVALID_INPUT: Both or neither id, or an empty message
            NOT_FOUND / FORBIDDEN: See append()
            INTERNAL_ERROR: The message could not be stored
        """
        room_result = build_room_ref(conversation_id=conversation_id, group_id=group_id)
        if not room_result.success:
            return room_result
        return cls.append(sender, room_result.data, content, message_type, attachments)

    @classmethod
    def append(
        cls,
        sender,
        room: RoomRef,
        content: str = "",
        message_type: str | None = None,
        attachments: list | None = None,
    ) -> ServiceResult[Message]:
        content = (content or "").strip()
        attachments = list(attachments or [])

        if not content and not attachments:
            return ServiceResult.failure(
                ERROR_MESSAGES.INVALID_MESSAGE, error_code=ErrorCode.INVALID_INPUT
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code=ErrorCode.INVALID_INPUT,
            )
        if len(attachments) > MESSAGE_CONFIG.MAX_ATTACHMENTS_PER_MESSAGE:
            return ServiceResult.failure(
                f"A message can carry at most "
                f"{MESSAGE_CONFIG.MAX_ATTACHMENTS_PER_MESSAGE} attachments",
                error_code=ErrorCode.INVALID_INPUT,
            )

        if not message_type:
            message_type = (
                Message.MessageType.FILE if attachments else Message.MessageType.TEXT
            )
        if message_type not in Message.MessageType.values:
            return ServiceResult.failure(
                f"Unsupported message type: {message_type}",
                error_code=ErrorCode.INVALID_INPUT,
            )

        room_obj = RoomService.get_room(room)
        if room_obj is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.ROOM_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )
        if not RoomService.is_participant(room, sender.id):
            return ServiceResult.failure(
                "You are not a participant of this chat",
                error_code=ErrorCode.FORBIDDEN,
            )

        room_field = "conversation" if room.is_private else "group"
        try:
            with cls.atomic():
                message = Message.objects.create(
                    sender=sender,
                    content=content,
                    message_type=message_type,
                    attachments=attachments,
                    **{room_field: room_obj},
                )
                cls._move_latest_pointer(room_obj, message)
        except DatabaseError:
            cls.get_logger().exception(
                f"Failed to store message from {sender.id} in room {room}"
            )
            return ServiceResult.failure(
                ERROR_MESSAGES.SEND_FAILED, error_code=ErrorCode.INTERNAL_ERROR
            )

        cls.get_logger().info(f"Message {message.id} stored in room {room}")
        return ServiceResult.success(message)

    @classmethod
    def _move_latest_pointer(cls, room_obj, message) -> bool:
        """
        Point the room's summary at a new message inside a savepoint.

        A failure rolls back the savepoint only; the message stays and the
        room summary is stale until the next message.
        """
        try:
            with cls.atomic():
                room_obj.latest_message = message
                room_obj.save(update_fields=["latest_message", "updated_at"])
        except DatabaseError:
            cls.get_logger().warning(
                f"Latest-message pointer not updated for room {room_obj.room_ref}; "
                f"message {message.id} kept",
                exc_info=True,
            )
            return False
        return True

    @classmethod
    def list_by_room(cls, room_id, user) -> ServiceResult[QuerySet]:
        """
        Every message of a room, oldest first.

        Unbounded: the full history is returned in one response.
        """
        room_result = RoomService.authorize(room_id, user)
        if not room_result.success:
            return room_result

        messages = (
            Message.objects.filter(**room_result.data.message_filter())
            .select_related("sender")
            .prefetch_related("read_by")
            .order_by("created_at")
        )
        return ServiceResult.success(messages)

    @classmethod
    def _get_message(cls, message_id) -> Message | None:
        message_uuid = parse_uuid(message_id)
        if message_uuid is None:
            return None
        return Message.objects.select_related("sender").filter(id=message_uuid).first()

    @classmethod
    def edit_message(cls, message_id, requester, content: str) -> ServiceResult[Message]:
        """
        Replace the content of a message. Attachments are never touched.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Requester is not the sender
            INVALID_INPUT: Empty or oversized content
        """
        message = cls._get_message(message_id)
        if message is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.MESSAGE_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )

        if message.sender_id != requester.id:
            return ServiceResult.failure(
                "You can only edit your own messages",
                error_code=ErrorCode.FORBIDDEN,
            )

        content = (content or "").strip()
        if not content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code=ErrorCode.INVALID_INPUT,
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code=ErrorCode.INVALID_INPUT,
            )

        message.content = content
        message.save(update_fields=["content", "updated_at"])

        cls.get_logger().info(f"Message {message.id} edited by {requester.id}")
        return ServiceResult.success(message)

    @classmethod
    def remove_message(cls, message_id, requester) -> ServiceResult[RoomRef]:
        """
        Delete a message.

        If it was the room's latest message, the pointer moves back to the
        newest remaining message (or stays empty).

        Returns:
            ServiceResult with the room the message belonged to

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Requester is neither the sender nor staff
        """
        message = cls._get_message(message_id)
        if message is None:
            return ServiceResult.failure(
                ERROR_MESSAGES.MESSAGE_NOT_FOUND, error_code=ErrorCode.NOT_FOUND
            )

        if message.sender_id != requester.id and not requester.is_staff:
            return ServiceResult.failure(
                "You can only delete your own messages",
                error_code=ErrorCode.FORBIDDEN,
            )

        room = message.room
        room_obj = RoomService.get_room(room)
        removed_id = message.id
        was_latest = room_obj is not None and room_obj.latest_message_id == removed_id

        with cls.atomic():
            message.delete()
            if was_latest:
                room_obj.latest_message = (
                    Message.objects.filter(**room.message_filter())
                    .order_by("-created_at")
                    .first()
                )
                room_obj.save(update_fields=["latest_message"])

        cls.get_logger().info(f"Message {removed_id} removed by {requester.id}")
        return ServiceResult.success(room)

    @classmethod
    def mark_room_read(cls, room_id, user) -> ServiceResult[int]:
        """
        Mark every message from other users in a room as read by user.

        Returns:
            ServiceResult with the number of newly read messages
        """
        room_result = RoomService.authorize(room_id, user)
        if not room_result.success:
            return room_result

        unread_ids = list(
            Message.objects.filter(**room_result.data.message_filter())
            .exclude(sender=user)
            .exclude(read_by=user)
            .values_list("id", flat=True)
        )
        ReadReceipt = Message.read_by.through
        ReadReceipt.objects.bulk_create(
            [ReadReceipt(message_id=message_id, user_id=user.id) for message_id in unread_ids],
            ignore_conflicts=True,
        )
        return ServiceResult.success(len(unread_ids))
