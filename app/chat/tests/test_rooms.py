"""
Tests for room references.

Why it matters: Every send, subscription and fan-out is addressed by a
RoomRef, so the exactly-one-room rule is checked once, here.
"""

import uuid

from chat.constants import ERROR_MESSAGES
from chat.rooms import RoomKind, RoomRef, build_room_ref, parse_uuid, room_group_name
from core.exceptions import ErrorCode


class TestBuildRoomRef:
    def test_conversation_id_builds_private_ref(self):
        room_id = uuid.uuid4()

        result = build_room_ref(conversation_id=str(room_id))

        assert result.success is True
        assert result.data == RoomRef(RoomKind.PRIVATE, room_id)

    def test_group_id_builds_group_ref(self):
        room_id = uuid.uuid4()

        result = build_room_ref(group_id=room_id)

        assert result.data.kind is RoomKind.GROUP
        assert result.data.room_id == room_id

    def test_both_ids_are_rejected(self):
        """
        Why it matters: A message must never be stored in two rooms.
        """
        result = build_room_ref(conversation_id=uuid.uuid4(), group_id=uuid.uuid4())

        assert result.success is False
        assert result.error == ERROR_MESSAGES.BOTH_ROOM_IDS
        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_neither_id_is_rejected(self):
        result = build_room_ref()

        assert result.success is False
        assert result.error == ERROR_MESSAGES.INVALID_MESSAGE
        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_empty_strings_count_as_absent(self):
        room_id = uuid.uuid4()

        result = build_room_ref(conversation_id="", group_id=str(room_id))

        assert result.data == RoomRef.group(room_id)

    def test_malformed_id_is_rejected(self):
        result = build_room_ref(conversation_id="not-a-uuid")

        assert result.error_code == ErrorCode.INVALID_INPUT


class TestRoomRef:
    def test_group_name_is_shared_by_both_kinds(self):
        room_id = uuid.uuid4()

        assert RoomRef.private(room_id).group_name == f"room.{room_id}"
        assert RoomRef.group(room_id).group_name == room_group_name(room_id)

    def test_message_filter_targets_the_right_column(self):
        room_id = uuid.uuid4()

        assert RoomRef.private(room_id).message_filter() == {"conversation_id": room_id}
        assert RoomRef.group(room_id).message_filter() == {"group_id": room_id}

    def test_refs_are_hashable_values(self):
        room_id = uuid.uuid4()

        assert {RoomRef.private(room_id), RoomRef.private(str(room_id))} == {
            RoomRef.private(room_id)
        }

    def test_parse_uuid_rejects_junk(self):
        assert parse_uuid(None) is None
        assert parse_uuid("") is None
        assert parse_uuid("nope") is None
        assert parse_uuid(42) is None
