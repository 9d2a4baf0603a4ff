"""
Views for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Private conversations and the merged chat list
- GroupChatViewSet: Group chats and membership
- MessageCreateView / MessageDetailView / MarkRoomReadView: Message Store
- OnlineUsersView / UserOnlineStatusView: Presence queries

URL Structure:
    /api/v1/chat/conversations/              GET, POST
    /api/v1/chat/conversations/{id}/         DELETE
    /api/v1/chat/chats/                      GET, POST
    /api/v1/chat/chats/{id}/                 DELETE
    /api/v1/chat/chats/{id}/add-member/      PUT
    /api/v1/chat/messages/                   POST
    /api/v1/chat/messages/{id}/              GET (room id), PUT, DELETE (message id)
    /api/v1/chat/messages/{room_id}/read/    POST
    /api/v1/chat/online-users/               GET
    /api/v1/chat/online-users/{user_id}/     GET

Design Decisions:
    - All business rules run in the service layer; views map results to
      HTTP via service_error_response
    - Successful mutations fan out to realtime sessions after the write
      has been stored; a delivery failure never fails the request
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.constants import ServerEvent
from chat.delivery import FanoutService
from chat.models import GroupChat
from chat.presence import get_presence_registry
from chat.rooms import RoomRef
from chat.serializers import (
    AddMemberSerializer,
    ConversationCreateSerializer,
    ConversationSerializer,
    GroupChatCreateSerializer,
    GroupChatSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    MessageUpdateSerializer,
    RoomSummarySerializer,
)
from chat.services import (
    ConversationService,
    GroupChatService,
    MessageService,
    RoomService,
)
from core.views import service_error_response


def _notify_room_deleted(room: RoomRef, participant_ids):
    FanoutService.notify_users(
        participant_ids, ServerEvent.ROOM_DELETED, {"roomId": str(room.room_id)}
    )


@extend_schema_view(
    list=extend_schema(
        operation_id="list_chats",
        summary="List conversations and groups",
        responses={200: RoomSummarySerializer(many=True)},
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="create_conversation",
        summary="Get or create private conversation",
        request=ConversationCreateSerializer,
        responses={200: ConversationSerializer, 201: ConversationSerializer},
        tags=["Chat - Conversations"],
    ),
    destroy=extend_schema(
        operation_id="delete_conversation",
        summary="Delete conversation",
        responses={204: OpenApiResponse(description="Deleted")},
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for private conversations.

    list:
        Conversations and groups of the current user, most recently active
        first.

    create:
        Return the conversation with receiver_id, creating it if needed.
        201 when created, 200 when it already existed.

    destroy:
        Delete the conversation and its messages. Any participant may delete.
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        rooms = RoomService.list_rooms(request.user)
        return Response(
            RoomSummarySerializer(rooms, many=True, context={"request": request}).data
        )

    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.get_or_create_private(
            request.user, serializer.validated_data["receiver_id"]
        )
        if not result.success:
            return service_error_response(result)

        conversation, created = result.data
        data = ConversationSerializer(conversation, context={"request": request}).data

        if created:
            FanoutService.notify_users(
                [conversation.other_participant_id(request.user.id)],
                ServerEvent.CONVERSATION_CREATED,
                data,
            )

        return Response(
            data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def destroy(self, request, pk=None):
        room = RoomRef.private(pk)
        result = RoomService.delete_room(room, request.user)
        if not result.success:
            return service_error_response(result)

        _notify_room_deleted(room, result.data)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_group_chats",
        summary="List group chats",
        responses={200: GroupChatSerializer(many=True)},
        tags=["Chat - Groups"],
    ),
    create=extend_schema(
        operation_id="create_group_chat",
        summary="Create group chat",
        request=GroupChatCreateSerializer,
        responses={201: GroupChatSerializer},
        tags=["Chat - Groups"],
    ),
    destroy=extend_schema(
        operation_id="delete_group_chat",
        summary="Delete group chat",
        responses={204: OpenApiResponse(description="Deleted")},
        tags=["Chat - Groups"],
    ),
    add_member=extend_schema(
        operation_id="add_group_member",
        summary="Add member to group chat",
        request=AddMemberSerializer,
        responses={200: GroupChatSerializer},
        tags=["Chat - Groups"],
    ),
)
class GroupChatViewSet(viewsets.ViewSet):
    """
    ViewSet for group chats.

    list:
        Groups the current user belongs to.

    create:
        Create a group with the current user as admin. The creator is always
        a member and at least three unique members are required.

    destroy:
        Delete the group and its messages. Any member may delete.

    add_member:
        Add a user to the group. Any member may add.
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        groups = (
            GroupChat.objects.filter(participants=request.user)
            .select_related("admin", "latest_message")
            .prefetch_related("participants")
        )
        return Response(
            GroupChatSerializer(groups, many=True, context={"request": request}).data
        )

    def create(self, request):
        serializer = GroupChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupChatService.create_group(
            creator=request.user,
            name=serializer.validated_data["chat_name"],
            member_ids=serializer.validated_data["members"],
        )
        if not result.success:
            return service_error_response(result)

        group = result.data
        data = GroupChatSerializer(group, context={"request": request}).data
        FanoutService.notify_users(
            group.participants.values_list("id", flat=True),
            ServerEvent.GROUP_CREATED,
            data,
        )
        return Response(data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        room = RoomRef.group(pk)
        result = RoomService.delete_room(room, request.user)
        if not result.success:
            return service_error_response(result)

        _notify_room_deleted(room, result.data)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def add_member(self, request, pk=None):
        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user_id = serializer.validated_data["user_id"]
        result = GroupChatService.add_member(pk, request.user, user_id)
        if not result.success:
            return service_error_response(result)

        data = GroupChatSerializer(result.data, context={"request": request}).data
        FanoutService.notify_users([user_id], ServerEvent.ADDED_TO_GROUP, data)
        return Response(data)


class MessageCreateView(APIView):
    """
    API view for sending a message.

    POST: Store a message in a conversation or group and fan it out as
    receiveMessage to the room.

    URL: /api/v1/chat/messages/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
        tags=["Chat - Messages"],
    )
    def post(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = MessageService.send_message(
            sender=request.user,
            conversation_id=data.get("conversation_id"),
            group_id=data.get("chat_id"),
            content=data.get("content", ""),
            message_type=data.get("message_type"),
            attachments=[dict(item) for item in data.get("attachments", [])],
        )
        if not result.success:
            return service_error_response(result)

        message = result.data
        payload = MessageSerializer(message, context={"request": request}).data
        FanoutService.notify_room(
            message.room.room_id, ServerEvent.RECEIVE_MESSAGE, payload
        )
        return Response(payload, status=status.HTTP_201_CREATED)


class MessageDetailView(APIView):
    """
    API view for a room's history and for single-message mutations.

    GET: List every message of the room <pk>, oldest first
    PUT: Edit the content of message <pk> (sender only)
    DELETE: Delete message <pk> (sender or staff)

    URL: /api/v1/chat/messages/<pk>/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_room_messages",
        summary="List messages of a room",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def get(self, request, pk):
        result = MessageService.list_by_room(pk, request.user)
        if not result.success:
            return service_error_response(result)

        return Response(
            MessageSerializer(result.data, many=True, context={"request": request}).data
        )

    @extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        request=MessageUpdateSerializer,
        responses={200: MessageSerializer},
        tags=["Chat - Messages"],
    )
    def put(self, request, pk):
        serializer = MessageUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.edit_message(
            pk, request.user, serializer.validated_data["content"]
        )
        if not result.success:
            return service_error_response(result)

        message = result.data
        payload = MessageSerializer(message, context={"request": request}).data
        FanoutService.notify_room(
            message.room.room_id, ServerEvent.MESSAGE_UPDATED, payload
        )
        return Response(payload)

    @extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        responses={204: OpenApiResponse(description="Deleted")},
        tags=["Chat - Messages"],
    )
    def delete(self, request, pk):
        result = MessageService.remove_message(pk, request.user)
        if not result.success:
            return service_error_response(result)

        room = result.data
        FanoutService.notify_room(
            room.room_id,
            ServerEvent.MESSAGE_DELETED,
            {"messageId": str(pk), "roomId": str(room.room_id)},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class MarkRoomReadView(APIView):
    """
    API view for marking a room as read.

    POST: Add the current user to read_by for every message in the room
    sent by someone else.

    URL: /api/v1/chat/messages/<room_id>/read/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="mark_room_read",
        summary="Mark room as read",
        request=None,
        responses={200: OpenApiResponse(description="Number of messages marked")},
        tags=["Chat - Messages"],
    )
    def post(self, request, room_id):
        result = MessageService.mark_room_read(room_id, request.user)
        if not result.success:
            return service_error_response(result)
        return Response({"marked": result.data})


class OnlineUsersView(APIView):
    """
    GET: Ids of every online user.

    URL: /api/v1/chat/online-users/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_online_users",
        summary="List online users",
        responses={200: OpenApiResponse(description="{online_users: [user ids]}")},
        tags=["Chat - Presence"],
    )
    def get(self, request):
        return Response({"online_users": get_presence_registry().list_online()})


class UserOnlineStatusView(APIView):
    """
    GET: Whether one user is online.

    URL: /api/v1/chat/online-users/<user_id>/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_user_online_status",
        summary="Get user online status",
        responses={200: OpenApiResponse(description="{user_id, online}")},
        tags=["Chat - Presence"],
    )
    def get(self, request, user_id):
        return Response(
            {
                "user_id": str(user_id),
                "online": get_presence_registry().is_online(user_id),
            }
        )
