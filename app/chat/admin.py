"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Private conversation and group chat inspection
- Message moderation
"""

from django.contrib import admin

from chat.models import Conversation, GroupChat, Message


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = ["id", "user_lower", "user_higher", "created_at", "updated_at"]
    search_fields = ["id", "user_lower__email", "user_higher__email"]
    readonly_fields = ["created_at", "updated_at", "latest_message"]
    raw_id_fields = ["user_lower", "user_higher"]
    ordering = ["-updated_at"]


@admin.register(GroupChat)
class GroupChatAdmin(admin.ModelAdmin):
    """Admin interface for GroupChat model."""

    list_display = ["id", "name", "admin", "created_at", "updated_at"]
    search_fields = ["id", "name"]
    readonly_fields = ["created_at", "updated_at", "latest_message"]
    raw_id_fields = ["admin"]
    filter_horizontal = ["participants"]
    ordering = ["-updated_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "sender",
        "conversation",
        "group",
        "message_type",
        "content_preview",
        "created_at",
    ]
    list_filter = ["message_type", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["sender", "conversation", "group"]
    filter_horizontal = ["read_by"]
    ordering = ["-created_at"]

    @admin.display(description="Content")
    def content_preview(self, obj):
        """Show truncated content."""
        if len(obj.content) > 50:
            return obj.content[:50] + "..."
        return obj.content
