"""
Chat application configuration.

This app provides the chat system with:
- Private conversations (one per pair of users) and group chats
- Message storage with read receipts
- Realtime delivery, typing indicators and presence over WebSockets
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
