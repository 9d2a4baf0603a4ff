"""
Chat app for real-time messaging.

This app handles:
- Private conversations and group chats
- Message sending, editing, deletion and history
- WebSocket session hub with presence and typing indicators

Related apps:
    - authentication: User model and the token gate used by both transports

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.
    See delivery.py for channel layer fan-out.

Usage:
    from chat.services import ConversationService, MessageService

    # Get or create a private conversation
    result = ConversationService.get_or_create_private(user, other_user.id)
    conversation, created = result.data

    # Send message
    result = MessageService.send_message(
        sender=user,
        conversation_id=conversation.id,
        content="Hello!",
    )
"""
