"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Conversation, GroupChat, Message model tests
- test_rooms.py: Room reference tests
- test_services.py: Room, conversation, group and message service tests
- test_presence.py: Presence registry tests
- test_delivery.py: Channel layer fan-out tests
- test_consumers.py: WebSocket consumer tests
- test_views.py: REST API endpoint tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
