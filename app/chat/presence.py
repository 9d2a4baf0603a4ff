"""
In-memory presence registry.

Maps each user id to the set of realtime session ids (channel names) the
user currently holds. A user is online while an entry exists for them.

Going offline is debounced: when the last session of a user closes, the
entry stays (with an empty set) and a check is scheduled after the grace
period. The check reads the live session set when it fires, so a reconnect
during the grace period keeps the user online without any cancellation.

The registry is process-local. All callers go through get_presence_registry()
so it can be replaced by a shared store without touching them.

Usage:
    registry = get_presence_registry()

    came_online = registry.add_session(user.id, self.channel_name)
    registry.remove_session(user.id, self.channel_name, on_offline=notify)
    registry.is_online(user.id)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable

from django.conf import settings

from chat.constants import REALTIME_CONFIG

logger = logging.getLogger(__name__)

OfflineCallback = Callable[[str], Awaitable[None]]


class PresenceRegistry:
    """Process-wide user -> sessions map with a debounced offline transition."""

    def __init__(self, grace_seconds: float | None = None):
        self._sessions: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._grace_seconds = grace_seconds
        # Strong references so pending checks are not garbage collected
        self._pending_checks: set[asyncio.Task] = set()

    @property
    def grace_seconds(self) -> float:
        if self._grace_seconds is not None:
            return self._grace_seconds
        return getattr(
            settings,
            "CHAT_PRESENCE_GRACE_SECONDS",
            REALTIME_CONFIG.DEFAULT_PRESENCE_GRACE_SECONDS,
        )

    def add_session(self, user_id, session_id: str) -> bool:
        """
        Register a session for a user.

        Returns:
            True if the user just went from offline to online
        """
        key = str(user_id)
        with self._lock:
            sessions = self._sessions.get(key)
            came_online = sessions is None
            if came_online:
                sessions = self._sessions[key] = set()
            sessions.add(session_id)

        if came_online:
            logger.info(f"User {key} is online")
        return came_online

    def remove_session(
        self,
        user_id,
        session_id: str,
        on_offline: OfflineCallback | None = None,
    ) -> asyncio.Task | None:
        """
        Unregister a session.

        When it was the user's last session, schedules the grace-period check
        on the running event loop and returns its task. on_offline is awaited
        with the user id only if the user is still without sessions when the
        check fires.
        """
        key = str(user_id)
        with self._lock:
            sessions = self._sessions.get(key)
            if sessions is None:
                return None
            sessions.discard(session_id)
            if sessions:
                return None

        task = asyncio.get_running_loop().create_task(
            self._expire_after_grace(key, on_offline)
        )
        self._pending_checks.add(task)
        task.add_done_callback(self._pending_checks.discard)
        return task

    async def _expire_after_grace(self, key: str, on_offline: OfflineCallback | None):
        await asyncio.sleep(self.grace_seconds)

        with self._lock:
            sessions = self._sessions.get(key)
            went_offline = sessions is not None and not sessions
            if went_offline:
                del self._sessions[key]

        if not went_offline:
            return

        logger.info(f"User {key} is offline")
        if on_offline is None:
            return
        try:
            await on_offline(key)
        except Exception:
            logger.exception(f"Failed to announce offline transition for user {key}")

    def is_online(self, user_id) -> bool:
        with self._lock:
            return str(user_id) in self._sessions

    def list_online(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def session_count(self, user_id) -> int:
        with self._lock:
            return len(self._sessions.get(str(user_id), ()))

    def reset(self):
        """Forget every session. Pending checks find nothing to expire."""
        with self._lock:
            self._sessions.clear()


presence_registry = PresenceRegistry()


def get_presence_registry() -> PresenceRegistry:
    return presence_registry
