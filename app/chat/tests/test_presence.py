"""
Tests for the presence registry.

Testing Philosophy:
    The registry is exercised directly on a fresh instance with a tiny
    grace period. Async scenarios run through async_to_sync so they stay
    plain pytest tests.
"""

import asyncio
import uuid

from asgiref.sync import async_to_sync

from chat.presence import PresenceRegistry, get_presence_registry, presence_registry

GRACE = 0.05


class TestSessions:
    """
    Tests for add_session() and the online set.

    Why it matters: A user with two tabs must stay online while either one
    is open.
    """

    def test_first_session_brings_user_online(self):
        registry = PresenceRegistry(grace_seconds=GRACE)

        assert registry.add_session("u1", "s1") is True
        assert registry.is_online("u1")
        assert registry.list_online() == ["u1"]

    def test_second_session_is_not_a_new_transition(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        registry.add_session("u1", "s1")

        assert registry.add_session("u1", "s2") is False
        assert registry.session_count("u1") == 2

    def test_ids_are_normalized_to_strings(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        user_id = uuid.uuid4()
        registry.add_session(user_id, "s1")

        assert registry.is_online(str(user_id))
        assert registry.list_online() == [str(user_id)]

    def test_unknown_user_removal_is_a_noop(self):
        registry = PresenceRegistry(grace_seconds=GRACE)

        async def scenario():
            return registry.remove_session("ghost", "s1")

        assert async_to_sync(scenario)() is None

    def test_module_registry_is_shared(self):
        assert get_presence_registry() is presence_registry

    def test_grace_falls_back_to_settings(self, settings):
        settings.CHAT_PRESENCE_GRACE_SECONDS = 7.5

        assert PresenceRegistry().grace_seconds == 7.5


class TestOfflineDebounce:
    """
    Tests for remove_session() and the grace period.

    Why it matters: A page reload closes and reopens the socket within a
    second; contacts should not see the user flicker offline and online.
    """

    def test_closing_one_of_two_sessions_keeps_user_online(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        registry.add_session("u1", "s1")
        registry.add_session("u1", "s2")

        async def scenario():
            return registry.remove_session("u1", "s1")

        assert async_to_sync(scenario)() is None
        assert registry.is_online("u1")

    def test_user_goes_offline_after_grace(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        registry.add_session("u1", "s1")
        announced = []

        async def on_offline(user_id):
            announced.append(user_id)

        async def scenario():
            task = registry.remove_session("u1", "s1", on_offline=on_offline)
            # Still online during the grace period
            online_during_grace = registry.is_online("u1")
            await task
            return online_during_grace

        assert async_to_sync(scenario)() is True
        assert not registry.is_online("u1")
        assert announced == ["u1"]

    def test_reconnect_during_grace_cancels_offline(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        registry.add_session("u1", "s1")
        announced = []

        async def on_offline(user_id):
            announced.append(user_id)

        async def scenario():
            task = registry.remove_session("u1", "s1", on_offline=on_offline)
            came_online = registry.add_session("u1", "s2")
            await task
            return came_online

        assert async_to_sync(scenario)() is False
        assert registry.is_online("u1")
        assert announced == []

    def test_failing_callback_does_not_break_expiry(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        registry.add_session("u1", "s1")

        async def on_offline(user_id):
            raise RuntimeError("layer down")

        async def scenario():
            await registry.remove_session("u1", "s1", on_offline=on_offline)

        async_to_sync(scenario)()

        assert not registry.is_online("u1")

    def test_reset_forgets_everyone(self):
        registry = PresenceRegistry(grace_seconds=GRACE)
        registry.add_session("u1", "s1")

        registry.reset()

        assert registry.list_online() == []

    def test_grace_period_is_respected(self):
        registry = PresenceRegistry(grace_seconds=0.2)
        registry.add_session("u1", "s1")

        async def scenario():
            task = registry.remove_session("u1", "s1")
            await asyncio.sleep(0.05)
            still_online = registry.is_online("u1")
            await task
            return still_online

        assert async_to_sync(scenario)() is True
        assert not registry.is_online("u1")
