"""Tests for the presence registry and realtime dispatcher."""

from unittest.mock import patch

import pytest

from app.core.realtime import PresenceRegistry, RealtimeDispatcher
from app.core.realtime.dispatcher import build_frame


class FakeConnection:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []
        self.closed_with = None

    async def send_json(self, data, mode="text"):
        if self.fail:
            raise RuntimeError("broken pipe")
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.closed_with = code


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def dispatcher(registry):
    return RealtimeDispatcher(registry)


class TestPresenceRegistry:
    @pytest.mark.asyncio
    async def test_register_and_lookup(self, registry):
        connection = FakeConnection()

        displaced = await registry.register(9, connection)

        assert displaced is None
        assert await registry.get(9) is connection
        assert await registry.is_online(9)
        assert registry.online_count() == 1

    @pytest.mark.asyncio
    async def test_unknown_user_is_offline(self, registry):
        assert await registry.get(42) is None
        assert not await registry.is_online(42)

    @pytest.mark.asyncio
    async def test_last_connection_wins(self, registry):
        first, second = FakeConnection(), FakeConnection()
        await registry.register(9, first)

        displaced = await registry.register(9, second)

        assert displaced is first
        assert await registry.get(9) is second
        assert registry.online_count() == 1

    @pytest.mark.asyncio
    async def test_stale_unregister_keeps_newer_connection(self, registry):
        first, second = FakeConnection(), FakeConnection()
        await registry.register(9, first)
        await registry.register(9, second)

        removed = await registry.unregister(9, first)

        assert removed is False
        assert await registry.get(9) is second

    @pytest.mark.asyncio
    async def test_unregister(self, registry):
        connection = FakeConnection()
        await registry.register(9, connection)

        assert await registry.unregister(9, connection) is True
        assert not await registry.is_online(9)
        assert await registry.unregister(9) is False

    @pytest.mark.asyncio
    async def test_lifecycle(self, registry):
        connection = FakeConnection()
        await registry.start()
        await registry.register(5, connection)

        assert registry.started

        await registry.close()

        assert not registry.started
        assert connection.closed_with == 1001
        assert registry.online_count() == 0

    @pytest.mark.asyncio
    async def test_connection_events_are_logged(self, registry):
        with patch("app.core.realtime.presence.log_presence_change") as mock_change:
            connection = FakeConnection()
            await registry.register(5, connection)
            await registry.unregister(5, connection)

        assert [c.args for c in mock_change.call_args_list] == [
            ("registered", 5, 1),
            ("unregistered", 5, 0),
        ]


class TestRealtimeDispatcher:
    def test_build_frame(self):
        assert build_frame("typing", {"isTyping": True}) == {
            "type": "typing",
            "data": {"isTyping": True},
        }

    @pytest.mark.asyncio
    async def test_dispatch_to_offline_user_is_silent(self, dispatcher):
        assert await dispatcher.dispatch(9, "receive_message", {"message": "hi"}) is False

    @pytest.mark.asyncio
    async def test_dispatch_to_online_user(self, dispatcher, registry):
        connection = FakeConnection()
        await registry.register(9, connection)

        delivered = await dispatcher.dispatch(9, "receive_message", {"message": "hi"})

        assert delivered is True
        assert connection.sent == [
            {"type": "receive_message", "data": {"message": "hi"}}
        ]

    @pytest.mark.asyncio
    async def test_failed_send_unregisters_connection(self, dispatcher, registry):
        await registry.register(9, FakeConnection(fail=True))

        delivered = await dispatcher.dispatch(9, "receive_message", {})

        assert delivered is False
        assert not await registry.is_online(9)

    @pytest.mark.asyncio
    async def test_send_message_received_payload(self, dispatcher, registry):
        connection = FakeConnection()
        await registry.register(9, connection)

        await dispatcher.send_message_received(
            9,
            message="Still for sale?",
            sender_id=5,
            sender_name="Bob Durand",
            car_id=42,
            conversation_id=17,
            message_id=301,
            created_at="2026-01-01T12:00:00+00:00",
        )

        frame = connection.sent[0]
        assert frame["type"] == "receive_message"
        assert frame["data"] == {
            "message": "Still for sale?",
            "senderId": 5,
            "senderName": "Bob Durand",
            "carId": 42,
            "conversationId": 17,
            "createdAt": "2026-01-01T12:00:00+00:00",
            "messageId": 301,
        }

    @pytest.mark.asyncio
    async def test_send_notification_count(self, dispatcher, registry):
        connection = FakeConnection()
        await registry.register(9, connection)

        assert await dispatcher.send_notification_count(9, 3)
        assert connection.sent == [{"type": "notification_update", "data": {"count": 3}}]

    @pytest.mark.asyncio
    async def test_send_typing(self, dispatcher, registry):
        connection = FakeConnection()
        await registry.register(9, connection)

        await dispatcher.send_typing(9, sender_id=5, conversation_id=17, is_typing=False)

        assert connection.sent[0]["data"] == {
            "senderId": 5,
            "conversationId": 17,
            "isTyping": False,
        }
