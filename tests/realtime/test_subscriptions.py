"""Tests for src/realtime/subscriptions.py — broadcast channel management (mocked)."""

import threading
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.realtime.subscriptions import (
    MESSAGE_EVENT,
    ChannelManager,
    host_topic,
    peer_topic,
)


@pytest.fixture
def mock_client():
    """Create a mock Supabase client with async realtime support."""
    client = MagicMock()
    client.created = []

    # Each call to client.realtime.channel() returns a fresh mock channel
    def make_channel(name):
        channel = AsyncMock()
        channel.topic = name
        channel.on_broadcast = MagicMock(return_value=channel)
        channel.subscribe = AsyncMock(return_value=channel)
        channel.send_broadcast = AsyncMock()
        channel.unsubscribe = AsyncMock()
        client.created.append(channel)
        return channel

    client.realtime.channel = MagicMock(side_effect=make_channel)
    client.realtime.remove_channel = AsyncMock()
    return client


@pytest.fixture
def mgr(mock_client):
    manager = ChannelManager(mock_client)
    yield manager
    manager.shutdown()


class TestTopics:
    def test_host_topic(self):
        assert host_topic("ABC234") == "trikono:ABC234:host"

    def test_peer_topic(self):
        assert peer_topic("ABC234", "p1") == "trikono:ABC234:peer:p1"


class TestSubscribe:
    def test_subscribe_creates_channel(self, mgr, mock_client):
        mgr.subscribe("trikono:G:host", lambda m: None)

        mock_client.realtime.channel.assert_called_once_with("trikono:G:host")
        channel = mock_client.created[0]
        assert channel.on_broadcast.call_args.args[0] == MESSAGE_EVENT
        channel.subscribe.assert_awaited_once()
        assert "trikono:G:host" in mgr.active_subscriptions

    def test_subscribe_idempotent(self, mgr, mock_client):
        mgr.subscribe("trikono:G:host", lambda m: None)
        mgr.subscribe("trikono:G:host", lambda m: None)  # duplicate

        assert mock_client.realtime.channel.call_count == 1

    def test_broadcast_reaches_callback(self, mgr, mock_client):
        received = []
        mgr.subscribe("trikono:G:host", received.append)

        listener = mock_client.created[0].on_broadcast.call_args.args[1]
        listener({"event": MESSAGE_EVENT, "payload": {"type": "draw", "peerId": "p1"}})

        assert received == [{"type": "draw", "peerId": "p1"}]


class TestSend:
    def test_send_joins_topic_once(self, mgr, mock_client):
        mgr.send("trikono:G:peer:p1", {"type": "error", "message": "x"})
        mgr.send("trikono:G:peer:p1", {"type": "error", "message": "y"})

        assert mock_client.realtime.channel.call_count == 1
        channel = mock_client.created[0]
        assert channel.send_broadcast.await_count == 2
        channel.send_broadcast.assert_awaited_with(MESSAGE_EVENT, {"type": "error", "message": "y"})
        # outgoing channels are not listeners
        assert mgr.active_subscriptions == []

    def test_send_reuses_subscribed_channel(self, mgr, mock_client):
        mgr.subscribe("trikono:G:host", lambda m: None)
        mgr.send("trikono:G:host", {"type": "draw", "peerId": "p1"})

        assert mock_client.realtime.channel.call_count == 1
        mock_client.created[0].send_broadcast.assert_awaited_once()

    def test_send_from_callback_does_not_block(self, mgr, mock_client):
        """A listener replying on the loop thread returns without waiting."""
        done = threading.Event()
        reply = {"type": "error", "message": "Not your turn."}

        def on_message(message):
            mgr.send("trikono:G:peer:p1", reply)
            done.set()

        mgr.subscribe("trikono:G:host", on_message)
        listener = mock_client.created[0].on_broadcast.call_args.args[1]
        mgr._loop.call_soon_threadsafe(listener, {"payload": {"type": "draw", "peerId": "p1"}})

        assert done.wait(timeout=2)
        deadline = time.monotonic() + 2
        while len(mock_client.created) < 2 or not mock_client.created[1].send_broadcast.await_count:
            assert time.monotonic() < deadline
            time.sleep(0.01)
        mock_client.created[1].send_broadcast.assert_awaited_once_with(MESSAGE_EVENT, reply)

    def test_send_failure_from_callback_is_logged(self, mgr, mock_client, caplog):
        mgr.subscribe("trikono:G:host", lambda m: mgr.send("trikono:G:host", {"type": "pass"}))
        channel = mock_client.created[0]
        channel.send_broadcast.side_effect = RuntimeError("socket closed")

        listener = channel.on_broadcast.call_args.args[1]
        mgr._loop.call_soon_threadsafe(listener, {"payload": {"type": "draw", "peerId": "p1"}})

        deadline = time.monotonic() + 2
        while "Failed to send on trikono:G:host" not in caplog.text:
            assert time.monotonic() < deadline
            time.sleep(0.01)


class TestUnsubscribe:
    def test_unsubscribe_removes_channel(self, mgr, mock_client):
        mgr.subscribe("trikono:G:host", lambda m: None)
        mgr.unsubscribe("trikono:G:host")

        assert "trikono:G:host" not in mgr.active_subscriptions
        mock_client.created[0].unsubscribe.assert_awaited_once()
        mock_client.realtime.remove_channel.assert_awaited_once()

    def test_unsubscribe_nonexistent_is_noop(self, mgr, mock_client):
        mgr.unsubscribe("trikono:nope:host")  # should not raise
        mock_client.realtime.remove_channel.assert_not_called()

    def test_unsubscribe_all(self, mgr, mock_client):
        mgr.subscribe("trikono:A:host", lambda m: None)
        mgr.subscribe("trikono:B:host", lambda m: None)
        mgr.send("trikono:A:peer:p1", {"type": "lobby", "players": []})
        mgr.unsubscribe_all()

        assert mgr.active_subscriptions == []
        assert mock_client.realtime.remove_channel.await_count == 3

    def test_remove_failure_is_logged(self, mgr, mock_client, caplog):
        mgr.subscribe("trikono:G:host", lambda m: None)
        mock_client.created[0].unsubscribe.side_effect = RuntimeError("socket closed")

        mgr.unsubscribe("trikono:G:host")  # should not raise

        assert "Error removing channel" in caplog.text
        assert mgr.active_subscriptions == []


class TestHandleMessage:
    def test_unwraps_payload(self, mgr):
        received = []
        mgr._handle_message({"payload": {"type": "pass"}}, "t", received.append)
        assert received == [{"type": "pass"}]

    def test_bare_message(self, mgr):
        received = []
        mgr._handle_message({"type": "pass"}, "t", received.append)
        assert received == [{"type": "pass"}]

    def test_non_object_ignored(self, mgr):
        received = []
        mgr._handle_message({"payload": "hello"}, "t", received.append)
        assert received == []

    def test_callback_error_does_not_propagate(self, mgr, caplog):
        """Errors in callbacks should be logged, not raised."""
        def explode(message):
            raise RuntimeError("boom")

        mgr._handle_message({"payload": {"type": "pass"}}, "trikono:G:host", explode)

        assert "Error handling message on trikono:G:host" in caplog.text
