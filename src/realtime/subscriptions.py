"""
Trikono - Channel Subscription Management

Manages Supabase Realtime broadcast channels for live multiplayer.
Uses a background thread with an asyncio event loop since the sync
Realtime client in supabase 2.x is not implemented.

Topics:
    trikono:<game_id>:host            replicas -> host (actions, joins)
    trikono:<game_id>:peer:<peer_id>  host -> one replica (lobby, state, errors)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable

from supabase import Client

logger = logging.getLogger(__name__)

# Broadcast event name; the message itself carries a `type`
MESSAGE_EVENT = "message"

SEND_TIMEOUT = 10


def host_topic(game_id: str) -> str:
    return f"trikono:{game_id}:host"


def peer_topic(game_id: str, peer_id: str) -> str:
    return f"trikono:{game_id}:peer:{peer_id}"


class ChannelManager:
    """Manages Supabase Realtime broadcast channels.

    Bridges async Realtime API with sync code by running an asyncio
    event loop in a daemon thread. Callbacks are invoked from that
    background thread; send() called there is scheduled, not awaited.
    """

    def __init__(self, client: Client) -> None:
        self._client = client
        self._channels: dict[str, Any] = {}
        self._outgoing: dict[str, Any] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        """Start the background event loop if not running."""
        with self._lock:
            if self._loop is None or not self._loop.is_running():
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._run_loop, daemon=True, name="realtime-loop"
                )
                self._thread.start()
            return self._loop

    def _run_loop(self) -> None:
        """Run the asyncio event loop in the background thread."""
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def subscribe(
        self,
        topic: str,
        on_message: Callable[[dict[str, Any]], None],
    ) -> None:
        """Listen for messages broadcast on a topic.

        Args:
            topic: Channel topic (see host_topic / peer_topic).
            on_message: Callback receiving each message dict.
        """
        if topic in self._channels:
            logger.warning("Already subscribed to %s", topic)
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._subscribe_async(topic, on_message), loop
        )
        future.result(timeout=SEND_TIMEOUT)

    async def _subscribe_async(
        self,
        topic: str,
        on_message: Callable[[dict[str, Any]], None],
    ) -> None:
        """Join a channel and register the broadcast listener."""
        channel = self._client.realtime.channel(topic)
        channel.on_broadcast(
            MESSAGE_EVENT,
            lambda payload: self._handle_message(payload, topic, on_message),
        )
        await channel.subscribe(
            callback=lambda state, err: self._on_subscribe_state(state, err, topic)
        )
        self._channels[topic] = channel
        logger.info("Subscribed to %s", topic)

    def _handle_message(
        self,
        payload: dict[str, Any],
        topic: str,
        on_message: Callable[[dict[str, Any]], None],
    ) -> None:
        """Unwrap a broadcast payload and hand the message to the callback."""
        try:
            message = payload.get("payload", payload)
            if not isinstance(message, dict):
                logger.warning("Ignoring non-object message on %s", topic)
                return
            on_message(message)
        except Exception:
            logger.exception("Error handling message on %s", topic)

    def _on_subscribe_state(
        self, state: str, error: Exception | None, topic: str
    ) -> None:
        """Log subscription state changes."""
        if error:
            logger.error("Subscription error for %s: %s", topic, error)
        else:
            logger.debug("Channel %s state: %s", topic, state)

    def send(self, topic: str, message: dict[str, Any]) -> None:
        """Broadcast a message on a topic, joining it first if needed.

        From any other thread this waits for the broadcast. From a listener
        callback (the loop thread) it only schedules it, and failures are
        logged.
        """
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._send_async(topic, message), loop
        )
        if threading.current_thread() is self._thread:
            future.add_done_callback(lambda done: self._on_sent(done, topic))
            return
        future.result(timeout=SEND_TIMEOUT)

    def _on_sent(self, future: Any, topic: str) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Failed to send on %s: %s", topic, error)

    async def _send_async(self, topic: str, message: dict[str, Any]) -> None:
        channel = self._channels.get(topic) or self._outgoing.get(topic)
        if channel is None:
            channel = self._client.realtime.channel(topic)
            await channel.subscribe()
            self._outgoing[topic] = channel
        await channel.send_broadcast(MESSAGE_EVENT, message)

    def unsubscribe(self, topic: str) -> None:
        """Leave a topic's channel."""
        channels = [
            channel
            for channel in (self._channels.pop(topic, None), self._outgoing.pop(topic, None))
            if channel is not None
        ]
        if not channels:
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._unsubscribe_async(channels), loop
        )
        try:
            future.result(timeout=SEND_TIMEOUT)
        except Exception:
            logger.exception("Error unsubscribing from %s", topic)

        logger.info("Unsubscribed from %s", topic)

    async def _unsubscribe_async(self, channels: list[Any]) -> None:
        """Unsubscribe and remove channels."""
        for channel in channels:
            try:
                await channel.unsubscribe()
                await self._client.realtime.remove_channel(channel)
            except Exception:
                logger.exception("Error removing channel")

    def unsubscribe_all(self) -> None:
        """Leave every channel, listening or outgoing."""
        for topic in list(self._channels) + list(self._outgoing):
            self.unsubscribe(topic)

    @property
    def active_subscriptions(self) -> list[str]:
        """Return topics with an active listener."""
        return list(self._channels.keys())

    def shutdown(self) -> None:
        """Stop the background event loop and clean up."""
        self.unsubscribe_all()
        if self._loop and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        self._loop = None
        self._thread = None
