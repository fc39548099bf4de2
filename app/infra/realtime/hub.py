import asyncio
import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from app.infra.realtime.events import RealtimeEvent

logger = logging.getLogger(__name__)


def build_envelope(
    event: Enum,
    payload: Mapping[str, Any],
    channel: str | None = None,
) -> dict[str, Any]:
    envelope: dict[str, Any] = {
        "event": event.value,
        "payload": dict(payload),
        "sent_at": datetime.now(UTC).isoformat(),
    }
    if channel is not None:
        envelope["channel"] = channel
    return envelope


class InMemoryRealtimeHub:
    """In-process channel hub for websocket fanout.

    Delivery is best effort: only sockets subscribed at publish time receive
    an event, nothing is buffered, and sockets that fail to send are dropped.
    """

    def __init__(self) -> None:
        self._channel_subscribers: dict[str, set[WebSocket]] = defaultdict(set)
        self._socket_channels: dict[WebSocket, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()

    def subscriber_count(self, channel: str) -> int:
        subscribers = self._channel_subscribers.get(channel)
        if subscribers is None:
            return 0
        return len(subscribers)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            channels = self._socket_channels.pop(websocket, set())
            for channel in channels:
                self._discard_subscriber(channel, websocket)

    async def subscribe(self, websocket: WebSocket, channel: str) -> None:
        async with self._lock:
            self._channel_subscribers[channel].add(websocket)
            self._socket_channels[websocket].add(channel)

    async def unsubscribe(self, websocket: WebSocket, channel: str) -> None:
        async with self._lock:
            self._discard_subscriber(channel, websocket)

            channels = self._socket_channels.get(websocket)
            if channels is not None:
                channels.discard(channel)
                if not channels:
                    self._socket_channels.pop(websocket, None)

    async def publish(
        self,
        channels: Sequence[str],
        event: RealtimeEvent,
        payload: Mapping[str, Any],
    ) -> None:
        unique_channels = [channel for channel in dict.fromkeys(channels) if channel]
        if not unique_channels:
            return

        async with self._lock:
            recipients_by_channel = {
                channel: set(self._channel_subscribers.get(channel, set()))
                for channel in unique_channels
            }

        for channel, recipients in recipients_by_channel.items():
            if not recipients:
                continue

            envelope = build_envelope(event, payload, channel=channel)

            stale: list[WebSocket] = []
            for websocket in recipients:
                try:
                    await websocket.send_json(envelope)
                except (RuntimeError, WebSocketDisconnect):
                    stale.append(websocket)

            if stale:
                logger.info(
                    "Dropping %d stale subscriber(s) from %s", len(stale), channel
                )
                async with self._lock:
                    for websocket in stale:
                        subscribed_channels = self._socket_channels.get(websocket, set())
                        subscribed_channels.discard(channel)
                        if not subscribed_channels:
                            self._socket_channels.pop(websocket, None)
                        self._discard_subscriber(channel, websocket)

    def _discard_subscriber(self, channel: str, websocket: WebSocket) -> None:
        subscribers = self._channel_subscribers.get(channel)
        if subscribers is None:
            return
        subscribers.discard(websocket)
        if not subscribers:
            self._channel_subscribers.pop(channel, None)
