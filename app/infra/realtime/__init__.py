"""Realtime event fanout over WebSocket connections."""

from app.infra.realtime.hub import InMemoryRealtimeHub
from app.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher

__all__ = ["InMemoryRealtimeHub", "NoopRealtimePublisher", "RealtimePublisher"]
