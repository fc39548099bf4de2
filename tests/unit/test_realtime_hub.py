import pytest

from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.events import RealtimeEvent
from app.infra.realtime.hub import InMemoryRealtimeHub
from tests.fakes import FakeWebSocket


@pytest.mark.asyncio
async def test_publish_reaches_only_channel_subscribers() -> None:
    hub = InMemoryRealtimeHub()
    joined = FakeWebSocket()
    elsewhere = FakeWebSocket()
    await hub.subscribe(joined, conversation_channel(7))
    await hub.subscribe(elsewhere, conversation_channel(8))

    await hub.publish(
        [conversation_channel(7)], RealtimeEvent.MESSAGE, {"id": 1, "text": "hi"}
    )

    assert len(joined.sent) == 1
    envelope = joined.sent[0]
    assert envelope["event"] == "message"
    assert envelope["channel"] == "conversation:7"
    assert envelope["payload"] == {"id": 1, "text": "hi"}
    assert "sent_at" in envelope
    assert elsewhere.sent == []


@pytest.mark.asyncio
async def test_late_subscriber_gets_no_replay() -> None:
    hub = InMemoryRealtimeHub()
    await hub.publish([conversation_channel(7)], RealtimeEvent.MESSAGE, {"id": 1})

    late = FakeWebSocket()
    await hub.subscribe(late, conversation_channel(7))

    assert late.sent == []


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery() -> None:
    hub = InMemoryRealtimeHub()
    socket = FakeWebSocket()
    await hub.subscribe(socket, conversation_channel(7))
    await hub.unsubscribe(socket, conversation_channel(7))

    await hub.publish([conversation_channel(7)], RealtimeEvent.MESSAGE, {"id": 1})

    assert socket.sent == []
    assert hub.subscriber_count(conversation_channel(7)) == 0


@pytest.mark.asyncio
async def test_disconnect_drops_all_subscriptions() -> None:
    hub = InMemoryRealtimeHub()
    socket = FakeWebSocket()
    await hub.subscribe(socket, conversation_channel(7))
    await hub.subscribe(socket, conversation_channel(8))

    await hub.disconnect(socket)

    assert hub.subscriber_count(conversation_channel(7)) == 0
    assert hub.subscriber_count(conversation_channel(8)) == 0


@pytest.mark.asyncio
async def test_stale_socket_is_pruned_without_affecting_others() -> None:
    hub = InMemoryRealtimeHub()
    healthy = FakeWebSocket()
    broken = FakeWebSocket(fail_on_send=True)
    await hub.subscribe(healthy, conversation_channel(7))
    await hub.subscribe(broken, conversation_channel(7))

    await hub.publish([conversation_channel(7)], RealtimeEvent.CONVERSATION_ASSIGNED, {"staff_id": 6})

    assert healthy.events() == ["conversation_assigned"]
    assert hub.subscriber_count(conversation_channel(7)) == 1


@pytest.mark.asyncio
async def test_duplicate_channels_deliver_once() -> None:
    hub = InMemoryRealtimeHub()
    socket = FakeWebSocket()
    await hub.subscribe(socket, conversation_channel(7))
    await hub.subscribe(socket, conversation_channel(7))

    await hub.publish(
        [conversation_channel(7), conversation_channel(7)], RealtimeEvent.MESSAGE, {"id": 1}
    )

    assert len(socket.sent) == 1
