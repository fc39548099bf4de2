import logging
from typing import Any

from app.domain.enums import AccountKind
from app.infra.db.models import Message, User
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.events import RealtimeEvent
from app.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher

logger = logging.getLogger(__name__)


def message_payload(message: Message, sender: User) -> dict[str, Any]:
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": sender.id,
        "sender_name": sender.name,
        "text": message.text,
        "sent_at": message.sent_at.isoformat(),
        "is_merchant_staff": sender.kind == AccountKind.MERCHANT_STAFF,
    }


def assignment_payload(conversation_id: int, staff: User) -> dict[str, Any]:
    return {
        "conversation_id": conversation_id,
        "staff_id": staff.id,
        "staff_name": staff.name,
    }


class ConversationEvents:
    """Publishes conversation-scoped events; never raises into the command path."""

    def __init__(self, realtime: RealtimePublisher | None = None) -> None:
        self.realtime = realtime or NoopRealtimePublisher()

    async def message_created(self, message: Message, sender: User) -> None:
        await self._safe_publish(
            message.conversation_id,
            RealtimeEvent.MESSAGE,
            message_payload(message, sender),
        )

    async def conversation_assigned(self, conversation_id: int, staff: User) -> None:
        await self._safe_publish(
            conversation_id,
            RealtimeEvent.CONVERSATION_ASSIGNED,
            assignment_payload(conversation_id, staff),
        )

    async def _safe_publish(
        self,
        conversation_id: int,
        event: RealtimeEvent,
        payload: dict[str, Any],
    ) -> None:
        try:
            await self.realtime.publish(
                [conversation_channel(conversation_id)], event, payload
            )
        except Exception:
            logger.exception(
                "Failed to publish %s for conversation %s", event.value, conversation_id
            )
