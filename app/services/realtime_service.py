import logging

from fastapi import WebSocket
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.access import Caller, has_access
from app.infra.db.repositories import ConversationRepository
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.hub import InMemoryRealtimeHub
from app.services.errors import ConversationAccessDeniedError, ConversationNotFoundError

logger = logging.getLogger(__name__)


class RealtimeSubscriptionService:
    """Join/leave handling for conversation rooms.

    Joining re-checks the caller against the conversation on every request;
    the client-supplied id is never trusted on its own.
    """

    def __init__(
        self,
        session: AsyncSession,
        hub: InMemoryRealtimeHub,
        conversations: ConversationRepository | None = None,
    ) -> None:
        self.session = session
        self.hub = hub
        self.conversations = conversations or ConversationRepository(session)

    async def join(self, websocket: WebSocket, caller: Caller, conversation_id: int) -> str:
        conversation = await self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if not has_access(caller, conversation):
            raise ConversationAccessDeniedError(conversation_id, caller.user_id)

        channel = conversation_channel(conversation_id)
        await self.hub.subscribe(websocket, channel)
        logger.debug("User %s joined %s", caller.user_id, channel)
        return channel

    async def leave(self, websocket: WebSocket, conversation_id: int) -> str:
        channel = conversation_channel(conversation_id)
        await self.hub.unsubscribe(websocket, channel)
        return channel
