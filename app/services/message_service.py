import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.access import Caller, has_access, is_merchant_staff
from app.domain.state_machine import AssignmentLifecycle
from app.infra.db.models import Conversation, Message
from app.infra.db.repositories import (
    ConversationRepository,
    MessageRepository,
    UserRepository,
)
from app.infra.realtime.publisher import RealtimePublisher
from app.services.errors import (
    ConversationAccessDeniedError,
    ConversationNotFoundError,
    EmptyMessageError,
)
from app.services.realtime_events import ConversationEvents

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SentMessage:
    conversation: Conversation
    message: Message
    auto_assigned: bool


class MessageService:
    def __init__(
        self,
        session: AsyncSession,
        conversations: ConversationRepository | None = None,
        messages: MessageRepository | None = None,
        users: UserRepository | None = None,
        realtime: RealtimePublisher | None = None,
    ) -> None:
        self.session = session
        self.conversations = conversations or ConversationRepository(session)
        self.messages = messages or MessageRepository(session)
        self.users = users or UserRepository(session)
        self.events = ConversationEvents(realtime)

    async def send_message(
        self,
        caller: Caller,
        conversation_id: int,
        text: str,
    ) -> SentMessage:
        conversation = await self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if not has_access(caller, conversation):
            raise ConversationAccessDeniedError(conversation_id, caller.user_id)

        cleaned_text = text.strip()
        if not cleaned_text:
            raise EmptyMessageError()

        sender = await self.users.get_by_id(caller.user_id)
        if sender is None:
            raise ConversationAccessDeniedError(conversation_id, caller.user_id)

        # First staff reply claims an unassigned conversation. The claim is a
        # compare-and-swap, so concurrent first replies cannot overwrite it.
        auto_assigned = False
        if AssignmentLifecycle.should_auto_assign(
            is_merchant_staff(caller), conversation.assigned_to_id
        ):
            auto_assigned = await self.conversations.claim_if_unassigned(
                conversation, sender.id
            )

        message = await self.messages.create(
            conversation_id=conversation.id,
            sender_id=sender.id,
            text=cleaned_text,
        )
        await self.conversations.touch(conversation)

        await self.session.commit()
        await self.session.refresh(conversation)

        if auto_assigned:
            logger.info(
                "Conversation %s auto-assigned to staff %s on first reply",
                conversation.id,
                sender.id,
            )

        await self.events.message_created(message, sender)
        if auto_assigned:
            await self.events.conversation_assigned(conversation.id, sender)

        return SentMessage(
            conversation=conversation,
            message=message,
            auto_assigned=auto_assigned,
        )
