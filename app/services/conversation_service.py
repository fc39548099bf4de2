import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.access import Caller, can_assign, has_access, is_end_user, is_merchant_staff
from app.domain.enums import AssignmentAction
from app.domain.state_machine import AssignmentLifecycle
from app.infra.db.models import Conversation, Message, User
from app.infra.db.repositories import (
    ConversationRepository,
    MerchantRepository,
    MessageRepository,
    UserRepository,
)
from app.infra.realtime.publisher import RealtimePublisher
from app.services.errors import (
    CallerNotAllowedError,
    ConversationAccessDeniedError,
    ConversationNotFoundError,
    CrossTenantAssignmentError,
    MerchantNotFoundError,
    StaffNotFoundError,
)
from app.services.realtime_events import ConversationEvents

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConversationSummary:
    conversation: Conversation
    last_message: Message | None


@dataclass(slots=True)
class ConversationDetail:
    conversation: Conversation
    messages: list[Message]


@dataclass(slots=True)
class AssignmentResult:
    conversation: Conversation
    staff: User


class ConversationService:
    def __init__(
        self,
        session: AsyncSession,
        conversations: ConversationRepository | None = None,
        messages: MessageRepository | None = None,
        merchants: MerchantRepository | None = None,
        users: UserRepository | None = None,
        realtime: RealtimePublisher | None = None,
    ) -> None:
        self.session = session
        self.conversations = conversations or ConversationRepository(session)
        self.messages = messages or MessageRepository(session)
        self.merchants = merchants or MerchantRepository(session)
        self.users = users or UserRepository(session)
        self.events = ConversationEvents(realtime)

    async def start_conversation(self, caller: Caller, merchant_id: int) -> Conversation:
        if not is_end_user(caller):
            raise CallerNotAllowedError("Only end users can start conversations")

        merchant = await self.merchants.get_by_id(merchant_id)
        if merchant is None:
            raise MerchantNotFoundError(merchant_id)

        conversation = await self.conversations.create(
            end_user_id=caller.user_id, merchant_id=merchant.id
        )
        await self.session.commit()
        await self.session.refresh(conversation)

        logger.info(
            "Conversation %s started by user %s with merchant %s",
            conversation.id,
            caller.user_id,
            merchant.id,
        )
        return conversation

    async def list_conversations(self, caller: Caller) -> list[ConversationSummary]:
        if is_end_user(caller):
            conversations = await self.conversations.list_for_end_user(caller.user_id)
        elif is_merchant_staff(caller):
            conversations = await self.conversations.list_for_merchant(caller.merchant_id)
        else:
            raise CallerNotAllowedError("Unsupported account kind")

        latest = await self.messages.latest_by_conversation(
            [conversation.id for conversation in conversations]
        )
        return [
            ConversationSummary(
                conversation=conversation,
                last_message=latest.get(conversation.id),
            )
            for conversation in conversations
        ]

    async def get_conversation_detail(
        self, caller: Caller, conversation_id: int
    ) -> ConversationDetail:
        conversation = await self.conversations.get_with_participants(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if not has_access(caller, conversation):
            raise ConversationAccessDeniedError(conversation_id, caller.user_id)

        messages = await self.messages.list_by_conversation(conversation.id)
        return ConversationDetail(conversation=conversation, messages=messages)

    async def assign_conversation(
        self,
        caller: Caller,
        conversation_id: int,
        staff_id: int,
    ) -> AssignmentResult:
        if not can_assign(caller):
            raise CallerNotAllowedError("Only admins and managers can assign conversations")

        conversation = await self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        # Tenant boundary applies regardless of role.
        if conversation.merchant_id != caller.merchant_id:
            raise CrossTenantAssignmentError(conversation_id)

        staff = await self.users.get_staff_in_merchant(staff_id, caller.merchant_id)
        if staff is None:
            raise StaffNotFoundError(staff_id)

        previous_assignee = conversation.assigned_to_id
        assignee_id = AssignmentLifecycle.transition(
            previous_assignee,
            AssignmentAction.ASSIGN_BY_MANAGER,
            staff.id,
        )
        await self.conversations.assign(conversation, assignee_id)

        await self.session.commit()
        await self.session.refresh(conversation)

        logger.info(
            "Conversation %s assigned to staff %s by %s (previous assignee: %s)",
            conversation.id,
            staff.id,
            caller.user_id,
            previous_assignee,
        )
        await self.events.conversation_assigned(conversation.id, staff)

        return AssignmentResult(conversation=conversation, staff=staff)
