from datetime import UTC, datetime

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from app.domain.enums import AccountKind, StaffRole
from app.infra.db.models import Conversation, Merchant, Message, User


class MerchantRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, merchant_id: int) -> Merchant | None:
        return await self.session.get(Merchant, merchant_id)

    async def list_all(self) -> list[Merchant]:
        stmt: Select[tuple[Merchant]] = select(Merchant).order_by(Merchant.id.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, name: str) -> Merchant:
        merchant = Merchant(name=name)
        self.session.add(merchant)
        await self.session.flush()
        await self.session.refresh(merchant)
        return merchant


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt: Select[tuple[User]] = (
            select(User).where(User.email == email.strip().lower()).limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_staff_in_merchant(self, user_id: int, merchant_id: int) -> User | None:
        stmt: Select[tuple[User]] = (
            select(User)
            .where(
                User.id == user_id,
                User.kind == AccountKind.MERCHANT_STAFF,
                User.merchant_id == merchant_id,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_staff(self, merchant_id: int) -> list[User]:
        stmt: Select[tuple[User]] = (
            select(User)
            .where(
                User.kind == AccountKind.MERCHANT_STAFF,
                User.merchant_id == merchant_id,
            )
            .order_by(User.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        kind: AccountKind,
        role: StaffRole | None = None,
        merchant_id: int | None = None,
    ) -> User:
        user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            kind=kind,
            role=role,
            merchant_id=merchant_id,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def has_conversation_history(self, user_id: int) -> bool:
        assigned_stmt = select(func.count(Conversation.id)).where(
            Conversation.assigned_to_id == user_id
        )
        sent_stmt = select(func.count(Message.id)).where(Message.sender_id == user_id)
        assigned = (await self.session.execute(assigned_stmt)).scalar_one()
        sent = (await self.session.execute(sent_stmt)).scalar_one()
        return bool(assigned or sent)


class ConversationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        return await self.session.get(Conversation, conversation_id)

    async def get_with_participants(self, conversation_id: int) -> Conversation | None:
        stmt: Select[tuple[Conversation]] = (
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .options(
                selectinload(Conversation.end_user),
                selectinload(Conversation.merchant),
                selectinload(Conversation.assigned_to),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_end_user(self, end_user_id: int) -> list[Conversation]:
        return await self._list_where(Conversation.end_user_id == end_user_id)

    async def list_for_merchant(self, merchant_id: int) -> list[Conversation]:
        return await self._list_where(Conversation.merchant_id == merchant_id)

    async def _list_where(self, criterion) -> list[Conversation]:
        stmt: Select[tuple[Conversation]] = (
            select(Conversation)
            .where(criterion)
            .options(
                selectinload(Conversation.end_user),
                selectinload(Conversation.merchant),
                selectinload(Conversation.assigned_to),
            )
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, end_user_id: int, merchant_id: int) -> Conversation:
        conversation = Conversation(end_user_id=end_user_id, merchant_id=merchant_id)
        self.session.add(conversation)
        await self.session.flush()
        await self.session.refresh(conversation)
        return conversation

    async def assign(self, conversation: Conversation, staff_id: int) -> None:
        conversation.assigned_to_id = staff_id
        conversation.updated_at = datetime.now(UTC)
        await self.session.flush()

    async def claim_if_unassigned(self, conversation: Conversation, staff_id: int) -> bool:
        """Assign ``staff_id`` only while nobody holds the conversation.

        Returns ``True`` when this call performed the assignment.
        """
        stmt = (
            update(Conversation)
            .where(
                Conversation.id == conversation.id,
                Conversation.assigned_to_id.is_(None),
            )
            .values(assigned_to_id=staff_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.refresh(conversation, attribute_names=["assigned_to_id"])
        return result.rowcount == 1

    async def touch(self, conversation: Conversation) -> None:
        conversation.updated_at = datetime.now(UTC)
        await self.session.flush()


class MessageRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, conversation_id: int, sender_id: int, text: str) -> Message:
        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            text=text,
        )
        self.session.add(message)
        await self.session.flush()
        await self.session.refresh(message)
        return message

    async def list_by_conversation(self, conversation_id: int) -> list[Message]:
        stmt: Select[tuple[Message]] = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .options(selectinload(Message.sender))
            .order_by(Message.sent_at.asc(), Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_by_conversation(self, conversation_ids: list[int]) -> dict[int, Message]:
        if not conversation_ids:
            return {}

        ranked = (
            select(
                Message,
                func.row_number()
                .over(
                    partition_by=Message.conversation_id,
                    order_by=(Message.sent_at.desc(), Message.id.desc()),
                )
                .label("position"),
            )
            .where(Message.conversation_id.in_(conversation_ids))
            .subquery()
        )
        latest = aliased(Message, ranked)
        stmt = select(latest).where(ranked.c.position == 1)
        result = await self.session.execute(stmt)
        return {message.conversation_id: message for message in result.scalars().all()}
