from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from app.domain.access import Caller
from app.domain.enums import AccountKind, StaffRole
from app.infra.realtime.events import RealtimeEvent


class DummySession:
    def __init__(self) -> None:
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1

    async def refresh(self, _: object, attribute_names: list[str] | None = None) -> None:
        return None


@dataclass(slots=True)
class FakeMerchant:
    id: int
    name: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(slots=True)
class FakeUser:
    id: int
    name: str
    email: str
    kind: AccountKind
    role: StaffRole | None = None
    merchant_id: int | None = None
    password_hash: str = ""

    @property
    def is_merchant_staff(self) -> bool:
        return self.kind == AccountKind.MERCHANT_STAFF


@dataclass(slots=True)
class FakeConversation:
    id: int
    end_user_id: int
    merchant_id: int
    assigned_to_id: int | None
    started_at: datetime
    updated_at: datetime
    end_user: FakeUser | None = None
    merchant: FakeMerchant | None = None
    assigned_to: FakeUser | None = None


@dataclass(slots=True)
class FakeMessage:
    id: int
    conversation_id: int
    sender_id: int
    text: str
    sent_at: datetime
    sender: FakeUser | None = None


class FakeStore:
    """Shared in-memory tables with a strictly increasing clock."""

    def __init__(self, next_conversation_id: int = 1) -> None:
        self.merchants: dict[int, FakeMerchant] = {}
        self.users: dict[int, FakeUser] = {}
        self.conversations: dict[int, FakeConversation] = {}
        self.messages: list[FakeMessage] = []
        self._next_conversation_id = next_conversation_id
        self._next_message_id = 1
        self._next_user_id = 1000
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        self._clock += timedelta(milliseconds=1)
        return self._clock

    def add_merchant(self, merchant_id: int, name: str) -> FakeMerchant:
        merchant = FakeMerchant(id=merchant_id, name=name)
        self.merchants[merchant_id] = merchant
        return merchant

    def add_user(self, user: FakeUser) -> FakeUser:
        self.users[user.id] = user
        return user

    def new_conversation_id(self) -> int:
        conversation_id = self._next_conversation_id
        self._next_conversation_id += 1
        return conversation_id

    def new_message_id(self) -> int:
        message_id = self._next_message_id
        self._next_message_id += 1
        return message_id

    def new_user_id(self) -> int:
        self._next_user_id += 1
        return self._next_user_id

    def hydrate(self, conversation: FakeConversation) -> FakeConversation:
        conversation.end_user = self.users.get(conversation.end_user_id)
        conversation.merchant = self.merchants.get(conversation.merchant_id)
        conversation.assigned_to = (
            self.users.get(conversation.assigned_to_id)
            if conversation.assigned_to_id is not None
            else None
        )
        return conversation


class FakeMerchantRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def get_by_id(self, merchant_id: int) -> FakeMerchant | None:
        return self.store.merchants.get(merchant_id)

    async def list_all(self) -> list[FakeMerchant]:
        return sorted(self.store.merchants.values(), key=lambda merchant: merchant.id)


class FakeUserRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def get_by_id(self, user_id: int) -> FakeUser | None:
        return self.store.users.get(user_id)

    async def get_by_email(self, email: str) -> FakeUser | None:
        normalized = email.strip().lower()
        for user in self.store.users.values():
            if user.email == normalized:
                return user
        return None

    async def get_staff_in_merchant(self, user_id: int, merchant_id: int) -> FakeUser | None:
        user = self.store.users.get(user_id)
        if user is None or not user.is_merchant_staff or user.merchant_id != merchant_id:
            return None
        return user

    async def list_staff(self, merchant_id: int) -> list[FakeUser]:
        return [
            user
            for user in sorted(self.store.users.values(), key=lambda user: user.id)
            if user.is_merchant_staff and user.merchant_id == merchant_id
        ]

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        kind: AccountKind,
        role: StaffRole | None = None,
        merchant_id: int | None = None,
    ) -> FakeUser:
        user = FakeUser(
            id=self.store.new_user_id(),
            name=name,
            email=email.strip().lower(),
            kind=kind,
            role=role,
            merchant_id=merchant_id,
            password_hash=password_hash,
        )
        self.store.users[user.id] = user
        return user

    async def delete(self, user: FakeUser) -> None:
        self.store.users.pop(user.id, None)

    async def has_conversation_history(self, user_id: int) -> bool:
        assigned = any(
            conversation.assigned_to_id == user_id
            for conversation in self.store.conversations.values()
        )
        sent = any(message.sender_id == user_id for message in self.store.messages)
        return assigned or sent


class FakeConversationRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.claim_attempts = 0

    async def get_by_id(self, conversation_id: int) -> FakeConversation | None:
        return self.store.conversations.get(conversation_id)

    async def get_with_participants(self, conversation_id: int) -> FakeConversation | None:
        conversation = self.store.conversations.get(conversation_id)
        if conversation is None:
            return None
        return self.store.hydrate(conversation)

    async def list_for_end_user(self, end_user_id: int) -> list[FakeConversation]:
        return self._ordered(
            conversation
            for conversation in self.store.conversations.values()
            if conversation.end_user_id == end_user_id
        )

    async def list_for_merchant(self, merchant_id: int) -> list[FakeConversation]:
        return self._ordered(
            conversation
            for conversation in self.store.conversations.values()
            if conversation.merchant_id == merchant_id
        )

    def _ordered(self, conversations) -> list[FakeConversation]:
        ordered = sorted(
            conversations,
            key=lambda conversation: (conversation.updated_at, conversation.id),
            reverse=True,
        )
        return [self.store.hydrate(conversation) for conversation in ordered]

    async def create(self, end_user_id: int, merchant_id: int) -> FakeConversation:
        now = self.store.now()
        conversation = FakeConversation(
            id=self.store.new_conversation_id(),
            end_user_id=end_user_id,
            merchant_id=merchant_id,
            assigned_to_id=None,
            started_at=now,
            updated_at=now,
        )
        self.store.conversations[conversation.id] = conversation
        return conversation

    async def assign(self, conversation: FakeConversation, staff_id: int) -> None:
        conversation.assigned_to_id = staff_id
        conversation.updated_at = self.store.now()

    async def claim_if_unassigned(self, conversation: FakeConversation, staff_id: int) -> bool:
        self.claim_attempts += 1
        if conversation.assigned_to_id is not None:
            return False
        conversation.assigned_to_id = staff_id
        return True

    async def touch(self, conversation: FakeConversation) -> None:
        conversation.updated_at = self.store.now()


class FakeMessageRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def create(self, conversation_id: int, sender_id: int, text: str) -> FakeMessage:
        message = FakeMessage(
            id=self.store.new_message_id(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            text=text,
            sent_at=self.store.now(),
        )
        self.store.messages.append(message)
        return message

    async def list_by_conversation(self, conversation_id: int) -> list[FakeMessage]:
        messages = [
            message
            for message in self.store.messages
            if message.conversation_id == conversation_id
        ]
        for message in messages:
            message.sender = self.store.users.get(message.sender_id)
        return sorted(messages, key=lambda message: (message.sent_at, message.id))

    async def latest_by_conversation(self, conversation_ids: list[int]) -> dict[int, FakeMessage]:
        latest: dict[int, FakeMessage] = {}
        for message in self.store.messages:
            if message.conversation_id not in conversation_ids:
                continue
            current = latest.get(message.conversation_id)
            if current is None or (message.sent_at, message.id) > (current.sent_at, current.id):
                latest[message.conversation_id] = message
        return latest


@dataclass(slots=True)
class PublishedEvent:
    channels: list[str]
    event: RealtimeEvent
    payload: dict[str, Any]


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[PublishedEvent] = []

    async def publish(
        self,
        channels: Sequence[str],
        event: RealtimeEvent,
        payload: Mapping[str, Any],
    ) -> None:
        self.events.append(PublishedEvent(list(channels), event, dict(payload)))

    def of(self, event: RealtimeEvent) -> list[PublishedEvent]:
        return [published for published in self.events if published.event == event]


class FailingPublisher:
    async def publish(
        self,
        channels: Sequence[str],
        event: RealtimeEvent,
        payload: Mapping[str, Any],
    ) -> None:
        raise RuntimeError("socket layer unavailable")


class FakeWebSocket:
    def __init__(self, fail_on_send: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.accepted = False
        self.fail_on_send = fail_on_send

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail_on_send:
            raise RuntimeError("connection closed")
        self.sent.append(data)

    def events(self) -> list[str]:
        return [envelope["event"] for envelope in self.sent]


def caller_for(user: FakeUser) -> Caller:
    return Caller(
        user_id=user.id,
        kind=user.kind,
        role=user.role,
        merchant_id=user.merchant_id,
    )


@dataclass(slots=True)
class World:
    store: FakeStore
    session: DummySession
    publisher: RecordingPublisher
    merchants: FakeMerchantRepository
    users: FakeUserRepository
    conversations: FakeConversationRepository
    messages: FakeMessageRepository
    techstore: FakeMerchant
    fashion: FakeMerchant
    john: FakeUser
    sarah: FakeUser
    tech_admin: FakeUser
    tech_manager: FakeUser
    tech_staff: FakeUser
    tech_staff_two: FakeUser
    fashion_admin: FakeUser
    fashion_staff: FakeUser


def build_world(next_conversation_id: int = 7) -> World:
    store = FakeStore(next_conversation_id=next_conversation_id)
    techstore = store.add_merchant(1, "TechStore Inc.")
    fashion = store.add_merchant(2, "Fashion Outlet")

    def end_user(user_id: int, name: str, email: str) -> FakeUser:
        return store.add_user(
            FakeUser(id=user_id, name=name, email=email, kind=AccountKind.END_USER)
        )

    def staff(user_id: int, name: str, email: str, role: StaffRole, merchant_id: int) -> FakeUser:
        return store.add_user(
            FakeUser(
                id=user_id,
                name=name,
                email=email,
                kind=AccountKind.MERCHANT_STAFF,
                role=role,
                merchant_id=merchant_id,
            )
        )

    return World(
        store=store,
        session=DummySession(),
        publisher=RecordingPublisher(),
        merchants=FakeMerchantRepository(store),
        users=FakeUserRepository(store),
        conversations=FakeConversationRepository(store),
        messages=FakeMessageRepository(store),
        techstore=techstore,
        fashion=fashion,
        john=end_user(1, "John Customer", "john@example.com"),
        sarah=end_user(2, "Sarah Buyer", "sarah@example.com"),
        tech_admin=staff(3, "Admin Smith", "admin@techstore.com", StaffRole.ADMIN, 1),
        tech_manager=staff(4, "Mike Manager", "manager@techstore.com", StaffRole.MANAGER, 1),
        tech_staff=staff(5, "Steve Support", "staff1@techstore.com", StaffRole.STAFF, 1),
        tech_staff_two=staff(6, "Dana Support", "staff2@techstore.com", StaffRole.STAFF, 1),
        fashion_admin=staff(7, "Fashion Admin", "admin@fashion.com", StaffRole.ADMIN, 2),
        fashion_staff=staff(8, "Taylor Rep", "staff@fashion.com", StaffRole.STAFF, 2),
    )
