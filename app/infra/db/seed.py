import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.domain.enums import AccountKind, StaffRole
from app.infra.db.models import Conversation, Merchant, Message, User
from app.infra.db.repositories import MerchantRepository

logger = logging.getLogger(__name__)

DEFAULT_MERCHANTS: list[str] = ["TechStore Inc.", "Fashion Outlet"]

DEFAULT_ACCOUNTS: list[dict[str, str | None]] = [
    {
        "name": "John Customer",
        "email": "john@example.com",
        "password": "password123",
        "kind": "end_user",
        "role": None,
        "merchant": None,
    },
    {
        "name": "Sarah Buyer",
        "email": "sarah@example.com",
        "password": "password123",
        "kind": "end_user",
        "role": None,
        "merchant": None,
    },
    {
        "name": "Admin Smith",
        "email": "admin@techstore.com",
        "password": "admin123",
        "kind": "merchant_staff",
        "role": "admin",
        "merchant": "TechStore Inc.",
    },
    {
        "name": "Mike Manager",
        "email": "manager@techstore.com",
        "password": "manager123",
        "kind": "merchant_staff",
        "role": "manager",
        "merchant": "TechStore Inc.",
    },
    {
        "name": "Steve Support",
        "email": "staff1@techstore.com",
        "password": "staff123",
        "kind": "merchant_staff",
        "role": "staff",
        "merchant": "TechStore Inc.",
    },
    {
        "name": "Fashion Admin",
        "email": "admin@fashion.com",
        "password": "admin123",
        "kind": "merchant_staff",
        "role": "admin",
        "merchant": "Fashion Outlet",
    },
    {
        "name": "Taylor Rep",
        "email": "staff@fashion.com",
        "password": "staff123",
        "kind": "merchant_staff",
        "role": "staff",
        "merchant": "Fashion Outlet",
    },
]

# (end user email, merchant name, assignee email, [(sender email, text), ...])
DEFAULT_CONVERSATIONS: list[tuple[str, str, str | None, list[tuple[str, str]]]] = [
    (
        "john@example.com",
        "TechStore Inc.",
        "staff1@techstore.com",
        [
            ("john@example.com", "Hello, I have a question about my recent order #12345."),
            (
                "staff1@techstore.com",
                "Hi John, this is Steve from TechStore. How can I help you with your order today?",
            ),
            ("john@example.com", "I ordered a laptop but received a tablet instead."),
        ],
    ),
    (
        "sarah@example.com",
        "Fashion Outlet",
        "staff@fashion.com",
        [
            ("sarah@example.com", "Do you have the blue dress in size medium?"),
            ("staff@fashion.com", "Hi Sarah, this is Taylor. Let me check our inventory for you."),
        ],
    ),
    (
        "john@example.com",
        "Fashion Outlet",
        None,
        [("john@example.com", "I need to return an item I purchased last week.")],
    ),
]


async def seed_default_merchants(session: AsyncSession) -> dict[str, Merchant]:
    existing_rows = await session.execute(select(Merchant))
    by_name = {merchant.name: merchant for merchant in existing_rows.scalars().all()}

    merchants = MerchantRepository(session)
    for name in DEFAULT_MERCHANTS:
        if name in by_name:
            continue
        by_name[name] = await merchants.create(name)

    return by_name


async def seed_default_accounts(
    session: AsyncSession, merchants: dict[str, Merchant]
) -> dict[str, User]:
    existing_rows = await session.execute(select(User))
    by_email = {user.email: user for user in existing_rows.scalars().all()}

    for item in DEFAULT_ACCOUNTS:
        email = str(item["email"]).strip().lower()
        if email in by_email:
            continue

        merchant_name = item["merchant"]
        user = User(
            name=str(item["name"]),
            email=email,
            password_hash=hash_password(str(item["password"])),
            kind=AccountKind(item["kind"]),
            role=StaffRole(item["role"]) if item["role"] else None,
            merchant_id=merchants[merchant_name].id if merchant_name else None,
        )
        session.add(user)
        await session.flush()
        by_email[email] = user

    return by_email


async def seed_default_conversations(
    session: AsyncSession,
    merchants: dict[str, Merchant],
    users: dict[str, User],
) -> None:
    existing = await session.execute(select(func.count(Conversation.id)))
    if existing.scalar_one():
        return

    base_time = datetime.now(UTC) - timedelta(hours=1)
    for end_user_email, merchant_name, assignee_email, lines in DEFAULT_CONVERSATIONS:
        conversation = Conversation(
            end_user_id=users[end_user_email].id,
            merchant_id=merchants[merchant_name].id,
            assigned_to_id=users[assignee_email].id if assignee_email else None,
        )
        session.add(conversation)
        await session.flush()

        for offset, (sender_email, text) in enumerate(lines):
            session.add(
                Message(
                    conversation_id=conversation.id,
                    sender_id=users[sender_email].id,
                    text=text,
                    sent_at=base_time + timedelta(minutes=offset),
                )
            )
        await session.flush()


async def seed_defaults(session: AsyncSession) -> None:
    merchants = await seed_default_merchants(session)
    users = await seed_default_accounts(session, merchants)
    await seed_default_conversations(session, merchants, users)
    logger.info(
        "Seeded %d merchants and %d accounts", len(merchants), len(users)
    )
