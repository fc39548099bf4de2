import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import create_access_token, hash_password, verify_password
from app.domain.enums import AccountKind, StaffRole
from app.infra.db.models import User
from app.infra.db.repositories import MerchantRepository, UserRepository
from app.services.errors import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    InvalidRegistrationError,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthSession:
    access_token: str
    token_type: str
    expires_at: datetime
    user: User


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        users: UserRepository | None = None,
        merchants: MerchantRepository | None = None,
    ) -> None:
        self.session = session
        self.users = users or UserRepository(session)
        self.merchants = merchants or MerchantRepository(session)
        self.settings = get_settings()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        kind: AccountKind,
        role: StaffRole | None = None,
        merchant_id: int | None = None,
    ) -> AuthSession:
        normalized_email = email.strip().lower()
        if await self.users.get_by_email(normalized_email) is not None:
            raise EmailAlreadyRegisteredError(normalized_email)

        if kind == AccountKind.MERCHANT_STAFF:
            if role is None:
                raise InvalidRegistrationError("Role is required for merchant staff")
            if merchant_id is None:
                raise InvalidRegistrationError("Merchant ID is required for merchant staff")
            if await self.merchants.get_by_id(merchant_id) is None:
                raise InvalidRegistrationError(f"Merchant '{merchant_id}' not found")
        else:
            # End users never carry a role or merchant affiliation.
            role = None
            merchant_id = None

        user = await self.users.create(
            name=name.strip(),
            email=normalized_email,
            password_hash=hash_password(password),
            kind=kind,
            role=role,
            merchant_id=merchant_id,
        )
        await self.session.commit()
        await self.session.refresh(user)

        logger.info("Registered %s account %s", user.kind.value, user.id)
        return self._issue(user)

    async def login(self, email: str, password: str) -> AuthSession:
        normalized_email = email.strip().lower()
        if not normalized_email:
            raise AuthenticationError()

        user = await self.users.get_by_email(normalized_email)
        if user is None:
            raise AuthenticationError()
        if not verify_password(password, user.password_hash):
            raise AuthenticationError()

        return self._issue(user)

    async def get_profile(self, user_id: int) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("Account no longer exists")
        return user

    def _issue(self, user: User) -> AuthSession:
        token, expires_at = create_access_token(
            user_id=user.id,
            kind=user.kind,
            role=user.role,
            merchant_id=user.merchant_id,
            secret=self.settings.auth_secret,
            ttl_minutes=self.settings.auth_token_ttl_minutes,
        )
        return AuthSession(
            access_token=token,
            token_type="bearer",
            expires_at=expires_at,
            user=user,
        )
