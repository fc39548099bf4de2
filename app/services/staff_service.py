import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.domain.access import Caller, can_manage_staff
from app.domain.enums import AccountKind, StaffRole
from app.infra.db.models import Merchant, User
from app.infra.db.repositories import MerchantRepository, UserRepository
from app.services.errors import (
    CallerNotAllowedError,
    EmailAlreadyRegisteredError,
    MerchantNotFoundError,
    SelfDeletionError,
    StaffInUseError,
    StaffNotFoundError,
)

logger = logging.getLogger(__name__)


class MerchantService:
    def __init__(
        self,
        session: AsyncSession,
        merchants: MerchantRepository | None = None,
    ) -> None:
        self.session = session
        self.merchants = merchants or MerchantRepository(session)

    async def list_merchants(self) -> list[Merchant]:
        return await self.merchants.list_all()


class StaffService:
    """Staff management, restricted to admins and managers of the same merchant."""

    def __init__(
        self,
        session: AsyncSession,
        users: UserRepository | None = None,
        merchants: MerchantRepository | None = None,
    ) -> None:
        self.session = session
        self.users = users or UserRepository(session)
        self.merchants = merchants or MerchantRepository(session)

    async def list_staff(self, caller: Caller) -> list[User]:
        self._assert_manager(caller)
        return await self.users.list_staff(caller.merchant_id)

    async def create_staff(
        self,
        caller: Caller,
        name: str,
        email: str,
        password: str,
        role: StaffRole,
        merchant_id: int,
    ) -> User:
        self._assert_manager(caller)
        if merchant_id != caller.merchant_id:
            raise CallerNotAllowedError("Not authorized to create staff for this merchant")
        if await self.merchants.get_by_id(merchant_id) is None:
            raise MerchantNotFoundError(merchant_id)

        normalized_email = email.strip().lower()
        if await self.users.get_by_email(normalized_email) is not None:
            raise EmailAlreadyRegisteredError(normalized_email)

        staff = await self.users.create(
            name=name.strip(),
            email=normalized_email,
            password_hash=hash_password(password),
            kind=AccountKind.MERCHANT_STAFF,
            role=role,
            merchant_id=merchant_id,
        )
        await self.session.commit()
        await self.session.refresh(staff)

        logger.info("Staff %s created in merchant %s by %s", staff.id, merchant_id, caller.user_id)
        return staff

    async def update_staff(
        self,
        caller: Caller,
        staff_id: int,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
        role: StaffRole | None = None,
    ) -> User:
        staff = await self._get_staff_for_caller(caller, staff_id)

        if name:
            staff.name = name.strip()
        if email:
            normalized_email = email.strip().lower()
            existing = await self.users.get_by_email(normalized_email)
            if existing is not None and existing.id != staff.id:
                raise EmailAlreadyRegisteredError(normalized_email)
            staff.email = normalized_email
        if password:
            staff.password_hash = hash_password(password)
        if role is not None:
            staff.role = role

        await self.session.commit()
        await self.session.refresh(staff)
        return staff

    async def delete_staff(self, caller: Caller, staff_id: int) -> None:
        staff = await self._get_staff_for_caller(caller, staff_id)
        if staff.id == caller.user_id:
            raise SelfDeletionError()
        # Assignments never revert to unassigned, and messages keep their sender.
        if await self.users.has_conversation_history(staff.id):
            raise StaffInUseError(staff.id)

        await self.users.delete(staff)
        await self.session.commit()
        logger.info("Staff %s deleted by %s", staff_id, caller.user_id)

    async def _get_staff_for_caller(self, caller: Caller, staff_id: int) -> User:
        self._assert_manager(caller)
        staff = await self.users.get_by_id(staff_id)
        if staff is None or staff.kind != AccountKind.MERCHANT_STAFF:
            raise StaffNotFoundError(staff_id)
        if staff.merchant_id != caller.merchant_id:
            raise CallerNotAllowedError("Not authorized to manage this staff member")
        return staff

    @staticmethod
    def _assert_manager(caller: Caller) -> None:
        if not can_manage_staff(caller):
            raise CallerNotAllowedError("Only admins and managers can perform this action")
