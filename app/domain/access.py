"""Authorization predicates shared by the HTTP handlers and the realtime join path."""

from dataclasses import dataclass
from typing import Protocol

from app.domain.enums import AccountKind, StaffRole

ASSIGNING_ROLES = frozenset({StaffRole.ADMIN, StaffRole.MANAGER})


@dataclass(frozen=True, slots=True)
class Caller:
    user_id: int
    kind: AccountKind
    role: StaffRole | None = None
    merchant_id: int | None = None


class TenantScoped(Protocol):
    end_user_id: int
    merchant_id: int


def is_end_user(caller: Caller) -> bool:
    return caller.kind == AccountKind.END_USER


def is_merchant_staff(caller: Caller) -> bool:
    return caller.kind == AccountKind.MERCHANT_STAFF and caller.merchant_id is not None


def has_access(caller: Caller, conversation: TenantScoped) -> bool:
    if is_end_user(caller):
        return conversation.end_user_id == caller.user_id
    if is_merchant_staff(caller):
        return conversation.merchant_id == caller.merchant_id
    return False


def can_assign(caller: Caller) -> bool:
    return is_merchant_staff(caller) and caller.role in ASSIGNING_ROLES


def can_manage_staff(caller: Caller) -> bool:
    return can_assign(caller)
