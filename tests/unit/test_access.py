from dataclasses import dataclass

from app.domain.access import (
    Caller,
    can_assign,
    can_manage_staff,
    has_access,
    is_end_user,
    is_merchant_staff,
)
from app.domain.enums import AccountKind, StaffRole


@dataclass(slots=True)
class Scoped:
    end_user_id: int
    merchant_id: int


END_USER = Caller(user_id=1, kind=AccountKind.END_USER)
OTHER_END_USER = Caller(user_id=2, kind=AccountKind.END_USER)
STAFF = Caller(user_id=5, kind=AccountKind.MERCHANT_STAFF, role=StaffRole.STAFF, merchant_id=1)
MANAGER = Caller(user_id=4, kind=AccountKind.MERCHANT_STAFF, role=StaffRole.MANAGER, merchant_id=1)
ADMIN = Caller(user_id=3, kind=AccountKind.MERCHANT_STAFF, role=StaffRole.ADMIN, merchant_id=1)
OTHER_ADMIN = Caller(user_id=7, kind=AccountKind.MERCHANT_STAFF, role=StaffRole.ADMIN, merchant_id=2)


def test_end_user_sees_only_own_conversations() -> None:
    conversation = Scoped(end_user_id=1, merchant_id=1)

    assert has_access(END_USER, conversation)
    assert not has_access(OTHER_END_USER, conversation)


def test_staff_sees_conversations_of_own_merchant() -> None:
    conversation = Scoped(end_user_id=1, merchant_id=1)

    assert has_access(STAFF, conversation)
    assert has_access(ADMIN, conversation)
    assert not has_access(OTHER_ADMIN, conversation)


def test_staff_without_merchant_has_no_access() -> None:
    orphan = Caller(user_id=9, kind=AccountKind.MERCHANT_STAFF, role=StaffRole.ADMIN)

    assert not is_merchant_staff(orphan)
    assert not has_access(orphan, Scoped(end_user_id=1, merchant_id=1))
    assert not can_assign(orphan)


def test_end_user_id_does_not_grant_staff_access() -> None:
    # Staff id colliding with an end user id must not matter.
    staff = Caller(user_id=1, kind=AccountKind.MERCHANT_STAFF, role=StaffRole.STAFF, merchant_id=2)

    assert not has_access(staff, Scoped(end_user_id=1, merchant_id=1))


def test_only_admins_and_managers_can_assign() -> None:
    assert can_assign(ADMIN)
    assert can_assign(MANAGER)
    assert not can_assign(STAFF)
    assert not can_assign(END_USER)
    assert can_manage_staff(MANAGER)
    assert not can_manage_staff(STAFF)


def test_kind_predicates() -> None:
    assert is_end_user(END_USER)
    assert not is_end_user(STAFF)
    assert is_merchant_staff(STAFF)
