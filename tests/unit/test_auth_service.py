import pytest

from app.core.security import decode_access_token
from app.domain.enums import AccountKind, StaffRole
from app.services.auth_service import AuthService
from app.services.errors import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    InvalidRegistrationError,
)
from tests.fakes import World, build_world


def auth_service(world: World) -> AuthService:
    return AuthService(
        session=world.session,  # type: ignore[arg-type]
        users=world.users,  # type: ignore[arg-type]
        merchants=world.merchants,  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_register_end_user_drops_affiliation() -> None:
    world = build_world()
    service = auth_service(world)

    session = await service.register(
        name="Nina Shopper",
        email="Nina@Example.com",
        password="password123",
        kind=AccountKind.END_USER,
        role=StaffRole.ADMIN,
        merchant_id=world.techstore.id,
    )

    assert session.token_type == "bearer"
    assert session.user.email == "nina@example.com"
    assert session.user.role is None
    assert session.user.merchant_id is None

    claims = decode_access_token(session.access_token, service.settings.auth_secret)
    assert claims.user_id == session.user.id
    assert claims.kind == AccountKind.END_USER


@pytest.mark.asyncio
async def test_register_staff_requires_role_and_merchant() -> None:
    world = build_world()
    service = auth_service(world)

    with pytest.raises(InvalidRegistrationError):
        await service.register(
            name="No Role",
            email="norole@techstore.com",
            password="password123",
            kind=AccountKind.MERCHANT_STAFF,
            merchant_id=world.techstore.id,
        )
    with pytest.raises(InvalidRegistrationError):
        await service.register(
            name="No Merchant",
            email="nomerchant@techstore.com",
            password="password123",
            kind=AccountKind.MERCHANT_STAFF,
            role=StaffRole.STAFF,
        )
    with pytest.raises(InvalidRegistrationError):
        await service.register(
            name="Ghost Merchant",
            email="ghost@techstore.com",
            password="password123",
            kind=AccountKind.MERCHANT_STAFF,
            role=StaffRole.STAFF,
            merchant_id=99,
        )


@pytest.mark.asyncio
async def test_register_duplicate_email() -> None:
    world = build_world()

    with pytest.raises(EmailAlreadyRegisteredError):
        await auth_service(world).register(
            name="Again",
            email="JOHN@example.com",
            password="password123",
            kind=AccountKind.END_USER,
        )


@pytest.mark.asyncio
async def test_login_with_registered_credentials() -> None:
    world = build_world()
    service = auth_service(world)
    await service.register(
        name="Staff Person",
        email="person@techstore.com",
        password="secret-pass",
        kind=AccountKind.MERCHANT_STAFF,
        role=StaffRole.MANAGER,
        merchant_id=world.techstore.id,
    )

    session = await service.login(" Person@TechStore.com ", "secret-pass")

    claims = decode_access_token(session.access_token, service.settings.auth_secret)
    assert claims.role == StaffRole.MANAGER
    assert claims.merchant_id == world.techstore.id


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable() -> None:
    world = build_world()
    service = auth_service(world)
    await service.register(
        name="Someone",
        email="someone@example.com",
        password="right-password",
        kind=AccountKind.END_USER,
    )

    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await service.login("someone@example.com", "wrong-password")
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await service.login("nobody@example.com", "right-password")


@pytest.mark.asyncio
async def test_profile_of_deleted_account() -> None:
    world = build_world()

    with pytest.raises(AuthenticationError):
        await auth_service(world).get_profile(12345)
