from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.db import get_db_session
from app.core.rate_limit import InMemoryRateLimiter, RateLimitRule, message_send_key
from app.core.security import decode_access_token
from app.domain.access import Caller
from app.infra.db.models import User
from app.infra.db.repositories import UserRepository
from app.infra.realtime.publisher import RealtimePublisher

bearer_scheme = HTTPBearer(auto_error=False)


def caller_from_user(user: User) -> Caller:
    return Caller(
        user_id=user.id,
        kind=user.kind,
        role=user.role,
        merchant_id=user.merchant_id,
    )


async def authenticate_token(token: str, session: AsyncSession) -> Caller:
    """Resolve a bearer token to the caller identity; raises ``ValueError``."""
    claims = decode_access_token(token, get_settings().auth_secret)
    user = await UserRepository(session).get_by_id(claims.user_id)
    if user is None or user.kind != claims.kind:
        raise ValueError("Account no longer exists")
    return caller_from_user(user)


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> Caller:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await authenticate_token(credentials.credentials, session)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_realtime_publisher(request: Request) -> RealtimePublisher | None:
    return getattr(request.app.state, "realtime_hub", None)


async def enforce_message_rate_limit(
    request: Request,
    caller: Caller = Depends(get_current_caller),
) -> None:
    limiter: InMemoryRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    rule = RateLimitRule.for_messages(get_settings())
    if not await limiter.allow(message_send_key(caller.user_id), rule):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many messages. Please slow down.",
        )
