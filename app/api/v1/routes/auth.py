from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_caller
from app.api.errors import SERVICE_ERRORS, raise_for_service_error
from app.core.db import get_db_session
from app.domain.access import Caller
from app.schemas.auth import AuthSessionResponse, LoginRequest, RegisterRequest, UserResponse
from app.services.auth_service import AuthService, AuthSession

router = APIRouter()


async def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
) -> AuthService:
    return AuthService(session=session)


def _to_session_response(result: AuthSession) -> AuthSessionResponse:
    return AuthSessionResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_at=result.expires_at,
        user=UserResponse.model_validate(result.user),
    )


@router.post(
    "/register",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthSessionResponse:
    try:
        result = await service.register(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            kind=payload.kind,
            role=payload.role,
            merchant_id=payload.merchant_id,
        )
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return _to_session_response(result)


@router.post("/login", response_model=AuthSessionResponse)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthSessionResponse:
    try:
        result = await service.login(email=payload.email, password=payload.password)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return _to_session_response(result)


@router.get("/me", response_model=UserResponse)
async def get_profile(
    service: AuthService = Depends(get_auth_service),
    caller: Caller = Depends(get_current_caller),
) -> UserResponse:
    try:
        user = await service.get_profile(caller.user_id)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return UserResponse.model_validate(user)
