from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_caller
from app.api.errors import SERVICE_ERRORS, raise_for_service_error
from app.core.db import get_db_session
from app.domain.access import Caller
from app.schemas.staff import (
    CreateStaffRequest,
    DeleteStaffResponse,
    StaffResponse,
    UpdateStaffRequest,
)
from app.services.staff_service import StaffService

router = APIRouter()


async def get_staff_service(
    session: AsyncSession = Depends(get_db_session),
) -> StaffService:
    return StaffService(session=session)


@router.get("", response_model=list[StaffResponse])
async def list_staff(
    service: StaffService = Depends(get_staff_service),
    caller: Caller = Depends(get_current_caller),
) -> list[StaffResponse]:
    try:
        staff_members = await service.list_staff(caller)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return [StaffResponse.model_validate(staff) for staff in staff_members]


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(
    payload: CreateStaffRequest,
    service: StaffService = Depends(get_staff_service),
    caller: Caller = Depends(get_current_caller),
) -> StaffResponse:
    try:
        staff = await service.create_staff(
            caller,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            merchant_id=payload.merchant_id,
        )
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return StaffResponse.model_validate(staff)


@router.put("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: int,
    payload: UpdateStaffRequest,
    service: StaffService = Depends(get_staff_service),
    caller: Caller = Depends(get_current_caller),
) -> StaffResponse:
    try:
        staff = await service.update_staff(
            caller,
            staff_id,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
        )
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return StaffResponse.model_validate(staff)


@router.delete("/{staff_id}", response_model=DeleteStaffResponse)
async def delete_staff(
    staff_id: int,
    service: StaffService = Depends(get_staff_service),
    caller: Caller = Depends(get_current_caller),
) -> DeleteStaffResponse:
    try:
        await service.delete_staff(caller, staff_id)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return DeleteStaffResponse()
