from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_caller
from app.core.db import get_db_session
from app.schemas.merchant import MerchantResponse
from app.services.staff_service import MerchantService

router = APIRouter()


async def get_merchant_service(
    session: AsyncSession = Depends(get_db_session),
) -> MerchantService:
    return MerchantService(session=session)


@router.get(
    "",
    response_model=list[MerchantResponse],
    dependencies=[Depends(get_current_caller)],
)
async def list_merchants(
    service: MerchantService = Depends(get_merchant_service),
) -> list[MerchantResponse]:
    merchants = await service.list_merchants()
    return [MerchantResponse.model_validate(merchant) for merchant in merchants]
