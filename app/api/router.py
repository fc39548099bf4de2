from fastapi import APIRouter

from app.api.v1.routes import auth, conversations, health, merchants, realtime, staff

api_router = APIRouter()
api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
api_router.include_router(merchants.router, prefix="/v1/merchants", tags=["merchants"])
api_router.include_router(
    conversations.router, prefix="/v1/conversations", tags=["conversations"]
)
api_router.include_router(staff.router, prefix="/v1/staff", tags=["staff"])
api_router.include_router(realtime.router, prefix="/v1/realtime", tags=["realtime"])
