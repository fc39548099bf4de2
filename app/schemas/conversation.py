from datetime import datetime

from pydantic import BaseModel

from app.schemas.message import MessageResponse


class StartConversationRequest(BaseModel):
    merchant_id: int


class StartConversationResponse(BaseModel):
    conversation_id: int


class EndUserConversationSummary(BaseModel):
    id: int
    merchant_id: int
    merchant_name: str
    last_message: str | None
    last_message_time: datetime | None
    assigned_to_name: str | None
    started_at: datetime
    updated_at: datetime


class StaffConversationSummary(BaseModel):
    id: int
    end_user_id: int
    end_user_name: str
    last_message: str | None
    last_message_time: datetime | None
    assigned_to_id: int | None
    assigned_to_name: str | None
    started_at: datetime
    updated_at: datetime


class ConversationListResponse(BaseModel):
    items: list[EndUserConversationSummary | StaffConversationSummary]


class ConversationDetailResponse(BaseModel):
    id: int
    end_user_id: int
    end_user_name: str
    merchant_id: int
    merchant_name: str
    assigned_to_id: int | None
    assigned_to_name: str | None
    started_at: datetime
    updated_at: datetime
    messages: list[MessageResponse]


class AssignConversationRequest(BaseModel):
    staff_id: int


class AssignConversationResponse(BaseModel):
    staff_id: int
    staff_name: str
