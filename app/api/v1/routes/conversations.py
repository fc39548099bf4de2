from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import enforce_message_rate_limit, get_current_caller, get_realtime_publisher
from app.api.errors import SERVICE_ERRORS, raise_for_service_error
from app.core.db import get_db_session
from app.domain.access import Caller, is_end_user
from app.infra.realtime.publisher import RealtimePublisher
from app.schemas.conversation import (
    AssignConversationRequest,
    AssignConversationResponse,
    ConversationDetailResponse,
    ConversationListResponse,
    EndUserConversationSummary,
    StaffConversationSummary,
    StartConversationRequest,
    StartConversationResponse,
)
from app.schemas.message import MessageResponse, SendMessageRequest, SendMessageResponse
from app.services.conversation_service import (
    ConversationDetail,
    ConversationService,
    ConversationSummary,
)
from app.services.message_service import MessageService

router = APIRouter()


async def get_conversation_service(
    session: AsyncSession = Depends(get_db_session),
    realtime: RealtimePublisher | None = Depends(get_realtime_publisher),
) -> ConversationService:
    return ConversationService(session=session, realtime=realtime)


async def get_message_service(
    session: AsyncSession = Depends(get_db_session),
    realtime: RealtimePublisher | None = Depends(get_realtime_publisher),
) -> MessageService:
    return MessageService(session=session, realtime=realtime)


def _to_end_user_summary(summary: ConversationSummary) -> EndUserConversationSummary:
    conversation = summary.conversation
    return EndUserConversationSummary(
        id=conversation.id,
        merchant_id=conversation.merchant_id,
        merchant_name=conversation.merchant.name,
        last_message=summary.last_message.text if summary.last_message else None,
        last_message_time=summary.last_message.sent_at if summary.last_message else None,
        assigned_to_name=conversation.assigned_to.name if conversation.assigned_to else None,
        started_at=conversation.started_at,
        updated_at=conversation.updated_at,
    )


def _to_staff_summary(summary: ConversationSummary) -> StaffConversationSummary:
    conversation = summary.conversation
    return StaffConversationSummary(
        id=conversation.id,
        end_user_id=conversation.end_user_id,
        end_user_name=conversation.end_user.name,
        last_message=summary.last_message.text if summary.last_message else None,
        last_message_time=summary.last_message.sent_at if summary.last_message else None,
        assigned_to_id=conversation.assigned_to_id,
        assigned_to_name=conversation.assigned_to.name if conversation.assigned_to else None,
        started_at=conversation.started_at,
        updated_at=conversation.updated_at,
    )


def _to_detail_response(result: ConversationDetail) -> ConversationDetailResponse:
    conversation = result.conversation
    return ConversationDetailResponse(
        id=conversation.id,
        end_user_id=conversation.end_user_id,
        end_user_name=conversation.end_user.name,
        merchant_id=conversation.merchant_id,
        merchant_name=conversation.merchant.name,
        assigned_to_id=conversation.assigned_to_id,
        assigned_to_name=conversation.assigned_to.name if conversation.assigned_to else None,
        started_at=conversation.started_at,
        updated_at=conversation.updated_at,
        messages=[
            MessageResponse(
                id=message.id,
                conversation_id=message.conversation_id,
                sender_id=message.sender_id,
                sender_name=message.sender.name,
                text=message.text,
                sent_at=message.sent_at,
                is_merchant_staff=message.sender.is_merchant_staff,
            )
            for message in result.messages
        ],
    )


@router.post(
    "",
    response_model=StartConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_conversation(
    payload: StartConversationRequest,
    service: ConversationService = Depends(get_conversation_service),
    caller: Caller = Depends(get_current_caller),
) -> StartConversationResponse:
    try:
        conversation = await service.start_conversation(caller, payload.merchant_id)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return StartConversationResponse(conversation_id=conversation.id)


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    service: ConversationService = Depends(get_conversation_service),
    caller: Caller = Depends(get_current_caller),
) -> ConversationListResponse:
    try:
        summaries = await service.list_conversations(caller)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)

    to_summary = _to_end_user_summary if is_end_user(caller) else _to_staff_summary
    return ConversationListResponse(items=[to_summary(summary) for summary in summaries])


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: int,
    service: ConversationService = Depends(get_conversation_service),
    caller: Caller = Depends(get_current_caller),
) -> ConversationDetailResponse:
    try:
        result = await service.get_conversation_detail(caller, conversation_id)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return _to_detail_response(result)


@router.post(
    "/{conversation_id}/messages",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_message_rate_limit)],
)
async def send_message(
    conversation_id: int,
    payload: SendMessageRequest,
    service: MessageService = Depends(get_message_service),
    caller: Caller = Depends(get_current_caller),
) -> SendMessageResponse:
    try:
        result = await service.send_message(caller, conversation_id, payload.text)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return SendMessageResponse(message_id=result.message.id)


@router.put("/{conversation_id}/assign", response_model=AssignConversationResponse)
async def assign_conversation(
    conversation_id: int,
    payload: AssignConversationRequest,
    service: ConversationService = Depends(get_conversation_service),
    caller: Caller = Depends(get_current_caller),
) -> AssignConversationResponse:
    try:
        result = await service.assign_conversation(caller, conversation_id, payload.staff_id)
    except SERVICE_ERRORS as exc:
        raise_for_service_error(exc)
    return AssignConversationResponse(staff_id=result.staff.id, staff_name=result.staff.name)
