import json
import logging
from enum import Enum
from typing import Any

from fastapi import APIRouter, WebSocket
from sqlalchemy.exc import SQLAlchemyError
from starlette.websockets import WebSocketDisconnect

from app.api.deps import authenticate_token
from app.core.db import get_session_factory
from app.infra.realtime.events import ControlEvent, RealtimeEvent
from app.infra.realtime.hub import build_envelope
from app.services.errors import ConversationAccessDeniedError, ConversationNotFoundError
from app.services.realtime_service import RealtimeSubscriptionService

router = APIRouter()
logger = logging.getLogger(__name__)


def _parse_conversation_id(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


async def _send(websocket: WebSocket, event: Enum, payload: dict[str, Any]) -> None:
    await websocket.send_json(build_envelope(event, payload))


async def _send_error(websocket: WebSocket, reason: str) -> None:
    await _send(websocket, RealtimeEvent.ERROR, {"reason": reason})


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket) -> None:
    hub = getattr(websocket.app.state, "realtime_hub", None)
    if hub is None:
        await websocket.close(code=1011, reason="Realtime hub not initialized")
        return

    try:
        session_factory = get_session_factory()
    except RuntimeError:
        await websocket.close(code=1011, reason="Database session is not initialized")
        return

    access_token = websocket.query_params.get("access_token", "").strip()
    if not access_token:
        await websocket.close(code=1008, reason="Token not provided")
        return

    async with session_factory() as session:
        try:
            caller = await authenticate_token(access_token, session)
        except ValueError:
            await websocket.close(code=1008, reason="Invalid or expired token")
            return

    await hub.connect(websocket)
    await _send(
        websocket,
        ControlEvent.CONNECTED,
        {"user_id": caller.user_id, "kind": caller.kind.value},
    )
    logger.info("Realtime connection opened for user %s", caller.user_id)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            raw_message = frame.get("text")
            if raw_message is None:
                await _send_error(websocket, "Expected text frame")
                continue
            if raw_message.strip().lower() == "ping":
                await _send(websocket, ControlEvent.PONG, {})
                continue

            try:
                message = json.loads(raw_message)
            except json.JSONDecodeError:
                await _send_error(websocket, "Expected JSON payload")
                continue
            if not isinstance(message, dict):
                await _send_error(websocket, "Expected JSON object")
                continue

            action = message.get("action")
            if action == "ping":
                await _send(websocket, ControlEvent.PONG, {})
                continue

            if action not in ("join", "leave"):
                await _send_error(websocket, "Unsupported action")
                continue

            conversation_id = _parse_conversation_id(message.get("conversation_id"))
            if conversation_id is None:
                await _send_error(websocket, "Invalid conversation_id")
                continue

            async with session_factory() as session:
                service = RealtimeSubscriptionService(session=session, hub=hub)
                if action == "leave":
                    channel = await service.leave(websocket, conversation_id)
                    await _send(
                        websocket,
                        ControlEvent.LEFT,
                        {"conversation_id": conversation_id, "channel": channel},
                    )
                    continue

                try:
                    channel = await service.join(websocket, caller, conversation_id)
                except (ConversationNotFoundError, ConversationAccessDeniedError) as exc:
                    await _send_error(websocket, str(exc))
                    continue
                except SQLAlchemyError:
                    logger.exception("Failed to join conversation %s", conversation_id)
                    await _send_error(websocket, "Failed to join conversation")
                    continue

            await _send(
                websocket,
                ControlEvent.JOINED,
                {"conversation_id": conversation_id, "channel": channel},
            )
    except WebSocketDisconnect:
        return
    finally:
        await hub.disconnect(websocket)
        logger.info("Realtime connection closed for user %s", caller.user_id)
