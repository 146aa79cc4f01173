"""
Sayarti realtime gateway.

One WebSocket per user. The token is verified before the socket is accepted;
after that the connection is registered in the presence registry and frames
of the form {"type": ..., "data": {...}} are exchanged.
"""

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from app.core.auth_utils import InvalidTokenError, decode_token
from app.core.config import settings
from app.core.enums import RealtimeEvent
from app.core.logging import get_logger
from app.core.realtime.dispatcher import RealtimeDispatcher, build_frame

logger = get_logger(__name__)

router = APIRouter()


def _extract_token(websocket: WebSocket) -> Optional[str]:
    """Token from the ?token= query parameter or an Authorization header."""
    token = websocket.query_params.get("token")
    if token:
        return token

    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json(
        build_frame(RealtimeEvent.ERROR.value, {"message": message})
    )


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


async def _receive_frame(websocket: WebSocket) -> Optional[str]:
    """
    Next client frame as text; binary frames are decoded as UTF-8.

    Returns None for a frame that carries neither usable text nor bytes.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))

    text = message.get("text")
    if text is not None:
        return text
    data = message.get("bytes")
    if data is None:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


@router.websocket(settings.WS_PATH)
async def websocket_endpoint(websocket: WebSocket):
    """Handle a realtime connection for one authenticated user."""
    try:
        token_data = decode_token(_extract_token(websocket))
    except InvalidTokenError as e:
        logger.warning(f"Rejected realtime handshake: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = token_data.user_id
    presence = websocket.app.state.presence
    dispatcher = websocket.app.state.dispatcher

    await websocket.accept()
    await presence.register(user_id, websocket)
    logger.info(f"User {user_id} connected to realtime gateway")

    try:
        # Send welcome message
        await websocket.send_json(
            build_frame(
                RealtimeEvent.CONNECTION_ESTABLISHED.value,
                {"userId": user_id, "message": "Connected to Sayarti realtime gateway"},
            )
        )

        while True:
            raw = await _receive_frame(websocket)
            try:
                data = json.loads(raw)
            except (TypeError, ValueError):
                await _send_error(websocket, "Invalid JSON format")
                continue

            try:
                await handle_message(websocket, dispatcher, user_id, data)
            except WebSocketDisconnect:
                raise
            except Exception as e:
                logger.error(f"Error handling frame from user {user_id}: {e}")
                await _send_error(websocket, "Internal server error")

    except WebSocketDisconnect:
        logger.info(f"User {user_id} disconnected from realtime gateway")
    finally:
        await presence.unregister(user_id, websocket)


async def handle_message(
    websocket: WebSocket,
    dispatcher: RealtimeDispatcher,
    user_id: int,
    data: Any,
) -> None:
    """Handle one inbound frame from an authenticated user."""
    if not isinstance(data, dict):
        await _send_error(websocket, "Frame must be a JSON object")
        return

    message_type = data.get("type")
    payload: Dict[str, Any] = data.get("data") or {}
    if not isinstance(payload, dict):
        await _send_error(websocket, "Frame data must be a JSON object")
        return

    if message_type == RealtimeEvent.PING.value:
        await websocket.send_json(build_frame(RealtimeEvent.PONG.value, {}))
    elif message_type == RealtimeEvent.SEND_MESSAGE.value:
        await _relay_message(websocket, dispatcher, user_id, payload)
    elif message_type == RealtimeEvent.TYPING.value:
        receiver_id = _as_int(payload.get("receiver_id"))
        if receiver_id is None:
            await _send_error(websocket, "Missing receiver_id for typing")
            return
        await dispatcher.send_typing(
            receiver_id,
            sender_id=user_id,
            conversation_id=payload.get("conversationId"),
            is_typing=bool(payload.get("isTyping", True)),
        )
    else:
        await _send_error(websocket, f"Unknown message type: {message_type}")


async def _relay_message(
    websocket: WebSocket,
    dispatcher: RealtimeDispatcher,
    user_id: int,
    payload: Dict[str, Any],
) -> None:
    """Relay a live message to its receiver. Nothing is stored."""
    receiver_id = _as_int(payload.get("receiver_id"))
    message = payload.get("message")
    if receiver_id is None or not isinstance(message, str) or not message.strip():
        await _send_error(websocket, "send_message requires receiver_id and message")
        return

    await dispatcher.send_message_received(
        receiver_id,
        message=message,
        sender_id=user_id,
        sender_name=payload.get("senderName", ""),
        car_id=payload.get("carId"),
        conversation_id=payload.get("conversationId"),
        created_at=payload.get("createdAt"),
    )
