"""Best-effort event push to online users."""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from app.core.enums import RealtimeEvent
from app.core.logging import get_logger
from app.core.realtime.presence import PresenceRegistry

logger = get_logger(__name__)


def build_frame(event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Wire frame for one realtime event."""
    return {"type": event, "data": payload}


def _isoformat(value: Union[datetime, str, None]) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class RealtimeDispatcher:
    """Pushes events to users through the presence registry.

    Delivery is at most once: offline users are skipped silently and a failed
    send is never retried.
    """

    def __init__(self, registry: PresenceRegistry):
        self.registry = registry

    async def dispatch(self, user_id: int, event: str, payload: Dict[str, Any]) -> bool:
        """
        Push an event to a user if they are connected.

        Returns:
            True if the frame was handed to the user's connection, False if the
            user is offline or the send failed.
        """
        connection = await self.registry.get(user_id)
        if connection is None:
            logger.debug(f"User {user_id} offline; skipping {event}")
            return False

        try:
            await connection.send_json(build_frame(event, payload))
        except Exception as e:
            logger.warning(f"Failed to push {event} to user {user_id}: {e}")
            await self.registry.unregister(user_id, connection)
            return False

        logger.debug(f"Pushed {event} to user {user_id}")
        return True

    async def send_message_received(
        self,
        receiver_id: int,
        *,
        message: str,
        sender_id: int,
        sender_name: str,
        car_id: Optional[int],
        conversation_id: Optional[int],
        message_id: Optional[int] = None,
        created_at: Union[datetime, str, None] = None,
    ) -> bool:
        payload: Dict[str, Any] = {
            "message": message,
            "senderId": sender_id,
            "senderName": sender_name,
            "carId": car_id,
            "conversationId": conversation_id,
            "createdAt": _isoformat(created_at),
        }
        if message_id is not None:
            payload["messageId"] = message_id
        return await self.dispatch(
            receiver_id, RealtimeEvent.RECEIVE_MESSAGE.value, payload
        )

    async def send_notification_count(self, user_id: int, count: int) -> bool:
        return await self.dispatch(
            user_id, RealtimeEvent.NOTIFICATION_UPDATE.value, {"count": count}
        )

    async def send_typing(
        self, receiver_id: int, *, sender_id: int, conversation_id: int, is_typing: bool
    ) -> bool:
        return await self.dispatch(
            receiver_id,
            RealtimeEvent.TYPING.value,
            {
                "senderId": sender_id,
                "conversationId": conversation_id,
                "isTyping": is_typing,
            },
        )
