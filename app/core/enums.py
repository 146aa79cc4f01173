"""Shared enums used across the application."""

from enum import Enum


class NotificationType(str, Enum):
    """Notification type tag."""

    MESSAGE = "message"


class RealtimeEvent(str, Enum):
    """Event names exchanged over the realtime channel."""

    SEND_MESSAGE = "send_message"
    RECEIVE_MESSAGE = "receive_message"
    NOTIFICATION_UPDATE = "notification_update"
    TYPING = "typing"
    PING = "ping"
    PONG = "pong"
    CONNECTION_ESTABLISHED = "connection.established"
    ERROR = "error"
