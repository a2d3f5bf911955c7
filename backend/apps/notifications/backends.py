"""
Notification backends - pluggable real-time push channels.

LoggingBackend: Logs pushes (dev, tests)
GatewayBackend: POSTs to the real-time gateway that fans out to sockets

The Notification row is always stored first; a backend only pushes it to
connected clients. Backends raise on failure; the dispatcher decides what to
do about it.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from apps.core.logging import get_logger
from apps.notifications.models import Notification

logger = get_logger(__name__)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat(),
    }


class NotificationBackend(ABC):
    """Abstract base class for notification push backends."""

    @abstractmethod
    def push(self, notification: Notification) -> None:
        """Push a stored notification to its recipient's live sessions."""


class LoggingBackend(NotificationBackend):
    """Local development backend. Only logs the push."""

    def push(self, notification: Notification) -> None:
        logger.info(
            "notification_pushed",
            notification_id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            backend="local",
        )


class GatewayBackend(NotificationBackend):
    """
    Pushes to an HTTP real-time gateway.

    The gateway receives ``{"room": "user_<id>", "event": "notification",
    "payload": {...}}`` and relays it to the user's socket room.
    """

    TIMEOUT = 5  # seconds

    def __init__(self, url: str, token: str = "", timeout: float = TIMEOUT):
        self.url = url
        self.token = token
        self.timeout = timeout

    def push(self, notification: Notification) -> None:
        """
        Raises:
            httpx.HTTPError: On connection failure, timeout or non-2xx response
        """
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        body = {
            "room": f"user_{notification.user_id}",
            "event": "notification",
            "payload": serialize_notification(notification),
        }

        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(self.url, json=body, headers=headers)
        response.raise_for_status()

        logger.info(
            "notification_pushed",
            notification_id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            backend="gateway",
            http_status=response.status_code,
        )


def get_backend() -> NotificationBackend:
    """
    Get the configured notification backend.

    Uses NOTIFICATION_BACKEND setting: 'local' or 'gateway'
    """
    from django.conf import settings

    backend_type = getattr(settings, "NOTIFICATION_BACKEND", "local")

    if backend_type == "gateway":
        url = getattr(settings, "NOTIFICATION_GATEWAY_URL", "")
        if not url:
            raise ValueError("NOTIFICATION_GATEWAY_URL setting required for gateway backend")
        token = getattr(settings, "NOTIFICATION_GATEWAY_TOKEN", "")
        return GatewayBackend(url=url, token=token)

    return LoggingBackend()
