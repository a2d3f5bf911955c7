"""
Notification inbox services.

Every operation is scoped to the caller's own notifications; someone else's
notification is reported as missing.
"""

import math
from dataclasses import dataclass

from django.conf import settings

from apps.accounts.models import User
from apps.core.exceptions import ForbiddenError, NotFoundError
from apps.core.logging import get_logger
from apps.notifications.dispatcher import PendingNotification, deliver
from apps.notifications.models import Notification

logger = get_logger(__name__)


@dataclass
class NotificationPage:
    items: list[Notification]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _get_own(user: User, notification_id: int) -> Notification:
    notification = Notification.objects.filter(pk=notification_id, user=user).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


def list_notifications(
    user: User, page: int = 1, limit: int = 20, unread_only: bool = False
) -> NotificationPage:
    """Newest first, one page at a time."""
    notifications = Notification.objects.filter(user=user)
    if unread_only:
        notifications = notifications.filter(is_read=False)

    offset = (page - 1) * limit
    return NotificationPage(
        items=list(notifications.order_by("-created_at", "-id")[offset : offset + limit]),
        page=page,
        limit=limit,
        total=notifications.count(),
    )


def unread_count(user: User) -> int:
    return Notification.objects.filter(user=user, is_read=False).count()


def mark_read(user: User, notification_id: int) -> Notification:
    notification = _get_own(user, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read", "updated_at"])
    return notification


def mark_all_read(user: User) -> int:
    """Returns the number of notifications that changed."""
    updated = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
    logger.info("notifications_marked_read", user_id=user.id, count=updated)
    return updated


def delete_notification(user: User, notification_id: int) -> None:
    notification = _get_own(user, notification_id)
    notification.delete()


def clear_all(user: User) -> int:
    """Delete every notification of the user. Returns how many were removed."""
    deleted, _ = Notification.objects.filter(user=user).delete()
    logger.info("notifications_cleared", user_id=user.id, count=deleted)
    return deleted


def send_test_notification(
    user: User,
    notification_type: str = Notification.Type.SYSTEM_UPDATE,
    title: str | None = None,
    message: str | None = None,
) -> Notification:
    """
    Send a notification to oneself, bypassing the lifecycle hooks.

    Development aid only.

    Raises:
        ForbiddenError: When DEBUG is off
    """
    if not settings.DEBUG:
        raise ForbiddenError("Test notifications are only available in development")

    return deliver(
        PendingNotification(
            user_id=user.pk,
            type=notification_type,
            title=title or "Test notification",
            message=message or "This is a test notification from the system.",
            data={"test": True},
        )
    )
