"""
Pydantic schemas for notification API endpoints.
"""

from datetime import datetime
from typing import Any, Literal

from ninja import Schema
from pydantic import Field

NotificationType = Literal[
    "TASK_ASSIGNED",
    "TASK_COMPLETED",
    "MESSAGE_RECEIVED",
    "MATERIAL_LOW",
    "SYSTEM_UPDATE",
    "COMPANY_INVITE",
    "PROJECT_UPDATE",
    "DEADLINE_REMINDER",
]


class NotificationResponse(Schema):
    id: int
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any]
    is_read: bool
    created_at: datetime


class PaginationInfo(Schema):
    page: int
    limit: int
    total: int
    pages: int


class NotificationListResponse(Schema):
    notifications: list[NotificationResponse]
    pagination: PaginationInfo


class NotificationListParams(Schema):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    unread_only: bool = False


class UnreadCountResponse(Schema):
    count: int


class BulkActionResponse(Schema):
    """Result of an operation over many notifications."""

    message: str
    count: int


class SendTestNotificationRequest(Schema):
    type: NotificationType = "SYSTEM_UPDATE"
    title: str | None = Field(default=None, max_length=200)
    message: str | None = Field(default=None, max_length=1000)
