"""
Notification API endpoints.

The caller's inbox: listing, read state and deletion.
"""

from django.http import HttpRequest
from ninja import Query, Router

from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import BearerAuth, get_auth_context
from apps.notifications.schemas import (
    BulkActionResponse,
    NotificationListParams,
    NotificationListResponse,
    NotificationResponse,
    PaginationInfo,
    SendTestNotificationRequest,
    UnreadCountResponse,
)
from apps.notifications.services import (
    clear_all,
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
    send_test_notification,
    unread_count,
)

router = Router(tags=["notifications"])
bearer_auth = BearerAuth()

ERRORS = {401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse}


@router.get(
    "/",
    response={200: NotificationListResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listNotifications",
    summary="List notifications",
)
def list_notifications_endpoint(
    request: HttpRequest, params: Query[NotificationListParams]
) -> NotificationListResponse:
    user = get_auth_context(request)
    page = list_notifications(
        user, page=params.page, limit=params.limit, unread_only=params.unread_only
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.from_orm(n) for n in page.items],
        pagination=PaginationInfo(
            page=page.page, limit=page.limit, total=page.total, pages=page.pages
        ),
    )


@router.get(
    "/unread-count",
    response={200: UnreadCountResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getUnreadNotificationCount",
    summary="Count unread notifications",
)
def unread_count_endpoint(request: HttpRequest) -> UnreadCountResponse:
    user = get_auth_context(request)
    return UnreadCountResponse(count=unread_count(user))


@router.put(
    "/mark-all-read",
    response={200: BulkActionResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="markAllNotificationsRead",
    summary="Mark all notifications as read",
)
def mark_all_read_endpoint(request: HttpRequest) -> BulkActionResponse:
    user = get_auth_context(request)
    count = mark_all_read(user)
    return BulkActionResponse(message="All notifications marked as read", count=count)


@router.delete(
    "/clear-all",
    response={200: BulkActionResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="clearNotifications",
    summary="Delete all notifications",
)
def clear_all_endpoint(request: HttpRequest) -> BulkActionResponse:
    user = get_auth_context(request)
    count = clear_all(user)
    return BulkActionResponse(message="All notifications cleared", count=count)


@router.post(
    "/test",
    response={200: NotificationResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="sendTestNotification",
    summary="Send a test notification to yourself",
    description="Development only. Refused when DEBUG is off.",
)
def send_test_endpoint(
    request: HttpRequest, payload: SendTestNotificationRequest
) -> NotificationResponse:
    user = get_auth_context(request)
    notification = send_test_notification(
        user, notification_type=payload.type, title=payload.title, message=payload.message
    )
    return NotificationResponse.from_orm(notification)


@router.put(
    "/{notification_id}/read",
    response={200: NotificationResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="markNotificationRead",
    summary="Mark a notification as read",
)
def mark_read_endpoint(request: HttpRequest, notification_id: int) -> NotificationResponse:
    user = get_auth_context(request)
    return NotificationResponse.from_orm(mark_read(user, notification_id))


@router.delete(
    "/{notification_id}",
    response={200: MessageResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="deleteNotification",
    summary="Delete a notification",
)
def delete_notification_endpoint(request: HttpRequest, notification_id: int) -> MessageResponse:
    user = get_auth_context(request)
    delete_notification(user, notification_id)
    return MessageResponse(message="Notification deleted")
