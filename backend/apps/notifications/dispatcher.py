"""
Notification dispatcher - fan-out for task lifecycle events.

The hooks are called by the lifecycle services inside their transaction.
They decide whether an event fires and who receives it, then register the
delivery with ``transaction.on_commit``: nothing is stored or pushed unless
the triggering mutation commits. A hook that fails is logged and never
fails the mutation itself.

Delivery is best effort. Each recipient is handled on its own, and any
failure is logged and dropped. With NOTIFICATIONS_ASYNC the work runs on a
small thread pool so a slow gateway never delays the response; otherwise it
runs inline right after commit.
"""

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import connections, transaction

from apps.companies.membership import member_user_ids
from apps.core.logging import get_logger
from apps.notifications.backends import get_backend
from apps.notifications.models import Notification

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.projects.models import Task

logger = get_logger(__name__)

MAX_WORKERS = 4

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


@dataclass(frozen=True)
class PendingNotification:
    """A notification decided inside the transaction, stored after commit."""

    user_id: int
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=MAX_WORKERS, thread_name_prefix="notifications"
            )
        return _executor


def deliver(pending: PendingNotification) -> Notification:
    """
    Store one notification and push it through the configured backend.

    A failed push is logged; the stored row stays in the recipient's inbox.
    """
    notification = Notification.objects.create(
        user_id=pending.user_id,
        type=pending.type,
        title=pending.title,
        message=pending.message,
        data=pending.data,
    )
    try:
        get_backend().push(notification)
    except Exception:
        logger.exception(
            "notification_push_failed",
            notification_id=notification.id,
            user_id=notification.user_id,
        )
    return notification


def deliver_all(batch: list[PendingNotification]) -> int:
    """
    Deliver a batch, one recipient at a time. Never raises.

    Returns:
        Number of notifications stored
    """
    delivered = 0
    for pending in batch:
        try:
            deliver(pending)
        except Exception:
            logger.exception(
                "notification_delivery_failed",
                user_id=pending.user_id,
                type=pending.type,
            )
        else:
            delivered += 1
    return delivered


def _deliver_in_thread(batch: list[PendingNotification]) -> None:
    try:
        deliver_all(batch)
    finally:
        connections.close_all()


def _submit(batch: list[PendingNotification]) -> None:
    try:
        if settings.NOTIFICATIONS_ASYNC:
            _get_executor().submit(_deliver_in_thread, batch)
        else:
            deliver_all(batch)
    except Exception:
        logger.exception("notification_dispatch_failed", recipients=len(batch))


def schedule(batch: list[PendingNotification]) -> None:
    """Deliver the batch once the current transaction commits."""
    if not batch:
        return
    transaction.on_commit(lambda: _submit(batch))


# =============================================================================
# Lifecycle hooks
# =============================================================================


def _run_hook(event: str, task: "Task", build: Callable[[], list[PendingNotification]]) -> int:
    """
    Build and schedule one event's batch without ever failing the caller.

    The build runs in a savepoint, so a failed recipient query leaves the
    caller's transaction usable and the task mutation still commits.
    """
    try:
        with transaction.atomic():
            batch = build()
            schedule(batch)
    except Exception:
        logger.exception("notification_hook_failed", hook=event, task_id=task.pk)
        return 0
    return len(batch)


def _task_assigned_batch(
    task: "Task", previous_assignee_id: int | None, actor: "User"
) -> list[PendingNotification]:
    assignee_id = task.assigned_to_id
    if assignee_id is None or assignee_id == previous_assignee_id or assignee_id == actor.pk:
        return []

    project = task.project
    logger.info("task_assigned_notification_scheduled", task_id=task.pk, user_id=assignee_id)
    return [
        PendingNotification(
            user_id=assignee_id,
            type=Notification.Type.TASK_ASSIGNED,
            title="New task assigned",
            message=(
                f'{actor.display_name} assigned you the task "{task.title}" '
                f'in project "{project.name}"'
            ),
            data={
                "task_id": task.pk,
                "project_id": project.pk,
                "assigned_by": actor.pk,
            },
        )
    ]


def _task_completed_batch(
    task: "Task", previous_status: str, actor: "User"
) -> list[PendingNotification]:
    from apps.projects.models import Task

    if previous_status == Task.Status.DONE or task.status != Task.Status.DONE:
        return []

    project = task.project
    completer = task.assigned_to or actor
    recipients = sorted(member_user_ids(project.company) - {actor.pk})

    message = (
        f'{completer.display_name} completed the task "{task.title}" '
        f'in project "{project.name}"'
    )
    data = {"task_id": task.pk, "project_id": project.pk, "completed_by": completer.pk}
    logger.info(
        "task_completed_notifications_scheduled",
        task_id=task.pk,
        recipients=len(recipients),
    )
    return [
        PendingNotification(
            user_id=user_id,
            type=Notification.Type.TASK_COMPLETED,
            title="Task completed",
            message=message,
            data=data,
        )
        for user_id in recipients
    ]


def on_task_assigned(task: "Task", previous_assignee_id: int | None, actor: "User") -> int:
    """
    Notify the new assignee of a task.

    Fires only when an assignee is set, it differs from the previous one,
    and it is not the actor (nobody is told about assigning themselves).

    Returns:
        Number of notifications scheduled (0 or 1)
    """
    return _run_hook(
        "task_assigned",
        task,
        lambda: _task_assigned_batch(task, previous_assignee_id, actor),
    )


def on_task_completed(task: "Task", previous_status: str, actor: "User") -> int:
    """
    Tell the company that a task has been completed.

    Fires only on a transition into DONE. Recipients are the company owner
    and every ACTIVE worker, except the actor. The completer named in the
    message is the assignee at completion time, or the actor when the task
    is unassigned.

    Returns:
        Number of notifications scheduled
    """
    return _run_hook(
        "task_completed",
        task,
        lambda: _task_completed_batch(task, previous_status, actor),
    )
