"""
Tests for the notification dispatcher.

Hooks decide inside the transaction; delivery happens on commit. Tests use
django_capture_on_commit_callbacks to run the commit callbacks.
"""

from unittest.mock import MagicMock, patch

import pytest

from apps.companies.models import Worker
from apps.notifications import dispatcher
from apps.notifications.dispatcher import (
    PendingNotification,
    deliver,
    deliver_all,
    on_task_assigned,
    on_task_completed,
    schedule,
)
from apps.notifications.models import Notification
from apps.projects.models import Task
from tests.companies.factories import WorkerFactory
from tests.projects.factories import TaskFactory


def _pending(user_id: int, **overrides) -> PendingNotification:
    fields = {
        "user_id": user_id,
        "type": Notification.Type.SYSTEM_UPDATE,
        "title": "Hello",
        "message": "World",
        "data": {"k": 1},
    }
    fields.update(overrides)
    return PendingNotification(**fields)


@pytest.mark.django_db
class TestOnTaskAssigned:
    """Tests for on_task_assigned."""

    def test_notifies_new_assignee(
        self, django_capture_on_commit_callbacks, owner, viewer, project
    ) -> None:
        task = TaskFactory.create(project=project, title="Roofing", assigned_to=viewer)

        with django_capture_on_commit_callbacks(execute=True):
            scheduled = on_task_assigned(task, previous_assignee_id=None, actor=owner)

        assert scheduled == 1
        [notification] = Notification.objects.all()
        assert notification.user == viewer
        assert notification.type == Notification.Type.TASK_ASSIGNED
        assert notification.title == "New task assigned"
        assert notification.message == (
            f'{owner.display_name} assigned you the task "Roofing" in project "Riverside Tower"'
        )
        assert notification.data == {
            "task_id": task.id,
            "project_id": project.id,
            "assigned_by": owner.id,
        }

    def test_unassigned_task(self, owner, project) -> None:
        task = TaskFactory.create(project=project, assigned_to=None)

        assert on_task_assigned(task, previous_assignee_id=None, actor=owner) == 0

    def test_same_assignee(self, owner, viewer, project) -> None:
        task = TaskFactory.create(project=project, assigned_to=viewer)

        assert on_task_assigned(task, previous_assignee_id=viewer.pk, actor=owner) == 0

    def test_self_assignment(self, editor, project) -> None:
        task = TaskFactory.create(project=project, assigned_to=editor)

        assert on_task_assigned(task, previous_assignee_id=None, actor=editor) == 0

    def test_nothing_stored_before_commit(
        self, django_capture_on_commit_callbacks, owner, viewer, project
    ) -> None:
        task = TaskFactory.create(project=project, assigned_to=viewer)

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            on_task_assigned(task, previous_assignee_id=None, actor=owner)

        assert len(callbacks) == 1
        assert not Notification.objects.exists()


@pytest.mark.django_db
class TestOnTaskCompleted:
    """Tests for on_task_completed."""

    def test_notifies_members_except_actor(
        self, django_capture_on_commit_callbacks, company, owner, editor, viewer, project
    ) -> None:
        WorkerFactory.create(company=company, status=Worker.Status.INACTIVE)
        task = TaskFactory.create(
            project=project, title="Tiling", assigned_to=viewer, status=Task.Status.DONE
        )

        with django_capture_on_commit_callbacks(execute=True):
            scheduled = on_task_completed(task, previous_status=Task.Status.REVIEW, actor=editor)

        assert scheduled == 2
        notifications = Notification.objects.order_by("user_id")
        assert [n.user_id for n in notifications] == sorted([owner.pk, viewer.pk])
        for notification in notifications:
            assert notification.type == Notification.Type.TASK_COMPLETED
            assert notification.message == (
                f'{viewer.display_name} completed the task "Tiling" in project "Riverside Tower"'
            )
            assert notification.data["completed_by"] == viewer.pk

    def test_unassigned_task_names_actor(
        self, django_capture_on_commit_callbacks, owner, editor, project
    ) -> None:
        task = TaskFactory.create(project=project, status=Task.Status.DONE, assigned_to=None)

        with django_capture_on_commit_callbacks(execute=True):
            on_task_completed(task, previous_status=Task.Status.TODO, actor=owner)

        [notification] = Notification.objects.all()
        assert notification.user == editor
        assert notification.message.startswith(owner.display_name)
        assert notification.data["completed_by"] == owner.pk

    def test_already_done(self, owner, editor, project) -> None:
        task = TaskFactory.create(project=project, status=Task.Status.DONE)

        assert on_task_completed(task, previous_status=Task.Status.DONE, actor=owner) == 0

    @pytest.mark.parametrize("status", [Task.Status.REVIEW, Task.Status.CANCELLED])
    def test_other_transitions(self, owner, editor, project, status) -> None:
        task = TaskFactory.create(project=project, status=status)

        assert on_task_completed(task, previous_status=Task.Status.TODO, actor=owner) == 0

    def test_sole_member_completing(self, owner, project) -> None:
        """The owner alone in the company has nobody to tell."""
        task = TaskFactory.create(project=project, status=Task.Status.DONE)

        assert on_task_completed(task, previous_status=Task.Status.TODO, actor=owner) == 0

    def test_recipient_lookup_failure_is_contained(
        self, django_capture_on_commit_callbacks, owner, editor, project
    ) -> None:
        task = TaskFactory.create(project=project, status=Task.Status.DONE)

        with (
            patch.object(dispatcher, "member_user_ids", side_effect=RuntimeError("boom")),
            django_capture_on_commit_callbacks(execute=True) as callbacks,
        ):
            scheduled = on_task_completed(task, previous_status=Task.Status.TODO, actor=owner)

        assert scheduled == 0
        assert callbacks == []
        assert not Notification.objects.exists()


@pytest.mark.django_db
class TestDelivery:
    """Tests for deliver, deliver_all and schedule."""

    def test_deliver_stores_and_pushes(self, owner) -> None:
        backend = MagicMock()

        with patch.object(dispatcher, "get_backend", return_value=backend):
            notification = deliver(_pending(owner.pk))

        assert notification.pk is not None
        assert notification.data == {"k": 1}
        backend.push.assert_called_once_with(notification)

    def test_push_failure_keeps_row(self, owner) -> None:
        backend = MagicMock()
        backend.push.side_effect = RuntimeError("gateway down")

        with patch.object(dispatcher, "get_backend", return_value=backend):
            notification = deliver(_pending(owner.pk))

        assert Notification.objects.filter(pk=notification.pk).exists()

    def test_misconfigured_backend_keeps_row(self, settings, owner) -> None:
        settings.NOTIFICATION_BACKEND = "gateway"
        settings.NOTIFICATION_GATEWAY_URL = ""

        deliver(_pending(owner.pk))

        assert Notification.objects.filter(user=owner).count() == 1

    def test_deliver_all_isolates_recipients(self, owner, viewer) -> None:
        """A failing recipient does not stop the others."""
        batch = [_pending(owner.pk), _pending(987654), _pending(viewer.pk)]

        with patch.object(
            dispatcher, "deliver", side_effect=[None, RuntimeError("boom"), None]
        ) as mocked:
            delivered = deliver_all(batch)

        assert delivered == 2
        assert mocked.call_count == 3

    def test_schedule_empty_batch(self, django_capture_on_commit_callbacks) -> None:
        with django_capture_on_commit_callbacks() as callbacks:
            schedule([])

        assert callbacks == []

    def test_schedule_inline(self, django_capture_on_commit_callbacks, settings, owner) -> None:
        settings.NOTIFICATIONS_ASYNC = False

        with django_capture_on_commit_callbacks(execute=True):
            schedule([_pending(owner.pk)])

        assert Notification.objects.filter(user=owner).count() == 1

    def test_schedule_async_uses_executor(
        self, django_capture_on_commit_callbacks, settings, owner
    ) -> None:
        settings.NOTIFICATIONS_ASYNC = True
        executor = MagicMock()
        batch = [_pending(owner.pk)]

        with (
            patch.object(dispatcher, "_get_executor", return_value=executor),
            django_capture_on_commit_callbacks(execute=True),
        ):
            schedule(batch)

        executor.submit.assert_called_once_with(dispatcher._deliver_in_thread, batch)
        assert not Notification.objects.exists()

    def test_dispatch_failure_is_swallowed(
        self, django_capture_on_commit_callbacks, settings, owner
    ) -> None:
        settings.NOTIFICATIONS_ASYNC = True
        executor = MagicMock()
        executor.submit.side_effect = RuntimeError("cannot schedule new futures after shutdown")

        with (
            patch.object(dispatcher, "_get_executor", return_value=executor),
            django_capture_on_commit_callbacks(execute=True),
        ):
            schedule([_pending(owner.pk)])

        assert not Notification.objects.exists()
