"""
Project and task services - the lifecycle manager.

Every operation resolves the caller's Role once, checks it before any write,
and runs its mutation in a single transaction. Task events are handed to the
notification dispatcher, which delivers them after commit.

Visibility comes first: an entity in a company the caller cannot access is
reported as missing (NotFoundError). A visible entity the caller may not
change raises ForbiddenError.
"""

from datetime import datetime
from typing import Any

from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.companies.membership import (
    Role,
    accessible_company_ids,
    get_visible_company,
    is_company_member,
    resolve_role,
)
from apps.companies.models import Company
from apps.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
    ValidationFailedError,
)
from apps.core.logging import get_logger
from apps.notifications import dispatcher
from apps.projects.models import Priority, Project, Task
from apps.projects.permissions import (
    can_create_project,
    can_create_task,
    can_delete_project,
    can_delete_task,
    can_edit_project,
    can_edit_task,
)
from apps.projects.schemas import (
    AssigneeRef,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    TaskCreateRequest,
    TaskUpdateRequest,
)

logger = get_logger(__name__)

ASSIGN_TO_SELF = "me"

PROJECT_TEXT_FIELDS = {"description", "location", "client_name", "client_email", "client_phone"}
TASK_TEXT_FIELDS = {"description"}


def _text(value: str | None) -> str:
    return (value or "").strip()


def _apply_changes(instance: Any, changes: dict[str, Any], text_fields: set[str]) -> None:
    for name, value in changes.items():
        if name in text_fields:
            value = _text(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(instance, name, value)


# =============================================================================
# Lookups
# =============================================================================


def _get_visible_project(
    user: User, project_id: int, *, lock: bool = False
) -> tuple[Project, Role]:
    """
    Load a project and the caller's role in its company.

    With lock=True the project row is held with SELECT ... FOR UPDATE for the
    rest of the surrounding transaction. Task creation and project deletion
    both take this lock, so they serialize on the project.

    A caller outside the company gets the same 404 as for a missing project,
    never a 403.

    Raises:
        NotFoundError: If the project is absent or its company is not visible
    """
    queryset = Project.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    project = queryset.filter(pk=project_id).first()
    if project is None:
        raise NotFoundError("Project not found")

    role = resolve_role(user, project.company)
    if role is None:
        raise NotFoundError("Project not found")
    return project, role


def _get_visible_task(user: User, task_id: int) -> tuple[Task, Role]:
    """
    Load a task and the caller's role. Non-members get 404, never 403.

    Raises:
        NotFoundError: If the task is absent or its company is not visible
    """
    task = (
        Task.objects.select_related("project__company", "created_by", "assigned_to")
        .filter(pk=task_id)
        .first()
    )
    if task is None:
        raise NotFoundError("Task not found")

    role = resolve_role(user, task.project.company)
    if role is None:
        raise NotFoundError("Task not found")
    return task, role


def resolve_assignee(actor: User, company: Company, assigned_to_id: AssigneeRef | None) -> User | None:
    """
    Turn an assignee reference into a user who may hold work in the company.

    Accepts a user id, the "me" sentinel for the acting user, or None.

    Raises:
        ValidationFailedError: If the target is not the owner or an ACTIVE worker
    """
    if assigned_to_id is None:
        return None

    target_id = actor.pk if assigned_to_id == ASSIGN_TO_SELF else assigned_to_id
    target = User.objects.filter(pk=target_id).first()
    if target is None or not is_company_member(target.pk, company):
        raise ValidationFailedError("Assigned user must be a member of the company")
    return target


# =============================================================================
# Projects
# =============================================================================


def list_projects(
    user: User,
    company_id: int,
    status: str | None = None,
    priority: str | None = None,
    search: str | None = None,
) -> QuerySet[Project]:
    """
    Projects of a visible company, newest first, annotated with task counts.

    Each project carries total_tasks, todo_tasks, in_progress_tasks,
    done_tasks and high_priority_tasks (HIGH or URGENT).

    Raises:
        NotFoundError: If the company is absent or not visible
    """
    company, _ = get_visible_company(user, company_id)

    projects = Project.objects.filter(company=company).select_related("created_by")
    if status:
        projects = projects.filter(status=status)
    if priority:
        projects = projects.filter(priority=priority)
    if search:
        projects = projects.filter(
            Q(name__icontains=search)
            | Q(description__icontains=search)
            | Q(client_name__icontains=search)
        )

    return projects.annotate(
        total_tasks=Count("tasks"),
        todo_tasks=Count("tasks", filter=Q(tasks__status=Task.Status.TODO)),
        in_progress_tasks=Count("tasks", filter=Q(tasks__status=Task.Status.IN_PROGRESS)),
        done_tasks=Count("tasks", filter=Q(tasks__status=Task.Status.DONE)),
        high_priority_tasks=Count(
            "tasks", filter=Q(tasks__priority__in=[Priority.HIGH, Priority.URGENT])
        ),
    ).order_by("-created_at")


def get_project(user: User, project_id: int) -> Project:
    """A visible project with its company, creator and tasks loaded."""
    project, _ = _get_visible_project(user, project_id)
    return (
        Project.objects.select_related("company", "created_by")
        .prefetch_related("tasks__assigned_to", "tasks__created_by", "tasks__project")
        .get(pk=project.pk)
    )


def project_detail_stats(project: Project) -> dict[str, Any]:
    """Task counts and hour totals for the project detail view."""
    tasks = list(project.tasks.all())
    by_status = {status: 0 for status in Task.Status.values}
    for task in tasks:
        by_status[task.status] += 1
    return {
        "total_tasks": len(tasks),
        "todo_tasks": by_status[Task.Status.TODO],
        "in_progress_tasks": by_status[Task.Status.IN_PROGRESS],
        "review_tasks": by_status[Task.Status.REVIEW],
        "done_tasks": by_status[Task.Status.DONE],
        "total_estimated_hours": sum(task.estimated_hours or 0 for task in tasks),
        "total_actual_hours": sum(task.actual_hours or 0 for task in tasks),
    }


def project_statistics(user: User, project_id: int, now: datetime | None = None) -> dict[str, Any]:
    """
    Aggregate statistics over a visible project's tasks.

    A task is overdue when its due date has passed and it is not DONE.
    Completion rate is the rounded percentage of DONE tasks, 0 when empty.
    """
    project, _ = _get_visible_project(user, project_id)
    now = now or timezone.now()

    tasks = list(
        project.tasks.values("status", "priority", "estimated_hours", "actual_hours", "due_date")
    )
    by_status = {status: 0 for status in Task.Status.values}
    by_priority = {priority: 0 for priority in Priority.values}
    overdue = 0
    for task in tasks:
        by_status[task["status"]] += 1
        by_priority[task["priority"]] += 1
        if task["due_date"] and task["due_date"] < now and task["status"] != Task.Status.DONE:
            overdue += 1

    total = len(tasks)
    done = by_status[Task.Status.DONE]
    return {
        "total_tasks": total,
        "tasks_by_status": by_status,
        "tasks_by_priority": by_priority,
        "hours": {
            "total_estimated": sum(task["estimated_hours"] or 0 for task in tasks),
            "total_actual": sum(task["actual_hours"] or 0 for task in tasks),
        },
        "overdue_tasks": overdue,
        "completion_rate": round(done / total * 100) if total else 0,
    }


@transaction.atomic
def create_project(user: User, data: ProjectCreateRequest) -> Project:
    """
    Create a project in PLANNING status.

    Raises:
        NotFoundError: If the company does not exist
        ForbiddenError: If the caller is not the owner or a worker with can_edit
    """
    company = Company.objects.filter(pk=data.company_id).first()
    if company is None:
        raise NotFoundError("Company not found")

    role = resolve_role(user, company)
    if role is None or not can_create_project(role):
        raise ForbiddenError("You do not have permission to create projects in this company")

    project = Project(company=company, created_by=user, status=Project.Status.PLANNING)
    _apply_changes(project, data.model_dump(exclude={"company_id"}), PROJECT_TEXT_FIELDS)
    project.save()

    logger.info(
        "project_created",
        project_id=project.id,
        company_id=company.id,
        user_id=user.id,
        role=role.name,
    )
    return project


@transaction.atomic
def update_project(user: User, project_id: int, data: ProjectUpdateRequest) -> Project:
    """
    Apply a partial update. Requires the owner or a worker with can_edit.

    Raises:
        NotFoundError: If the project is not visible
        ForbiddenError: If the caller may not edit it
    """
    project, role = _get_visible_project(user, project_id)
    if not can_edit_project(role):
        raise ForbiddenError("You do not have permission to edit this project")

    changes = data.model_dump(exclude_unset=True)
    # name and status are required columns
    for required in ("name", "status", "priority"):
        if changes.get(required, "") is None:
            changes.pop(required)
    _apply_changes(project, changes, PROJECT_TEXT_FIELDS)
    project.save()

    logger.info(
        "project_updated",
        project_id=project.id,
        user_id=user.id,
        fields=sorted(changes),
    )
    return project


@transaction.atomic
def delete_project(user: User, project_id: int) -> None:
    """
    Delete a project that owns no tasks. Owner or project creator only.

    The task count is taken while holding the project row lock, so a task
    insert racing with the deletion either commits first (and the deletion
    is refused) or waits until the project is gone.

    Raises:
        NotFoundError: If the project is not visible
        ForbiddenError: If the caller is neither the owner nor the creator
        PreconditionFailedError: If the project still contains tasks
    """
    project, role = _get_visible_project(user, project_id, lock=True)
    if not can_delete_project(role, user, project):
        raise ForbiddenError("Only the company owner or the project creator can delete it")

    task_count = project.tasks.count()
    if task_count:
        raise PreconditionFailedError(
            f"Project contains {task_count} task(s); delete them before deleting the project"
        )

    project.delete()
    logger.info("project_deleted", project_id=project_id, user_id=user.id)


# =============================================================================
# Tasks
# =============================================================================


def _task_queryset() -> QuerySet[Task]:
    return Task.objects.select_related("project", "created_by", "assigned_to")


def list_tasks(
    user: User,
    project_id: int | None = None,
    company_id: int | None = None,
    status: str | None = None,
    priority: str | None = None,
    assigned_to_id: AssigneeRef | None = None,
    search: str | None = None,
) -> QuerySet[Task]:
    """
    Tasks in one project, one company, or every company visible to the user.

    project_id takes precedence over company_id.

    Raises:
        NotFoundError: If the given project or company is not visible
    """
    tasks = _task_queryset()
    if project_id is not None:
        project, _ = _get_visible_project(user, project_id)
        tasks = tasks.filter(project=project)
    elif company_id is not None:
        company, _ = get_visible_company(user, company_id)
        tasks = tasks.filter(project__company=company)
    else:
        tasks = tasks.filter(project__company_id__in=accessible_company_ids(user))

    if status:
        tasks = tasks.filter(status=status)
    if priority:
        tasks = tasks.filter(priority=priority)
    if assigned_to_id is not None:
        tasks = tasks.filter(
            assigned_to_id=user.pk if assigned_to_id == ASSIGN_TO_SELF else assigned_to_id
        )
    if search:
        tasks = tasks.filter(Q(title__icontains=search) | Q(description__icontains=search))

    return tasks.order_by("-created_at")


def list_my_tasks(
    user: User, status: str | None = None, priority: str | None = None
) -> QuerySet[Task]:
    """Tasks assigned to the user in companies they can still access."""
    tasks = _task_queryset().filter(
        assigned_to=user,
        project__company_id__in=accessible_company_ids(user),
    )
    if status:
        tasks = tasks.filter(status=status)
    if priority:
        tasks = tasks.filter(priority=priority)
    return tasks.order_by("due_date", "-created_at")


def get_task(user: User, task_id: int) -> Task:
    task, _ = _get_visible_task(user, task_id)
    return task


@transaction.atomic
def create_task(user: User, data: TaskCreateRequest) -> Task:
    """
    Create a TODO task in a project.

    Takes the project row lock so it cannot interleave with a pending
    project deletion.

    Raises:
        NotFoundError: If the project is not visible
        ForbiddenError: If the caller is not the owner or a worker with can_edit
        ValidationFailedError: If the assignee is not a company member
    """
    project, role = _get_visible_project(user, data.project_id, lock=True)
    if not can_create_task(role):
        raise ForbiddenError("You do not have permission to create tasks in this project")

    assignee = resolve_assignee(user, project.company, data.assigned_to_id)

    task = Task(project=project, created_by=user, assigned_to=assignee, status=Task.Status.TODO)
    _apply_changes(
        task, data.model_dump(exclude={"project_id", "assigned_to_id"}), TASK_TEXT_FIELDS
    )
    task.save()

    logger.info(
        "task_created",
        task_id=task.id,
        project_id=project.id,
        user_id=user.id,
        assigned_to_id=task.assigned_to_id,
    )
    dispatcher.on_task_assigned(task, previous_assignee_id=None, actor=user)
    return task


def _record_task_events(
    task: Task, previous_assignee_id: int | None, previous_status: str, actor: User
) -> None:
    if task.assigned_to_id != previous_assignee_id:
        dispatcher.on_task_assigned(task, previous_assignee_id=previous_assignee_id, actor=actor)
    if task.status != previous_status:
        logger.info(
            "task_status_changed",
            task_id=task.id,
            from_status=previous_status,
            to_status=task.status,
            user_id=actor.id,
        )
        dispatcher.on_task_completed(task, previous_status=previous_status, actor=actor)


@transaction.atomic
def update_task(user: User, task_id: int, data: TaskUpdateRequest) -> Task:
    """
    Apply a partial update to a task.

    Allowed for the owner, workers with can_edit, the task's creator and its
    current assignee. Concurrent updates are last-write-wins.

    Raises:
        NotFoundError: If the task is not visible
        ForbiddenError: If the caller may not edit the task
        ValidationFailedError: If the new assignee is not a company member
    """
    task, role = _get_visible_task(user, task_id)
    if not can_edit_task(role, user, task):
        raise ForbiddenError("You do not have permission to edit this task")

    changes = data.model_dump(exclude_unset=True)
    for required in ("title", "status", "priority"):
        if changes.get(required, "") is None:
            changes.pop(required)

    previous_assignee_id = task.assigned_to_id
    previous_status = task.status
    changed_fields = sorted(changes)

    if "assigned_to_id" in changes:
        task.assigned_to = resolve_assignee(
            user, task.project.company, changes.pop("assigned_to_id")
        )

    _apply_changes(task, changes, TASK_TEXT_FIELDS)
    task.save()

    logger.info("task_updated", task_id=task.id, user_id=user.id, fields=changed_fields)
    _record_task_events(task, previous_assignee_id, previous_status, user)
    return task


@transaction.atomic
def update_task_status(user: User, task_id: int, status: str) -> Task:
    """
    Quick status change. Same permission as update_task, so an assignee
    without company-wide edit rights can move their own task along.

    Any status may be set from any status.
    """
    task, role = _get_visible_task(user, task_id)
    if not can_edit_task(role, user, task):
        raise ForbiddenError("You do not have permission to change the status of this task")

    previous_status = task.status
    task.status = status
    task.save(update_fields=["status", "updated_at"])

    _record_task_events(task, task.assigned_to_id, previous_status, user)
    return task


@transaction.atomic
def delete_task(user: User, task_id: int) -> None:
    """
    Delete a task. Owner, workers with can_edit, or the task's creator.

    Raises:
        NotFoundError: If the task is not visible
        ForbiddenError: If the caller may not delete the task, including
            an assignee without edit rights
    """
    task, role = _get_visible_task(user, task_id)
    if not can_delete_task(role, user, task):
        raise ForbiddenError("You do not have permission to delete this task")

    task.delete()
    logger.info("task_deleted", task_id=task_id, user_id=user.id)
