"""
Project and task permission predicates.

Each predicate takes the caller's already-resolved Role, so a single
membership lookup serves every check in an operation. The assignee of a
task may edit it but never delete it.
"""

from typing import TYPE_CHECKING

from apps.companies.membership import Role

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.projects.models import Project, Task


def _has_edit_flag(role: Role) -> bool:
    return role.is_owner or role.capabilities.can_edit


def can_create_project(role: Role) -> bool:
    return _has_edit_flag(role)


def can_edit_project(role: Role) -> bool:
    return _has_edit_flag(role)


def can_delete_project(role: Role, user: "User", project: "Project") -> bool:
    """Owner or the project's creator. The edit flag alone is not enough."""
    return role.is_owner or project.created_by_id == user.pk


def can_create_task(role: Role) -> bool:
    return _has_edit_flag(role)


def can_edit_task(role: Role, user: "User", task: "Task") -> bool:
    """Owner, can_edit worker, the task's creator, or its current assignee."""
    if _has_edit_flag(role):
        return True
    return task.created_by_id == user.pk or task.assigned_to_id == user.pk


def can_delete_task(role: Role, user: "User", task: "Task") -> bool:
    """Owner, can_edit worker, or the task's creator. Assignees are excluded."""
    if _has_edit_flag(role):
        return True
    return task.created_by_id == user.pk
