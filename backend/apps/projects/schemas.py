"""
Pydantic schemas for project and task API endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from ninja import Schema
from pydantic import Field

from apps.core.schemas import UserSummary

ProjectStatus = Literal["PLANNING", "ACTIVE", "ON_HOLD", "COMPLETED", "CANCELLED"]
TaskStatus = Literal["TODO", "IN_PROGRESS", "REVIEW", "DONE", "CANCELLED"]
PriorityLevel = Literal["LOW", "MEDIUM", "HIGH", "URGENT"]

# A user id, or "me" for the acting user
AssigneeRef = int | Literal["me"]

Hours = float | None


# =============================================================================
# Projects
# =============================================================================


class ProjectCreateRequest(Schema):
    """New projects always start in PLANNING."""

    company_id: int
    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    priority: PriorityLevel = "MEDIUM"
    start_date: datetime | None = None
    end_date: datetime | None = None
    deadline: datetime | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    location: str | None = Field(default=None, max_length=200)
    client_name: str | None = Field(default=None, max_length=100)
    client_email: str | None = Field(default=None, max_length=254)
    client_phone: str | None = Field(default=None, max_length=30)


class ProjectUpdateRequest(Schema):
    """Partial update. Any status may be set; there is no transition graph."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    status: ProjectStatus | None = None
    priority: PriorityLevel | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    deadline: datetime | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    location: str | None = Field(default=None, max_length=200)
    client_name: str | None = Field(default=None, max_length=100)
    client_email: str | None = Field(default=None, max_length=254)
    client_phone: str | None = Field(default=None, max_length=30)


class ProjectFilterParams(Schema):
    company_id: int
    status: ProjectStatus | None = None
    priority: PriorityLevel | None = None
    search: str | None = Field(default=None, max_length=100)


class ProjectListStats(Schema):
    total_tasks: int
    todo_tasks: int
    in_progress_tasks: int
    done_tasks: int
    high_priority_tasks: int


class ProjectDetailStats(Schema):
    total_tasks: int
    todo_tasks: int
    in_progress_tasks: int
    review_tasks: int
    done_tasks: int
    total_estimated_hours: float
    total_actual_hours: float


class HoursSummary(Schema):
    total_estimated: float
    total_actual: float


class ProjectStatistics(Schema):
    """Aggregates over all tasks of a project."""

    total_tasks: int
    tasks_by_status: dict[TaskStatus, int]
    tasks_by_priority: dict[PriorityLevel, int]
    hours: HoursSummary
    overdue_tasks: int = Field(description="Due date in the past and not DONE")
    completion_rate: int = Field(description="Share of DONE tasks, rounded percent")


class CompanySummary(Schema):
    id: int
    name: str


class ProjectSummary(Schema):
    id: int
    name: str
    company_id: int


class ProjectResponse(Schema):
    id: int
    company_id: int
    name: str
    description: str
    status: ProjectStatus
    priority: PriorityLevel
    start_date: datetime | None
    end_date: datetime | None
    deadline: datetime | None
    budget: float | None
    location: str
    client_name: str
    client_email: str
    client_phone: str
    created_by: UserSummary
    created_at: datetime
    updated_at: datetime


class ProjectListItem(ProjectResponse):
    stats: ProjectListStats


# =============================================================================
# Tasks
# =============================================================================


class TaskCreateRequest(Schema):
    """New tasks always start in TODO."""

    project_id: int
    title: str = Field(min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    priority: PriorityLevel = "MEDIUM"
    assigned_to_id: AssigneeRef | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    estimated_hours: Hours = Field(default=None, ge=0, le=1000)


class TaskUpdateRequest(Schema):
    """
    Partial update.

    Only fields present in the body are applied; an explicit null
    assigned_to_id unassigns the task.
    """

    title: str | None = Field(default=None, min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus | None = None
    priority: PriorityLevel | None = None
    assigned_to_id: AssigneeRef | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    estimated_hours: Hours = Field(default=None, ge=0, le=1000)
    actual_hours: Hours = Field(default=None, ge=0, le=1000)


class TaskStatusRequest(Schema):
    status: TaskStatus


class TaskFilterParams(Schema):
    """Scope is one project, one company, or every accessible company."""

    project_id: int | None = None
    company_id: int | None = None
    status: TaskStatus | None = None
    priority: PriorityLevel | None = None
    assigned_to_id: AssigneeRef | None = None
    search: str | None = Field(default=None, max_length=100)


class MyTaskFilterParams(Schema):
    status: TaskStatus | None = None
    priority: PriorityLevel | None = None


class TaskResponse(Schema):
    id: int
    project: ProjectSummary
    title: str
    description: str
    status: TaskStatus
    priority: PriorityLevel
    start_date: datetime | None
    due_date: datetime | None
    estimated_hours: float | None
    actual_hours: float | None
    created_by: UserSummary
    assigned_to: UserSummary | None
    created_at: datetime
    updated_at: datetime


class ProjectDetailResponse(ProjectResponse):
    """Project with its company, tasks and task statistics."""

    company: CompanySummary
    tasks: list[TaskResponse]
    stats: ProjectDetailStats
