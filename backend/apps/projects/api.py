"""
Project and task API endpoints.

Two routers: ``router`` is mounted at /projects, ``tasks_router`` at /tasks.
"""

from django.http import HttpRequest
from ninja import Query, Router

from apps.core.schemas import ErrorResponse, MessageResponse, UserSummary
from apps.core.security import BearerAuth, get_auth_context
from apps.projects.models import Project, Task
from apps.projects.schemas import (
    CompanySummary,
    MyTaskFilterParams,
    ProjectCreateRequest,
    ProjectDetailResponse,
    ProjectDetailStats,
    ProjectFilterParams,
    ProjectListItem,
    ProjectListStats,
    ProjectResponse,
    ProjectStatistics,
    ProjectUpdateRequest,
    TaskCreateRequest,
    TaskFilterParams,
    TaskResponse,
    TaskStatusRequest,
    TaskUpdateRequest,
)
from apps.projects.services import (
    create_project,
    create_task,
    delete_project,
    delete_task,
    get_project,
    get_task,
    list_my_tasks,
    list_projects,
    list_tasks,
    project_detail_stats,
    project_statistics,
    update_project,
    update_task,
    update_task_status,
)

router = Router(tags=["projects"])
tasks_router = Router(tags=["tasks"])
bearer_auth = BearerAuth()

ERRORS = {400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse}


def _project_fields(project: Project) -> dict:
    return {
        "id": project.id,
        "company_id": project.company_id,
        "name": project.name,
        "description": project.description,
        "status": project.status,
        "priority": project.priority,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "deadline": project.deadline,
        "budget": float(project.budget) if project.budget is not None else None,
        "location": project.location,
        "client_name": project.client_name,
        "client_email": project.client_email,
        "client_phone": project.client_phone,
        "created_by": UserSummary.from_orm(project.created_by),
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


def _project_list_item(project: Project) -> ProjectListItem:
    return ProjectListItem(
        **_project_fields(project),
        stats=ProjectListStats(
            total_tasks=project.total_tasks,
            todo_tasks=project.todo_tasks,
            in_progress_tasks=project.in_progress_tasks,
            done_tasks=project.done_tasks,
            high_priority_tasks=project.high_priority_tasks,
        ),
    )


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse.from_orm(task)


# =============================================================================
# Projects
# =============================================================================


@router.get(
    "/",
    response={200: list[ProjectListItem], **ERRORS},
    auth=bearer_auth,
    operation_id="listProjects",
    summary="List projects of a company",
)
def list_projects_endpoint(
    request: HttpRequest, filters: Query[ProjectFilterParams]
) -> list[ProjectListItem]:
    """Projects annotated with task statistics, newest first."""
    user = get_auth_context(request)
    projects = list_projects(
        user,
        filters.company_id,
        status=filters.status,
        priority=filters.priority,
        search=filters.search,
    )
    return [_project_list_item(project) for project in projects]


@router.post(
    "/",
    response={201: ProjectResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="createProject",
    summary="Create a project",
)
def create_project_endpoint(
    request: HttpRequest, payload: ProjectCreateRequest
) -> tuple[int, ProjectResponse]:
    user = get_auth_context(request)
    project = create_project(user, payload)
    return 201, ProjectResponse(**_project_fields(project))


@router.get(
    "/{project_id}",
    response={200: ProjectDetailResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="getProject",
    summary="Get a project with its tasks",
)
def get_project_endpoint(request: HttpRequest, project_id: int) -> ProjectDetailResponse:
    user = get_auth_context(request)
    project = get_project(user, project_id)
    return ProjectDetailResponse(
        **_project_fields(project),
        company=CompanySummary.from_orm(project.company),
        tasks=[_task_response(task) for task in project.tasks.all()],
        stats=ProjectDetailStats(**project_detail_stats(project)),
    )


@router.put(
    "/{project_id}",
    response={200: ProjectResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="updateProject",
    summary="Update a project",
)
def update_project_endpoint(
    request: HttpRequest, project_id: int, payload: ProjectUpdateRequest
) -> ProjectResponse:
    user = get_auth_context(request)
    project = update_project(user, project_id, payload)
    return ProjectResponse(**_project_fields(project))


@router.delete(
    "/{project_id}",
    response={200: MessageResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="deleteProject",
    summary="Delete an empty project",
)
def delete_project_endpoint(request: HttpRequest, project_id: int) -> MessageResponse:
    """Owner or project creator only; the project must not contain tasks."""
    user = get_auth_context(request)
    delete_project(user, project_id)
    return MessageResponse(message="Project deleted")


@router.get(
    "/{project_id}/stats",
    response={200: ProjectStatistics, **ERRORS},
    auth=bearer_auth,
    operation_id="getProjectStatistics",
    summary="Get project task statistics",
)
def project_statistics_endpoint(request: HttpRequest, project_id: int) -> ProjectStatistics:
    user = get_auth_context(request)
    return ProjectStatistics(**project_statistics(user, project_id))


# =============================================================================
# Tasks
# =============================================================================


@tasks_router.get(
    "/",
    response={200: list[TaskResponse], **ERRORS},
    auth=bearer_auth,
    operation_id="listTasks",
    summary="List tasks",
)
def list_tasks_endpoint(
    request: HttpRequest, filters: Query[TaskFilterParams]
) -> list[TaskResponse]:
    """Tasks of one project, one company, or all accessible companies."""
    user = get_auth_context(request)
    tasks = list_tasks(
        user,
        project_id=filters.project_id,
        company_id=filters.company_id,
        status=filters.status,
        priority=filters.priority,
        assigned_to_id=filters.assigned_to_id,
        search=filters.search,
    )
    return [_task_response(task) for task in tasks]


@tasks_router.get(
    "/my",
    response={200: list[TaskResponse], 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listMyTasks",
    summary="List tasks assigned to me",
)
def list_my_tasks_endpoint(
    request: HttpRequest, filters: Query[MyTaskFilterParams]
) -> list[TaskResponse]:
    user = get_auth_context(request)
    tasks = list_my_tasks(user, status=filters.status, priority=filters.priority)
    return [_task_response(task) for task in tasks]


@tasks_router.post(
    "/",
    response={201: TaskResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="createTask",
    summary="Create a task",
)
def create_task_endpoint(
    request: HttpRequest, payload: TaskCreateRequest
) -> tuple[int, TaskResponse]:
    """Create a task. assigned_to_id may be "me" to self-assign."""
    user = get_auth_context(request)
    task = create_task(user, payload)
    return 201, _task_response(task)


@tasks_router.get(
    "/{task_id}",
    response={200: TaskResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="getTask",
    summary="Get a task",
)
def get_task_endpoint(request: HttpRequest, task_id: int) -> TaskResponse:
    user = get_auth_context(request)
    return _task_response(get_task(user, task_id))


@tasks_router.put(
    "/{task_id}",
    response={200: TaskResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="updateTask",
    summary="Update a task",
)
def update_task_endpoint(
    request: HttpRequest, task_id: int, payload: TaskUpdateRequest
) -> TaskResponse:
    user = get_auth_context(request)
    return _task_response(update_task(user, task_id, payload))


@tasks_router.patch(
    "/{task_id}/status",
    response={200: TaskResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="updateTaskStatus",
    summary="Change a task's status",
)
def update_task_status_endpoint(
    request: HttpRequest, task_id: int, payload: TaskStatusRequest
) -> TaskResponse:
    """Quick action, also available to the task's assignee."""
    user = get_auth_context(request)
    return _task_response(update_task_status(user, task_id, payload.status))


@tasks_router.delete(
    "/{task_id}",
    response={200: MessageResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="deleteTask",
    summary="Delete a task",
)
def delete_task_endpoint(request: HttpRequest, task_id: int) -> MessageResponse:
    user = get_auth_context(request)
    delete_task(user, task_id)
    return MessageResponse(message="Task deleted")
