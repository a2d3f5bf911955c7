"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI
from ninja.errors import ValidationError

from apps.accounts.api import router as auth_router
from apps.companies.api import router as companies_router
from apps.core.exceptions import DomainError, ValidationFailedError
from apps.core.logging import get_logger
from apps.notifications.api import router as notifications_router
from apps.projects.api import router as projects_router
from apps.projects.api import tasks_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="SiteBoss API",
    version="1.0.0",
    description="Construction company management: companies, workers, projects and tasks.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {"name": "auth", "description": "Credential login and the current user"},
            {"name": "companies", "description": "Companies, workers and invitations"},
            {"name": "projects", "description": "Company projects and their statistics"},
            {"name": "tasks", "description": "Project tasks and their lifecycle"},
            {"name": "notifications", "description": "The caller's notification inbox"},
            {"name": "health", "description": "Service health and readiness checks"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                    "description": "Session JWT obtained from /auth/token. Include as: Authorization: Bearer <token>",
                }
            }
        },
    },
)


@api.exception_handler(DomainError)
def domain_error_handler(request: HttpRequest, exc: DomainError) -> HttpResponse:
    """Render a rejected operation as {"detail", "code"} with the error's status."""
    logger.info(
        "request_rejected",
        code=exc.code,
        status_code=exc.status_code,
        detail=exc.message,
    )
    return api.create_response(
        request,
        {"detail": exc.message, "code": exc.code},
        status=exc.status_code,
    )


@api.exception_handler(ValidationError)
def schema_error_handler(request: HttpRequest, exc: ValidationError) -> HttpResponse:
    """Render request schema failures (bad enum value, missing field) as validation_failed."""
    problems = []
    for error in exc.errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid")
        problems.append(f"{location}: {message}" if location else message)
    detail = "; ".join(problems) or "Invalid request"

    logger.info(
        "request_rejected",
        code=ValidationFailedError.code,
        status_code=ValidationFailedError.status_code,
        detail=detail,
    )
    return api.create_response(
        request,
        {"detail": detail, "code": ValidationFailedError.code},
        status=ValidationFailedError.status_code,
    )


# Register routers
api.add_router("/auth", auth_router)
api.add_router("/companies", companies_router)
api.add_router("/projects", projects_router)
api.add_router("/tasks", tasks_router)
api.add_router("/notifications", notifications_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
