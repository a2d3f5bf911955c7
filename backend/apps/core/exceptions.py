"""
Domain error taxonomy.

Services raise these before touching the database; the API layer turns them
into HTTP responses through a single exception handler (see config/api.py).
"""


class DomainError(Exception):
    """Base exception for rejected operations."""

    status_code = 400
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """
    Entity is absent or the caller has no visibility of it.

    Both cases share one error so that existence is never leaked.
    """

    status_code = 404
    code = "not_found"


class ForbiddenError(DomainError):
    """Entity is visible but the operation is not permitted."""

    status_code = 403
    code = "forbidden"


class ValidationFailedError(DomainError):
    """Malformed input, e.g. an assignee outside the company."""

    status_code = 400
    code = "validation_failed"


class ConflictError(DomainError):
    """Uniqueness violation, e.g. duplicate tax id or worker invite."""

    status_code = 400
    code = "conflict"


class PreconditionFailedError(DomainError):
    """Entity state forbids the operation, e.g. deleting a project with tasks."""

    status_code = 400
    code = "precondition_failed"
