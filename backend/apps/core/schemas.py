"""
Core schemas - shared Pydantic models for API responses.
"""

from ninja import Schema
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(default="error", description="Stable error classification")

    model_config = {
        "json_schema_extra": {"example": {"detail": "Project not found", "code": "not_found"}}
    }


class MessageResponse(BaseModel):
    """Simple acknowledgement response."""

    message: str


class UserSummary(Schema):
    """Public projection of a user embedded in other responses."""

    id: int
    email: str
    first_name: str
    last_name: str
    display_name: str
