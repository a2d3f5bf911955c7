"""
Auth API schemas - Pydantic models for request/response.
"""

from pydantic import BaseModel, EmailStr, Field

from apps.core.schemas import UserSummary


class TokenRequest(BaseModel):
    """Request to exchange credentials for a session token."""

    email: EmailStr = Field(..., examples=["jan@budowa.pl"])
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Session token for the Authorization header."""

    access_token: str = Field(description="Session JWT. Send as: Authorization: Bearer <token>")
    token_type: str = "bearer"
    user: UserSummary


class UpdateProfileRequest(BaseModel):
    """Request to update the current user's profile."""

    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
