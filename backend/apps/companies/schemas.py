"""
Pydantic schemas for company and worker API endpoints.
"""

from datetime import datetime
from typing import Literal

from ninja import Schema
from pydantic import Field

from apps.core.schemas import UserSummary

WorkerStatus = Literal["INVITED", "ACTIVE", "INACTIVE", "LEFT"]


class CompanyWriteRequest(Schema):
    """Fields accepted when creating or replacing a company."""

    name: str = Field(min_length=2, max_length=200)
    tax_id: str | None = Field(default=None, max_length=20, description="NIP, globally unique")
    address: str | None = Field(default=None, max_length=255)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    phone: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=254)
    website: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class PermissionsSchema(Schema):
    """Capability flags of the caller in a company."""

    can_edit: bool
    can_view: bool
    can_manage_finance: bool


class WorkerResponse(Schema):
    """A worker row with its user."""

    id: int
    user: UserSummary
    company_id: int
    position: str
    status: WorkerStatus
    can_edit: bool
    can_view: bool
    can_manage_finance: bool
    invited_at: datetime
    joined_at: datetime | None
    left_at: datetime | None


class CompanyResponse(Schema):
    """Company annotated with the caller's role."""

    id: int
    name: str
    tax_id: str | None
    address: str
    latitude: float | None
    longitude: float | None
    phone: str
    email: str
    website: str
    description: str
    created_by: UserSummary
    worker_count: int
    user_role: Literal["OWNER", "WORKER"] | None
    user_permissions: PermissionsSchema | None
    created_at: datetime
    updated_at: datetime


class CompanyDetailResponse(CompanyResponse):
    """Company with its workforce."""

    workers: list[WorkerResponse]


class InviteWorkerRequest(Schema):
    """Invite an existing user to a company."""

    email: str = Field(max_length=254, description="Email of an existing account")
    position: str | None = Field(default=None, max_length=100)
    can_edit: bool = False
    can_view: bool = True
    can_manage_finance: bool = False


class BulkInviteRequest(Schema):
    """Invite several users at once."""

    invitations: list[InviteWorkerRequest] = Field(min_length=1, max_length=100)


class BulkInviteError(Schema):
    email: str
    error: str


class BulkInviteSummary(Schema):
    total: int
    successful: int
    failed: int


class BulkInviteResponse(Schema):
    """Per-entry outcome of a bulk invitation."""

    success: list[WorkerResponse]
    errors: list[BulkInviteError]
    summary: BulkInviteSummary


class UpdateWorkerRequest(Schema):
    """Owner-side update of a worker. Omitted fields stay unchanged."""

    position: str | None = Field(default=None, max_length=100)
    can_edit: bool | None = None
    can_view: bool | None = None
    can_manage_finance: bool | None = None
    status: WorkerStatus | None = None
