"""
Company API endpoints.

Company CRUD, the owner's workforce management, and a worker's side of the
invitation lifecycle (accept, reject, leave).
"""

from django.http import HttpRequest
from ninja import Router

from apps.companies.membership import OwnerRole, Role, resolve_role, role_projection
from apps.companies.models import Company, Worker
from apps.companies.schemas import (
    BulkInviteError,
    BulkInviteRequest,
    BulkInviteResponse,
    BulkInviteSummary,
    CompanyDetailResponse,
    CompanyResponse,
    CompanyWriteRequest,
    InviteWorkerRequest,
    UpdateWorkerRequest,
    WorkerResponse,
)
from apps.companies.services import (
    accept_invitation,
    bulk_invite_workers,
    create_company,
    delete_company,
    get_company,
    invite_worker,
    leave_company,
    list_companies,
    list_workers,
    reject_invitation,
    remove_worker,
    update_company,
    update_worker,
)
from apps.core.schemas import ErrorResponse, MessageResponse, UserSummary
from apps.core.security import BearerAuth, get_auth_context

router = Router(tags=["companies"])
bearer_auth = BearerAuth()

ERRORS = {400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse}


def _worker_count(company: Company) -> int:
    annotated = getattr(company, "worker_count", None)
    if annotated is not None:
        return annotated
    return company.workers.count()


def _company_fields(company: Company, role: Role | None) -> dict:
    return {
        "id": company.id,
        "name": company.name,
        "tax_id": company.tax_id,
        "address": company.address,
        "latitude": company.latitude,
        "longitude": company.longitude,
        "phone": company.phone,
        "email": company.email,
        "website": company.website,
        "description": company.description,
        "created_by": UserSummary.from_orm(company.created_by),
        "worker_count": _worker_count(company),
        "created_at": company.created_at,
        "updated_at": company.updated_at,
        **role_projection(role),
    }


def _company_response(company: Company, role: Role | None) -> CompanyResponse:
    return CompanyResponse(**_company_fields(company, role))


def _worker_response(worker: Worker) -> WorkerResponse:
    return WorkerResponse.from_orm(worker)


# =============================================================================
# Companies
# =============================================================================


@router.get(
    "/",
    response={200: list[CompanyResponse], 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listCompanies",
    summary="List companies the caller owns or works for",
)
def list_companies_endpoint(request: HttpRequest) -> list[CompanyResponse]:
    user = get_auth_context(request)
    return [_company_response(company, role) for company, role in list_companies(user)]


@router.post(
    "/",
    response={201: CompanyResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="createCompany",
    summary="Create a company",
)
def create_company_endpoint(
    request: HttpRequest, payload: CompanyWriteRequest
) -> tuple[int, CompanyResponse]:
    """Create a company; the caller becomes its owner."""
    user = get_auth_context(request)
    company = create_company(user, payload)
    return 201, _company_response(company, OwnerRole(company=company))


@router.get(
    "/{company_id}",
    response={200: CompanyDetailResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="getCompany",
    summary="Get a company with its workers",
)
def get_company_endpoint(request: HttpRequest, company_id: int) -> CompanyDetailResponse:
    user = get_auth_context(request)
    company, role = get_company(user, company_id)
    return CompanyDetailResponse(
        **_company_fields(company, role),
        workers=[_worker_response(worker) for worker in company.workers.all()],
    )


@router.put(
    "/{company_id}",
    response={200: CompanyResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="updateCompany",
    summary="Update company details",
)
def update_company_endpoint(
    request: HttpRequest, company_id: int, payload: CompanyWriteRequest
) -> CompanyResponse:
    """Replace company details. Owner or workers with edit rights."""
    user = get_auth_context(request)
    company = update_company(user, company_id, payload)
    return _company_response(company, resolve_role(user, company))


@router.delete(
    "/{company_id}",
    response={200: MessageResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="deleteCompany",
    summary="Delete a company",
)
def delete_company_endpoint(request: HttpRequest, company_id: int) -> MessageResponse:
    """Delete the company with all its workers, projects and tasks. Owner only."""
    user = get_auth_context(request)
    delete_company(user, company_id)
    return MessageResponse(message="Company deleted")


# =============================================================================
# Workers (owner side)
# =============================================================================


@router.get(
    "/{company_id}/workers",
    response={200: list[WorkerResponse], **ERRORS},
    auth=bearer_auth,
    operation_id="listWorkers",
    summary="List company workers",
)
def list_workers_endpoint(request: HttpRequest, company_id: int) -> list[WorkerResponse]:
    user = get_auth_context(request)
    return [_worker_response(worker) for worker in list_workers(user, company_id)]


@router.post(
    "/{company_id}/workers/invite",
    response={201: WorkerResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="inviteWorker",
    summary="Invite a user to the company",
)
def invite_worker_endpoint(
    request: HttpRequest, company_id: int, payload: InviteWorkerRequest
) -> tuple[int, WorkerResponse]:
    """Invite an existing account by email. Owner only."""
    user = get_auth_context(request)
    worker = invite_worker(user, company_id, payload)
    return 201, _worker_response(worker)


@router.post(
    "/{company_id}/workers/invite/bulk",
    response={200: BulkInviteResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="bulkInviteWorkers",
    summary="Invite several users at once",
)
def bulk_invite_endpoint(
    request: HttpRequest, company_id: int, payload: BulkInviteRequest
) -> BulkInviteResponse:
    """Each invitation succeeds or fails independently."""
    user = get_auth_context(request)
    result = bulk_invite_workers(user, company_id, payload.invitations)
    return BulkInviteResponse(
        success=[_worker_response(worker) for worker in result.invited],
        errors=[BulkInviteError(email=email, error=error) for email, error in result.errors],
        summary=BulkInviteSummary(
            total=len(payload.invitations),
            successful=len(result.invited),
            failed=len(result.errors),
        ),
    )


@router.patch(
    "/{company_id}/workers/{worker_id}",
    response={200: WorkerResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="updateWorker",
    summary="Update a worker's position, permissions or status",
)
def update_worker_endpoint(
    request: HttpRequest, company_id: int, worker_id: int, payload: UpdateWorkerRequest
) -> WorkerResponse:
    user = get_auth_context(request)
    worker = update_worker(user, company_id, worker_id, payload)
    return _worker_response(worker)


@router.delete(
    "/{company_id}/workers/{worker_id}",
    response={200: MessageResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="removeWorker",
    summary="Remove a worker from the company",
)
def remove_worker_endpoint(
    request: HttpRequest, company_id: int, worker_id: int
) -> MessageResponse:
    user = get_auth_context(request)
    remove_worker(user, company_id, worker_id)
    return MessageResponse(message="Worker removed")


# =============================================================================
# Invitations (worker side)
# =============================================================================


@router.post(
    "/{company_id}/invitation/accept",
    response={200: WorkerResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="acceptInvitation",
    summary="Accept a pending invitation",
)
def accept_invitation_endpoint(request: HttpRequest, company_id: int) -> WorkerResponse:
    user = get_auth_context(request)
    worker = accept_invitation(user, company_id)
    return _worker_response(worker)


@router.post(
    "/{company_id}/invitation/reject",
    response={200: MessageResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="rejectInvitation",
    summary="Reject a pending invitation",
)
def reject_invitation_endpoint(request: HttpRequest, company_id: int) -> MessageResponse:
    user = get_auth_context(request)
    reject_invitation(user, company_id)
    return MessageResponse(message="Invitation rejected")


@router.post(
    "/{company_id}/leave",
    response={200: WorkerResponse, **ERRORS},
    auth=bearer_auth,
    operation_id="leaveCompany",
    summary="Leave a company",
)
def leave_company_endpoint(request: HttpRequest, company_id: int) -> WorkerResponse:
    user = get_auth_context(request)
    worker = leave_company(user, company_id)
    return _worker_response(worker)
