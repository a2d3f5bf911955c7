"""
Company services - company CRUD and the worker invitation lifecycle.

Worker lifecycle:
    (none) --invite--> INVITED --accept--> ACTIVE --> INACTIVE / LEFT
                       INVITED --reject--> (row deleted)
    LEFT --invite--> INVITED (the row is reused; one row per user/company)
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import Count, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.companies.membership import (
    Role,
    accessible_company_ids,
    can_edit_company,
    get_visible_company,
    resolve_role,
)
from apps.companies.models import Company, Worker
from apps.companies.schemas import CompanyWriteRequest, InviteWorkerRequest, UpdateWorkerRequest
from apps.core.exceptions import ConflictError, DomainError, NotFoundError, ValidationFailedError
from apps.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

DUPLICATE_TAX_ID = "A company with this tax id already exists"


@dataclass
class BulkInviteResult:
    """Outcome of a bulk invitation."""

    invited: list[Worker] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _clean_tax_id(value: str | None) -> str | None:
    return _clean(value) or None


def _with_worker_count(queryset: QuerySet[Company]) -> QuerySet[Company]:
    return queryset.select_related("created_by").annotate(
        worker_count=Count("workers", distinct=True)
    )


def _get_owned_company(user: User, company_id: int) -> Company:
    """Owner-only operations treat non-owners exactly like a missing company."""
    company = Company.objects.filter(pk=company_id, created_by_id=user.pk).first()
    if company is None:
        raise NotFoundError("Company not found")
    return company


def _apply_company_fields(company: Company, data: CompanyWriteRequest) -> None:
    company.name = data.name.strip()
    company.tax_id = _clean_tax_id(data.tax_id)
    company.address = _clean(data.address)
    company.latitude = data.latitude
    company.longitude = data.longitude
    company.phone = _clean(data.phone)
    company.email = _clean(data.email)
    company.website = _clean(data.website)
    company.description = _clean(data.description)


def _ensure_tax_id_free(tax_id: str | None, exclude_pk: int | None = None) -> None:
    if tax_id is None:
        return
    clashes = Company.objects.filter(tax_id=tax_id)
    if exclude_pk is not None:
        clashes = clashes.exclude(pk=exclude_pk)
    if clashes.exists():
        raise ConflictError(DUPLICATE_TAX_ID)


def _save_company(company: Company) -> None:
    """Save, turning a lost race on the tax id constraint into a conflict."""
    try:
        with transaction.atomic():
            company.save()
    except IntegrityError:
        raise ConflictError(DUPLICATE_TAX_ID) from None


# =============================================================================
# Companies
# =============================================================================


def list_companies(user: User) -> list[tuple[Company, Role | None]]:
    """Companies the user owns or actively works for, each with the user's role."""
    companies = _with_worker_count(
        Company.objects.filter(pk__in=accessible_company_ids(user))
    ).order_by("-created_at")
    return [(company, resolve_role(user, company)) for company in companies]


def get_company(user: User, company_id: int) -> tuple[Company, Role]:
    """
    Load a visible company with worker count and workforce prefetched.

    Raises:
        NotFoundError: If absent or not visible to the user
    """
    _, role = get_visible_company(user, company_id)
    company = (
        _with_worker_count(Company.objects.filter(pk=company_id))
        .prefetch_related("workers__user")
        .get()
    )
    return company, role


def create_company(user: User, data: CompanyWriteRequest) -> Company:
    """
    Create a company owned by the user.

    Raises:
        ConflictError: If the tax id is already taken
    """
    company = Company(created_by=user)
    _apply_company_fields(company, data)
    _ensure_tax_id_free(company.tax_id)
    _save_company(company)

    logger.info("company_created", company_id=company.id, user_id=user.id)
    return company


def update_company(user: User, company_id: int, data: CompanyWriteRequest) -> Company:
    """
    Replace company details. Requires the owner or a worker with can_edit.

    Raises:
        NotFoundError: If absent, invisible, or the user may not edit it
        ConflictError: If the new tax id belongs to another company
    """
    company = Company.objects.filter(pk=company_id).first()
    if company is None or not can_edit_company(user, company):
        raise NotFoundError("Company not found")

    new_tax_id = _clean_tax_id(data.tax_id)
    if new_tax_id != company.tax_id:
        _ensure_tax_id_free(new_tax_id, exclude_pk=company.pk)

    _apply_company_fields(company, data)
    _save_company(company)

    logger.info("company_updated", company_id=company.id, user_id=user.id)
    return company


def delete_company(user: User, company_id: int) -> None:
    """
    Delete a company with its workers, projects and tasks. Owner only.

    Raises:
        NotFoundError: If absent or the user is not the owner
    """
    company = _get_owned_company(user, company_id)
    company.delete()
    logger.info("company_deleted", company_id=company_id, user_id=user.id)


# =============================================================================
# Workers
# =============================================================================


def list_workers(user: User, company_id: int) -> list[Worker]:
    """All worker rows of a visible company, regardless of status."""
    company, _ = get_visible_company(user, company_id)
    return list(Worker.objects.filter(company=company).select_related("user"))


def _invite(company: Company, data: InviteWorkerRequest) -> Worker:
    email = User.objects.normalize_email(data.email)
    try:
        validate_email(email)
    except ValidationError:
        raise ValidationFailedError("Enter a valid email address") from None

    invited_user = User.objects.filter(email=email).first()
    if invited_user is None:
        raise NotFoundError("No account exists for this email address")
    if company.is_owner(invited_user.pk):
        raise ConflictError("This user is already a member of the company")

    existing = Worker.objects.select_for_update().filter(user=invited_user, company=company).first()
    if existing is not None and existing.status != Worker.Status.LEFT:
        raise ConflictError("This user is already a member of the company")

    worker = existing or Worker(user=invited_user, company=company)
    worker.status = Worker.Status.INVITED
    worker.position = _clean(data.position)
    worker.can_edit = data.can_edit
    worker.can_view = data.can_view
    worker.can_manage_finance = data.can_manage_finance
    worker.invited_at = timezone.now()
    worker.joined_at = None
    worker.left_at = None
    try:
        with transaction.atomic():
            worker.save()
    except IntegrityError:
        raise ConflictError("This user is already a member of the company") from None

    logger.info(
        "worker_invited",
        company_id=company.id,
        worker_id=worker.id,
        invited_user_id=invited_user.id,
        reinvite=existing is not None,
    )
    return worker


@transaction.atomic
def invite_worker(user: User, company_id: int, data: InviteWorkerRequest) -> Worker:
    """
    Invite an existing user to the company. Owner only.

    Raises:
        NotFoundError: If the caller is not the owner, or no account has the email
        ValidationFailedError: If the email is malformed
        ConflictError: If the user already has a membership row
    """
    company = _get_owned_company(user, company_id)
    return _invite(company, data)


def bulk_invite_workers(
    user: User, company_id: int, invitations: "Iterable[InviteWorkerRequest]"
) -> BulkInviteResult:
    """
    Invite several users. Each entry succeeds or fails on its own.

    Raises:
        NotFoundError: If the caller is not the owner
    """
    company = _get_owned_company(user, company_id)
    result = BulkInviteResult()

    for invitation in invitations:
        try:
            with transaction.atomic():
                result.invited.append(_invite(company, invitation))
        except DomainError as e:
            result.errors.append((invitation.email, e.message))

    logger.info(
        "workers_bulk_invited",
        company_id=company.id,
        invited=len(result.invited),
        failed=len(result.errors),
    )
    return result


@transaction.atomic
def update_worker(
    user: User, company_id: int, worker_id: int, data: UpdateWorkerRequest
) -> Worker:
    """
    Owner-side update of a worker's position, flags or status.

    Moving to ACTIVE stamps joined_at; moving to INACTIVE or LEFT stamps left_at.

    Raises:
        NotFoundError: If the caller is not the owner or the worker is not in the company
    """
    company = _get_owned_company(user, company_id)
    worker = (
        Worker.objects.select_for_update()
        .select_related("user")
        .filter(pk=worker_id, company=company)
        .first()
    )
    if worker is None:
        raise NotFoundError("Worker not found")

    if data.position is not None:
        worker.position = data.position.strip()
    if data.can_edit is not None:
        worker.can_edit = data.can_edit
    if data.can_view is not None:
        worker.can_view = data.can_view
    if data.can_manage_finance is not None:
        worker.can_manage_finance = data.can_manage_finance

    if data.status is not None and data.status != worker.status:
        now = timezone.now()
        if data.status == Worker.Status.ACTIVE:
            worker.joined_at = now
            worker.left_at = None
        elif data.status in (Worker.Status.INACTIVE, Worker.Status.LEFT):
            worker.left_at = now
        worker.status = data.status

    worker.save()
    logger.info(
        "worker_updated",
        company_id=company.id,
        worker_id=worker.id,
        status=worker.status,
        can_edit=worker.can_edit,
    )
    return worker


def remove_worker(user: User, company_id: int, worker_id: int) -> None:
    """
    Delete a worker row. Owner only.

    Raises:
        NotFoundError: If the caller is not the owner or the worker is not in the company
    """
    company = _get_owned_company(user, company_id)
    deleted, _ = Worker.objects.filter(pk=worker_id, company=company).delete()
    if not deleted:
        raise NotFoundError("Worker not found")
    logger.info("worker_removed", company_id=company.id, worker_id=worker_id)


def _get_own_invitation(user: User, company_id: int) -> Worker:
    worker = (
        Worker.objects.select_for_update()
        .select_related("company", "user")
        .filter(user=user, company_id=company_id)
        .first()
    )
    if worker is None:
        raise NotFoundError("Invitation not found")
    if worker.status != Worker.Status.INVITED:
        raise ConflictError("Invitation has already been processed")
    return worker


@transaction.atomic
def accept_invitation(user: User, company_id: int) -> Worker:
    """
    Accept a pending invitation: INVITED -> ACTIVE.

    Raises:
        NotFoundError: If the user has no membership row in the company
        ConflictError: If the row is not INVITED
    """
    worker = _get_own_invitation(user, company_id)
    worker.status = Worker.Status.ACTIVE
    worker.joined_at = timezone.now()
    worker.save(update_fields=["status", "joined_at", "updated_at"])

    logger.info("invitation_accepted", company_id=company_id, worker_id=worker.id)
    return worker


@transaction.atomic
def reject_invitation(user: User, company_id: int) -> None:
    """
    Reject a pending invitation; the row is deleted.

    Raises:
        NotFoundError: If the user has no membership row in the company
        ConflictError: If the row is not INVITED
    """
    worker = _get_own_invitation(user, company_id)
    worker.delete()
    logger.info("invitation_rejected", company_id=company_id, user_id=user.id)


@transaction.atomic
def leave_company(user: User, company_id: int) -> Worker:
    """
    An ACTIVE worker leaves the company: ACTIVE -> LEFT.

    Raises:
        NotFoundError: If the company is not visible to the user
        ValidationFailedError: If the user is the owner
    """
    company, role = get_visible_company(user, company_id)
    if role.is_owner:
        raise ValidationFailedError("The owner cannot leave their own company")

    worker = Worker.objects.select_for_update().select_related("user").get(pk=role.worker.pk)
    worker.status = Worker.Status.LEFT
    worker.left_at = timezone.now()
    worker.save(update_fields=["status", "left_at", "updated_at"])

    logger.info("worker_left", company_id=company.id, worker_id=worker.id)
    return worker
