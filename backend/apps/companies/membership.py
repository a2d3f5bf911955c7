"""
Membership resolution - who may do what inside a company.

A caller's standing in a company is resolved once per operation into a Role:

    OwnerRole            the company's creator; full capabilities, whether
                         or not a Worker row also exists for them
    WorkerRole(flags)    an ACTIVE Worker; the row's flags verbatim
    None                 no access (no row, or INVITED / INACTIVE / LEFT)

Nothing here is cached. Flags can change between calls, so every
authorization check reads the current Company/Worker state.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from django.db.models import Q, QuerySet

from apps.companies.models import Company, Worker
from apps.core.exceptions import NotFoundError

if TYPE_CHECKING:
    from apps.accounts.models import User


@dataclass(frozen=True)
class Capabilities:
    """Independent capability flags of a company member."""

    can_edit: bool
    can_view: bool
    can_manage_finance: bool

    @classmethod
    def full(cls) -> "Capabilities":
        return cls(can_edit=True, can_view=True, can_manage_finance=True)

    def as_dict(self) -> dict[str, bool]:
        return {
            "can_edit": self.can_edit,
            "can_view": self.can_view,
            "can_manage_finance": self.can_manage_finance,
        }


@dataclass(frozen=True)
class OwnerRole:
    """The company's creator."""

    company: Company

    name = "OWNER"
    is_owner = True

    @property
    def capabilities(self) -> Capabilities:
        return Capabilities.full()


@dataclass(frozen=True)
class WorkerRole:
    """An ACTIVE worker of the company."""

    company: Company
    worker: Worker

    name = "WORKER"
    is_owner = False

    @property
    def capabilities(self) -> Capabilities:
        return Capabilities(
            can_edit=self.worker.can_edit,
            can_view=self.worker.can_view,
            can_manage_finance=self.worker.can_manage_finance,
        )


Role = OwnerRole | WorkerRole


def resolve_role(user: "User", company: Company) -> Role | None:
    """
    Resolve the user's role in a company.

    The owner check comes first, so an owner with a stale Worker row (for
    example INACTIVE) still has full access.
    """
    if company.is_owner(user.pk):
        return OwnerRole(company=company)

    worker = Worker.objects.filter(
        user_id=user.pk,
        company_id=company.pk,
        status=Worker.Status.ACTIVE,
    ).first()
    if worker is None:
        return None
    return WorkerRole(company=company, worker=worker)


def resolve(user: "User", company: Company) -> Capabilities | None:
    """Capabilities of the user in the company, or None for no access."""
    role = resolve_role(user, company)
    return role.capabilities if role is not None else None


def can_access_company(user: "User", company: Company) -> bool:
    return resolve_role(user, company) is not None


def can_edit_company(user: "User", company: Company) -> bool:
    role = resolve_role(user, company)
    return role is not None and role.capabilities.can_edit


def is_company_member(user_id: int, company: Company) -> bool:
    """
    Check whether a user may hold work in the company.

    Members are the owner and ACTIVE workers. Used to validate assignees.
    """
    if company.is_owner(user_id):
        return True
    return Worker.objects.filter(
        user_id=user_id,
        company_id=company.pk,
        status=Worker.Status.ACTIVE,
    ).exists()


def member_user_ids(company: Company) -> set[int]:
    """User ids of the owner and all ACTIVE workers."""
    ids = set(
        Worker.objects.filter(company_id=company.pk, status=Worker.Status.ACTIVE).values_list(
            "user_id", flat=True
        )
    )
    ids.add(company.created_by_id)
    return ids


def visible_companies(user: "User") -> QuerySet[Company]:
    """Companies the user owns or is an ACTIVE worker of."""
    return Company.objects.filter(
        Q(created_by_id=user.pk)
        | Q(workers__user_id=user.pk, workers__status=Worker.Status.ACTIVE)
    ).distinct()


def accessible_company_ids(user: "User") -> list[int]:
    return list(visible_companies(user).values_list("id", flat=True))


def get_visible_company(user: "User", company_id: int) -> tuple[Company, Role]:
    """
    Load a company together with the caller's role.

    Raises:
        NotFoundError: If the company does not exist or the caller has no access
    """
    company = Company.objects.filter(pk=company_id).first()
    if company is None:
        raise NotFoundError("Company not found")
    role = resolve_role(user, company)
    if role is None:
        raise NotFoundError("Company not found")
    return company, role


def role_projection(role: Role | None) -> dict[str, Any]:
    """The user_role / user_permissions annotation used in company responses."""
    if role is None:
        return {"user_role": None, "user_permissions": None}
    return {"user_role": role.name, "user_permissions": role.capabilities.as_dict()}
