"""
Tests for membership resolution.

Covers the owner/worker role split, status gating and visibility helpers.
"""

import pytest

from apps.companies.membership import (
    Capabilities,
    OwnerRole,
    WorkerRole,
    accessible_company_ids,
    can_access_company,
    can_edit_company,
    get_visible_company,
    is_company_member,
    member_user_ids,
    resolve,
    resolve_role,
    role_projection,
    visible_companies,
)
from apps.companies.models import Worker
from apps.core.exceptions import NotFoundError
from tests.accounts.factories import UserFactory
from tests.companies.factories import CompanyFactory, WorkerFactory


@pytest.mark.django_db
class TestResolve:
    """Tests for resolve / resolve_role."""

    def test_owner_gets_full_capabilities(self, company, owner) -> None:
        """The creator resolves to OwnerRole with every flag set."""
        role = resolve_role(owner, company)

        assert isinstance(role, OwnerRole)
        assert resolve(owner, company) == Capabilities.full()

    @pytest.mark.parametrize(
        "status", [Worker.Status.ACTIVE, Worker.Status.INACTIVE, Worker.Status.LEFT]
    )
    def test_owner_with_worker_row_still_full(self, company, owner, status) -> None:
        """A Worker row for the owner, whatever its flags, does not reduce access."""
        WorkerFactory.create(user=owner, company=company, status=status, can_edit=False)

        assert resolve(owner, company) == Capabilities.full()

    def test_active_worker_gets_row_flags_verbatim(self, company) -> None:
        """An ACTIVE worker's capabilities are exactly its flags."""
        worker = WorkerFactory.create(
            company=company, can_edit=True, can_view=False, can_manage_finance=True
        )

        role = resolve_role(worker.user, company)

        assert isinstance(role, WorkerRole)
        assert role.worker == worker
        assert resolve(worker.user, company) == Capabilities(
            can_edit=True, can_view=False, can_manage_finance=True
        )

    @pytest.mark.parametrize(
        "status", [Worker.Status.INVITED, Worker.Status.INACTIVE, Worker.Status.LEFT]
    )
    def test_non_active_worker_has_no_access(self, company, status) -> None:
        """Only ACTIVE rows grant anything."""
        worker = WorkerFactory.create(company=company, status=status, can_edit=True)

        assert resolve(worker.user, company) is None
        assert not can_access_company(worker.user, company)

    def test_stranger_has_no_access(self, company, outsider) -> None:
        assert resolve(outsider, company) is None

    def test_flag_changes_are_seen_immediately(self, company) -> None:
        """Nothing is cached between checks."""
        worker = WorkerFactory.create(company=company, can_edit=False)
        assert not can_edit_company(worker.user, company)

        Worker.objects.filter(pk=worker.pk).update(can_edit=True)

        assert can_edit_company(worker.user, company)


@pytest.mark.django_db
class TestMembershipHelpers:
    """Tests for membership predicates and visibility queries."""

    def test_is_company_member(self, company, owner, editor, outsider) -> None:
        invited = WorkerFactory.create(company=company, status=Worker.Status.INVITED)

        assert is_company_member(owner.pk, company)
        assert is_company_member(editor.pk, company)
        assert not is_company_member(invited.user_id, company)
        assert not is_company_member(outsider.pk, company)

    def test_member_user_ids_includes_owner_and_active_workers(
        self, company, owner, editor, viewer
    ) -> None:
        WorkerFactory.create(company=company, status=Worker.Status.LEFT)

        assert member_user_ids(company) == {owner.pk, editor.pk, viewer.pk}

    def test_visible_companies(self, company, editor) -> None:
        """Owned and ACTIVE-joined companies are visible, without duplicates."""
        own = CompanyFactory.create(created_by=editor)
        WorkerFactory.create(user=editor, company=own)
        invited_to = CompanyFactory.create()
        WorkerFactory.create(user=editor, company=invited_to, status=Worker.Status.INVITED)

        ids = list(visible_companies(editor).values_list("id", flat=True))

        assert sorted(ids) == sorted([company.id, own.id])
        assert sorted(accessible_company_ids(editor)) == sorted([company.id, own.id])

    def test_get_visible_company_merges_missing_and_invisible(self, company, outsider) -> None:
        """Absent and invisible companies raise the same error."""
        with pytest.raises(NotFoundError):
            get_visible_company(outsider, company.id)
        with pytest.raises(NotFoundError):
            get_visible_company(outsider, 999999)

    def test_get_visible_company_returns_role(self, company, viewer) -> None:
        found, role = get_visible_company(viewer, company.id)

        assert found == company
        assert role.name == "WORKER"

    def test_role_projection(self, company, owner, viewer) -> None:
        assert role_projection(resolve_role(owner, company)) == {
            "user_role": "OWNER",
            "user_permissions": {"can_edit": True, "can_view": True, "can_manage_finance": True},
        }
        assert role_projection(resolve_role(viewer, company))["user_permissions"] == {
            "can_edit": False,
            "can_view": True,
            "can_manage_finance": False,
        }
        assert role_projection(None) == {"user_role": None, "user_permissions": None}

    def test_user_owning_one_company_is_stranger_to_another(self, company) -> None:
        other_owner = UserFactory.create()
        CompanyFactory.create(created_by=other_owner)

        assert resolve(other_owner, company) is None
