"""
Tests for company services.

Tests company CRUD and the worker invitation lifecycle.
"""

import pytest

from apps.companies.models import Company, Worker
from apps.companies.schemas import CompanyWriteRequest, InviteWorkerRequest, UpdateWorkerRequest
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
from apps.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from apps.projects.models import Project
from tests.accounts.factories import UserFactory
from tests.companies.factories import CompanyFactory, WorkerFactory
from tests.projects.factories import ProjectFactory, TaskFactory


def _company_data(**overrides) -> CompanyWriteRequest:
    data = {"name": "Budimex Lite", "tax_id": "1234567890", "address": "ul. Prosta 1"}
    data.update(overrides)
    return CompanyWriteRequest(**data)


@pytest.mark.django_db
class TestCreateCompany:
    """Tests for create_company."""

    def test_creator_becomes_owner(self) -> None:
        user = UserFactory.create()

        company = create_company(user, _company_data())

        assert company.created_by == user
        assert company.is_owner(user.pk)
        assert company.tax_id == "1234567890"

    def test_duplicate_tax_id_is_conflict(self, company) -> None:
        user = UserFactory.create()

        with pytest.raises(ConflictError):
            create_company(user, _company_data(tax_id=company.tax_id))

    def test_blank_tax_id_stored_as_null(self) -> None:
        """Several companies may have no tax id."""
        user = UserFactory.create()

        first = create_company(user, _company_data(tax_id="  "))
        second = create_company(user, _company_data(tax_id=None))

        assert first.tax_id is None
        assert second.tax_id is None


@pytest.mark.django_db
class TestReadCompanies:
    """Tests for list_companies and get_company."""

    def test_list_includes_owned_and_joined_with_roles(self, company, editor) -> None:
        own = CompanyFactory.create(created_by=editor)
        CompanyFactory.create()

        result = {c.id: role for c, role in list_companies(editor)}

        assert set(result) == {company.id, own.id}
        assert result[own.id].name == "OWNER"
        assert result[company.id].name == "WORKER"

    def test_list_annotates_worker_count(self, company, editor, viewer) -> None:
        [(listed, _)] = list_companies(editor)

        assert listed.worker_count == 2

    def test_get_company_hidden_from_outsider(self, company, outsider) -> None:
        with pytest.raises(NotFoundError):
            get_company(outsider, company.id)

    def test_get_company_hidden_from_invited_worker(self, company) -> None:
        invited = WorkerFactory.create(company=company, status=Worker.Status.INVITED)

        with pytest.raises(NotFoundError):
            get_company(invited.user, company.id)

    def test_get_company_for_worker(self, company, viewer) -> None:
        found, role = get_company(viewer, company.id)

        assert found.id == company.id
        assert role.name == "WORKER"
        assert [w.user_id for w in found.workers.all()] == [viewer.pk]


@pytest.mark.django_db
class TestUpdateDeleteCompany:
    """Tests for update_company and delete_company."""

    def test_editor_can_update(self, company, editor) -> None:
        updated = update_company(editor, company.id, _company_data(name="Renamed", tax_id=None))

        assert updated.name == "Renamed"
        assert updated.tax_id is None

    def test_viewer_gets_not_found(self, company, viewer) -> None:
        """Without edit rights the company is reported as missing."""
        with pytest.raises(NotFoundError):
            update_company(viewer, company.id, _company_data())

    def test_update_to_taken_tax_id_is_conflict(self, company, owner) -> None:
        other = CompanyFactory.create()

        with pytest.raises(ConflictError):
            update_company(owner, company.id, _company_data(tax_id=other.tax_id))

    def test_update_keeping_own_tax_id(self, company, owner) -> None:
        updated = update_company(owner, company.id, _company_data(tax_id=company.tax_id))

        assert updated.tax_id == company.tax_id

    def test_only_owner_can_delete(self, company, editor) -> None:
        with pytest.raises(NotFoundError):
            delete_company(editor, company.id)

        assert Company.objects.filter(pk=company.pk).exists()

    def test_delete_cascades_to_workers_projects_tasks(self, company, owner, editor) -> None:
        project = ProjectFactory.create(company=company)
        TaskFactory.create(project=project)

        delete_company(owner, company.id)

        assert not Company.objects.filter(pk=company.pk).exists()
        assert not Worker.objects.filter(company_id=company.pk).exists()
        assert not Project.objects.filter(pk=project.pk).exists()


@pytest.mark.django_db
class TestInviteWorker:
    """Tests for invite_worker and bulk_invite_workers."""

    def test_invite_creates_invited_row(self, company, owner) -> None:
        invitee = UserFactory.create(email="anna@example.com")

        worker = invite_worker(
            owner, company.id, InviteWorkerRequest(email="Anna@Example.com ", can_edit=True)
        )

        assert worker.user == invitee
        assert worker.status == Worker.Status.INVITED
        assert worker.can_edit is True
        assert worker.can_view is True
        assert worker.can_manage_finance is False

    def test_non_owner_gets_not_found(self, company, editor) -> None:
        invitee = UserFactory.create()

        with pytest.raises(NotFoundError):
            invite_worker(editor, company.id, InviteWorkerRequest(email=invitee.email))

    def test_invalid_email(self, company, owner) -> None:
        with pytest.raises(ValidationFailedError):
            invite_worker(owner, company.id, InviteWorkerRequest(email="not-an-email"))

    def test_unknown_account(self, company, owner) -> None:
        with pytest.raises(NotFoundError):
            invite_worker(owner, company.id, InviteWorkerRequest(email="ghost@example.com"))

    def test_already_member_is_conflict(self, company, owner, viewer) -> None:
        with pytest.raises(ConflictError):
            invite_worker(owner, company.id, InviteWorkerRequest(email=viewer.email))

    def test_pending_invitation_is_conflict(self, company, owner) -> None:
        pending = WorkerFactory.create(company=company, status=Worker.Status.INVITED)

        with pytest.raises(ConflictError):
            invite_worker(owner, company.id, InviteWorkerRequest(email=pending.user.email))

    def test_owner_cannot_invite_self(self, company, owner) -> None:
        with pytest.raises(ConflictError):
            invite_worker(owner, company.id, InviteWorkerRequest(email=owner.email))

    def test_left_worker_can_be_reinvited(self, company, owner) -> None:
        """The existing row is reused, so (user, company) stays unique."""
        left = WorkerFactory.create(company=company, status=Worker.Status.LEFT, can_edit=True)

        worker = invite_worker(owner, company.id, InviteWorkerRequest(email=left.user.email))

        assert worker.pk == left.pk
        assert worker.status == Worker.Status.INVITED
        assert worker.can_edit is False
        assert worker.joined_at is None
        assert worker.left_at is None
        assert Worker.objects.filter(user=left.user, company=company).count() == 1

    def test_bulk_invite_reports_each_entry(self, company, owner, viewer) -> None:
        fresh = UserFactory.create()

        result = bulk_invite_workers(
            owner,
            company.id,
            [
                InviteWorkerRequest(email=fresh.email),
                InviteWorkerRequest(email=viewer.email),
                InviteWorkerRequest(email="ghost@example.com"),
            ],
        )

        assert [w.user_id for w in result.invited] == [fresh.pk]
        assert [email for email, _ in result.errors] == [viewer.email, "ghost@example.com"]
        assert Worker.objects.filter(user=fresh, status=Worker.Status.INVITED).exists()

    def test_bulk_invite_requires_owner(self, company, editor) -> None:
        with pytest.raises(NotFoundError):
            bulk_invite_workers(editor, company.id, [InviteWorkerRequest(email="x@example.com")])


@pytest.mark.django_db
class TestWorkerLifecycle:
    """Tests for accept/reject/leave and owner-side worker management."""

    def test_accept_activates(self, company) -> None:
        pending = WorkerFactory.create(
            company=company, status=Worker.Status.INVITED, joined_at=None
        )

        worker = accept_invitation(pending.user, company.id)

        assert worker.status == Worker.Status.ACTIVE
        assert worker.joined_at is not None

    def test_accept_twice_is_conflict(self, company, viewer) -> None:
        with pytest.raises(ConflictError):
            accept_invitation(viewer, company.id)

    def test_accept_without_invitation(self, company, outsider) -> None:
        with pytest.raises(NotFoundError):
            accept_invitation(outsider, company.id)

    def test_reject_deletes_row(self, company) -> None:
        pending = WorkerFactory.create(company=company, status=Worker.Status.INVITED)

        reject_invitation(pending.user, company.id)

        assert not Worker.objects.filter(pk=pending.pk).exists()

    def test_leave_marks_left(self, company, viewer) -> None:
        worker = leave_company(viewer, company.id)

        assert worker.status == Worker.Status.LEFT
        assert worker.left_at is not None
        with pytest.raises(NotFoundError):
            get_company(viewer, company.id)

    def test_owner_cannot_leave(self, company, owner) -> None:
        with pytest.raises(ValidationFailedError):
            leave_company(owner, company.id)

    def test_update_worker_flags_and_status(self, company, owner, viewer) -> None:
        row = Worker.objects.get(user=viewer, company=company)

        worker = update_worker(
            owner,
            company.id,
            row.id,
            UpdateWorkerRequest(can_edit=True, position="Foreman", status="INACTIVE"),
        )

        assert worker.can_edit is True
        assert worker.position == "Foreman"
        assert worker.status == Worker.Status.INACTIVE
        assert worker.left_at is not None

    def test_reactivating_sets_joined_at(self, company, owner) -> None:
        row = WorkerFactory.create(company=company, status=Worker.Status.INACTIVE, joined_at=None)

        worker = update_worker(owner, company.id, row.id, UpdateWorkerRequest(status="ACTIVE"))

        assert worker.joined_at is not None
        assert worker.left_at is None

    def test_update_worker_of_other_company(self, company, owner) -> None:
        foreign = WorkerFactory.create()

        with pytest.raises(NotFoundError):
            update_worker(owner, company.id, foreign.id, UpdateWorkerRequest(can_edit=True))

    def test_remove_worker(self, company, owner, viewer) -> None:
        row = Worker.objects.get(user=viewer, company=company)

        remove_worker(owner, company.id, row.id)

        assert not Worker.objects.filter(pk=row.pk).exists()

    def test_remove_worker_requires_owner(self, company, editor, viewer) -> None:
        row = Worker.objects.get(user=viewer, company=company)

        with pytest.raises(NotFoundError):
            remove_worker(editor, company.id, row.id)

    def test_list_workers_includes_every_status(self, company, viewer) -> None:
        WorkerFactory.create(company=company, status=Worker.Status.INVITED)

        workers = list_workers(viewer, company.id)

        assert len(workers) == 2
