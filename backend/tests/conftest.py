"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import UserFactory
    from tests.companies.factories import CompanyFactory, WorkerFactory
    from tests.projects.factories import ProjectFactory, TaskFactory
    from tests.notifications.factories import NotificationFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        company = CompanyFactory.create()
        worker = WorkerFactory.create(company=company, can_edit=True)
"""

from collections.abc import Callable
from typing import Any, cast

import pytest
from django.http import HttpRequest
from django.test import Client, RequestFactory
from django.test.client import WSGIRequest  # type: ignore[attr-defined]

from apps.core.auth import AuthContext
from apps.core.types import AuthenticatedHttpRequest


class MockRequest(HttpRequest):
    """
    HttpRequest subclass for tests that allows setting auth attribute.

    Example:
        request = MockRequest()
        request.auth = AuthContext(user=user)
    """

    auth: AuthContext


def make_request_with_auth(request: "WSGIRequest", auth: AuthContext) -> AuthenticatedHttpRequest:
    """
    Set auth on a request and return it typed as AuthenticatedHttpRequest.

    Example:
        request = request_factory.get("/api/v1/endpoint")
        request = make_request_with_auth(request, AuthContext(user=user))
    """
    request.auth = auth  # type: ignore[attr-defined]
    return cast(AuthenticatedHttpRequest, request)


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this to call Django Ninja endpoint functions directly, without
    routing or middleware.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def authenticated_request(
    request_factory: RequestFactory,
) -> Callable[..., AuthenticatedHttpRequest]:
    """
    Factory fixture for creating authenticated requests.

    Example:
        def test_authenticated_endpoint(authenticated_request):
            user = UserFactory.create()
            request = authenticated_request(user, method="post", path="/api/v1/something")
            result = my_endpoint(request)
    """
    from tests.accounts.factories import UserFactory

    def _make_request(
        user: Any = None,
        method: str = "get",
        path: str = "/",
        data: dict | None = None,
        content_type: str = "application/json",
    ) -> AuthenticatedHttpRequest:
        if user is None:
            user = UserFactory.create()

        method_func = getattr(request_factory, method.lower())
        kwargs: dict[str, Any] = {}
        if data is not None:
            kwargs["data"] = data
            kwargs["content_type"] = content_type

        request = method_func(path, **kwargs)
        return make_request_with_auth(request, AuthContext(user=user))

    return _make_request


@pytest.fixture
def owner(db):
    """A user who owns a company (see the ``company`` fixture)."""
    from tests.accounts.factories import UserFactory

    return UserFactory.create(first_name="Olga", last_name="Owner")


@pytest.fixture
def company(owner):
    """A company owned by ``owner``."""
    from tests.companies.factories import CompanyFactory

    return CompanyFactory.create(created_by=owner, name="Acme Build")


@pytest.fixture
def editor(company):
    """An ACTIVE worker of ``company`` with can_edit."""
    from tests.companies.factories import WorkerFactory

    return WorkerFactory.create(company=company, can_edit=True).user


@pytest.fixture
def viewer(company):
    """An ACTIVE worker of ``company`` without can_edit."""
    from tests.companies.factories import WorkerFactory

    return WorkerFactory.create(company=company, can_edit=False).user


@pytest.fixture
def outsider(db):
    """A user with no relationship to ``company``."""
    from tests.accounts.factories import UserFactory

    return UserFactory.create()


@pytest.fixture
def project(company, owner):
    """A project in ``company`` created by ``owner``."""
    from tests.projects.factories import ProjectFactory

    return ProjectFactory.create(company=company, created_by=owner, name="Riverside Tower")
