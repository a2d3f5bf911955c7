"""
Tests for accounts services.
"""

import pytest

from apps.accounts.services import authenticate_credentials, update_profile
from tests.accounts.factories import UserFactory


@pytest.mark.django_db
class TestAuthenticateCredentials:
    """Tests for authenticate_credentials."""

    def test_valid_credentials(self) -> None:
        user = UserFactory.create(email="jan@example.com")

        assert authenticate_credentials("jan@example.com", "correct-horse-battery") == user

    def test_email_is_case_insensitive(self) -> None:
        user = UserFactory.create(email="jan@example.com")

        assert authenticate_credentials(" JAN@example.com", "correct-horse-battery") == user

    def test_wrong_password(self) -> None:
        UserFactory.create(email="jan@example.com")

        assert authenticate_credentials("jan@example.com", "wrong") is None

    def test_unknown_email(self) -> None:
        assert authenticate_credentials("ghost@example.com", "whatever") is None

    def test_inactive_user(self) -> None:
        UserFactory.create(email="gone@example.com", is_active=False)

        assert authenticate_credentials("gone@example.com", "correct-horse-battery") is None


@pytest.mark.django_db
class TestUpdateProfile:
    def test_strips_and_saves(self) -> None:
        user = UserFactory.create()

        update_profile(user, "  Anna ", " Nowak")

        user.refresh_from_db()
        assert user.first_name == "Anna"
        assert user.last_name == "Nowak"
        assert user.display_name == "Anna Nowak"
