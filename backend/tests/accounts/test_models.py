"""
Tests for accounts models.
"""

import pytest
from django.db import IntegrityError

from apps.accounts.models import User
from tests.accounts.factories import UserFactory


@pytest.mark.django_db
class TestUserModel:
    """Tests for User model."""

    def test_create_user(self) -> None:
        """Should create a user with required fields."""
        user = UserFactory.create()

        assert user.pk is not None
        assert user.is_active is True
        assert user.is_staff is False
        assert user.check_password("correct-horse-battery")

    def test_user_str(self) -> None:
        """String representation should be email."""
        user = UserFactory.create(email="test@example.com")

        assert str(user) == "test@example.com"

    def test_email_unique(self) -> None:
        """Email must be unique."""
        UserFactory.create(email="duplicate@example.com")

        with pytest.raises(IntegrityError):
            UserFactory.create(email="duplicate@example.com")

    def test_display_name(self) -> None:
        assert UserFactory.build(first_name="Jan", last_name="Kowalski").display_name == (
            "Jan Kowalski"
        )
        assert UserFactory.build(
            email="anon@example.com", first_name="", last_name=""
        ).display_name == "anon@example.com"


@pytest.mark.django_db
class TestUserManager:
    """Tests for UserManager."""

    def test_create_user_lowercases_email(self) -> None:
        user = User.objects.create_user(email="  Jan@Budowa.PL ", password="pw-12345")

        assert user.email == "jan@budowa.pl"
        assert user.check_password("pw-12345")

    def test_create_user_without_password(self) -> None:
        user = User.objects.create_user(email="nopass@example.com")

        assert not user.has_usable_password()

    def test_create_user_requires_email(self) -> None:
        with pytest.raises(ValueError, match="Email is required"):
            User.objects.create_user(email="")

    def test_create_superuser(self) -> None:
        user = User.objects.create_superuser(email="root@example.com", password="pw-12345")

        assert user.is_staff is True
        assert user.is_superuser is True

    def test_create_superuser_rejects_non_staff(self) -> None:
        with pytest.raises(ValueError, match="is_staff"):
            User.objects.create_superuser(email="x@example.com", is_staff=False)
