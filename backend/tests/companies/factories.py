"""
Factories for companies app models.
"""

import factory
from django.utils import timezone
from factory.django import DjangoModelFactory

from apps.companies.models import Company, Worker
from tests.accounts.factories import UserFactory


class CompanyFactory(DjangoModelFactory):
    """Factory for Company model."""

    class Meta:
        model = Company

    name = factory.Faker("company")
    tax_id = factory.Sequence(lambda n: f"{5250000000 + n}")
    created_by = factory.SubFactory(UserFactory)


class WorkerFactory(DjangoModelFactory):
    """Factory for Worker model. ACTIVE by default."""

    class Meta:
        model = Worker

    user = factory.SubFactory(UserFactory)
    company = factory.SubFactory(CompanyFactory)
    position = "Site engineer"
    status = Worker.Status.ACTIVE
    can_edit = False
    can_view = True
    can_manage_finance = False
    joined_at = factory.LazyFunction(timezone.now)
