"""
Factories for notifications app models.
"""

import factory
from factory.django import DjangoModelFactory

from apps.notifications.models import Notification
from tests.accounts.factories import UserFactory


class NotificationFactory(DjangoModelFactory):
    """Factory for Notification model."""

    class Meta:
        model = Notification

    user = factory.SubFactory(UserFactory)
    type = Notification.Type.SYSTEM_UPDATE
    title = factory.Sequence(lambda n: f"Notification {n}")
    message = "Something happened"
    data = factory.LazyFunction(dict)
    is_read = False
