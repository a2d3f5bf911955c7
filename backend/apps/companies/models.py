"""
Companies models - tenants and their workforce.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel


class Company(TimestampedModel):
    """
    A tenant. Owned by exactly one user, the one who created it.

    The owner has full capabilities without needing a Worker row.
    """

    name = models.CharField(max_length=200)
    tax_id = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        help_text="Tax identification number (NIP), globally unique when set",
    )

    # Contact
    address = models.CharField(max_length=255, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    website = models.URLField(blank=True)
    description = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="owned_companies",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "companies"

    def __str__(self) -> str:
        return self.name

    def is_owner(self, user_id: int | None) -> bool:
        return user_id is not None and self.created_by_id == user_id


class Worker(TimestampedModel):
    """
    Company-scoped membership linking a User to a Company.

    Capability flags are independent booleans, not a hierarchy. Only ACTIVE
    rows grant any access.
    """

    class Status(models.TextChoices):
        INVITED = "INVITED", "Invited"
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"
        LEFT = "LEFT", "Left"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="worker_profiles",
    )
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="workers",
    )

    position = models.CharField(max_length=100, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.INVITED,
        db_index=True,
    )

    # Capability flags
    can_edit = models.BooleanField(default=False)
    can_view = models.BooleanField(default=True)
    can_manage_finance = models.BooleanField(default=False)

    invited_at = models.DateTimeField(default=timezone.now)
    joined_at = models.DateTimeField(null=True, blank=True)
    left_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["status", "-joined_at", "-invited_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "company"], name="unique_worker_per_company"),
        ]

    def __str__(self) -> str:
        return f"{self.user.email} @ {self.company.name} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE
