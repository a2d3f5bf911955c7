"""
Core models - shared base classes and utilities.
"""

from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract base model with created_at/updated_at timestamps.

    All business entities should inherit from this or CompanyScopedModel.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class CompanyScopedModel(TimestampedModel):
    """
    Abstract base model for all company-scoped entities.

    Provides:
    - Company FK (cascade on company deletion)
    - Timestamps from TimestampedModel

    Usage:
        class Project(CompanyScopedModel):
            name = models.CharField(max_length=255)

    The reverse accessor is the pluralized class name, e.g. ``company.projects``.
    """

    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )

    class Meta:
        abstract = True
