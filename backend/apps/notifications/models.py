"""
Notifications models - per-user inbox entries.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TimestampedModel


class Notification(TimestampedModel):
    """
    A message addressed to exactly one user.

    Created only as a side effect of a lifecycle event. Afterwards only the
    read flag changes, or the row is deleted by its recipient.
    """

    class Type(models.TextChoices):
        TASK_ASSIGNED = "TASK_ASSIGNED", "Task assigned"
        TASK_COMPLETED = "TASK_COMPLETED", "Task completed"
        MESSAGE_RECEIVED = "MESSAGE_RECEIVED", "Message received"
        MATERIAL_LOW = "MATERIAL_LOW", "Material low"
        SYSTEM_UPDATE = "SYSTEM_UPDATE", "System update"
        COMPANY_INVITE = "COMPANY_INVITE", "Company invite"
        PROJECT_UPDATE = "PROJECT_UPDATE", "Project update"
        DEADLINE_REMINDER = "DEADLINE_REMINDER", "Deadline reminder"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=30, choices=Type.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True, help_text="Opaque payload, e.g. task_id")
    is_read = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"], name="notification_user_read_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.type} -> {self.user_id}: {self.title}"
