import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("TASK_ASSIGNED", "Task assigned"),
                            ("TASK_COMPLETED", "Task completed"),
                            ("MESSAGE_RECEIVED", "Message received"),
                            ("MATERIAL_LOW", "Material low"),
                            ("SYSTEM_UPDATE", "System update"),
                            ("COMPANY_INVITE", "Company invite"),
                            ("PROJECT_UPDATE", "Project update"),
                            ("DEADLINE_REMINDER", "Deadline reminder"),
                        ],
                        max_length=30,
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("message", models.TextField()),
                (
                    "data",
                    models.JSONField(
                        blank=True, default=dict, help_text="Opaque payload, e.g. task_id"
                    ),
                ),
                ("is_read", models.BooleanField(default=False)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["user", "is_read"], name="notification_user_read_idx"
                    )
                ],
            },
        ),
    ]
