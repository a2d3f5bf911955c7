"""Admin configuration for projects app."""

from django.contrib import admin

from apps.projects.models import Project, Task


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Admin for Project model."""

    list_display = ["name", "company", "status", "priority", "deadline", "created_at"]
    list_filter = ["status", "priority"]
    search_fields = ["name", "client_name", "company__name"]
    raw_id_fields = ["company", "created_by"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-created_at"]


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = ["title", "project", "status", "priority", "assigned_to", "due_date"]
    list_filter = ["status", "priority"]
    search_fields = ["title", "project__name", "assigned_to__email"]
    raw_id_fields = ["project", "created_by", "assigned_to"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-created_at"]
