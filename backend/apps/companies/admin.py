"""Admin configuration for companies app."""

from django.contrib import admin

from apps.companies.models import Company, Worker


class WorkerInline(admin.TabularInline):
    model = Worker
    extra = 0
    raw_id_fields = ["user"]
    readonly_fields = ["invited_at", "joined_at", "left_at"]


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    """Admin for Company model."""

    list_display = ["name", "tax_id", "created_by", "created_at"]
    search_fields = ["name", "tax_id", "created_by__email"]
    raw_id_fields = ["created_by"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-created_at"]
    inlines = [WorkerInline]


@admin.register(Worker)
class WorkerAdmin(admin.ModelAdmin):
    """Admin for Worker model."""

    list_display = ["user", "company", "position", "status", "can_edit", "invited_at"]
    list_filter = ["status", "can_edit"]
    search_fields = ["user__email", "company__name"]
    raw_id_fields = ["user", "company"]
    readonly_fields = ["invited_at", "joined_at", "left_at", "created_at", "updated_at"]
