"""Companies app configuration."""

from django.apps import AppConfig


class CompaniesConfig(AppConfig):
    """Configuration for companies app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.companies"
