"""App configuration for the scopes Django application.

This module wires up the application config and ensures that the change
signals and the controller's system checks are registered when Django starts.
"""

from django.apps import AppConfig


class ScopesConfig(AppConfig):
    """Application configuration for the scopes app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "scopes"

    def ready(self) -> None:
        """Register signal receivers and system checks when the app is loaded."""
        from . import checks, signals  # noqa: F401
