"""System checks for the scope controller configuration."""

from django.conf import settings
from django.core.checks import Error, register


@register()
def scope_controller_settings_are_valid(app_configs, **kwargs):
    """Reject resync and backoff settings the worker loop cannot run with."""
    errors: list[Error] = []

    for name in ("SCOPE_RESYNC_INTERVAL", "SCOPE_BACKOFF_BASE", "SCOPE_BACKOFF_MAX"):
        value = getattr(settings, name, None)
        if not isinstance(value, (int, float)) or value <= 0:
            errors.append(
                Error(
                    f"{name} must be a positive number of seconds (got {value!r}).",
                    id="scopes.E001",
                )
            )

    base = getattr(settings, "SCOPE_BACKOFF_BASE", None)
    maximum = getattr(settings, "SCOPE_BACKOFF_MAX", None)
    if isinstance(base, (int, float)) and isinstance(maximum, (int, float)) and base > maximum:
        errors.append(
            Error(
                "SCOPE_BACKOFF_BASE must not exceed SCOPE_BACKOFF_MAX.",
                id="scopes.E002",
            )
        )

    if not getattr(settings, "SCOPE_QUEUE_PREFIX", ""):
        errors.append(Error("SCOPE_QUEUE_PREFIX must not be empty.", id="scopes.E003"))

    return errors
