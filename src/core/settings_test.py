"""Test settings: in-memory SQLite and a dedicated queue prefix."""

from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SCOPE_QUEUE_PREFIX = "test:scopes:queue"
SCOPE_RESYNC_INTERVAL = 300.0
SCOPE_BACKOFF_BASE = 1.0
SCOPE_BACKOFF_MAX = 60.0
