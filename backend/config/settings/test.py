"""
Test settings.

Runs against an in-memory SQLite database with notifications delivered inline.
"""

from .base import *  # noqa: F403

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

JWT_SECRET = "test-secret"
JWT_ALGORITHM = "HS256"

NOTIFICATION_BACKEND = "local"
NOTIFICATION_GATEWAY_URL = ""
NOTIFICATIONS_ASYNC = False

LOG_JSON = False
LOG_LEVEL = "WARNING"
