"""
Local development settings.

Extends base settings with development-friendly defaults.
"""

from .base import *  # noqa: F403
from .base import settings

DEBUG = True
ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

# Pretty console output while developing
LOG_JSON = False
LOG_LEVEL = settings.LOG_LEVEL if settings.LOG_LEVEL != "INFO" else "DEBUG"

# Deliver notifications inline so they show up in the request log
NOTIFICATIONS_ASYNC = False
