"""Content ingestion package bootstrap."""

from .brands import BrandProfile  # noqa: F401
from .celery_app import create_celery_app, get_celery_app  # noqa: F401
from .settings import Settings, get_settings, reset_settings_cache  # noqa: F401

__all__ = [
    "BrandProfile",
    "Settings",
    "create_celery_app",
    "get_celery_app",
    "get_settings",
    "reset_settings_cache",
]
