"""Named adapters configured in Django settings.

Example settings::

    TYPEDCACHE_ADAPTERS = {
        "default": {
            "DSN": "redis://localhost:6379/1",
            "OPTIONS": {"serializer": "json"},
            "NAMESPACE": "app",
            "DEFAULT_LIFETIME": 300,
        },
    }

Each thread builds its own adapter per alias on first use.
"""

from __future__ import annotations

import logging
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.utils.connection import BaseConnectionHandler
from django.utils.module_loading import import_string

from django_typedcache.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

SETTING_NAME = "TYPEDCACHE_ADAPTERS"
DEFAULT_BACKEND = "django_typedcache.cache.RedisCacheAdapter"


class AdapterHandler(BaseConnectionHandler):
    """Per-thread registry of adapters, keyed by alias."""

    settings_name = SETTING_NAME
    exception_class = InvalidArgumentError

    def configure_settings(self, settings: dict[str, Any] | None) -> dict[str, Any]:
        try:
            return super().configure_settings(settings)
        except AttributeError as e:
            msg = f"The {SETTING_NAME} setting must be defined to use named adapters."
            raise ImproperlyConfigured(msg) from e

    def create_connection(self, alias: str) -> Any:
        params = self.settings[alias]
        if "DSN" not in params:
            msg = f"{SETTING_NAME}[{alias!r}] has no DSN."
            raise ImproperlyConfigured(msg)

        backend = params.get("BACKEND", DEFAULT_BACKEND)
        try:
            backend_cls = import_string(backend)
        except ImportError as e:
            msg = f"Could not find backend '{backend}': {e}"
            raise ImproperlyConfigured(msg) from e

        logger.debug("Creating adapter %r with %s", alias, backend)
        return backend_cls(
            params["DSN"],
            params.get("OPTIONS", {}),
            namespace=params.get("NAMESPACE", ""),
            default_lifetime=params.get("DEFAULT_LIFETIME"),
        )


adapters = AdapterHandler()
