"""Utilities for serializer instantiation."""

from __future__ import annotations

from typing import Any

from django.utils.module_loading import import_string

from django_typedcache.exceptions import InvalidArgumentError
from django_typedcache.serializers import SERIALIZER_MODES

# Option values meaning "no serializer"
_NO_SERIALIZER = (None, "", "none", 0, False)


def is_serializer_instance(obj: Any) -> bool:
    """Check if an object is a serializer instance (has dumps/loads methods)."""
    if isinstance(obj, type):
        return False
    return hasattr(obj, "dumps") and hasattr(obj, "loads") and callable(obj.dumps) and callable(obj.loads)


def is_serializer_mode(config: Any) -> bool:
    """Check if a ``serializer`` option names a built-in mode such as ``"json"``."""
    return isinstance(config, str) and config.lower() in SERIALIZER_MODES


def is_serializer_disabled(config: Any) -> bool:
    return config in _NO_SERIALIZER or (isinstance(config, str) and config.lower() == "none")


def create_serializer(config: str | type | Any, **kwargs: Any) -> Any:
    """Create a serializer instance from config.

    Args:
        config: A mode name, a dotted path string, a class, or an instance
        **kwargs: Keyword arguments to pass to serializer constructor
    """
    # Already an instance
    if is_serializer_instance(config):
        return config

    # A class (not a string path)
    if isinstance(config, type):
        return config(**kwargs)

    if not isinstance(config, str):
        msg = f"Invalid serializer option: {config!r}"
        raise InvalidArgumentError(msg)

    if is_serializer_mode(config):
        config = SERIALIZER_MODES[config.lower()]

    # Dotted path string
    try:
        cls = import_string(config)
    except ImportError as e:
        msg = f'Serializer "{config}" does not exist.'
        raise InvalidArgumentError(msg) from e
    return cls(**kwargs)
