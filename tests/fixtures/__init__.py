"""Test fixtures for django-typedcache."""

from tests.fixtures.adapter import (
    DSN,
    SERIALIZERS,
    _reset_persistent_clients,
    adapter,
    client_class,
    fake_server,
    isolated_client_class,
    raw_adapter,
    serializers,
)

__all__ = [
    "DSN",
    "SERIALIZERS",
    "_reset_persistent_clients",
    "adapter",
    "client_class",
    "fake_server",
    "isolated_client_class",
    "raw_adapter",
    "serializers",
]
