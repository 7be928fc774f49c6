"""Pytest configuration for django-typedcache tests."""

import sys
from pathlib import Path

import pytest

from tests.fixtures import (
    _reset_persistent_clients,
    adapter,
    client_class,
    fake_server,
    raw_adapter,
    serializers,
)

# Re-export fixtures so pytest can discover them
__all__ = [
    "_reset_persistent_clients",
    "adapter",
    "client_class",
    "close_named_adapters",
    "fake_server",
    "raw_adapter",
    "serializers",
]


def pytest_configure(config):
    """Add tests directory to Python path."""
    sys.path.insert(0, str(Path(__file__).absolute().parent))


@pytest.fixture
def close_named_adapters():
    """Close adapters opened through ``get_adapter`` after the test."""
    from django_typedcache import close_adapters

    yield
    close_adapters()
