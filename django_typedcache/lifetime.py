"""Lifetime (TTL) normalization."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django_typedcache.types import LifetimeT


def normalize_lifetime(lifetime: LifetimeT, default: int | None = None) -> int | None:
    """Convert a lifetime to whole seconds, or None for "no expiry".

    A ``timedelta`` is truncated to whole seconds. ``None`` falls back to
    ``default``. Anything that ends up non-positive means the item persists
    until it is deleted.
    """
    if isinstance(lifetime, timedelta):
        seconds: int | None = lifetime.days * 86400 + lifetime.seconds
    elif lifetime is None:
        seconds = default
    else:
        seconds = int(lifetime)

    if seconds is None or seconds <= 0:
        return None
    return seconds
