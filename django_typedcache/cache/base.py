"""Backend-independent part of the cache adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from django_typedcache.keys import RESERVED_CHARACTERS, make_namespace, validate_key
from django_typedcache.lifetime import normalize_lifetime

if TYPE_CHECKING:
    from django_typedcache.types import LifetimeT, SerializerProtocol, TransportProtocol


class BaseCacheAdapter(ABC):
    """Namespace, default lifetime and key validation shared by all adapters.

    Subclasses tighten ``reserved_characters`` and ``max_key_length`` to what
    their backend accepts.
    """

    # Characters a key may not contain
    reserved_characters: str = RESERVED_CHARACTERS

    # Longest namespaced key; None means unlimited
    max_key_length: int | None = None

    def __init__(self, namespace: str = "", default_lifetime: LifetimeT = None) -> None:
        self.namespace = namespace
        self.default_lifetime = default_lifetime

    @property
    def namespace(self) -> str:
        """The key prefix including its separator, or "" for no namespace."""
        return self._namespace

    @namespace.setter
    def namespace(self, namespace: str) -> None:
        self._namespace = make_namespace(
            namespace,
            max_length=self.max_key_length,
            reserved=self.reserved_characters,
        )

    @property
    def default_lifetime(self) -> int | None:
        """Seconds applied when a write gives no lifetime; None for no expiry."""
        return self._default_lifetime

    @default_lifetime.setter
    def default_lifetime(self, lifetime: LifetimeT) -> None:
        self._default_lifetime = normalize_lifetime(lifetime)

    def make_key(self, key: str) -> str:
        """Validate a key and prefix it with the namespace."""
        return validate_key(
            key,
            self._namespace,
            max_length=self.max_key_length,
            reserved=self.reserved_characters,
        )

    def make_member_key(self, member_key: str) -> str:
        """Validate a member key of a table. Member keys are never namespaced."""
        return validate_key(member_key, max_length=self.max_key_length, reserved=self.reserved_characters)

    def strip_namespace(self, key: str) -> str:
        if self._namespace and key.startswith(self._namespace):
            return key[len(self._namespace) :]
        return key

    def normalize_lifetime(self, lifetime: LifetimeT) -> int | None:
        """Lifetime in seconds for a write, falling back to ``default_lifetime``."""
        return normalize_lifetime(lifetime, self._default_lifetime)

    @property
    @abstractmethod
    def transport(self) -> TransportProtocol:
        """The transport typed reads and writes go through."""

    @property
    def serializer(self) -> SerializerProtocol | None:
        return None
