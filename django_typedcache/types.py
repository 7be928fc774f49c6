"""Type aliases and value types for django-typedcache.

Compatible with redis-py and valkey-py type systems, defined locally
to avoid a runtime dependency on either library for type annotations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

# Key types - matches redis.typing.KeyT and valkey.typing.KeyT
type KeyT = bytes | str | memoryview

# Lifetime accepted by the adapters: whole seconds, a duration, or None for the default
type LifetimeT = int | float | timedelta | None


class ValueType(StrEnum):
    """Semantic types a caller can request from the typed accessor."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    MIXED = "mixed"


class Backend(StrEnum):
    """Client libraries a connection can be built on."""

    REDIS = "redis"
    VALKEY = "valkey"


class Lookup(NamedTuple):
    """Result of a lookup that reports absence instead of raising."""

    found: bool
    value: Any = None

    def __bool__(self) -> bool:
        return self.found


class Credentials(NamedTuple):
    """Authentication taken from a DSN. ``username`` is None for password-only auth."""

    username: str | None
    password: str


@dataclass(frozen=True, slots=True)
class Endpoint:
    """One server address resolved from a DSN."""

    scheme: str  # "tcp", "tls" or "unix"
    host: str | None = None
    port: int | None = None
    path: str | None = None
    params: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_unix(self) -> bool:
        return self.scheme == "unix"

    def __str__(self) -> str:
        if self.is_unix:
            return f"unix://{self.path}"
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Fully resolved transport configuration.

    Instances are never mutated: reconnecting resolves a fresh one.
    """

    dsn: str
    tls: bool
    endpoints: tuple[Endpoint, ...]
    credentials: Credentials | None
    dbindex: int
    options: Mapping[str, Any]
    backend: Backend
    client_class: type

    def __post_init__(self) -> None:
        if not isinstance(self.options, MappingProxyType):
            object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @property
    def endpoint(self) -> Endpoint:
        """The first endpoint, the only one a single-node connection dials."""
        return self.endpoints[0]


@runtime_checkable
class SerializerProtocol(Protocol):
    """Structured-object serializer capability."""

    def dumps(self, obj: Any) -> bytes | int: ...

    def loads(self, data: bytes | int) -> Any: ...


@runtime_checkable
class TransportProtocol(Protocol):
    """Primitive operations the adapters issue against the store."""

    config: ConnectionConfig

    @property
    def serializes_values(self) -> bool: ...

    def get(self, key: KeyT) -> Any: ...

    def set(self, key: KeyT, value: Any) -> bool: ...

    def set_with_expiry(self, key: KeyT, lifetime: int, value: Any) -> bool: ...

    def unlink(self, *keys: KeyT) -> int: ...

    def exists(self, key: KeyT) -> bool: ...

    def hget(self, key: KeyT, field: str) -> Any: ...

    def hset(self, key: KeyT, field: str, value: Any) -> bool: ...

    def hdel(self, key: KeyT, *fields: str) -> int: ...

    def hexists(self, key: KeyT, field: str) -> bool: ...

    def expire(self, key: KeyT, lifetime: int) -> bool: ...

    def persist(self, key: KeyT) -> bool: ...

    def ttl(self, key: KeyT) -> int: ...

    def keys(self, pattern: str) -> list[str]: ...

    def is_connected(self) -> bool: ...

    def close(self) -> None: ...
