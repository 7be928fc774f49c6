"""Typed cache adapter for key-value backends like Redis or Valkey.

Example:
    Store and read back typed values::

        from django_typedcache.cache import RedisCacheAdapter

        adapter = RedisCacheAdapter("redis://localhost:6379/1", namespace="app")
        adapter.set("visits", 41)
        adapter.get_int("visits")  # 41
        adapter.set_item("user:42", "name", "Ada", lifetime=300)
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import TYPE_CHECKING, Any

from django_typedcache.accessor import MISSING, TypedAccessor
from django_typedcache.cache.base import BaseCacheAdapter
from django_typedcache.client.default import connect
from django_typedcache.compat import create_serializer, is_serializer_disabled, is_serializer_mode
from django_typedcache.connection import mask_dsn, resolve
from django_typedcache.exceptions import NotFoundError
from django_typedcache.keys import RESERVED_CHARACTERS, glob_escape
from django_typedcache.types import ValueType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from django_typedcache.client.default import KeyValueTransport
    from django_typedcache.types import ConnectionConfig, LifetimeT, Lookup

logger = logging.getLogger(__name__)


class RedisCacheAdapter(BaseCacheAdapter):
    """Typed cache adapter for Redis-compatible servers.

    Args:
        dsn: Connection string, see ``django_typedcache.connection``.
        options: Option overlay applied on top of the DSN.
        namespace: Prefix for every key; "" disables prefixing.
        default_lifetime: Seconds applied to writes without a lifetime.

    Raises:
        InvalidArgumentError: bad namespace, DSN or options, or the server
            refused the connection.
        BackendUnavailableError: no client library is installed.
    """

    reserved_characters = RESERVED_CHARACTERS + "/"
    max_key_length = 1024

    def __init__(
        self,
        dsn: str,
        options: Mapping[str, Any] | None = None,
        namespace: str = "",
        default_lifetime: LifetimeT = None,
    ) -> None:
        super().__init__(namespace, default_lifetime)
        self._dsn = dsn
        self._options = dict(options or {})
        self._serializer: Any = None
        self._custom_serializer = False
        self._transport: KeyValueTransport | None = None
        self._open()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {mask_dsn(self._dsn)} namespace={self.namespace!r}>"

    @cached_property
    def _accessor(self) -> TypedAccessor:
        return TypedAccessor(self)

    # =========================================================================
    # Connection
    # =========================================================================

    def _open(self) -> None:
        config = resolve(self._dsn, self._options)
        transport = connect(config)
        self.max_key_length = transport.max_key_length
        self._config = config
        self._transport = transport
        if not self._custom_serializer:
            self._serializer = self._serializer_from_option(config.options["serializer"])

    def _serializer_from_option(self, option: Any) -> Any:
        if is_serializer_disabled(option):
            return None
        if is_serializer_mode(option) and self.transport.serializes_values:
            return None
        return create_serializer(option)

    @property
    def config(self) -> ConnectionConfig:
        """The resolved configuration of the current connection."""
        return self._config

    @property
    def transport(self) -> KeyValueTransport:
        if self._transport is None:
            msg = f"{self!r} is closed, call reconnect() first."
            raise RuntimeError(msg)
        return self._transport

    @property
    def serializer(self) -> Any:
        """Serializer for arrays and objects, or None when the transport handles them."""
        return self._serializer

    def set_serializer(self, serializer: Any) -> None:
        """Replace the serializer used for arrays and objects.

        Accepts an instance, a class, a dotted path, a mode name such as
        ``"json"``, or None to disable structured values.
        """
        self._serializer = None if is_serializer_disabled(serializer) else create_serializer(serializer)
        self._custom_serializer = True

    def is_connected(self) -> bool:
        return self._transport is not None and self._transport.is_connected()

    def reconnect(self) -> None:
        """Drop the current connection and open a new one from the same settings."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        logger.debug("Reconnecting %r", self)
        self._open()

    def close(self) -> None:
        if self._transport is None:
            return
        self._transport.close()
        self._transport = None
        logger.debug("Closed %r", self)

    # =========================================================================
    # Typed reads
    # =========================================================================

    def get(self, key: str, default: Any = MISSING) -> Any:
        """Fetch a value, converting it back to the type it was written with.

        Raises:
            NotFoundError: the key is missing and no default was given.
            InvalidArgumentError: ``default`` has a type the stored value
                cannot satisfy, or the key is malformed.
        """
        return self._accessor.get(key, None, ValueType.MIXED, default)

    def get_bool(self, key: str, default: Any = MISSING, member_key: str | None = None) -> bool:
        return self._accessor.get(key, member_key, ValueType.BOOL, default)

    def get_int(self, key: str, default: Any = MISSING, member_key: str | None = None) -> int:
        return self._accessor.get(key, member_key, ValueType.INT, default)

    def get_float(self, key: str, default: Any = MISSING, member_key: str | None = None) -> float:
        return self._accessor.get(key, member_key, ValueType.FLOAT, default)

    def get_str(self, key: str, default: Any = MISSING, member_key: str | None = None) -> str:
        return self._accessor.get(key, member_key, ValueType.STRING, default)

    def get_array(self, key: str, default: Any = MISSING, member_key: str | None = None) -> list | tuple | dict:
        return self._accessor.get(key, member_key, ValueType.ARRAY, default)

    def get_object(self, key: str, default: Any = MISSING, member_key: str | None = None) -> Any:
        """Fetch a structured object.

        ``default`` may be an instance (returned when the key is missing or
        holds an object of another class), a class, or a class name (the
        stored object must be of that class, otherwise the call raises).
        """
        return self._accessor.get(key, member_key, ValueType.OBJECT, default)

    def get_item(self, key: str, member_key: str, default: Any = MISSING) -> Any:
        """Fetch a member of the table stored at ``key``."""
        return self._accessor.get(key, member_key, ValueType.MIXED, default)

    def lookup(self, key: str, default: Any = MISSING, value_type: ValueType | str = ValueType.MIXED) -> Lookup:
        """Like ``get`` but returns ``Lookup(found, value)`` instead of raising for a missing key."""
        return self._accessor.lookup(key, None, value_type, default)

    def lookup_item(
        self,
        key: str,
        member_key: str,
        default: Any = MISSING,
        value_type: ValueType | str = ValueType.MIXED,
    ) -> Lookup:
        return self._accessor.lookup(key, member_key, value_type, default)

    # =========================================================================
    # Writes
    # =========================================================================

    def set(self, key: str, value: Any, lifetime: LifetimeT = None) -> None:
        """Store a value. ``lifetime`` of None uses ``default_lifetime``.

        Raises:
            CacheWriteError: the server did not accept the write.
        """
        self._accessor.set(key, None, value, lifetime)

    def set_item(self, key: str, member_key: str, value: Any, lifetime: LifetimeT = None) -> None:
        """Store a value in the table at ``key``.

        The lifetime applies to the whole table, not just this member.
        """
        self._accessor.set(key, member_key, value, lifetime)

    def delete(self, key: str) -> bool:
        """Remove a key. Returns whether it existed."""
        return self.transport.unlink(self.make_key(key)) == 1

    def delete_item(self, key: str, member_key: str) -> bool:
        return self.transport.hdel(self.make_key(key), self.make_member_key(member_key)) == 1

    def has(self, key: str) -> bool:
        return self.transport.exists(self.make_key(key))

    def has_item(self, key: str, member_key: str) -> bool:
        return self.transport.hexists(self.make_key(key), self.make_member_key(member_key))

    # =========================================================================
    # Lifetimes
    # =========================================================================

    def get_lifetime(self, key: str) -> int | None:
        """Remaining seconds before ``key`` expires, or None if it never does.

        Raises:
            NotFoundError: the key does not exist.
        """
        ttl = self.transport.ttl(self.make_key(key))
        if ttl == -2:
            raise NotFoundError(key)
        if ttl == -1:
            return None
        return ttl

    def set_lifetime(self, key: str, lifetime: LifetimeT = None) -> bool:
        """Set or reset the expiry of ``key``.

        ``None`` applies ``default_lifetime``. A non-positive lifetime, or
        ``None`` without a default, removes the expiry. Returns False if the
        key does not exist.
        """
        full_key = self.make_key(key)
        seconds = self.normalize_lifetime(lifetime)
        if seconds is None:
            return self.transport.persist(full_key) or self.transport.exists(full_key)
        return self.transport.expire(full_key, seconds)

    # =========================================================================
    # Keys
    # =========================================================================

    def get_keys(self, pattern: str = "*") -> list[str]:
        """List keys under the namespace matching a glob ``pattern``, without the namespace."""
        keys = self.transport.keys(glob_escape(self.namespace) + pattern)
        return [self.strip_namespace(key) for key in keys]

    def clear(self) -> bool:
        """Remove every key under the namespace. Returns whether none remain.

        Without a namespace this empties the whole database.
        """
        pattern = glob_escape(self.namespace) + "*"
        self.transport.unlink(*self.transport.keys(pattern))
        return not self.transport.keys(pattern)
