"""Transports for Redis-compatible backends.

A transport owns one live client object and exposes the primitive operations
the adapters need (``get``, ``set``, ``hget``, ``expire``, ...). It is built
from a resolved ``ConnectionConfig`` and never re-reads settings.

Architecture:
- KeyValueTransport: Base class with all primitives, library-agnostic
- RedisTransport: redis-py; dials the first endpoint and handshakes eagerly
- ValkeyTransport: valkey-py; built from the whole endpoint list, with
  server error replies reported as falsy results

The class attributes pattern allows subclasses to swap the underlying library
while inheriting the primitives, since both libraries share one API.
"""

from __future__ import annotations

import hashlib
import logging
import re
import socket
from typing import TYPE_CHECKING, Any, ClassVar

from django_typedcache.compat import create_serializer, is_serializer_mode
from django_typedcache.connection import DEFAULT_OPTIONS, mask_dsn
from django_typedcache.exceptions import (
    BackendUnavailableError,
    ConnectionInterruptedError,
    InvalidArgumentError,
    _main_exceptions,
    _ResponseError,
)
from django_typedcache.types import Backend

if TYPE_CHECKING:
    from django_typedcache.types import ConnectionConfig, KeyT

# Try to import redis-py and/or valkey-py
_REDIS_AVAILABLE = False
_VALKEY_AVAILABLE = False

try:
    import redis
    import redis.backoff
    import redis.retry

    _REDIS_AVAILABLE = True
except ImportError:
    redis = None  # type: ignore[assignment]

try:
    import valkey
    import valkey.backoff
    import valkey.retry
    from valkey.cluster import ClusterNode, ValkeyCluster
    from valkey.exceptions import ValkeyClusterException

    _VALKEY_AVAILABLE = True
except ImportError:
    valkey = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_err_prefix_re = re.compile(r"^ERR ")


# =============================================================================
# KeyValueTransport - base class (library-agnostic)
# =============================================================================


class KeyValueTransport:
    """Base transport with configurable library.

    Subclasses must set:
    - _lib: The library module (e.g., redis or valkey)
    - backend: The ``Backend`` member the subclass implements

    and implement ``_connect()``.
    """

    # Class attributes - subclasses override these
    _lib: Any = None
    backend: ClassVar[Backend]

    # Whether server error replies raise or come back as falsy results
    _raise_response_errors: bool = True

    # Longest key the server accepts, as enforced by the adapter
    max_key_length: int = 1024

    # Live clients shared by persistent connections, keyed by name and client identity
    _persistent_clients: ClassVar[dict[str, Any]] = {}

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._codec: Any = None
        self._persistent_key = self._get_persistent_key()
        self._client = self._get_or_connect()

    @property
    def client(self) -> Any:
        """The underlying redis-py / valkey-py client."""
        return self._client

    @property
    def serializes_values(self) -> bool:
        """True when the transport encodes structured values itself."""
        return self._codec is not None

    # =========================================================================
    # Connection
    # =========================================================================

    def _connect(self) -> Any:
        raise NotImplementedError

    def _get_persistent_key(self) -> str | None:
        options = self.config.options
        if options["persistent_id"]:
            name = options["persistent_id"]
        elif options["persistent"]:
            name = f"{self.config.endpoint}/{self.config.dbindex}"
        else:
            return None
        return f"{self.backend}:{name}:{self._client_identity()}"

    def _client_identity(self) -> str:
        """Digest of the credentials, TLS flag and options a client is built with.

        Adapters only share a client when all of these agree, so a second
        adapter with other credentials gets its own handshake.
        """
        credentials = self.config.credentials
        parts = (
            credentials.username if credentials else None,
            credentials.password if credentials else None,
            self.config.tls,
            sorted((name, repr(value)) for name, value in self.config.options.items()),
        )
        return hashlib.sha256(repr(parts).encode()).hexdigest()[:16]

    @classmethod
    def close_persistent_clients(cls) -> None:
        """Disconnect and forget every shared persistent client."""
        while cls._persistent_clients:
            key, client = cls._persistent_clients.popitem()
            try:
                client.close()
            except _main_exceptions:
                logger.debug("Error while closing persistent connection %s", key, exc_info=True)

    def _get_or_connect(self) -> Any:
        key = self._persistent_key
        if key is None:
            return self._connect()
        if key not in self._persistent_clients:
            self._persistent_clients[key] = self._connect()
        else:
            logger.debug("Reusing persistent connection %s", key)
        return self._persistent_clients[key]

    def _connection_failed(self, error: Exception) -> InvalidArgumentError:
        reason = _err_prefix_re.sub("", str(error))
        msg = f'Redis connection "{mask_dsn(self.config.dsn)}" failed: {reason}.'
        return InvalidArgumentError(msg)

    def _client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments shared by every client constructor."""
        options = self.config.options
        kwargs: dict[str, Any] = {
            "db": self.config.dbindex,
            "socket_connect_timeout": options["timeout"] or None,
            "socket_timeout": options["read_timeout"] or None,
        }

        credentials = self.config.credentials
        if credentials is not None:
            kwargs["username"] = credentials.username
            kwargs["password"] = credentials.password

        if options["tcp_keepalive"] > 0:
            kwargs["socket_keepalive"] = True
            if hasattr(socket, "TCP_KEEPIDLE"):
                kwargs["socket_keepalive_options"] = {socket.TCP_KEEPIDLE: options["tcp_keepalive"]}

        # Pass through any option that's not one of ours
        for key, value in options.items():
            if key not in DEFAULT_OPTIONS:
                kwargs[key] = value

        return kwargs

    def _tls_kwargs(self) -> dict[str, Any]:
        if not self.config.tls:
            return {}
        kwargs: dict[str, Any] = {"ssl": True}
        kwargs.update(self.config.options["ssl"] or {})
        return kwargs

    def _retry(self) -> Any:
        """Reconnect policy: none, or a single attempt after ``retry_interval`` ms."""
        interval = self.config.options["retry_interval"]
        if interval > 0:
            return self._lib.retry.Retry(self._lib.backoff.ConstantBackoff(interval / 1000), 1)
        return self._lib.retry.Retry(self._lib.backoff.NoBackoff(), 0)

    def close(self) -> None:
        """Disconnect, unless the client is shared as a persistent connection."""
        if self._persistent_key is not None:
            return
        try:
            self._client.close()
        except _main_exceptions:
            logger.debug("Error while closing %s", mask_dsn(self.config.dsn), exc_info=True)

    # =========================================================================
    # Encoding/Decoding
    # =========================================================================

    def _encode(self, value: Any) -> Any:
        if self._codec is None:
            return value
        return self._codec.dumps(value)

    def _decode(self, value: Any) -> Any:
        if self._codec is None or value is None:
            return value
        return self._codec.loads(value)

    def _execute(self, command: str, *args: Any, failure: Any = None, **kwargs: Any) -> Any:
        """Run a client command, mapping library errors.

        Error replies become ``failure`` when ``_raise_response_errors`` is
        off; everything else raises ``ConnectionInterruptedError``.
        """
        try:
            return getattr(self._client, command)(*args, **kwargs)
        except _ResponseError as e:
            if self._raise_response_errors:
                raise ConnectionInterruptedError(connection=self._client, parent=e) from e
            logger.warning("%s %s failed: %s", self.backend, command.upper(), e)
            return failure
        except _main_exceptions as e:
            raise ConnectionInterruptedError(connection=self._client, parent=e) from e

    # =========================================================================
    # Primitive Operations
    # =========================================================================

    def get(self, key: KeyT) -> Any:
        return self._decode(self._execute("get", key))

    def set(self, key: KeyT, value: Any) -> bool:
        return bool(self._execute("set", key, self._encode(value), failure=False))

    def set_with_expiry(self, key: KeyT, lifetime: int, value: Any) -> bool:
        return bool(self._execute("set", key, self._encode(value), ex=lifetime, failure=False))

    def unlink(self, *keys: KeyT) -> int:
        if not keys:
            return 0
        return int(self._execute("unlink", *keys, failure=0))

    def exists(self, key: KeyT) -> bool:
        return bool(self._execute("exists", key, failure=0))

    def hget(self, key: KeyT, field: str) -> Any:
        return self._decode(self._execute("hget", key, field))

    def hset(self, key: KeyT, field: str, value: Any) -> bool:
        """Set a hash field. Overwriting an existing field counts as success."""
        return self._execute("hset", key, field, self._encode(value)) is not None

    def hdel(self, key: KeyT, *fields: str) -> int:
        return int(self._execute("hdel", key, *fields, failure=0))

    def hexists(self, key: KeyT, field: str) -> bool:
        return bool(self._execute("hexists", key, field, failure=False))

    def expire(self, key: KeyT, lifetime: int) -> bool:
        return bool(self._execute("expire", key, lifetime, failure=False))

    def persist(self, key: KeyT) -> bool:
        return bool(self._execute("persist", key, failure=False))

    def ttl(self, key: KeyT) -> int:
        """Remaining seconds; -1 for no expiry, -2 for a missing key."""
        return int(self._execute("ttl", key, failure=-2))

    def keys(self, pattern: str) -> list[str]:
        result = self._execute("keys", pattern, failure=[])
        return [k.decode() if isinstance(k, bytes) else k for k in result]

    def is_connected(self) -> bool:
        try:
            return bool(self._client.ping())
        except _main_exceptions:
            return False


# =============================================================================
# RedisTransport - concrete implementation for redis-py
# =============================================================================

if _REDIS_AVAILABLE:

    class RedisTransport(KeyValueTransport):
        """Transport using redis-py.

        Only the first endpoint is dialed; further endpoints from the DSN are
        accepted but ignored. The connection, authentication and database
        selection happen eagerly so a bad DSN fails at construction.
        """

        _lib = redis
        backend = Backend.REDIS

        def __init__(self, config: ConnectionConfig) -> None:
            super().__init__(config)
            serializer = config.options["serializer"]
            if is_serializer_mode(serializer):
                self._codec = create_serializer(serializer)

        def _connect(self) -> Any:
            endpoints = self.config.endpoints
            if len(endpoints) > 1:
                logger.debug("Dialing %s only, %d other endpoint(s) ignored", endpoints[0], len(endpoints) - 1)

            endpoint = self.config.endpoint
            kwargs = self._client_kwargs()
            kwargs["retry"] = self._retry()
            if endpoint.is_unix:
                kwargs["unix_socket_path"] = endpoint.path
            else:
                kwargs["host"] = endpoint.host
                kwargs["port"] = endpoint.port
                kwargs.update(self._tls_kwargs())

            try:
                client = self.config.client_class(**kwargs)
                client.ping()
            except _main_exceptions as e:
                raise self._connection_failed(e) from e

            logger.debug("Connected to %s (db %d)", endpoint, self.config.dbindex)
            return client

else:

    class RedisTransport(KeyValueTransport):  # type: ignore[no-redef]
        """Redis transport (requires redis-py)."""

        backend = Backend.REDIS

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            msg = "RedisTransport requires redis-py. Install with: pip install redis"
            raise BackendUnavailableError(msg)


# =============================================================================
# ValkeyTransport - concrete implementation for valkey-py
# =============================================================================

if _VALKEY_AVAILABLE:

    class ValkeyTransport(KeyValueTransport):
        """Transport using valkey-py.

        A single endpoint gives a plain client; several endpoints (or a
        ``ValkeyCluster`` client class) give a cluster client seeded with all
        of them. Error replies from the server are logged and reported as
        falsy results, leaving error semantics to the adapter.
        """

        _lib = valkey
        backend = Backend.VALKEY
        _raise_response_errors = False

        def _is_cluster(self) -> bool:
            return issubclass(self.config.client_class, ValkeyCluster) or len(self.config.endpoints) > 1

        def _connect(self) -> Any:
            kwargs = self._client_kwargs()
            kwargs.update(self._tls_kwargs())

            if self._is_cluster():
                client_class = self._cluster_kwargs(kwargs)
            else:
                client_class = self.config.client_class
                kwargs["retry"] = self._retry()
                endpoint = self.config.endpoint
                if endpoint.is_unix:
                    kwargs["unix_socket_path"] = endpoint.path
                    kwargs.pop("ssl", None)
                else:
                    kwargs["host"] = endpoint.host
                    kwargs["port"] = endpoint.port

            try:
                client = client_class(**kwargs)
            except (*_main_exceptions, ValkeyClusterException) as e:
                raise self._connection_failed(e) from e

            logger.debug("Created valkey client for %d endpoint(s)", len(self.config.endpoints))
            return client

        def _cluster_kwargs(self, kwargs: dict[str, Any]) -> type:
            """Fill ``kwargs`` for a cluster client and return the class to build."""
            if any(endpoint.is_unix for endpoint in self.config.endpoints):
                msg = "Unix socket endpoints cannot be combined into a cluster."
                raise InvalidArgumentError(msg)
            if kwargs.pop("db"):
                msg = "A cluster only has database 0, the dbindex parameter must be 0."
                raise InvalidArgumentError(msg)

            kwargs["startup_nodes"] = [ClusterNode(e.host, e.port) for e in self.config.endpoints]
            kwargs["read_from_replicas"] = self.config.options["failover"] != "none"

            client_class = self.config.client_class
            if not issubclass(client_class, ValkeyCluster):
                client_class = ValkeyCluster
            return client_class

else:

    class ValkeyTransport(KeyValueTransport):  # type: ignore[no-redef]
        """Valkey transport (requires valkey-py)."""

        backend = Backend.VALKEY

        def __init__(self, *args: Any, **kwargs: Any) -> None:
            raise BackendUnavailableError("ValkeyTransport requires valkey-py. Install with: pip install valkey")


_TRANSPORTS: dict[Backend, type[KeyValueTransport]] = {
    Backend.REDIS: RedisTransport,
    Backend.VALKEY: ValkeyTransport,
}


def connect(config: ConnectionConfig) -> KeyValueTransport:
    """Open the transport for a resolved configuration."""
    return _TRANSPORTS[config.backend](config)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "_REDIS_AVAILABLE",
    "_VALKEY_AVAILABLE",
    "KeyValueTransport",
    "RedisTransport",
    "ValkeyTransport",
    "connect",
]
