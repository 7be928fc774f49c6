# Derived from django-redis (https://github.com/jazzband/django-redis)
# Copyright (c) 2011-2016 Andrey Antukh <niwi@niwi.nz>
# Copyright (c) 2011 Sean Bleier
# Licensed under BSD-3-Clause
#
# django-redis was used as inspiration for this project.

"""Exceptions for django-typedcache.

This module defines exceptions that may be raised by the cache adapters.
Every exception derives from ``CacheError`` so callers can catch the whole
family at once, and the argument/lookup errors also derive from the matching
builtin (``ValueError``, ``KeyError``) so generic handlers keep working.
"""

from __future__ import annotations

import socket
from typing import Any

# Build exception tuples from available libraries (redis-py / valkey-py).
# These are used by the transport layer.
_exception_list: list[type[Exception]] = [socket.timeout]
_RedisResponseError: type[Exception] | None = None
_ValkeyResponseError: type[Exception] | None = None

try:
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import ResponseError as RedisResponseError
    from redis.exceptions import TimeoutError as RedisTimeoutError

    _RedisResponseError = RedisResponseError
    _exception_list.extend([RedisConnectionError, RedisTimeoutError, RedisResponseError])
except ImportError:
    pass

try:
    from valkey.exceptions import ConnectionError as ValkeyConnectionError
    from valkey.exceptions import ResponseError as ValkeyResponseError
    from valkey.exceptions import TimeoutError as ValkeyTimeoutError

    _ValkeyResponseError = ValkeyResponseError
    _exception_list.extend([ValkeyConnectionError, ValkeyTimeoutError, ValkeyResponseError])
except ImportError:
    pass

_main_exceptions = tuple(_exception_list)

_response_errors: list[type[Exception]] = []
if _RedisResponseError is not None:
    _response_errors.append(_RedisResponseError)
if _ValkeyResponseError is not None:
    _response_errors.append(_ValkeyResponseError)
_ResponseError = tuple(_response_errors)


class CacheError(Exception):
    """Base class for all django-typedcache errors."""


class InvalidArgumentError(CacheError, ValueError):
    """Raised when a key, namespace, DSN, option or type request is illegal.

    Argument errors are always raised before the transport is touched, so a
    malformed request never reaches the server.

    Example:
        Rejecting a default that disagrees with the stored value::

            from django_typedcache.exceptions import InvalidArgumentError

            try:
                adapter.get("greeting", 42)
            except InvalidArgumentError:
                ...
    """

    @classmethod
    def invalid_type(cls, item_type: str, expected: str) -> InvalidArgumentError:
        return cls(f"Item type of '{item_type}' is not matching with expected '{expected}'")

    @classmethod
    def invalid_default_type(cls, default_type: str, expected: str) -> InvalidArgumentError:
        return cls(f"Given default type of '{default_type}' is not matching with expected '{expected}'")

    @classmethod
    def failed_type_cast(cls, source: str, target: str) -> InvalidArgumentError:
        return cls(f"Can not type cast from '{source}' to '{target}'")


class NotFoundError(CacheError, KeyError):
    """Raised when a key (or a member of a table) does not exist and no default was given.

    Attributes:
        key: The key that was looked up.
        member_key: The member key inside the table, if any.
    """

    def __init__(self, key: str, member_key: str | None = None) -> None:
        self.key = key
        self.member_key = member_key
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.member_key:
            return f"Item not found with key '{self.key}' and member key '{self.member_key}'"
        return f"Item not found with key '{self.key}'"


class CacheWriteError(CacheError):
    """Raised when the server reports failure for a write or delete.

    Attributes:
        key: The key that was written.
        member_key: The member key inside the table, if any.
    """

    def __init__(self, key: str, member_key: str | None = None, operation: str = "set") -> None:
        self.key = key
        self.member_key = member_key
        self.operation = operation
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.member_key:
            return f"Failed to {self.operation} item with key '{self.key}' and member key '{self.member_key}'"
        return f"Failed to {self.operation} item with key '{self.key}'"


class BackendUnavailableError(CacheError, ImportError):
    """Raised when no usable client library (redis-py or valkey-py) is installed."""


class ConnectionInterruptedError(CacheError):
    """Raised when the client library reports a connection, timeout or server error.

    The client library exception is chained as ``__cause__``.
    """

    def __init__(self, connection: Any, parent: Exception | None = None) -> None:
        self.connection = connection
        self.parent = parent
        super().__init__(str(self))

    def __str__(self) -> str:
        error_type = type(self.parent or self.__cause__).__name__
        error_msg = str(self.parent or self.__cause__ or "")
        return f"Redis {error_type}: {error_msg}"


class SerializerError(CacheError):
    """Raised when serialization or deserialization fails.

    This can occur when:
    - The data format doesn't match the expected serializer format
    - The data is corrupted
    - The serializer encounters an incompatible type

    The typed accessor converts decode failures into ``InvalidArgumentError``
    so callers see a single error for "stored value has the wrong shape".
    """
