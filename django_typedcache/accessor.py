"""Typed reads and writes on top of a transport.

The accessor reconciles three things on every read: the type the caller
asks for, the caller's default, and what the store actually holds. Request
problems (bad key, default of the wrong type) are raised before the
transport is touched.

Wire format when the transport does not serialize values itself:

* ``bool`` is stored as ``"1"`` / ``"0"``
* ``int``, ``str`` and ``bytes`` are stored as-is, ``float`` as its ``repr``
* arrays (``list``, ``tuple``, ``dict``) and objects go through the
  adapter's serializer
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, NamedTuple

from django_typedcache.exceptions import (
    CacheWriteError,
    ConnectionInterruptedError,
    InvalidArgumentError,
    NotFoundError,
    SerializerError,
)
from django_typedcache.types import Lookup, ValueType

if TYPE_CHECKING:
    from collections.abc import Callable

    from django_typedcache.cache.base import BaseCacheAdapter
    from django_typedcache.types import LifetimeT, SerializerProtocol

logger = logging.getLogger(__name__)

# Sentinel for "no default given"
MISSING: Any = object()

_int_re = re.compile(r"^[+-]?\d+$")

_ARRAY_TYPES = (list, tuple, dict)


def type_of(value: Any) -> ValueType:
    """Classify a Python value into one of the semantic value types."""
    if isinstance(value, bool):
        return ValueType.BOOL
    if isinstance(value, int):
        return ValueType.INT
    if isinstance(value, float):
        return ValueType.FLOAT
    if isinstance(value, (str, bytes, bytearray)):
        return ValueType.STRING
    if isinstance(value, _ARRAY_TYPES):
        return ValueType.ARRAY
    return ValueType.OBJECT


def _type_name(value: Any) -> str:
    kind = type_of(value)
    if kind is ValueType.OBJECT:
        return type(value).__qualname__
    return str(kind)


def _text(raw: Any, target: ValueType) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            return raw.decode()
        except UnicodeDecodeError as e:
            raise InvalidArgumentError.failed_type_cast("bytes", target) from e
    raise InvalidArgumentError.failed_type_cast(_type_name(raw), target)


# =============================================================================
# Coercions applied to raw scalar values
# =============================================================================


def to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    text = _text(raw, ValueType.BOOL)
    if text == "1":
        return True
    if text in ("0", ""):
        return False
    raise InvalidArgumentError.failed_type_cast(_type_name(raw), ValueType.BOOL)


def to_int(raw: Any) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    text = _text(raw, ValueType.INT)
    if not _int_re.match(text):
        raise InvalidArgumentError.failed_type_cast(_type_name(raw), ValueType.INT)
    return int(text)


def to_float(raw: Any) -> float:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    text = _text(raw, ValueType.FLOAT)
    try:
        return float(text)
    except ValueError as e:
        raise InvalidArgumentError.failed_type_cast(_type_name(raw), ValueType.FLOAT) from e


def to_str(raw: Any) -> str:
    return _text(raw, ValueType.STRING)


def to_mixed(raw: Any) -> Any:
    """Pass a raw wire value through, decoding UTF-8 bytes to ``str``.

    No number parsing happens here; ``to_int`` and friends do that.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            return raw.decode()
        except UnicodeDecodeError:
            return bytes(raw)
    return raw


_COERCIONS: dict[ValueType, Callable[[Any], Any]] = {
    ValueType.BOOL: to_bool,
    ValueType.INT: to_int,
    ValueType.FLOAT: to_float,
    ValueType.STRING: to_str,
    ValueType.MIXED: to_mixed,
}


class _Request(NamedTuple):
    """A validated read request."""

    value_type: ValueType
    default: Any  # returned when the item is missing; MISSING raises NotFoundError
    expected: type | str | None = None  # object requests: required class or class name
    fallback: Any = MISSING  # object requests: returned on a class mismatch

    def matches(self, value: Any) -> bool:
        if self.expected is None:
            return type_of(value) is ValueType.OBJECT
        if isinstance(self.expected, type):
            return isinstance(value, self.expected)
        for cls in type(value).__mro__:
            if self.expected in (cls.__name__, cls.__qualname__, f"{cls.__module__}.{cls.__qualname__}"):
                return True
        return False


def build_request(value_type: ValueType | str, default: Any = MISSING) -> _Request:
    """Check that ``default`` agrees with ``value_type`` and build the request.

    ``mixed`` takes its type from the default. ``object`` accepts an
    instance (type plus fallback value), a class, or a class name; the last
    two only constrain the type. ``None`` is accepted as default for any type.
    """
    try:
        value_type = ValueType(value_type)
    except ValueError as e:
        msg = f"Unknown value type '{value_type}'"
        raise InvalidArgumentError(msg) from e

    if default is MISSING or default is None:
        return _Request(value_type, default)

    if value_type is ValueType.MIXED:
        value_type = type_of(default)

    if value_type is ValueType.OBJECT:
        if isinstance(default, type):
            return _Request(value_type, MISSING, expected=default)
        if isinstance(default, str):
            return _Request(value_type, MISSING, expected=default)
        if type_of(default) is ValueType.OBJECT:
            return _Request(value_type, default, expected=type(default), fallback=default)
        raise InvalidArgumentError.invalid_default_type(_type_name(default), value_type)

    if type_of(default) is not value_type:
        raise InvalidArgumentError.invalid_default_type(_type_name(default), value_type)
    return _Request(value_type, default)


class TypedAccessor:
    """Typed get/set against the adapter's current transport.

    Holds no state of its own besides the adapter, so reconnecting or
    changing the namespace on the adapter takes effect immediately.
    """

    def __init__(self, adapter: BaseCacheAdapter) -> None:
        self._adapter = adapter

    def _validate(self, key: str, member_key: str | None) -> tuple[str, str | None]:
        full_key = self._adapter.make_key(key)
        if member_key is None:
            return full_key, None
        return full_key, self._adapter.make_member_key(member_key)

    def _serializer(self) -> SerializerProtocol:
        serializer = self._adapter.serializer
        if serializer is None:
            msg = "Structured values need a serializer, but serializer is not defined."
            raise InvalidArgumentError(msg)
        return serializer

    # =========================================================================
    # Reads
    # =========================================================================

    def lookup(
        self,
        key: str,
        member_key: str | None = None,
        value_type: ValueType | str = ValueType.MIXED,
        default: Any = MISSING,
    ) -> Lookup:
        """Read a value, reporting absence in the result instead of raising.

        ``Lookup.value`` holds the default (or None) when nothing was found.
        """
        _request, result = self._lookup(key, member_key, value_type, default)
        if not result.found and result.value is MISSING:
            return Lookup(False, None)
        return result

    def _lookup(
        self,
        key: str,
        member_key: str | None,
        value_type: ValueType | str,
        default: Any,
    ) -> tuple[_Request, Lookup]:
        full_key, member = self._validate(key, member_key)
        request = build_request(value_type, default)
        transport = self._adapter.transport

        try:
            if member is None:
                raw = transport.get(full_key) if transport.exists(full_key) else None
            else:
                raw = transport.hget(full_key, member) if transport.hexists(full_key, member) else None
        except SerializerError as e:
            raise InvalidArgumentError.failed_type_cast("bytes", request.value_type) from e

        if raw is None:
            return request, Lookup(False, request.default)
        return request, self._convert(raw, request)

    def get(
        self,
        key: str,
        member_key: str | None = None,
        value_type: ValueType | str = ValueType.MIXED,
        default: Any = MISSING,
    ) -> Any:
        """Read a value, raising ``NotFoundError`` when it is missing and no default applies."""
        _request, (found, value) = self._lookup(key, member_key, value_type, default)
        if not found and value is MISSING:
            raise NotFoundError(key, member_key)
        return value

    def _convert(self, raw: Any, request: _Request) -> Lookup:
        transport = self._adapter.transport

        if request.value_type in (ValueType.ARRAY, ValueType.OBJECT):
            value = raw
            if not transport.serializes_values:
                try:
                    value = self._serializer().loads(raw)
                except SerializerError as e:
                    raise InvalidArgumentError.failed_type_cast("bytes", request.value_type) from e

            if request.value_type is ValueType.ARRAY:
                if not isinstance(value, _ARRAY_TYPES):
                    raise InvalidArgumentError.invalid_type(_type_name(value), ValueType.ARRAY)
                return Lookup(True, value)

            if request.matches(value):
                return Lookup(True, value)
            if request.fallback is not MISSING:
                return Lookup(False, request.fallback)
            expected = request.expected if isinstance(request.expected, str) else ValueType.OBJECT
            if isinstance(request.expected, type):
                expected = request.expected.__qualname__
            raise InvalidArgumentError.invalid_type(_type_name(value), expected)

        if request.value_type is ValueType.MIXED and transport.serializes_values:
            return Lookup(True, raw)
        return Lookup(True, _COERCIONS[request.value_type](raw))

    # =========================================================================
    # Writes
    # =========================================================================

    def encode(self, value: Any) -> Any:
        """Turn a Python value into its wire representation."""
        if self._adapter.transport.serializes_values:
            return value

        kind = type_of(value)
        if kind is ValueType.BOOL:
            return b"1" if value else b"0"
        if kind is ValueType.FLOAT:
            return repr(value)
        if kind in (ValueType.INT, ValueType.STRING):
            return value

        serializer = self._serializer()
        try:
            return serializer.dumps(value)
        except SerializerError as e:
            raise InvalidArgumentError.failed_type_cast(_type_name(value), "bytes") from e

    def set(self, key: str, member_key: str | None, value: Any, lifetime: LifetimeT = None) -> None:
        """Write a flat value, or a table member when ``member_key`` is given.

        A lifetime on a member write applies to the whole table. If the
        expiry cannot be set the member is removed again before raising.
        """
        full_key, member = self._validate(key, member_key)
        seconds = self._adapter.normalize_lifetime(lifetime)
        payload = self.encode(value)
        transport = self._adapter.transport

        try:
            if member is None:
                if seconds is None:
                    written = transport.set(full_key, payload)
                else:
                    written = transport.set_with_expiry(full_key, seconds, payload)
            else:
                written = transport.hset(full_key, member, payload)
        except ConnectionInterruptedError as e:
            raise CacheWriteError(key, member_key) from e
        if not written:
            raise CacheWriteError(key, member_key)
        if member is None or seconds is None:
            return

        error: ConnectionInterruptedError | None = None
        try:
            if transport.expire(full_key, seconds):
                return
        except ConnectionInterruptedError as e:
            error = e

        logger.warning("Could not set lifetime on table %r, removing member %r", full_key, member)
        transport.hdel(full_key, member)
        raise CacheWriteError(key, member_key) from error
