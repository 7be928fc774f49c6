"""Key and namespace validation.

All functions here are pure so they can run before any transport call:
a malformed key never reaches the server.
"""

from __future__ import annotations

import re

from django_typedcache.exceptions import InvalidArgumentError

# Characters that cannot be used in a key on any backend
RESERVED_CHARACTERS = "{}()\\@:"

# Separator appended to a namespace
NS_SEPARATOR = ":"

# Room kept free under the key length limit for internal suffixes
NAMESPACE_HEADROOM = 24

# Regex for escaping glob special characters
_special_re = re.compile("([*?[])")


def glob_escape(s: str) -> str:
    """Escape glob special characters in a string."""
    return _special_re.sub(r"[\1]", s)


def validate_key(
    key: str,
    namespace: str = "",
    *,
    max_length: int | None = None,
    reserved: str = RESERVED_CHARACTERS,
) -> str:
    """Validate ``key`` and return it prefixed with ``namespace``.

    Raises:
        InvalidArgumentError: if the key is empty, contains a reserved
            character, or the namespaced key exceeds ``max_length``.
    """
    if not isinstance(key, str):
        raise InvalidArgumentError(f"Cache key must be a string, {type(key).__name__} given.")
    if key == "":
        raise InvalidArgumentError("Cache key length must be greater than zero.")
    if any(char in reserved for char in key):
        raise InvalidArgumentError(f'Cache key "{key}" contains reserved characters "{reserved}".')

    key = namespace + key
    if max_length is not None and len(key) > max_length:
        raise InvalidArgumentError(f'Key must be {max_length} chars max, {len(key)} given ("{key}").')
    return key


def make_namespace(
    namespace: str,
    *,
    max_length: int | None = None,
    reserved: str = RESERVED_CHARACTERS,
) -> str:
    """Validate a namespace and return the prefix stored by the adapter.

    An empty namespace disables prefixing; any other value is returned with
    the namespace separator appended.
    """
    if max_length is not None and len(namespace) > max_length - NAMESPACE_HEADROOM:
        raise InvalidArgumentError(
            f"Namespace must be {max_length - NAMESPACE_HEADROOM} chars max, "
            f'{len(namespace)} given ("{namespace}").',
        )
    if namespace == "":
        return ""
    return validate_key(namespace, max_length=max_length, reserved=reserved) + NS_SEPARATOR
