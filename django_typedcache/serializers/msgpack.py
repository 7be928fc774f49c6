from typing import Any

import msgpack

from django_typedcache.exceptions import SerializerError
from django_typedcache.serializers.base import BaseSerializer


class MessagePackSerializer(BaseSerializer):
    """MessagePack-based serializer for efficient binary serialization.

    MessagePack is a binary format that is more compact and faster than JSON,
    while supporting similar data types.

    Requires the ``msgpack`` package to be installed::

        pip install msgpack

    Note:
        MessagePack has different type support than pickle or JSON:
        - Supports: None, bool, int, float, str, bytes, list, dict
        - Does NOT support: datetime, Decimal, custom objects (without extension)
    """

    def dumps(self, obj: Any) -> bytes:
        try:
            return msgpack.dumps(obj)
        except TypeError as e:
            raise SerializerError from e

    def loads(self, data: bytes) -> Any:
        try:
            return msgpack.loads(data, raw=False)
        except Exception as e:
            raise SerializerError from e
