import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

from django_typedcache.exceptions import SerializerError
from django_typedcache.serializers.base import BaseSerializer


class JSONSerializer(BaseSerializer):
    """JSON-based serializer using Django's DjangoJSONEncoder.

    Serializes values to JSON format, which is human-readable and interoperable
    but limited to JSON-compatible types (strings, numbers, lists, dicts, bools, None).
    Tuples come back as lists and objects only as dicts, so ``get_object`` with
    a class default will not match JSON-decoded values.

    By default uses Django's DjangoJSONEncoder which adds support for:
    - datetime, date, time objects
    - timedelta (as ISO 8601 duration)
    - Decimal (as string)
    - UUID (as string)

    Attributes:
        encoder_class: The JSON encoder class to use. Defaults to DjangoJSONEncoder.

    Example:
        Configure on an adapter::

            adapter = RedisCacheAdapter(
                "redis://localhost:6379/1",
                {"serializer": "django_typedcache.serializers.json.JSONSerializer"},
            )
    """

    encoder_class = DjangoJSONEncoder

    def dumps(self, obj: Any) -> bytes:
        try:
            return json.dumps(obj, cls=self.encoder_class).encode()
        except TypeError as e:
            raise SerializerError from e

    def loads(self, data: bytes) -> Any:
        try:
            if isinstance(data, bytes):
                data = data.decode()
            return json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            raise SerializerError from e
