import pickle
from typing import Any

from django.core.exceptions import ImproperlyConfigured

from django_typedcache.exceptions import SerializerError
from django_typedcache.serializers.base import BaseSerializer


class PickleSerializer(BaseSerializer):
    """Pickle-based serializer, able to round-trip arbitrary Python objects.

    Attributes:
        protocol: Pickle protocol version. Defaults to ``pickle.DEFAULT_PROTOCOL``.

    Only use pickle with a server you trust: loading a pickle can execute code.
    """

    def __init__(self, protocol: int | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if protocol is None:
            protocol = pickle.DEFAULT_PROTOCOL
        elif protocol > pickle.HIGHEST_PROTOCOL:
            msg = f"protocol can't be higher than pickle.HIGHEST_PROTOCOL: {pickle.HIGHEST_PROTOCOL}"
            raise ImproperlyConfigured(msg)
        self.protocol = protocol

    def dumps(self, obj: Any) -> bytes:
        try:
            return pickle.dumps(obj, self.protocol)
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            raise SerializerError from e

    def loads(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)  # noqa: S301
        except (pickle.UnpicklingError, EOFError, TypeError, ValueError, KeyError, AttributeError, ImportError) as e:
            raise SerializerError from e
