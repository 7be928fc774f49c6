from typing import Any


class BaseSerializer:
    """Base class for structured value serializers.

    The typed accessor only needs the ``dumps``/``loads`` pair, so any object
    with those two methods works as a serializer; this class documents the
    interface and gives subclasses a place for configuration kwargs.

    Serializers accept ``**kwargs`` for configuration (e.g., ``protocol`` for
    pickle version). ``create_serializer()`` in ``django_typedcache.compat``
    forwards them.
    """

    def __init__(self, **kwargs: Any) -> None:
        pass

    def dumps(self, obj: Any) -> bytes:
        raise NotImplementedError

    def loads(self, data: bytes) -> Any:
        raise NotImplementedError
