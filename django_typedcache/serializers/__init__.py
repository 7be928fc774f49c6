from django_typedcache.serializers.base import BaseSerializer

# Serializer modes accepted by the ``serializer`` option, by name
SERIALIZER_MODES = {
    "pickle": "django_typedcache.serializers.pickle.PickleSerializer",
    "json": "django_typedcache.serializers.json.JSONSerializer",
    "msgpack": "django_typedcache.serializers.msgpack.MessagePackSerializer",
}

__all__ = ["SERIALIZER_MODES", "BaseSerializer"]
