# Transports (do actual Redis operations) - internal use
from django_typedcache.client.default import (
    KeyValueTransport,
    RedisTransport,
    ValkeyTransport,
    connect,
)

__all__ = [
    "KeyValueTransport",
    "RedisTransport",
    "ValkeyTransport",
    "connect",
]
