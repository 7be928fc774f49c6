"""Cache module - provides the adapter classes.

These are the classes to use as BACKEND in the TYPEDCACHE_ADAPTERS setting.
"""

from django_typedcache.cache.base import BaseCacheAdapter
from django_typedcache.cache.default import RedisCacheAdapter

__all__ = [
    "BaseCacheAdapter",
    "RedisCacheAdapter",
]
