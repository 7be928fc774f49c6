VERSION = (1, 0, 0)
__version__ = ".".join(map(str, VERSION))


def get_adapter(alias="default"):
    """Return the adapter configured under ``alias`` in ``TYPEDCACHE_ADAPTERS``."""
    from django_typedcache.conf import adapters

    return adapters[alias]


def close_adapters():
    """Close every adapter opened through ``get_adapter`` and forget it."""
    from django_typedcache.conf import adapters

    for alias in list(adapters):
        try:
            adapter = getattr(adapters._connections, alias)
        except AttributeError:
            continue
        adapter.close()
        del adapters[alias]
