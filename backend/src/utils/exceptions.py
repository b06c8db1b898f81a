"""Error types raised by the place directory backend."""


class InvalidArgument(ValueError):
    """Bad coordinates, radius or place payload supplied by the caller."""


class SearchFailed(Exception):
    """A proximity search could not complete because a storage lookup failed."""


class StorageError(Exception):
    """The storage backend rejected or failed a request."""


class CacheMiss(KeyError):
    """No live cache entry for the key. Internal to the lookup cache."""
