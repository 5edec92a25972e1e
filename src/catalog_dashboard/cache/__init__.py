"""Query caching: TTL store and canonical query keys."""

from .keys import query_key
from .store import CacheEntry, CacheStore

__all__ = ["CacheEntry", "CacheStore", "query_key"]
