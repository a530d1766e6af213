"""In-memory TTL cache backing the API client."""

from .cache import DEFAULT_TTL, CacheEntry, Clock, TTLCache

__all__ = ["DEFAULT_TTL", "CacheEntry", "Clock", "TTLCache"]
