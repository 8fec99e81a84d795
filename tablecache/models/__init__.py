"""SQLModel tables."""

from .cache import CacheEntry, TTLPolicy

__all__ = ["CacheEntry", "TTLPolicy"]
