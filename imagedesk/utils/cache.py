"""Key/value cache for resolved image URLs.

Stored paths are immutable once written, so entries never expire and are
never invalidated by the pipeline. Writes are idempotent: resolving the
same path twice always stores the same URL.

Usage:
    cache = get_url_cache()  # process-wide instance

    url = cache.get(path)
    if url is None:
        url = rule(path)
        cache.set(path, url)

Tests and alternate hosts inject their own instance instead.
"""

from functools import lru_cache
from typing import Optional, Protocol


class UrlCache(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryUrlCache:
    """Unbounded dict-backed cache with process lifetime."""

    __slots__ = ("_data",)

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        """Return the cached value or None."""
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        """Drop every entry. Ops/test helper, never called by the pipeline."""
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


@lru_cache
def get_url_cache() -> InMemoryUrlCache:
    """Process-wide URL cache shared by every display component."""
    return InMemoryUrlCache()
