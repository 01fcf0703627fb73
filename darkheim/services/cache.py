"""In-process TTL cache implementing CacheInterface.

Entries expire based on creation time. Expired entries are dropped lazily
on read, so the cache never needs a background sweeper.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from darkheim.contracts import CacheInterface


class CacheService(CacheInterface):
    def __init__(self, default_ttl: int = 3600) -> None:
        self._default_ttl = default_ttl
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def _expires(self, ttl: int | None) -> float:
        return time.time() + (ttl if ttl is not None else self._default_ttl)

    def _lookup(self, key: str) -> tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        value, expires_at = entry
        if time.time() >= expires_at:
            del self._entries[key]
            return False, None
        return True, value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            found, value = self._lookup(key)
        return value if found else default

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        with self._lock:
            self._entries[key] = (value, self._expires(ttl))
        return True

    def has(self, key: str) -> bool:
        with self._lock:
            return self._lookup(key)[0]

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> bool:
        with self._lock:
            self._entries.clear()
        return True

    def remember(self, key: str, callback: Callable[[], Any], ttl: int | None = None) -> Any:
        with self._lock:
            found, value = self._lookup(key)
        if found:
            return value
        value = callback()
        self.set(key, value, ttl)
        return value

    def increment(self, key: str, value: int = 1) -> int:
        with self._lock:
            found, current = self._lookup(key)
            new_value = (int(current) if found else 0) + value
            expires_at = self._entries[key][1] if found else self._expires(None)
            self._entries[key] = (new_value, expires_at)
        return new_value

    def decrement(self, key: str, value: int = 1) -> int:
        return self.increment(key, -value)

    def get_many(self, keys: list[str]) -> dict[str, Any]:
        return {key: self.get(key) for key in keys}

    def set_many(self, values: dict[str, Any], ttl: int | None = None) -> bool:
        for key, value in values.items():
            self.set(key, value, ttl)
        return True

    def delete_many(self, keys: list[str]) -> bool:
        removed = [self.delete(key) for key in keys]
        return all(removed)
