# Overview: Time-bounded read cache owned by the data-access layer.

"""
Read Cache

Room overviews and the payment ledger fan out into many queries, so their
results are kept for a short TTL. Stale reads within the TTL are accepted;
every write path calls clear().

The clock and TTL are injected so tests can drive expiry without sleeping.
One instance lives on the Flask app under app.extensions["frontdesk_cache"].
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Callable

from flask import current_app


EXTENSION_KEY = "frontdesk_cache"

_MISSING = object()


@dataclass
class _CacheEntry:
    value: Any
    stored_at: float


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    @staticmethod
    def cache_key(name: str, params: dict | None = None) -> str:
        """Stable key for a named lookup and its parameters."""
        return f"{name}_{json.dumps(params or {}, sort_keys=True, default=str)}"

    def _is_fresh(self, entry: _CacheEntry) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if not self._is_fresh(entry):
            self._entries.pop(key, None)
            return default
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = _CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value, or call loader() and cache its result."""
        value = self.get(key, _MISSING)
        if value is _MISSING:
            value = loader()
            self.set(key, value)
        return value

    def __len__(self) -> int:
        return len(self._entries)


def init_cache(app) -> TTLCache:
    cache = TTLCache(ttl_seconds=app.config.get("CACHE_TTL_SECONDS", 30))
    app.extensions[EXTENSION_KEY] = cache
    return cache


def get_cache() -> TTLCache:
    return current_app.extensions[EXTENSION_KEY]


def invalidate_reads() -> None:
    """Drop every cached read after a write."""
    get_cache().clear()
