# src/wagerboard_api/infrastructure/caching/memory_cache.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""In-process JSON and string-set cache for dev/test.

Values are round-tripped through JSON on write so callers observe the same
shapes (strings for Decimals, lists for tuples) they would get from Redis.
Expiry uses a monotonic clock; an expired entry is dropped on first read.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable, Mapping
from typing import Any

from wagerboard_api.application.interfaces.cache_port import CachePort

__all__ = ["InMemoryJsonCache"]


class InMemoryJsonCache(CachePort):
    """A small, concurrency-safe in-memory cache."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, tuple[float, dict[str, Any]]] = {}
        self._sets: dict[str, tuple[float, set[str]]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def get_json(self, key: str) -> Mapping[str, Any] | None:
        """Return a JSON blob by key if present and not expired."""
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                self._store.pop(key, None)
                return None
            return json.loads(json.dumps(value))

    async def set_json(self, key: str, value: Mapping[str, Any], *, ttl: int) -> None:
        """Store a JSON-serializable mapping; ``ttl <= 0`` is a no-op."""
        if ttl <= 0:
            return
        payload = json.loads(json.dumps(value))
        async with self._lock:
            self._store[key] = (self._clock() + float(ttl), payload)

    async def delete(self, *keys: str) -> int:
        """Remove keys and return how many were present."""
        async with self._lock:
            removed = 0
            for k in keys:
                found = self._store.pop(k, None) is not None
                found = self._sets.pop(k, None) is not None or found
                removed += int(found)
            return removed

    async def add_members(self, key: str, *members: str, ttl: int) -> None:
        """Add members to a set under the lock and refresh its expiry."""
        if ttl <= 0 or not members:
            return
        async with self._lock:
            now = self._clock()
            expires_at, current = self._sets.get(key, (now, set()))
            if expires_at <= now:
                current = set()
            self._sets[key] = (now + float(ttl), current | set(members))

    async def members(self, key: str) -> set[str]:
        async with self._lock:
            entry = self._sets.get(key)
            if entry is None:
                return set()
            expires_at, current = entry
            if expires_at <= self._clock():
                self._sets.pop(key, None)
                return set()
            return set(current)

    def __len__(self) -> int:
        return len(self._store) + len(self._sets)
