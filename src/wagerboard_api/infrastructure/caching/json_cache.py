# src/wagerboard_api/infrastructure/caching/json_cache.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""JSON Cache (Redis-backed).

Synopsis:
    Thin adapter that implements the application CachePort Protocol on top of
    the shared Redis client provided by `infrastructure/caching/redis_client.py`.
    Provides namespaced JSON get/set/delete with TTL, plus string sets
    (SADD + EXPIRE in one MULTI transaction) for key indexes.

Design:
    * Uses the global Redis client via `get_redis_client()`.
    * Pure JSON (utf-8) serialization; no pickle.
    * Key policy:
        - Namespace prefix owns service + vertical + version:
            `wagerboard:leaderboard:v1`
        - Callers provide the remaining resource-specific segments:
            e.g. `leaderboard:{tenant}:{casino}:page:1:size:20`
    * Every operation is recorded in the cache counter/histogram, labelled
      with the namespace and a hit flag.

Layer:
    infrastructure/caching

See Also:
    - wagerboard_api.infrastructure.caching.redis_client
    - wagerboard_api.application.interfaces.cache_port.CachePort
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager, suppress
from typing import Any, Final

from wagerboard_api.application.interfaces.cache_port import CachePort
from wagerboard_api.infrastructure.caching.redis_client import get_redis_client
from wagerboard_api.infrastructure.observability.metrics import (
    get_cache_operation_duration_seconds,
    get_cache_operations_total,
)

__all__ = [
    "DEFAULT_NAMESPACE",
    "RedisJsonCache",
]

DEFAULT_NAMESPACE: Final[str] = "wagerboard:leaderboard:v1"


class RedisJsonCache(CachePort):
    """Redis-backed implementation of the CachePort Protocol.

    Keys passed to the methods are the resource tail; the namespace given at
    construction is prepended to every one of them.
    """

    def __init__(self, *, namespace: str = DEFAULT_NAMESPACE) -> None:
        """Initialize the cache adapter.

        Args:
            namespace: Prefix applied to all keys to avoid collisions.
        """
        self._ns = namespace

    def _k(self, key: str) -> str:
        return f"{self._ns}:{key.lstrip(':')}"

    @contextmanager
    def _observe(self, operation: str) -> Iterator[dict[str, str]]:
        """Time an operation; the caller may flip ``state["hit"]``."""
        state = {"hit": "n/a"}
        start = time.perf_counter()
        try:
            yield state
        finally:
            duration = time.perf_counter() - start
            with suppress(Exception):
                labels = {"operation": operation, "namespace": self._ns, "hit": state["hit"]}
                get_cache_operation_duration_seconds().labels(**labels).observe(duration)
                get_cache_operations_total().labels(**labels).inc()

    async def get_json(self, key: str) -> Mapping[str, Any] | None:
        """Get a JSON-serialized value by key.

        Args:
            key: Unqualified cache key.

        Returns:
            Deserialized mapping if present, else None.
        """
        with self._observe("get_json") as state:
            state["hit"] = "false"
            raw = await get_redis_client().get(self._k(key))
            if raw is None:
                return None
            value = json.loads(raw)
            if not isinstance(value, Mapping):
                return None
            state["hit"] = "true"
            return value

    async def set_json(self, key: str, value: Mapping[str, Any], *, ttl: int) -> None:
        """Set a JSON-serialized value with TTL.

        Args:
            key: Unqualified cache key.
            value: JSON-serializable mapping.
            ttl: Time-to-live in seconds; ``<= 0`` skips the write.
        """
        with self._observe("set_json"):
            if ttl <= 0:
                return
            payload = json.dumps(value, separators=(",", ":"))
            await get_redis_client().set(self._k(key), payload, ex=ttl)

    async def delete(self, *keys: str) -> int:
        """Delete keys in a single round trip.

        Args:
            *keys: Unqualified cache keys.

        Returns:
            Number of keys Redis reports as removed.
        """
        if not keys:
            return 0
        with self._observe("delete"):
            removed = await get_redis_client().delete(*(self._k(k) for k in keys))
            return int(removed or 0)

    async def add_members(self, key: str, *members: str, ttl: int) -> None:
        """Add members to a Redis set and refresh its TTL atomically.

        Args:
            key: Unqualified cache key of the set.
            *members: Strings to add.
            ttl: Time-to-live in seconds; ``<= 0`` skips the write.
        """
        with self._observe("add_members"):
            if ttl <= 0 or not members:
                return
            full_key = self._k(key)
            async with get_redis_client().pipeline(transaction=True) as pipe:
                pipe.sadd(full_key, *members)
                pipe.expire(full_key, ttl)
                await pipe.execute()

    async def members(self, key: str) -> set[str]:
        """Return the members of a Redis set (empty when absent)."""
        with self._observe("members") as state:
            found = await get_redis_client().smembers(self._k(key))
            state["hit"] = "true" if found else "false"
            return {str(m) for m in found or ()}
