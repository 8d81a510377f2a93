# src/wagerboard_api/application/interfaces/cache_port.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Cache Port.

Synopsis:
    Minimal JSON cache behavior used by the leaderboard read path and the
    ingestion invalidator. Enables swapping Redis, in-memory, or other cache
    implementations.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class CachePort(Protocol):
    """JSON cache with TTL semantics.

    Implementations must store values as JSON-serializable mappings and apply
    TTL in seconds. A TTL <= 0 means "do not cache". Expired entries must never
    be returned.
    """

    async def get_json(self, key: str) -> Mapping[str, Any] | None:
        """Get a JSON-serializable value by key.

        Args:
            key: Unqualified cache key.

        Returns:
            Deserialized JSON mapping if present and fresh, else ``None``.
        """

    async def set_json(self, key: str, value: Mapping[str, Any], *, ttl: int) -> None:
        """Set a JSON-serializable value with TTL.

        Args:
            key: Unqualified cache key.
            value: JSON-serializable mapping.
            ttl: Time-to-live in seconds.
        """

    async def delete(self, *keys: str) -> int:
        """Delete keys; unknown keys are ignored.

        Args:
            *keys: Unqualified cache keys.

        Returns:
            Number of keys actually removed.
        """

    async def add_members(self, key: str, *members: str, ttl: int) -> None:
        """Atomically add members to a string set and (re)apply its TTL.

        Concurrent writers never lose each other's members.

        Args:
            key: Unqualified cache key of the set.
            *members: Strings to add.
            ttl: Time-to-live in seconds for the whole set.
        """

    async def members(self, key: str) -> set[str]:
        """Return the members of a string set (empty when absent or expired)."""
