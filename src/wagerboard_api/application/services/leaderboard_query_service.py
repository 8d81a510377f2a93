# src/wagerboard_api/application/services/leaderboard_query_service.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Service: Leaderboard Query (cache-backed read path)

Purpose:
    Serve paginated leaderboard pages and leaderboard configuration for a
    (tenant, casino) pair, reading through a JSON cache, and invalidate that
    pair's cached views after ingestion.

Cache keys (tails; the cache implementation may add a namespace):
    * page:   ``leaderboard:{tenant}:{casino}:page:{page}:size:{page_size}``
    * config: ``leaderboard-config:{tenant}:{casino}``
    * index:  ``leaderboard-pages:{tenant}:{casino}``; a string set of every
      page key written for the pair. Members are added atomically, so
      concurrent reads of different pages never drop each other.

Failure policy:
    * Cache errors are logged and the call falls back to the store.
    * Store errors propagate (``StoreError``).

Layer: application/services
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

from wagerboard_api.application.interfaces.cache_port import CachePort
from wagerboard_api.application.schemas.dto.leaderboard import (
    LeaderboardEntryDTO,
    LeaderboardPageDTO,
)
from wagerboard_api.domain.enums.casino import normalize_casino_tag
from wagerboard_api.domain.interfaces.repositories.leaderboard_store import LeaderboardStore

__all__ = [
    "DEFAULT_CACHE_TTL_S",
    "LeaderboardQueryService",
    "config_cache_key",
    "page_cache_key",
    "page_index_key",
]

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_S: Final[int] = 300


def page_cache_key(tenant_id: str, casino: str, page: int, page_size: int) -> str:
    """Build the tail cache key for one leaderboard page."""
    return f"leaderboard:{tenant_id}:{casino}:page:{page}:size:{page_size}"


def config_cache_key(tenant_id: str, casino: str) -> str:
    """Build the tail cache key for leaderboard configuration."""
    return f"leaderboard-config:{tenant_id}:{casino}"


def page_index_key(tenant_id: str, casino: str) -> str:
    """Build the tail cache key of the page-key index for a pair."""
    return f"leaderboard-pages:{tenant_id}:{casino}"


class LeaderboardQueryService:
    """Cache-backed leaderboard reads plus invalidation.

    Args:
        store: Leaderboard persistence port.
        cache: JSON cache port.
        ttl_s: TTL applied to pages, configuration and the page index.
    """

    def __init__(
        self,
        store: LeaderboardStore,
        cache: CachePort,
        *,
        ttl_s: int = DEFAULT_CACHE_TTL_S,
    ) -> None:
        self._store = store
        self._cache = cache
        self._ttl_s = ttl_s

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_page(
        self,
        tenant_id: str,
        casino: str,
        page: int = 1,
        page_size: int = 20,
    ) -> LeaderboardPageDTO:
        """Return one page of the leaderboard, ordered by rank.

        Args:
            tenant_id: Tenant scope.
            casino: Casino tag (case-insensitive).
            page: 1-based page number.
            page_size: Entries per page.

        Returns:
            LeaderboardPageDTO: Entries plus pagination metadata. A pair that
            was never ingested yields an empty page with ``total_pages == 0``.

        Raises:
            ValueError: If ``page`` or ``page_size`` is below 1.
            StoreError: If the store is unavailable on a cache miss.
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        casino = normalize_casino_tag(casino)
        key = page_cache_key(tenant_id, casino, page, page_size)

        cached = await self._cache_get(key)
        if cached is not None:
            try:
                return LeaderboardPageDTO.model_validate(dict(cached))
            except ValueError:
                logger.warning("leaderboard.cache.corrupt", extra={"extra": {"key": key}})

        logger.info(
            "leaderboard.cache.miss",
            extra={"extra": {"key": key, "tenant_id": tenant_id, "casino": casino}},
        )

        rollup = await self._store.get_rollup(tenant_id, casino)
        if rollup is None:
            logger.warning(
                "leaderboard.absent",
                extra={"extra": {"tenant_id": tenant_id, "casino": casino}},
            )
            result = LeaderboardPageDTO.empty(page=page, page_size=page_size)
        else:
            entries, total = await self._store.list_entries(
                tenant_id, casino, offset=(page - 1) * page_size, limit=page_size
            )
            result = LeaderboardPageDTO.build(
                [LeaderboardEntryDTO.from_entity(e) for e in entries],
                total=total,
                page=page,
                page_size=page_size,
            )

        await self._cache_set(key, result.model_dump(mode="json"))
        await self._track_page_key(tenant_id, casino, key)
        return result

    async def get_config(self, tenant_id: str, casino: str) -> dict[str, Any]:
        """Return the leaderboard configuration blob (``{}`` when absent).

        Raises:
            StoreError: If the store is unavailable on a cache miss.
        """
        casino = normalize_casino_tag(casino)
        key = config_cache_key(tenant_id, casino)

        cached = await self._cache_get(key)
        if cached is not None:
            return dict(cached)

        rollup = await self._store.get_rollup(tenant_id, casino)
        config = dict(rollup.leaderboard_config) if rollup is not None else {}
        await self._cache_set(key, config)
        return config

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate(self, tenant_id: str, casino: str) -> int:
        """Delete every cached view of ``(tenant_id, casino)``.

        Removes the configuration key, every page key recorded in the page
        index, and the index itself.

        Returns:
            Number of keys requested for deletion.

        Raises:
            Exception: Whatever the cache raises while deleting; callers decide
                whether that is fatal.
        """
        casino = normalize_casino_tag(casino)
        index_key = page_index_key(tenant_id, casino)
        page_keys = await self._cache_members(index_key)

        keys = [config_cache_key(tenant_id, casino), index_key, *sorted(page_keys)]
        removed = await self._cache.delete(*keys)
        logger.info(
            "leaderboard.cache.invalidated",
            extra={
                "extra": {
                    "tenant_id": tenant_id,
                    "casino": casino,
                    "keys": len(keys),
                    "removed": removed,
                }
            },
        )
        return len(keys)

    # ------------------------------------------------------------------
    # Cache helpers (never raise)
    # ------------------------------------------------------------------

    async def _cache_get(self, key: str) -> Mapping[str, Any] | None:
        try:
            return await self._cache.get_json(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "leaderboard.cache.read_failed",
                extra={"extra": {"key": key, "error_type": type(exc).__name__, "error": str(exc)}},
            )
            return None

    async def _cache_set(self, key: str, value: Mapping[str, Any]) -> None:
        try:
            await self._cache.set_json(key, value, ttl=self._ttl_s)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "leaderboard.cache.write_failed",
                extra={"extra": {"key": key, "error_type": type(exc).__name__, "error": str(exc)}},
            )

    async def _cache_members(self, key: str) -> set[str]:
        try:
            return await self._cache.members(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "leaderboard.cache.read_failed",
                extra={"extra": {"key": key, "error_type": type(exc).__name__, "error": str(exc)}},
            )
            return set()

    async def _track_page_key(self, tenant_id: str, casino: str, key: str) -> None:
        index_key = page_index_key(tenant_id, casino)
        try:
            await self._cache.add_members(index_key, key, ttl=self._ttl_s)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "leaderboard.cache.write_failed",
                extra={
                    "extra": {
                        "key": index_key,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    }
                },
            )
