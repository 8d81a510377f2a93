# src/wagerboard_api/application/interfaces/cache_invalidator.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application Interface: Leaderboard cache invalidator.

Ingestion calls this after a successful persist so readers never see a page
older than the latest write for longer than it takes to recompute it.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol


class LeaderboardCacheInvalidator(Protocol):
    """Drop every cached view of a (tenant, casino) pair."""

    async def invalidate(self, tenant_id: str, casino: str) -> int:
        """Invalidate cached pages and configuration.

        Returns:
            Number of keys requested for deletion.
        """
        ...
