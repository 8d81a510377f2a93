# src/wagerboard_api/domain/interfaces/repositories/leaderboard_store.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Leaderboard Store Protocol.

Synopsis:
    Storage contract consumed by the ingestion pipeline and the query service.
    Every operation is atomic per call; callers never rely on cross-call
    transactions. Absence (no rollup, no entries) is a normal result meaning
    "not yet ingested", never an error.

Layer:
    domain/interfaces/repositories
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from wagerboard_api.domain.entities.leaderboard import LeaderboardEntry, LeaderboardRollup
from wagerboard_api.domain.entities.tenant import Tenant


class LeaderboardStore(Protocol):
    """Persistence port for leaderboard entries, rollups and tenants.

    Implementations raise ``StoreError`` for persistence failures.
    """

    async def upsert_entries(self, batch: Sequence[LeaderboardEntry]) -> int:
        """Insert or replace entries keyed by (tenant, player, casino, timestamp).

        Returns:
            Number of entries processed.
        """
        ...

    async def upsert_rollup(
        self,
        tenant_id: str,
        casino: str,
        snapshot: Sequence[Mapping[str, Any]],
        config: Mapping[str, Any] | None = None,
    ) -> None:
        """Create or update the rollup for a (tenant, casino) pair.

        ``config=None`` keeps the stored configuration (``{}`` on create).
        """
        ...

    async def get_rollup(self, tenant_id: str, casino: str) -> LeaderboardRollup | None:
        """Return the rollup, or ``None`` if the pair was never ingested."""
        ...

    async def list_entries(
        self,
        tenant_id: str,
        casino: str,
        offset: int,
        limit: int,
    ) -> tuple[list[LeaderboardEntry], int]:
        """Return one page ordered by rank ascending, plus the total count."""
        ...

    async def list_tenants(self) -> list[Tenant]:
        """Return every tenant record."""
        ...

    async def get_tenant(self, tenant_id: str) -> Tenant | None:
        """Return one tenant, or ``None`` when unknown."""
        ...
