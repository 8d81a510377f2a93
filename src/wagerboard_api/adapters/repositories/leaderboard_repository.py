# src/wagerboard_api/adapters/repositories/leaderboard_repository.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""SQLAlchemy leaderboard store.

Responsibilities
----------------
* Upsert leaderboard entries at the ``(tenant_id, casino_player_id, casino,
  timestamp)`` granularity; re-ingesting a tuple replaces the row.
* Create or update the per-(tenant, casino) rollup, preserving its
  configuration unless a new one is supplied.
* Serve rank-ordered pages and totals for the read path.
* Read tenant records.

Every public method runs in its own session and commits before returning.
Driver failures surface as :class:`StoreError`.

Layer
-----
Adapters / repositories.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wagerboard_api.domain.entities.leaderboard import (
    EntryKey,
    LeaderboardEntry,
    LeaderboardRollup,
)
from wagerboard_api.domain.entities.tenant import Tenant
from wagerboard_api.infrastructure.database.models.leaderboard import (
    LeaderboardEntryModel,
    LeaderboardModel,
    TenantModel,
)

from .base_repository import BaseRepository

__all__ = ["SqlAlchemyLeaderboardStore"]

# Keeps multi-row INSERTs below SQLite's bound-parameter ceiling.
_UPSERT_CHUNK = 500


def _canonical_decimal(value: Decimal) -> Decimal:
    """Strip NUMERIC scale padding without switching to exponent notation."""
    if value == value.to_integral_value():
        return value.quantize(Decimal(1))
    return value.normalize()


class SqlAlchemyLeaderboardStore(BaseRepository[LeaderboardEntryModel]):
    """LeaderboardStore implementation backed by SQLAlchemy (async)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        BaseRepository.__init__(self, session_factory)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_entries(self, batch: Sequence[LeaderboardEntry]) -> int:
        """Insert or replace a batch of entries.

        Notes:
            The batch is de-duplicated on the uniqueness tuple so a single
            statement never touches the same row twice. The last occurrence
            wins.

        Returns:
            Number of entries processed (input length, not distinct keys).
        """
        if not batch:
            return 0

        dedup: dict[EntryKey, LeaderboardEntry] = {}
        for entry in batch:
            dedup[entry.key] = entry

        payload = [
            {
                "tenant_id": e.tenant_id,
                "casino_player_id": e.casino_player_id,
                "casino": e.casino,
                "wager_amount": e.wager_amount,
                "rank": e.rank,
                "timestamp": e.timestamp,
                "data": dict(e.data),
            }
            for e in dedup.values()
        ]

        async with self.session_scope("upsert_entries") as session:
            now = self.utc_now()
            for start in range(0, len(payload), _UPSERT_CHUNK):
                stmt = self.upsert_statement(session, LeaderboardEntryModel).values(
                    payload[start : start + _UPSERT_CHUNK]
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[
                        LeaderboardEntryModel.tenant_id,
                        LeaderboardEntryModel.casino_player_id,
                        LeaderboardEntryModel.casino,
                        LeaderboardEntryModel.timestamp,
                    ],
                    set_={
                        "wager_amount": stmt.excluded.wager_amount,
                        "rank": stmt.excluded.rank,
                        "data": stmt.excluded.data,
                        "updated_at": now,
                    },
                )
                await session.execute(stmt)
        return len(batch)

    async def upsert_rollup(
        self,
        tenant_id: str,
        casino: str,
        snapshot: Sequence[Mapping[str, Any]],
        config: Mapping[str, Any] | None = None,
    ) -> None:
        """Create or update the rollup for ``(tenant_id, casino)``.

        ``config=None`` keeps the stored configuration on update and writes
        ``{}`` on create.
        """
        now = self.utc_now()
        values: dict[str, Any] = {
            "tenant_id": tenant_id,
            "casino": casino,
            "last_fetched": now,
            "data": [dict(item) for item in snapshot],
            "leaderboard_config": dict(config) if config is not None else {},
        }
        on_update: dict[str, Any] = {"last_fetched": now, "updated_at": now}

        async with self.session_scope("upsert_rollup") as session:
            stmt = self.upsert_statement(session, LeaderboardModel).values(values)
            on_update["data"] = stmt.excluded.data
            if config is not None:
                on_update["leaderboard_config"] = stmt.excluded.leaderboard_config
            stmt = stmt.on_conflict_do_update(
                index_elements=[LeaderboardModel.tenant_id, LeaderboardModel.casino],
                set_=on_update,
            )
            await session.execute(stmt)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_rollup(self, tenant_id: str, casino: str) -> LeaderboardRollup | None:
        """Return the rollup, or ``None`` when the pair was never ingested."""
        stmt = select(LeaderboardModel).where(
            LeaderboardModel.tenant_id == tenant_id,
            LeaderboardModel.casino == casino,
        )
        async with self.session_scope("get_rollup") as session:
            row = await self.fetch_optional(session, stmt)
        if row is None:
            return None
        return LeaderboardRollup(
            tenant_id=row.tenant_id,
            casino=row.casino,
            last_fetched=self.as_utc(row.last_fetched),
            data=list(row.data or []),
            leaderboard_config=dict(row.leaderboard_config or {}),
        )

    async def list_entries(
        self,
        tenant_id: str,
        casino: str,
        offset: int,
        limit: int,
    ) -> tuple[list[LeaderboardEntry], int]:
        """Return one page ordered by ``rank ASC, casino_player_id ASC`` and the total."""
        scope = (
            LeaderboardEntryModel.tenant_id == tenant_id,
            LeaderboardEntryModel.casino == casino,
        )
        page_stmt = (
            select(LeaderboardEntryModel)
            .where(*scope)
            .order_by(
                LeaderboardEntryModel.rank.asc(),
                LeaderboardEntryModel.casino_player_id.asc(),
            )
            .offset(max(0, offset))
            .limit(max(0, limit))
        )
        count_stmt = select(func.count()).select_from(LeaderboardEntryModel).where(*scope)

        async with self.session_scope("list_entries") as session:
            rows = await self.fetch_all(session, page_stmt)
            total = int(await self.fetch_scalar(session, count_stmt) or 0)

        return [self._to_entry(r) for r in rows], total

    async def list_tenants(self) -> list[Tenant]:
        """Return every tenant ordered by id."""
        stmt = select(TenantModel).order_by(TenantModel.id.asc())
        async with self.session_scope("list_tenants") as session:
            rows = await self.fetch_all(session, stmt)
        return [self._to_tenant(r) for r in rows]

    async def get_tenant(self, tenant_id: str) -> Tenant | None:
        """Return one tenant, or ``None`` when unknown."""
        stmt = select(TenantModel).where(TenantModel.id == tenant_id)
        async with self.session_scope("get_tenant") as session:
            row = await self.fetch_optional(session, stmt)
        return self._to_tenant(row) if row is not None else None

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def _to_entry(self, row: LeaderboardEntryModel) -> LeaderboardEntry:
        return LeaderboardEntry(
            tenant_id=row.tenant_id,
            casino_player_id=row.casino_player_id,
            casino=row.casino,
            wager_amount=_canonical_decimal(Decimal(row.wager_amount)),
            rank=row.rank,
            timestamp=self.as_utc(row.timestamp),
            data=dict(row.data or {}),
        )

    @staticmethod
    def _to_tenant(row: TenantModel) -> Tenant:
        return Tenant(
            id=row.id,
            slug=row.slug,
            casino=row.casino,
            api_config=dict(row.api_config or {}),
            name=row.name or "",
            settings=dict(row.settings or {}),
        )
