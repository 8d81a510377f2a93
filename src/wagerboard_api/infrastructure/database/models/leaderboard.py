# Copyright (c)
# SPDX-License-Identifier: MIT
"""Leaderboard ORM models.

Tables:
    * ``tenants``: tenant records owned by the tenant-management service;
      the leaderboard core only reads them.
    * ``leaderboard_entries``: one row per (tenant, player, casino, timestamp);
      re-ingesting the same tuple replaces the row.
    * ``leaderboards``: one rollup per (tenant, casino) with the latest
      snapshot and the leaderboard configuration blob.

All times are UTC. Wager amounts use NUMERIC(38,8).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Index, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType, TimestampMixin, now_utc

__all__ = ["TenantModel", "LeaderboardEntryModel", "LeaderboardModel"]


class TenantModel(TimestampMixin, Base):
    """Tenant row (read-only for the leaderboard core)."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    casino: Mapped[str] = mapped_column(String(32), nullable=False)
    api_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)


class LeaderboardEntryModel(TimestampMixin, Base):
    """Normalized leaderboard entry."""

    __tablename__ = "leaderboard_entries"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "casino_player_id",
            "casino",
            "timestamp",
            name="uq_leaderboard_entries_identity",
        ),
        Index("ix_leaderboard_entries_tenant_casino_rank", "tenant_id", "casino", "rank"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    casino_player_id: Mapped[str] = mapped_column(String(255), nullable=False)
    casino: Mapped[str] = mapped_column(String(32), nullable=False)
    wager_amount: Mapped[Decimal] = mapped_column(Numeric(38, 8), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)


class LeaderboardModel(TimestampMixin, Base):
    """Per-(tenant, casino) rollup."""

    __tablename__ = "leaderboards"
    __table_args__ = (
        UniqueConstraint("tenant_id", "casino", name="uq_leaderboards_tenant_casino"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    casino: Mapped[str] = mapped_column(String(32), nullable=False)
    last_fetched: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    data: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    leaderboard_config: Mapped[dict[str, Any]] = mapped_column(
        JSONType, nullable=False, default=dict
    )
