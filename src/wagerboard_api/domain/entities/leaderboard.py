# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Leaderboard Entities

Purpose:
    Canonical leaderboard records produced by ingestion and served by the
    query path (no I/O).

    * ``RawRow`` is the generic, string-keyed row shape at the adapter boundary.
    * ``LeaderboardEntry`` is one player's normalized standing at a point in
      time. The tuple ``(tenant_id, casino_player_id, casino, timestamp)``
      identifies at most one stored entry.
    * ``LeaderboardRollup`` is the latest snapshot plus configuration for one
      ``(tenant_id, casino)`` pair.

Layer: domain/entities
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from .base import BaseEntity

type RawRow = dict[str, str]

EntryKey = tuple[str, str, str, datetime]


@dataclass(frozen=True, slots=True)
class LeaderboardEntry(BaseEntity):
    """Normalized leaderboard entry.

    Args:
        tenant_id: Owning tenant.
        casino_player_id: Source-assigned player identity.
        casino: Canonical casino tag.
        wager_amount: Wagered amount (non-negative).
        rank: Position on the leaderboard (1-based).
        timestamp: UTC point in time the row represents.
        data: Original raw row, kept verbatim.

    Raises:
        ValueError: If invariants are violated.
    """

    tenant_id: str
    casino_player_id: str
    casino: str
    wager_amount: Decimal
    rank: int
    timestamp: datetime
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.casino_player_id:
            raise ValueError("casino_player_id must be non-empty")
        if self.wager_amount < 0:
            raise ValueError("wager_amount must be >= 0")
        if self.rank < 1:
            raise ValueError("rank must be >= 1")
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=UTC))

    @property
    def key(self) -> EntryKey:
        """Uniqueness tuple used for upserts."""
        return (self.tenant_id, self.casino_player_id, self.casino, self.timestamp)

    def to_snapshot(self) -> dict[str, Any]:
        """Serialize into the JSON shape stored in the rollup snapshot."""
        return {
            "casinoPlayerId": self.casino_player_id,
            "casino": self.casino,
            "wagerAmount": str(self.wager_amount),
            "rank": self.rank,
            "timestamp": self.timestamp.isoformat(),
            "data": dict(self.data),
        }


@dataclass(frozen=True, slots=True)
class LeaderboardRollup(BaseEntity):
    """Latest-known snapshot and configuration for one (tenant, casino) pair."""

    tenant_id: str
    casino: str
    last_fetched: datetime
    data: list[dict[str, Any]] = field(default_factory=list)
    leaderboard_config: dict[str, Any] = field(default_factory=dict)
