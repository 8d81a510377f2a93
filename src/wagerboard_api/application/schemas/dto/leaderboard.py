# src/wagerboard_api/application/schemas/dto/leaderboard.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application DTOs for the leaderboard read path.

Synopsis:
    Strict (Pydantic v2) DTOs returned by the query service and cached as
    JSON. Wager amounts serialize as decimal strings so no precision is lost
    in the cache.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import Field

from wagerboard_api.application.schemas.dto.base import BaseDTO
from wagerboard_api.domain.entities.leaderboard import LeaderboardEntry


class LeaderboardEntryDTO(BaseDTO):
    """One ranked leaderboard row.

    Attributes:
        tenant_id: Owning tenant.
        casino_player_id: Partner-assigned player id.
        casino: Casino tag.
        wager_amount: Wagered amount (>= 0).
        rank: 1-based rank.
        timestamp: UTC time the row represents.
        data: Verbatim partner row.
    """

    tenant_id: str
    casino_player_id: str
    casino: str
    wager_amount: Decimal = Field(ge=0)
    rank: int = Field(ge=1)
    timestamp: datetime
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, entry: LeaderboardEntry) -> LeaderboardEntryDTO:
        """Map a domain entry to its DTO."""
        return cls(
            tenant_id=entry.tenant_id,
            casino_player_id=entry.casino_player_id,
            casino=entry.casino,
            wager_amount=entry.wager_amount,
            rank=entry.rank,
            timestamp=entry.timestamp,
            data=dict(entry.data),
        )


class LeaderboardPageDTO(BaseDTO):
    """One page of a tenant's leaderboard.

    ``total_pages`` is ``ceil(total / page_size)``; an empty leaderboard has
    ``total == total_pages == 0`` and no entries.
    """

    entries: list[LeaderboardEntryDTO] = Field(default_factory=list)
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_pages: int = Field(ge=0)

    @classmethod
    def build(
        cls,
        entries: list[LeaderboardEntryDTO],
        *,
        total: int,
        page: int,
        page_size: int,
    ) -> LeaderboardPageDTO:
        """Assemble a page, deriving ``total_pages``."""
        return cls(
            entries=entries,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
        )

    @classmethod
    def empty(cls, *, page: int, page_size: int) -> LeaderboardPageDTO:
        """Page returned when the (tenant, casino) pair was never ingested."""
        return cls.build([], total=0, page=page, page_size=page_size)
