# src/wagerboard_api/domain/services/leaderboard_normalizer.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Leaderboard row normalizer (pure, lenient).

Purpose:
    Map generic partner rows into canonical leaderboard entries. Partners use
    inconsistent column names and formats, so each field is resolved through
    an ordered alias list and coerced with a fallback instead of failing:

        * player id  -> ``user_id`` | ``userId`` | ``id``      else ``unknown-{ordinal}``
        * wager      -> ``wagered_amount`` | ``wageredAmount`` | ``wager``  else ``0``
        * rank       -> ``rank``                                else ``ordinal + 1``
        * timestamp  -> ``timestamp`` | ``date``                else ingestion time

    A malformed row degrades field by field; it is never dropped, so row count
    and rank continuity are preserved for the rest of the batch.
    Values the store cannot hold count as unparsable (rank above
    ``MAX_RANK``, wager at or above ``MAX_WAGER``, out-of-range timestamps);
    player ids longer than ``MAX_PLAYER_ID_LENGTH`` keep a prefix plus a
    SHA-256 digest.

Layer:
    domain/services
"""

from __future__ import annotations

import hashlib
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Final

from wagerboard_api.domain.entities.leaderboard import LeaderboardEntry
from wagerboard_api.domain.enums.casino import normalize_casino_tag

__all__ = [
    "MAX_PLAYER_ID_LENGTH",
    "MAX_RANK",
    "MAX_WAGER",
    "PLAYER_ID_ALIASES",
    "WAGER_ALIASES",
    "RANK_ALIASES",
    "TIMESTAMP_ALIASES",
    "NormalizedRow",
    "normalize_row",
    "normalize_rows",
]

PLAYER_ID_ALIASES: Final[tuple[str, ...]] = ("user_id", "userId", "id")
WAGER_ALIASES: Final[tuple[str, ...]] = ("wagered_amount", "wageredAmount", "wager")
RANK_ALIASES: Final[tuple[str, ...]] = ("rank",)
TIMESTAMP_ALIASES: Final[tuple[str, ...]] = ("timestamp", "date")

_ZERO: Final[Decimal] = Decimal("0")
# Bounds of the leaderboard_entries columns (INTEGER, NUMERIC(38, 8), VARCHAR(255)).
MAX_RANK: Final[int] = 2**31 - 1
MAX_WAGER: Final[Decimal] = Decimal(10) ** 30
MAX_PLAYER_ID_LENGTH: Final[int] = 255
_EPOCH_RE: Final[re.Pattern[str]] = re.compile(r"^\d+(\.\d+)?$")
# Epoch values above this are treated as milliseconds (year ~5138 in seconds).
_EPOCH_MS_THRESHOLD: Final[float] = 1e11


@dataclass(frozen=True, slots=True)
class NormalizedRow:
    """A normalized row that has not been assigned to a tenant yet."""

    casino_player_id: str
    casino: str
    wager_amount: Decimal
    rank: int
    timestamp: datetime
    data: dict[str, Any]

    def with_tenant(self, tenant_id: str) -> LeaderboardEntry:
        """Bind the row to its tenant, producing a canonical entry."""
        return LeaderboardEntry(
            tenant_id=tenant_id,
            casino_player_id=self.casino_player_id,
            casino=self.casino,
            wager_amount=self.wager_amount,
            rank=self.rank,
            timestamp=self.timestamp,
            data=self.data,
        )


def _first_present(row: Mapping[str, Any], aliases: Sequence[str]) -> str | None:
    """Return the first non-blank value among ``aliases`` as a stripped string."""
    for alias in aliases:
        value = row.get(alias)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _parse_wager(text: str | None) -> Decimal:
    if text is None:
        return _ZERO
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return _ZERO
    if not value.is_finite() or value < 0 or value >= MAX_WAGER:
        return _ZERO
    return value


def _parse_rank(text: str | None, ordinal: int) -> int:
    default = ordinal + 1
    if text is None:
        return default
    try:
        rank = int(text)
    except ValueError:
        try:
            as_float = float(text)
        except ValueError:
            return default
        if not math.isfinite(as_float) or not as_float.is_integer():
            return default
        rank = int(as_float)
    return rank if 1 <= rank <= MAX_RANK else default


def _bound_player_id(text: str) -> str:
    """Shorten over-long ids to a stable prefix plus digest (still unique per id)."""
    if len(text) <= MAX_PLAYER_ID_LENGTH:
        return text
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"{text[: MAX_PLAYER_ID_LENGTH - len(digest) - 1]}-{digest}"


def _parse_epoch(text: str, fallback: datetime) -> datetime:
    if not _EPOCH_RE.match(text):
        return fallback
    try:
        seconds = float(text)
        if seconds >= _EPOCH_MS_THRESHOLD:
            seconds /= 1000.0
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return fallback


def _parse_timestamp(text: str | None, fallback: datetime) -> datetime:
    if text is None:
        return fallback
    # Longer digit runs than a basic ISO date (YYYYMMDD) are epoch values.
    if _EPOCH_RE.match(text) and len(text.partition(".")[0]) > 8:
        return _parse_epoch(text, fallback)

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return _parse_epoch(text, fallback)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except (OverflowError, ValueError):
        # Offsets that push the instant past datetime.min/max.
        return fallback


def normalize_row(
    row: Mapping[str, Any],
    ordinal: int,
    *,
    casino: str,
    observed_at: datetime,
) -> NormalizedRow:
    """Normalize a single raw row.

    Args:
        row: Raw partner row (string keys, primitive values).
        ordinal: Zero-based position of the row in the feed.
        casino: Casino tag the row came from.
        observed_at: Ingestion wall-clock time used when the row has no
            usable timestamp.

    Returns:
        NormalizedRow: Entry fields plus the verbatim raw row.
    """
    player_id = _bound_player_id(_first_present(row, PLAYER_ID_ALIASES) or f"unknown-{ordinal}")
    return NormalizedRow(
        casino_player_id=player_id,
        casino=normalize_casino_tag(casino),
        wager_amount=_parse_wager(_first_present(row, WAGER_ALIASES)),
        rank=_parse_rank(_first_present(row, RANK_ALIASES), ordinal),
        timestamp=_parse_timestamp(_first_present(row, TIMESTAMP_ALIASES), observed_at),
        data=dict(row),
    )


def normalize_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    tenant_id: str,
    casino: str,
    observed_at: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Normalize a whole feed for one tenant.

    All rows without a usable timestamp share one ``observed_at`` value so a
    batch lands on a single point in time.

    Args:
        rows: Raw rows in feed order.
        tenant_id: Owning tenant.
        casino: Casino tag the rows came from.
        observed_at: Optional ingestion time; defaults to ``now`` in UTC.

    Returns:
        Canonical entries, one per input row, in input order.
    """
    now = observed_at or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return [
        normalize_row(row, ordinal, casino=casino, observed_at=now).with_tenant(tenant_id)
        for ordinal, row in enumerate(rows)
    ]
