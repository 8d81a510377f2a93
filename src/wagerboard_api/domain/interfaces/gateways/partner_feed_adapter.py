# src/wagerboard_api/domain/interfaces/gateways/partner_feed_adapter.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Partner Feed Adapter Protocol.

Synopsis:
    Domain-level Protocol (PEP 544) that abstracts one casino partner's raw
    leaderboard feed. Concrete implementations (e.g. the CSV adapter) live in
    the adapters layer and must satisfy this contract.

Design:
    * One adapter per casino tag; the registry maps tags to adapters so new
      partners are added without touching the orchestrator.
    * Adapters return generic string-keyed rows; field interpretation belongs
      to the normalizer.
    * Adapters never retry. Retry policy is owned by the orchestrator.

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from wagerboard_api.domain.entities.leaderboard import RawRow


@runtime_checkable
class PartnerFeedAdapter(Protocol):
    """Fetch and parse one partner's leaderboard feed.

    Implementations translate transport and format failures into domain
    exceptions:

        * ``ConfigurationError`` when the tenant config has no feed URL.
        * ``FetchError`` when the upstream is unreachable or returns non-2xx.
        * ``ParseError`` when the payload is not in the expected format.
    """

    casino: str

    async def fetch_rows(self, api_config: Mapping[str, Any]) -> list[RawRow]:
        """Download and parse the partner feed into ordered raw rows.

        Args:
            api_config: Tenant ``api_config`` mapping (opaque to callers).

        Returns:
            Rows in feed order. An empty feed yields an empty list.
        """
        ...


class PartnerAdapterLookup(Protocol):
    """Resolve the adapter serving a casino tag.

    ``get`` raises ``UnsupportedCasinoError`` for unknown tags.
    """

    def get(self, tag: str) -> PartnerFeedAdapter: ...
