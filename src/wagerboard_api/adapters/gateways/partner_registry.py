# src/wagerboard_api/adapters/gateways/partner_registry.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Casino tag -> partner adapter registry.

The orchestrator dispatches every tenant through this registry, so adding a
partner means registering one more adapter here; no caller changes.
"""

from __future__ import annotations

from collections.abc import Iterator

import httpx

from wagerboard_api.domain.enums.casino import Casino, normalize_casino_tag
from wagerboard_api.domain.exceptions.leaderboard import UnsupportedCasinoError
from wagerboard_api.domain.interfaces.gateways.partner_feed_adapter import PartnerFeedAdapter

from .csv_feed_gateway import DEFAULT_TIMEOUT_S, CsvFeedAdapter

__all__ = ["PartnerAdapterRegistry", "build_default_registry"]


class PartnerAdapterRegistry:
    """Mapping of normalized casino tags to partner adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, PartnerFeedAdapter] = {}

    def register(self, adapter: PartnerFeedAdapter, *, tag: str | None = None) -> None:
        """Register ``adapter`` under ``tag`` (defaults to ``adapter.casino``).

        Re-registering a tag replaces the previous adapter.
        """
        key = normalize_casino_tag(tag if tag is not None else adapter.casino)
        if not key:
            raise ValueError("casino tag must be non-empty")
        self._adapters[key] = adapter

    def get(self, tag: str) -> PartnerFeedAdapter:
        """Return the adapter for ``tag``.

        Raises:
            UnsupportedCasinoError: If no adapter is registered for the tag.
        """
        key = normalize_casino_tag(tag)
        try:
            return self._adapters[key]
        except KeyError:
            raise UnsupportedCasinoError(
                f"Unsupported casino: {tag}",
                details={"casino": key, "supported": self.supported()},
            ) from None

    def supported(self) -> list[str]:
        """Return registered tags, sorted."""
        return sorted(self._adapters)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and normalize_casino_tag(tag) in self._adapters

    def __iter__(self) -> Iterator[str]:
        return iter(self.supported())

    def __len__(self) -> int:
        return len(self._adapters)


def build_default_registry(
    http: httpx.AsyncClient | None = None,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> PartnerAdapterRegistry:
    """Return a registry with the reference ``stake`` CSV adapter."""
    registry = PartnerAdapterRegistry()
    registry.register(CsvFeedAdapter(Casino.STAKE.value, http=http, timeout_s=timeout_s))
    return registry
