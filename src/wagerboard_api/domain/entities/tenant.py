# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Tenant Entity

Purpose:
    Read-only view of a tenant as supplied by the tenant-management
    collaborator, plus the typed partner configuration variants parsed out of
    the tenant's opaque ``api_config`` blob.

Layer: domain/entities
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from wagerboard_api.domain.enums.casino import normalize_casino_tag
from wagerboard_api.domain.exceptions.leaderboard import ConfigurationError

from .base import BaseEntity


@dataclass(frozen=True, slots=True)
class Tenant(BaseEntity):
    """Tenant record as read by the leaderboard core.

    Args:
        id: Stable tenant identifier; namespaces every store call and cache key.
        slug: URL-safe tenant handle.
        casino: Partner casino tag (e.g. ``"stake"``).
        api_config: Opaque partner configuration (feed URL, optional API key).
        name: Human-readable display name.
        settings: Free-form tenant settings blob.
    """

    id: str
    slug: str
    casino: str
    api_config: Mapping[str, Any] = field(default_factory=dict)
    name: str = ""
    settings: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("tenant id must be non-empty")

    @property
    def casino_tag(self) -> str:
        """Canonical casino tag used for dispatch and scoping."""
        return normalize_casino_tag(self.casino)


@dataclass(frozen=True, slots=True)
class CsvFeedConfig(BaseEntity):
    """Partner configuration for tabular (CSV) leaderboard feeds.

    Args:
        url: Absolute URL of the CSV feed.
        api_key: Optional bearer token sent as ``Authorization: Bearer <key>``.
    """

    url: str
    api_key: str | None = None

    @classmethod
    def from_api_config(cls, raw: Mapping[str, Any] | None) -> CsvFeedConfig:
        """Build a typed config from a tenant's opaque ``api_config``.

        Args:
            raw: Tenant ``api_config`` mapping. Accepts ``apiKey`` or ``api_key``.

        Returns:
            CsvFeedConfig: Validated configuration.

        Raises:
            ConfigurationError: If the mapping is missing or has no usable URL.
        """
        if not isinstance(raw, Mapping):
            raise ConfigurationError("API config missing for tenant")

        url = str(raw.get("url") or "").strip()
        if not url:
            raise ConfigurationError("API URL not configured for tenant")

        key_raw = raw.get("apiKey") or raw.get("api_key")
        api_key = str(key_raw).strip() if key_raw else None
        return cls(url=url, api_key=api_key or None)
