"""Domain exception exports."""

from __future__ import annotations

from .base import DomainError
from .leaderboard import (
    ConfigurationError,
    FetchError,
    LeaderboardIngestionError,
    ParseError,
    StoreError,
    TenantNotFoundError,
    UnsupportedCasinoError,
)

__all__ = [
    "ConfigurationError",
    "DomainError",
    "FetchError",
    "LeaderboardIngestionError",
    "ParseError",
    "StoreError",
    "TenantNotFoundError",
    "UnsupportedCasinoError",
]
