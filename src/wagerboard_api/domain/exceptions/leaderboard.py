# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Leaderboard Domain Exceptions

Purpose:
    Error taxonomy for the leaderboard ingestion pipeline and its storage
    boundary. Every ingestion error is fatal only to the tenant cycle that
    raised it; the orchestrator logs it and moves on to the next tenant.

Layer: domain/exceptions
"""
from __future__ import annotations

from .base import DomainError


class LeaderboardIngestionError(DomainError):
    """Base class for errors raised while ingesting a partner leaderboard."""

    code = "LEADERBOARD_INGESTION_ERROR"


class ConfigurationError(LeaderboardIngestionError):
    """Tenant is missing required partner configuration (e.g. the feed URL)."""

    code = "PARTNER_CONFIGURATION_ERROR"


class FetchError(LeaderboardIngestionError):
    """Partner feed is unreachable, timed out, or returned a non-success status."""

    code = "PARTNER_FETCH_ERROR"


class ParseError(LeaderboardIngestionError):
    """Partner payload could not be parsed in the expected format."""

    code = "PARTNER_PARSE_ERROR"


class UnsupportedCasinoError(LeaderboardIngestionError):
    """No partner adapter is registered for the tenant's casino tag."""

    code = "UNSUPPORTED_CASINO"


class StoreError(DomainError):
    """Leaderboard persistence failed (read or write)."""

    code = "LEADERBOARD_STORE_UNAVAILABLE"


class TenantNotFoundError(DomainError):
    """Requested tenant does not exist."""

    code = "TENANT_NOT_FOUND"
