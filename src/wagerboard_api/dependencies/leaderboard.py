# src/wagerboard_api/dependencies/leaderboard.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Dependency wiring for leaderboard endpoints.

Overview:
    The service graph is built once by the lifespan bootstrap and stored on
    ``app.state``. These providers hand the instances to request handlers;
    tests override them with ``app.dependency_overrides``.

Layer:
    dependencies
"""

from __future__ import annotations

from fastapi import Request

from wagerboard_api.application.services.leaderboard_query_service import (
    LeaderboardQueryService,
)
from wagerboard_api.application.use_cases.ingestion.ingest_tenant_leaderboard import (
    IngestTenantLeaderboard,
)


def get_query_service(request: Request) -> LeaderboardQueryService:
    """Return the app-scoped leaderboard query service."""
    service: LeaderboardQueryService | None = getattr(request.app.state, "query_service", None)
    if service is None:
        raise RuntimeError("Leaderboard query service not initialized (lifespan did not run)")
    return service


def get_ingest_tenant_uc(request: Request) -> IngestTenantLeaderboard:
    """Return the app-scoped single-tenant ingestion use case."""
    uc: IngestTenantLeaderboard | None = getattr(request.app.state, "ingest_tenant", None)
    if uc is None:
        raise RuntimeError("Ingestion use case not initialized (lifespan did not run)")
    return uc
