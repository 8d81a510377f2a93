# src/wagerboard_api/dependencies/core/bootstrap.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Core bootstrap for infrastructure (DB, Redis, HTTP) and the service graph.

This module owns the lifecycle of shared infrastructure used by the FastAPI
app and the CLI. Configuration is read from Settings, and all heavy lifting
is delegated to the infrastructure modules.

Public surface:
    * :func:`build_services`: wire store, cache, adapters, query service and
      ingestion use cases from already-initialized infrastructure.
    * :func:`bootstrap`: async context manager that initializes
      infrastructure, builds the services, optionally starts the ingestion
      scheduler, and tears everything down on exit.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wagerboard_api.adapters.gateways.partner_registry import (
    PartnerAdapterRegistry,
    build_default_registry,
)
from wagerboard_api.adapters.repositories.leaderboard_repository import (
    SqlAlchemyLeaderboardStore,
)
from wagerboard_api.application.interfaces.cache_port import CachePort
from wagerboard_api.application.services.leaderboard_query_service import (
    LeaderboardQueryService,
)
from wagerboard_api.application.use_cases.ingestion.ingest_all_leaderboards import (
    IngestAllLeaderboards,
)
from wagerboard_api.application.use_cases.ingestion.ingest_tenant_leaderboard import (
    IngestTenantLeaderboard,
)
from wagerboard_api.config.settings import Settings, get_settings
from wagerboard_api.infrastructure.caching.json_cache import RedisJsonCache
from wagerboard_api.infrastructure.caching.memory_cache import InMemoryJsonCache
from wagerboard_api.infrastructure.logging.logger import get_json_logger
from wagerboard_api.infrastructure.resilience.retry import RetryPolicy
from wagerboard_api.infrastructure.scheduling.periodic import PeriodicTask

logger = get_json_logger(__name__)

INGEST_JOB_NAME = "leaderboard-ingest"


@dataclass
class LeaderboardServices:
    """Explicitly constructed service graph (no module-level singletons)."""

    store: SqlAlchemyLeaderboardStore
    cache: CachePort
    adapters: PartnerAdapterRegistry
    query_service: LeaderboardQueryService
    ingest_tenant: IngestTenantLeaderboard
    ingest_all: IngestAllLeaderboards


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: Settings
    http_client: httpx.AsyncClient
    services: LeaderboardServices
    scheduler: PeriodicTask | None = None


def build_cache(settings: Settings) -> CachePort:
    """Select the cache implementation for the environment.

    ``ENVIRONMENT=test`` gets a hermetic in-memory cache; everything else
    uses Redis under the configured namespace.
    """
    if settings.is_test:
        return InMemoryJsonCache()
    return RedisJsonCache(namespace=settings.cache_namespace)


def build_services(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession],
    cache: CachePort,
    http_client: httpx.AsyncClient | None = None,
    adapters: PartnerAdapterRegistry | None = None,
) -> LeaderboardServices:
    """Wire the leaderboard service graph.

    Args:
        settings: Application settings.
        session_factory: Sessionmaker for the leaderboard store.
        cache: JSON cache implementation.
        http_client: Shared HTTP client for partner adapters.
        adapters: Pre-built registry (tests); defaults to the reference set.

    Returns:
        LeaderboardServices: The wired graph.
    """
    store = SqlAlchemyLeaderboardStore(session_factory)
    registry = adapters or build_default_registry(
        http_client, timeout_s=settings.partner_fetch_timeout_s
    )
    query_service = LeaderboardQueryService(store, cache, ttl_s=settings.cache_ttl_seconds)
    ingest_tenant = IngestTenantLeaderboard(
        store,
        registry,
        query_service,
        fetch_policy=RetryPolicy(total=settings.partner_fetch_retries, base=0.5, cap=5.0),
    )
    ingest_all = IngestAllLeaderboards(
        store, ingest_tenant, concurrency=settings.ingest_concurrency
    )
    return LeaderboardServices(
        store=store,
        cache=cache,
        adapters=registry,
        query_service=query_service,
        ingest_tenant=ingest_tenant,
        ingest_all=ingest_all,
    )


def build_scheduler(settings: Settings, services: LeaderboardServices) -> PeriodicTask:
    """Create the recurring ingestion job (not started)."""
    return PeriodicTask(
        INGEST_JOB_NAME,
        settings.ingest_interval_seconds,
        services.ingest_all.run_all,
        run_on_start=settings.ingest_run_on_startup,
    )


@asynccontextmanager
async def bootstrap(
    settings: Settings | None = None,
    *,
    start_scheduler: bool | None = None,
) -> AsyncGenerator[BootstrapState, None]:
    """Initialize and teardown shared infrastructure.

    Responsibilities:
        * Load application settings.
        * Initialize DB engine/sessionmaker and (outside tests) the Redis client.
        * Create a shared HTTPX AsyncClient.
        * Build the leaderboard service graph.
        * Start the ingestion scheduler when enabled.
        * Shut all of the above down on exit, even on error.

    Args:
        settings: Explicit settings; defaults to :func:`get_settings`.
        start_scheduler: Override ``INGEST_SCHEDULE_ENABLED``.

    Yields:
        BootstrapState: Settings, shared HTTP client, services and scheduler.
    """
    settings = settings or get_settings()
    logger.info("bootstrap.start", extra={"extra": {"environment": settings.environment.value}})

    # Imported here so tests can monkeypatch their functions.
    import wagerboard_api.infrastructure.caching.redis_client as redis_client
    import wagerboard_api.infrastructure.database.session as db_session

    db_session.init_engine_and_sessionmaker(settings)
    if not settings.is_test:
        redis_client.init_redis(settings)

    http_client = httpx.AsyncClient(timeout=settings.partner_fetch_timeout_s)
    services = build_services(
        settings,
        session_factory=db_session.get_sessionmaker(),
        cache=build_cache(settings),
        http_client=http_client,
    )
    state = BootstrapState(settings=settings, http_client=http_client, services=services)

    enabled = settings.ingest_schedule_enabled if start_scheduler is None else start_scheduler
    if enabled:
        state.scheduler = build_scheduler(settings, services)
        state.scheduler.start()

    try:
        yield state
    finally:
        if state.scheduler is not None:
            try:
                await state.scheduler.stop()
            except Exception:
                logger.exception("bootstrap.scheduler_stop_failed")

        try:
            await http_client.aclose()
        except Exception:
            logger.exception("bootstrap.http_client_close_failed")

        try:
            await redis_client.close_redis()
        except Exception:
            logger.exception("bootstrap.redis_close_failed")

        try:
            await db_session.dispose_engine()
        except Exception:
            logger.exception("bootstrap.db_dispose_failed")

        logger.info("bootstrap.stop")
