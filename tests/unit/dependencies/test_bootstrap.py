# tests/unit/dependencies/test_bootstrap.py
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from wagerboard_api.application.services.leaderboard_query_service import (
    LeaderboardQueryService,
)
from wagerboard_api.config.settings import Settings
from wagerboard_api.dependencies.core.bootstrap import (
    INGEST_JOB_NAME,
    bootstrap,
    build_cache,
    build_services,
)
from wagerboard_api.infrastructure.caching.json_cache import RedisJsonCache
from wagerboard_api.infrastructure.caching.memory_cache import InMemoryJsonCache


@pytest.fixture
def sqlite_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'boot.db'}")
    monkeypatch.setenv("INGEST_SCHEDULE_ENABLED", "false")


def test_build_cache_selects_by_environment():
    assert isinstance(build_cache(Settings(ENVIRONMENT="test")), InMemoryJsonCache)
    assert isinstance(build_cache(Settings(ENVIRONMENT="development")), RedisJsonCache)


def test_build_services_wires_settings(db_sessionmaker):
    settings = Settings(
        ENVIRONMENT="test",
        CACHE_TTL_SECONDS=42,
        INGEST_CONCURRENCY=4,
        PARTNER_FETCH_RETRIES=5,
    )
    services = build_services(settings, session_factory=db_sessionmaker, cache=InMemoryJsonCache())

    assert services.adapters.supported() == ["stake"]
    assert services.query_service._ttl_s == 42
    assert services.ingest_all._concurrency == 4
    assert services.ingest_tenant._fetch_policy.total == 5
    assert services.ingest_tenant._invalidator is services.query_service


@pytest.mark.asyncio
async def test_bootstrap_starts_and_stops_scheduler(sqlite_env):
    settings = Settings(ENVIRONMENT="test", INGEST_INTERVAL_SECONDS=3600)

    async with bootstrap(settings, start_scheduler=True) as state:
        assert state.scheduler is not None
        assert state.scheduler.name == INGEST_JOB_NAME
        assert state.scheduler.started
        assert isinstance(state.services.cache, InMemoryJsonCache)
        scheduler = state.scheduler

    assert not scheduler.started
    assert state.http_client.is_closed


@pytest.mark.asyncio
async def test_default_settings_start_the_hourly_scheduler(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'boot.db'}")
    monkeypatch.delenv("INGEST_SCHEDULE_ENABLED", raising=False)
    settings = Settings(ENVIRONMENT="test")

    async with bootstrap(settings) as state:
        assert state.scheduler is not None
        assert state.scheduler.started
        assert state.scheduler.interval_s == 3600
        assert not state.scheduler.busy


@pytest.mark.asyncio
async def test_bootstrap_without_scheduler(sqlite_env):
    async with bootstrap(Settings(ENVIRONMENT="test")) as state:
        assert state.scheduler is None


def test_app_lifespan_exposes_services(sqlite_env):
    from wagerboard_api.main import create_app

    app = create_app()
    with TestClient(app, raise_server_exceptions=False) as client:
        assert client.get("/healthz").status_code == 200
        assert isinstance(app.state.query_service, LeaderboardQueryService)
        assert app.state.scheduler is None

        # Schema was never migrated, so reads surface as a store outage.
        resp = client.get("/v1/leaderboards/t1/stake")
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "LEADERBOARD_STORE_UNAVAILABLE"
