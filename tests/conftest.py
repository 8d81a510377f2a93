# tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path
from typing import Any

import prometheus_client as prom
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wagerboard_api.adapters.repositories.leaderboard_repository import (
    SqlAlchemyLeaderboardStore,
)
from wagerboard_api.config.settings import get_settings
from wagerboard_api.infrastructure.database.models.base import metadata
from wagerboard_api.infrastructure.database.models.leaderboard import TenantModel
from wagerboard_api.infrastructure.database.session import build_sessionmaker

SeedTenant = Callable[..., Awaitable[None]]


@pytest.fixture(autouse=True)
def _test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test under ENVIRONMENT=test with a fresh settings cache."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def metrics_registry(monkeypatch: pytest.MonkeyPatch) -> prom.CollectorRegistry:
    """Swap in an empty Prometheus registry so counters start at zero."""
    registry = prom.CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", registry)
    return registry


@pytest_asyncio.fixture
async def db_sessionmaker(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """File-backed SQLite database with the leaderboard schema."""
    engine, factory = build_sessionmaker(f"sqlite+aiosqlite:///{tmp_path / 'wagerboard.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def store(db_sessionmaker: async_sessionmaker[AsyncSession]) -> SqlAlchemyLeaderboardStore:
    return SqlAlchemyLeaderboardStore(db_sessionmaker)


@pytest.fixture
def seed_tenant(db_sessionmaker: async_sessionmaker[AsyncSession]) -> SeedTenant:
    """Insert a tenant row the way the tenant-management service would."""

    async def _seed(
        tenant_id: str,
        *,
        casino: str = "stake",
        api_config: dict[str, Any] | None = None,
        slug: str | None = None,
    ) -> None:
        async with db_sessionmaker() as session:
            session.add(
                TenantModel(
                    id=tenant_id,
                    slug=slug or tenant_id,
                    name=tenant_id.title(),
                    casino=casino,
                    api_config=api_config if api_config is not None else {},
                    settings={},
                )
            )
            await session.commit()

    return _seed
