# Copyright (c)
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine/session factory.

This module owns the application-global async SQLAlchemy engine and
`async_sessionmaker`. The leaderboard store receives the sessionmaker and
opens one short-lived session per operation.

Lifecycle:
    * Call `init_engine_and_sessionmaker(settings)` at startup (lifespan / CLI).
    * Hand `get_sessionmaker()` to repositories.
    * Call `dispose_engine()` during shutdown.

Notes:
    * `pool_pre_ping=True` surfaces dead connections before use (server DBs only).
    * `build_sessionmaker(url)` creates an independent engine/sessionmaker pair;
      tests use it with ``sqlite+aiosqlite``.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from wagerboard_api.config.settings import Settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def build_sessionmaker(
    url: str, *, echo: bool = False
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine and a matching non-expiring sessionmaker.

    Args:
        url: SQLAlchemy async URL.
        echo: Echo SQL statements.

    Returns:
        tuple[AsyncEngine, async_sessionmaker[AsyncSession]]: The pair.
    """
    kwargs: dict[str, object] = {"future": True, "echo": echo}
    if not url.startswith("sqlite"):
        kwargs["pool_pre_ping"] = True
    engine = create_async_engine(url, **kwargs)
    return engine, async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


def init_engine_and_sessionmaker(settings: Settings) -> None:
    """Initialize the global async engine and sessionmaker (idempotent).

    Args:
        settings: Application settings providing `database_url`.

    Raises:
        ValueError: If `database_url` is empty.
    """
    global _engine, _sessionmaker

    if not settings.database_url:
        raise ValueError("database_url must be configured")
    if _engine is not None:
        return

    _engine, _sessionmaker = build_sessionmaker(settings.database_url)


async def dispose_engine() -> None:
    """Dispose the global engine at shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Return the initialized global engine.

    Raises:
        RuntimeError: If the engine is not yet initialized.
    """
    if _engine is None:
        raise RuntimeError("DB engine not initialized (call init_engine_and_sessionmaker)")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the initialized async sessionmaker.

    Raises:
        RuntimeError: If the sessionmaker is not yet initialized.
    """
    if _sessionmaker is None:
        raise RuntimeError("DB sessionmaker not initialized (call init_engine_and_sessionmaker)")
    return _sessionmaker
