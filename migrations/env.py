# migrations/env.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Alembic Environment (migrations/env.py)

Purpose:
    Configure Alembic for the Wagerboard SQLAlchemy models with deterministic
    behavior across offline and online (async) migration runs.

Design:
    - Loads env vars from .env + .env.<ENVIRONMENT> (without overriding exported vars).
    - Loads the database URL from environment variables or alembic.ini.
    - Refuses to run if ENVIRONMENT is missing.
    - Enforces an allowlist of DB names per ENVIRONMENT.
    - Uses the project Declarative Base metadata for autogenerate.
    - Runs "online" migrations through an async engine.
    - Emits masked connection information to the log (no credentials).

Environment variables:
    ENVIRONMENT         Required. One of: "test", "ci", "development", "staging", "production".
    DATABASE_URL        Database URL.
    DB_SCHEMA           Schema holding the alembic_version table (default "public").
    ECHO_SQL            If "1", enable SQL echo in online runs.
    ALEMBIC_SHOW_URL    If "1", log masked URL during runs.

Usage:
    ENVIRONMENT=development alembic upgrade head
    ENVIRONMENT=test alembic -x show_url=1 upgrade head --sql
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse, urlunparse

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from wagerboard_api.infrastructure.database.models import leaderboard as _models  # noqa: F401
from wagerboard_api.infrastructure.database.models.base import metadata as BaseMetadata

config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

_VERSION_TABLE = "alembic_version"


def _load_env_files() -> None:
    """Load .env and .env.<ENVIRONMENT> from repo root (no override).

    Precedence:
      1) already-exported env vars (never overwritten)
      2) .env.<ENVIRONMENT>
      3) .env
    """
    root = Path(__file__).resolve().parents[1]

    env = (os.getenv("ENVIRONMENT") or "").strip().lower()
    if env:
        env_file = root / f".env.{env}"
        if env_file.exists():
            load_dotenv(env_file, override=False)

    base = root / ".env"
    if base.exists():
        load_dotenv(base, override=False)


_load_env_files()


def _xargs() -> Mapping[str, str]:
    """Return Alembic -x key=value arguments as a mapping."""
    return dict(getattr(config, "x", {}) or {})


def _mask_url(url: str) -> str:
    """Return a masked representation of a database URL for safe logging."""
    try:
        parts = urlparse(url)
    except ValueError:
        return "<masked>"
    user = parts.username or ""
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    auth = f"{user}:****@" if user else ""
    return urlunparse((parts.scheme, f"{auth}{host}{port}", parts.path or "", "", "", ""))


def _get_db_url() -> str:
    """Resolve the database URL from ``DATABASE_URL`` or alembic.ini.

    Raises:
        RuntimeError: If no database URL can be resolved.
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    ini_url = config.get_main_option("sqlalchemy.url")
    if ini_url:
        return ini_url

    raise RuntimeError("Database URL not configured (DATABASE_URL/sqlalchemy.url).")


def _require_environment() -> str:
    """Require ENVIRONMENT to be set to prevent accidental migrations."""
    env = (os.getenv("ENVIRONMENT") or "").strip().lower()
    if not env:
        raise RuntimeError(
            "ENVIRONMENT is required for migrations (e.g., ENVIRONMENT=test). "
            "Refusing to run without an explicit environment."
        )
    return env


def _assert_safe_db(url: str, *, env: str) -> None:
    """Refuse to run migrations against unexpected DBs for the given ENVIRONMENT."""
    dbname = (urlparse(url).path or "").lstrip("/")

    allowed_by_env: dict[str, set[str]] = {
        "test": {"wagerboard_test"},
        "ci": {"wagerboard_test"},
        "development": {"wagerboard"},
    }

    allowed = allowed_by_env.get(env)
    if allowed is None:
        # staging/production: no name pinning, the deploy pipeline owns the URL
        return

    if dbname not in allowed:
        raise RuntimeError(
            "Refusing to run migrations against an unexpected database.\n"
            f"ENVIRONMENT={env!r}\n"
            f"database={dbname!r}\n"
            f"allowed={sorted(allowed)}\n"
            f"url={_mask_url(url)}"
        )


def _maybe_log_url(url: str) -> None:
    if _xargs().get("show_url") == "1" or os.getenv("ALEMBIC_SHOW_URL") == "1":
        logger.info("Using DATABASE_URL (masked): %s", _mask_url(url))


def _version_table_schema(url: str) -> str | None:
    if urlparse(url).scheme.startswith("sqlite"):
        return None
    return os.getenv("DB_SCHEMA") or "public"


target_metadata = BaseMetadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL script output)."""
    env = _require_environment()
    url = _get_db_url()
    _assert_safe_db(url, env=env)
    _maybe_log_url(url)

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        version_table=_VERSION_TABLE,
        version_table_schema=_version_table_schema(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def _online_engine_kwargs() -> dict[str, Any]:
    """Return keyword arguments for creating an async engine."""
    echo_sql = (os.getenv("ECHO_SQL") == "1") or (
        (config.get_main_option("echo_sql") or "").strip().lower() == "true"
    )
    return {"echo": echo_sql, "poolclass": pool.NullPool}


def _configure_and_run(connection: Connection, url: str) -> None:
    """Configure Alembic context with a live connection and run migrations."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        version_table=_VERSION_TABLE,
        version_table_schema=_version_table_schema(url),
    )

    with context.begin_transaction():
        context.run_migrations()


async def _run_migrations_async() -> None:
    """Run migrations in 'online' mode using an async engine."""
    env = _require_environment()
    url = _get_db_url()
    _assert_safe_db(url, env=env)
    _maybe_log_url(url)

    connectable: AsyncEngine = create_async_engine(url, **_online_engine_kwargs())

    async with connectable.connect() as connection:
        await connection.run_sync(_configure_and_run, url)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Entry point used by Alembic for online migrations."""
    asyncio.run(_run_migrations_async())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
