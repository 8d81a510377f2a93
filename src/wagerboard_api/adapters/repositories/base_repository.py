# src/wagerboard_api/adapters/repositories/base_repository.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
BaseRepository: shared repository foundation for Wagerboard.

Purpose:
    Shared mechanics for all repositories:
      * One session and one transaction per repository call.
      * Translation of driver errors into ``StoreError``.
      * Dialect-aware ``INSERT ... ON CONFLICT`` construction (PostgreSQL in
        production, SQLite in tests).
      * Safe fetch helpers (optional, all, scalar).

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Callers never see a session; atomicity is per call.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wagerboard_api.domain.exceptions.leaderboard import StoreError

TModel = TypeVar("TModel")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[TModel]):  # noqa: UP046
    """Abstract base class for all repositories."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the repository.

        Args:
            session_factory: Sessionmaker bound to the target database.
        """
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Timestamp utilities
    # ------------------------------------------------------------------

    @staticmethod
    def utc_now() -> datetime:
        """Return current UTC time with timezone info."""
        return datetime.now(UTC)

    @staticmethod
    def as_utc(value: datetime) -> datetime:
        """Attach UTC to naive values read back from drivers without tz support."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    # ------------------------------------------------------------------
    # Session scope
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def session_scope(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session, commit on success, roll back and wrap on failure.

        Args:
            operation: Short operation name used in logs and error details.

        Raises:
            StoreError: If the driver raises any ``SQLAlchemyError``.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error(
                    "store.operation.failed",
                    extra={
                        "extra": {
                            "operation": operation,
                            "error_type": type(exc).__name__,
                            "error": str(exc),
                        }
                    },
                )
                raise StoreError(
                    f"Leaderboard store operation '{operation}' failed",
                    details={"operation": operation, "error_type": type(exc).__name__},
                ) from exc

    # ------------------------------------------------------------------
    # Dialect helpers
    # ------------------------------------------------------------------

    @staticmethod
    def upsert_statement(session: AsyncSession, model: Any) -> Any:
        """Return the dialect's ``insert()`` supporting ``on_conflict_do_update``."""
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(model)
        if dialect == "sqlite":
            return sqlite_insert(model)
        raise StoreError(f"Unsupported database dialect: {dialect}", details={"dialect": dialect})

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def fetch_optional(session: AsyncSession, stmt: Select[Any]) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await session.execute(stmt)
        return res.scalars().first()

    @staticmethod
    async def fetch_all(session: AsyncSession, stmt: Select[Any]) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await session.execute(stmt)
        return list(res.scalars().all())

    @staticmethod
    async def fetch_scalar(session: AsyncSession, stmt: Select[Any]) -> Any:
        """Execute a statement and return its single scalar value."""
        res = await session.execute(stmt)
        return res.scalar_one()
