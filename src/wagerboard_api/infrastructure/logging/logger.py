# src/wagerboard_api/infrastructure/logging/logger.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce JSON logs suitable for ingestion by log pipelines.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * Automatic enrichment with ``run_id`` and ``tenant_id`` via contextvars,
      so every line emitted while a tenant is being ingested carries both.
    * Optional ``request_id`` via record attribute or env var.
    * No-throw enrichment path.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    with log_context(run_id=run_id, tenant_id=tenant.id):
        log.info("ingest.tenant.start", extra={"extra": {"casino": "stake"}})
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "log_context",
    "current_log_context",
]

_REQUEST_ID_ENV_KEY = "REQUEST_ID"

# Task-local correlation context (ingest run / tenant being processed).
_LOG_CONTEXT: ContextVar[dict[str, str] | None] = ContextVar("wagerboard_log_ctx", default=None)


@contextmanager
def log_context(**fields: str | None) -> Iterator[None]:
    """Bind correlation fields to every log line emitted inside the block.

    Nested blocks merge their fields over the enclosing ones. ``None`` values
    are ignored.

    Args:
        **fields: Field names and values (e.g. ``run_id``, ``tenant_id``).
    """
    merged = dict(_LOG_CONTEXT.get() or {})
    merged.update({k: str(v) for k, v in fields.items() if v is not None})
    token = _LOG_CONTEXT.set(merged)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def current_log_context() -> dict[str, str]:
    """Return a copy of the fields currently bound by :func:`log_context`."""
    return dict(_LOG_CONTEXT.get() or {})


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: Logging record.

        Returns:
            str: JSON-encoded log line.
        """
        ts = datetime.now(tz=UTC).isoformat()
        payload: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        try:
            payload.update(_LOG_CONTEXT.get() or {})
            rid: str | None = getattr(record, "request_id", None) or os.getenv(_REQUEST_ID_ENV_KEY)
            if rid:
                payload["request_id"] = rid
        except Exception as exc:  # pragma: no cover
            payload["enrichment_error"] = str(exc)

        # Exceptions: guard against None in exc_info tuple.
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    root.setLevel(resolved)

    if root.handlers:
        # Already configured; prevent duplicate handlers on hot reload.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* implicitly configure the root logger. Call
    :func:`configure_root_logging` once at startup for global defaults.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        logging.Logger: Configured logger.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
