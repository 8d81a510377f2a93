# Copyright (c)
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, hot-reload safe).

Every accessor returns a collector bound to the **current**
``prometheus_client.REGISTRY``:

    - Safe under hot reload and tests that swap the default registry.
    - No duplicate-registration errors.
    - Cache automatically resets when the active registry changes.

Example:
    get_ingest_tenant_runs_total().labels(casino="stake", outcome="succeeded").inc()
    get_ingest_run_duration_seconds().observe(1.25)
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

_log = logging.getLogger(__name__)

_BUCKETS: Final[tuple[float, ...]] = (
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
    10.000,
)

# Whole ingestion runs can take minutes when many tenants are configured.
_RUN_BUCKETS: Final[tuple[float, ...]] = (0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 900.0)

_registry_id: int | None = None
_hist_cache: dict[str, Histogram] = {}
_counter_cache: dict[str, Counter] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset caches if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id is None or _registry_id != rid:
            _hist_cache.clear()
            _counter_cache.clear()
            _registry_id = rid


def _lookup_existing(name: str, kind: type) -> object | None:
    """Return a collector already registered under ``name`` with type ``kind``."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create_hist(
    name: str,
    help_text: str,
    *,
    buckets: tuple[float, ...] = _BUCKETS,
    labelnames: tuple[str, ...] = (),
) -> Histogram:
    """Get or create a registry-bound ``Histogram`` with stable identity."""
    _ensure_registry()
    with _lock:
        cached = _hist_cache.get(name)
        if cached is not None:
            return cached

        existing = _lookup_existing(name, Histogram)
        if isinstance(existing, Histogram):
            _hist_cache[name] = existing
            return existing

        try:
            h = Histogram(name, help_text, labelnames, buckets=buckets, registry=prom.REGISTRY)
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, Histogram)
                if isinstance(again, Histogram):
                    _hist_cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus histogram %s", name)
            raise
        _hist_cache[name] = h
        return h


def _get_or_create_counter(
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Counter:
    """Get or create a registry-bound ``Counter`` with stable identity."""
    _ensure_registry()
    with _lock:
        cached = _counter_cache.get(name)
        if cached is not None:
            return cached

        existing = _lookup_existing(name, Counter)
        if isinstance(existing, Counter):
            _counter_cache[name] = existing
            return existing

        try:
            c = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, Counter)
                if isinstance(again, Counter):
                    _counter_cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus counter %s", name)
            raise
        _counter_cache[name] = c
        return c


# ---------------------------------------------------------------------------
# Ingestion


def get_ingest_tenant_runs_total() -> Counter:
    """Return counter of per-tenant ingestion outcomes.

    Labels:
        casino: Casino tag.
        outcome: One of ``succeeded|empty|skipped|failed``.
    """
    return _get_or_create_counter(
        name="wagerboard_ingest_tenant_runs_total",
        help_text="Per-tenant leaderboard ingestion outcomes",
        labelnames=("casino", "outcome"),
    )


def get_ingest_rows_total() -> Counter:
    """Return counter of leaderboard rows persisted, labelled by ``casino``."""
    return _get_or_create_counter(
        name="wagerboard_ingest_rows_total",
        help_text="Leaderboard entries upserted by ingestion",
        labelnames=("casino",),
    )


def get_ingest_run_duration_seconds() -> Histogram:
    """Return histogram of full ``run_all`` durations."""
    return _get_or_create_hist(
        name="wagerboard_ingest_run_duration_seconds",
        help_text="Duration (seconds) of a full multi-tenant ingestion run",
        buckets=_RUN_BUCKETS,
    )


# ---------------------------------------------------------------------------
# Cache


def get_cache_operations_total() -> Counter:
    """Return counter of cache operations.

    Labels:
        operation: ``get_json|set_json|delete|add_members|members``.
        namespace: Key namespace.
        hit: ``true|false`` for reads, ``n/a`` otherwise.
    """
    return _get_or_create_counter(
        name="wagerboard_cache_operations_total",
        help_text="Leaderboard cache operations",
        labelnames=("operation", "namespace", "hit"),
    )


def get_cache_operation_duration_seconds() -> Histogram:
    """Return histogram of cache operation latency (same labels as the counter)."""
    return _get_or_create_hist(
        name="wagerboard_cache_operation_duration_seconds",
        help_text="Latency (seconds) of leaderboard cache operations",
        labelnames=("operation", "namespace", "hit"),
    )
