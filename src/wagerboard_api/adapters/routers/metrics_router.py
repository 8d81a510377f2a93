# src/wagerboard_api/adapters/routers/metrics_router.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (`/metrics`).

Ingestion and cache collectors are created lazily by their getters; the
route touches each one first so every family is present on a cold scrape.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter, Response
import prometheus_client as prom
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from wagerboard_api.infrastructure.logging.logger import get_json_logger
from wagerboard_api.infrastructure.observability.metrics import (
    get_cache_operation_duration_seconds,
    get_cache_operations_total,
    get_ingest_rows_total,
    get_ingest_run_duration_seconds,
    get_ingest_tenant_runs_total,
)

logger = get_json_logger(__name__)
router = APIRouter()

_GETTERS = (
    get_ingest_tenant_runs_total,
    get_ingest_rows_total,
    get_ingest_run_duration_seconds,
    get_cache_operations_total,
    get_cache_operation_duration_seconds,
)


def _warm_collectors() -> None:
    for getter in _GETTERS:
        try:
            getter()
        except ValueError as exc:
            logger.debug(
                "metrics_router: failed warming collector",
                extra={"extra": {"metric": getter.__name__, "error": str(exc)}},
            )


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    _warm_collectors()
    return Response(content=generate_latest(prom.REGISTRY), media_type=CONTENT_TYPE_LATEST)
