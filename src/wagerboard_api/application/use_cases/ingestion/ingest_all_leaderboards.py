# src/wagerboard_api/application/use_cases/ingestion/ingest_all_leaderboards.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use case: Ingest every tenant's leaderboard (one scheduled run).

Tenants are processed with bounded concurrency; each tenant cycle is
isolated, so one failing tenant never prevents the others from running.

Layer:
    application/use_cases/ingestion
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import UTC, datetime

from wagerboard_api.application.schemas.dto.ingestion import (
    IngestionRunReport,
    TenantIngestResult,
)
from wagerboard_api.domain.entities.tenant import Tenant
from wagerboard_api.domain.exceptions.leaderboard import StoreError
from wagerboard_api.domain.interfaces.repositories.leaderboard_store import LeaderboardStore
from wagerboard_api.infrastructure.logging.logger import log_context
from wagerboard_api.infrastructure.observability.metrics import get_ingest_run_duration_seconds

from .ingest_tenant_leaderboard import IngestTenantLeaderboard

logger = logging.getLogger(__name__)


class IngestAllLeaderboards:
    """Run the single-tenant cycle for every tenant.

    Args:
        store: Leaderboard store (tenant listing).
        ingest_tenant: Single-tenant use case.
        concurrency: Maximum tenants in flight (1 = sequential).
    """

    def __init__(
        self,
        store: LeaderboardStore,
        ingest_tenant: IngestTenantLeaderboard,
        *,
        concurrency: int = 1,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._store = store
        self._ingest_tenant = ingest_tenant
        self._concurrency = concurrency

    async def run_all(self) -> IngestionRunReport:
        """Ingest all tenants.

        Returns:
            IngestionRunReport: Per-tenant results and outcome counts.

        Raises:
            StoreError: If the tenant list cannot be loaded.
        """
        run_id = uuid.uuid4().hex
        started_at = datetime.now(UTC)

        with log_context(run_id=run_id):
            tenants = await self._list_tenants()
            logger.info(
                "ingest.run.start",
                extra={"extra": {"tenants": len(tenants), "concurrency": self._concurrency}},
            )

            semaphore = asyncio.Semaphore(self._concurrency)

            async def _bounded(tenant: Tenant) -> TenantIngestResult:
                async with semaphore:
                    return await self._ingest_tenant(tenant)

            results = list(await asyncio.gather(*(_bounded(t) for t in tenants)))

            report = IngestionRunReport(
                run_id=run_id,
                started_at=started_at,
                finished_at=datetime.now(UTC),
                results=results,
            )
            get_ingest_run_duration_seconds().observe(report.duration_s)
            logger.info(
                "ingest.run.done",
                extra={
                    "extra": {
                        "tenants": len(results),
                        "counts": report.counts,
                        "duration_s": round(report.duration_s, 3),
                    }
                },
            )
            return report

    async def _list_tenants(self) -> list[Tenant]:
        try:
            return await self._store.list_tenants()
        except StoreError:
            logger.error("ingest.run.list_tenants_failed", exc_info=True)
            raise
        except Exception as exc:
            logger.error("ingest.run.list_tenants_failed", exc_info=True)
            raise StoreError(
                "Failed to list tenants", details={"error_type": type(exc).__name__}
            ) from exc
