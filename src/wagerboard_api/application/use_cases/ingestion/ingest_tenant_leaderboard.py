# src/wagerboard_api/application/use_cases/ingestion/ingest_tenant_leaderboard.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Use case: Ingest one tenant's partner leaderboard.

Pipeline for a single tenant:

    dispatch (casino tag -> adapter) -> fetch (with retry) -> normalize
    -> persist (entries, then rollup) -> invalidate cache

The cycle never raises. Every failure is logged and reported as a
:class:`TenantIngestResult`, so a multi-tenant run can always move on to the
next tenant. Re-running the cycle against an unchanged feed leaves the store
in the same state (entries are upserted on their identity tuple).

Layer:
    application/use_cases/ingestion
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from wagerboard_api.application.interfaces.cache_invalidator import (
    LeaderboardCacheInvalidator,
)
from wagerboard_api.application.schemas.dto.ingestion import IngestOutcome, TenantIngestResult
from wagerboard_api.domain.entities.tenant import Tenant
from wagerboard_api.domain.exceptions.leaderboard import (
    FetchError,
    TenantNotFoundError,
    UnsupportedCasinoError,
)
from wagerboard_api.domain.interfaces.gateways.partner_feed_adapter import PartnerAdapterLookup
from wagerboard_api.domain.interfaces.repositories.leaderboard_store import LeaderboardStore
from wagerboard_api.domain.services.leaderboard_normalizer import normalize_rows
from wagerboard_api.infrastructure.logging.logger import log_context
from wagerboard_api.infrastructure.observability.metrics import (
    get_ingest_rows_total,
    get_ingest_tenant_runs_total,
)
from wagerboard_api.infrastructure.resilience.retry import (
    RetryPolicy,
    retry_async,
    retry_on_exceptions,
)

logger = logging.getLogger(__name__)

DEFAULT_FETCH_POLICY = RetryPolicy(total=2, base=0.5, cap=5.0)

_is_fetch_error = retry_on_exceptions(FetchError)


def is_transient_fetch_error(exc: BaseException) -> bool:
    """Return True for partner failures worth retrying.

    Transport errors and timeouts carry no HTTP status and are retried, as are
    429 and 5xx responses. Any other status (401, 403, 404, ...) is permanent.
    """
    if not _is_fetch_error(exc):
        return False
    status = getattr(exc, "details", {}).get("status")
    if not isinstance(status, int):
        return True
    return status == 429 or status >= 500


class IngestTenantLeaderboard:
    """Fetch, normalize, persist and invalidate for one tenant.

    Args:
        store: Leaderboard persistence port.
        adapters: Casino tag -> partner adapter lookup.
        invalidator: Cache invalidator called after a successful persist.
        fetch_policy: Retry policy for partner downloads (transient
            ``FetchError`` only, see :func:`is_transient_fetch_error`).
        clock: UTC clock used for the batch observation time.
    """

    def __init__(
        self,
        store: LeaderboardStore,
        adapters: PartnerAdapterLookup,
        invalidator: LeaderboardCacheInvalidator | None = None,
        *,
        fetch_policy: RetryPolicy = DEFAULT_FETCH_POLICY,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._store = store
        self._adapters = adapters
        self._invalidator = invalidator
        self._fetch_policy = fetch_policy
        self._clock = clock

    async def ingest_tenant(self, tenant_id: str) -> TenantIngestResult:
        """Load a tenant from the store and ingest it (on-demand refresh).

        Raises:
            TenantNotFoundError: If the tenant does not exist.
            StoreError: If the tenant lookup itself fails.
        """
        tenant = await self._store.get_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(
                f"Tenant not found: {tenant_id}", details={"tenant_id": tenant_id}
            )
        return await self(tenant)

    async def __call__(self, tenant: Tenant) -> TenantIngestResult:
        """Run one ingestion cycle for ``tenant``.

        Returns:
            TenantIngestResult: Outcome, persisted row count and error info.
        """
        casino = tenant.casino_tag
        started = time.perf_counter()

        with log_context(tenant_id=tenant.id):
            logger.info("ingest.tenant.start", extra={"extra": {"casino": casino}})
            try:
                outcome, rows = await self._run(tenant, casino)
                result = TenantIngestResult(
                    tenant_id=tenant.id,
                    casino=casino,
                    outcome=outcome,
                    rows=rows,
                    duration_s=time.perf_counter() - started,
                )
            except UnsupportedCasinoError as exc:
                logger.warning(
                    "ingest.tenant.skipped",
                    extra={"extra": {"casino": casino, "reason": str(exc)}},
                )
                result = self._error_result(tenant, casino, IngestOutcome.SKIPPED, exc, started)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "ingest.tenant.failed",
                    exc_info=True,
                    extra={
                        "extra": {
                            "casino": casino,
                            "error_type": type(exc).__name__,
                            "details": getattr(exc, "details", None),
                        }
                    },
                )
                result = self._error_result(tenant, casino, IngestOutcome.FAILED, exc, started)

            get_ingest_tenant_runs_total().labels(
                casino=casino, outcome=result.outcome.value
            ).inc()
            logger.info(
                "ingest.tenant.done",
                extra={
                    "extra": {
                        "casino": casino,
                        "outcome": result.outcome.value,
                        "rows": result.rows,
                        "duration_s": round(result.duration_s, 3),
                    }
                },
            )
            return result

    async def _run(self, tenant: Tenant, casino: str) -> tuple[IngestOutcome, int]:
        adapter = self._adapters.get(casino)

        raw_rows = await retry_async(
            lambda: adapter.fetch_rows(tenant.api_config),
            policy=self._fetch_policy,
            retry_on=is_transient_fetch_error,
            label=f"partner.fetch:{casino}",
        )

        batch = normalize_rows(
            raw_rows, tenant_id=tenant.id, casino=casino, observed_at=self._clock()
        )
        if not batch:
            logger.warning("ingest.tenant.empty", extra={"extra": {"casino": casino}})
            return IngestOutcome.EMPTY, 0

        stored = await self._store.upsert_entries(batch)
        await self._store.upsert_rollup(tenant.id, casino, [e.to_snapshot() for e in batch])
        get_ingest_rows_total().labels(casino=casino).inc(stored)

        await self._invalidate(tenant.id, casino)
        return IngestOutcome.SUCCEEDED, stored

    async def _invalidate(self, tenant_id: str, casino: str) -> None:
        if self._invalidator is None:
            return
        try:
            await self._invalidator.invalidate(tenant_id, casino)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "ingest.tenant.invalidate_failed",
                extra={
                    "extra": {
                        "casino": casino,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    }
                },
            )

    @staticmethod
    def _error_result(
        tenant: Tenant,
        casino: str,
        outcome: IngestOutcome,
        exc: Exception,
        started: float,
    ) -> TenantIngestResult:
        return TenantIngestResult(
            tenant_id=tenant.id,
            casino=casino,
            outcome=outcome,
            error_type=type(exc).__name__,
            error=str(exc) or type(exc).__name__,
            duration_s=time.perf_counter() - started,
        )
