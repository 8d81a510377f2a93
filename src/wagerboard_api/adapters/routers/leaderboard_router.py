# src/wagerboard_api/adapters/routers/leaderboard_router.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Leaderboards Router.

Summary:
    Read endpoints for paginated leaderboards and leaderboard configuration,
    plus command endpoints for cache invalidation and on-demand refresh.

Layer:
    adapters/routers

Routes (prefix ``/v1/leaderboards``):
    GET  /{tenant_id}/{casino}                   paginated leaderboard page
    GET  /{tenant_id}/{casino}/config            leaderboard configuration
    POST /{tenant_id}/{casino}/cache/invalidate  drop cached views of the pair
    POST /{tenant_id}/refresh                    ingest one tenant now
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Path, Request, status
from fastapi.responses import JSONResponse

from wagerboard_api.adapters.routers.base_router import BaseRouter, PageParams
from wagerboard_api.adapters.schemas.http.envelopes import (
    AckEnvelope,
    SuccessEnvelope,
)
from wagerboard_api.application.schemas.dto.ingestion import TenantIngestResult
from wagerboard_api.application.schemas.dto.leaderboard import LeaderboardPageDTO
from wagerboard_api.application.services.leaderboard_query_service import (
    LeaderboardQueryService,
)
from wagerboard_api.application.use_cases.ingestion.ingest_tenant_leaderboard import (
    IngestTenantLeaderboard,
)
from wagerboard_api.dependencies.leaderboard import get_ingest_tenant_uc, get_query_service
from wagerboard_api.domain.exceptions.leaderboard import StoreError, TenantNotFoundError

router = BaseRouter(version="v1", resource="leaderboards", tags=["Leaderboards"])

STORE_UNAVAILABLE = StoreError.code

TenantId = Annotated[str, Path(min_length=1, max_length=64, examples=["tenant-a"])]
CasinoTag = Annotated[str, Path(min_length=1, max_length=32, examples=["stake"])]


def _trace_id(request: Request) -> str | None:
    return request.headers.get("X-Request-ID")


@router.get(
    "/{tenant_id}/{casino}",
    response_model=SuccessEnvelope[LeaderboardPageDTO],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Get a leaderboard page",
    operation_id="getLeaderboardData",
)
async def get_leaderboard_data(
    request: Request,
    tenant_id: TenantId,
    casino: CasinoTag,
    paging: Annotated[PageParams, Depends(BaseRouter.page_params)],
    service: Annotated[LeaderboardQueryService, Depends(get_query_service)],
) -> SuccessEnvelope[LeaderboardPageDTO] | JSONResponse:
    """Return one page of a tenant's leaderboard for a casino, ordered by rank.

    A pair that was never ingested returns an empty page (``total_pages == 0``).
    """
    try:
        page = await service.get_page(
            tenant_id, casino, page=paging.page, page_size=paging.page_size
        )
    except StoreError as exc:
        return BaseRouter.error(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code=STORE_UNAVAILABLE,
            exc=exc,
            trace_id=_trace_id(request),
        )
    return SuccessEnvelope[LeaderboardPageDTO](data=page)


@router.get(
    "/{tenant_id}/{casino}/config",
    response_model=SuccessEnvelope[dict[str, Any]],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Get leaderboard configuration",
    operation_id="getLeaderboardConfig",
)
async def get_leaderboard_config(
    request: Request,
    tenant_id: TenantId,
    casino: CasinoTag,
    service: Annotated[LeaderboardQueryService, Depends(get_query_service)],
) -> SuccessEnvelope[dict[str, Any]] | JSONResponse:
    """Return the leaderboard configuration blob (``{}`` when none is stored)."""
    try:
        config = await service.get_config(tenant_id, casino)
    except StoreError as exc:
        return BaseRouter.error(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code=STORE_UNAVAILABLE,
            exc=exc,
            trace_id=_trace_id(request),
        )
    return SuccessEnvelope[dict[str, Any]](data=config)


@router.post(
    "/{tenant_id}/{casino}/cache/invalidate",
    response_model=AckEnvelope,
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Invalidate cached leaderboard views",
    operation_id="invalidateCache",
)
async def invalidate_cache(
    tenant_id: TenantId,
    casino: CasinoTag,
    service: Annotated[LeaderboardQueryService, Depends(get_query_service)],
) -> AckEnvelope:
    """Drop every cached page and the cached configuration of the pair."""
    await service.invalidate(tenant_id, casino)
    return AckEnvelope(success=True)


@router.post(
    "/{tenant_id}/refresh",
    response_model=SuccessEnvelope[TenantIngestResult],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Ingest one tenant now",
    operation_id="refreshTenantLeaderboard",
)
async def refresh_tenant(
    request: Request,
    tenant_id: TenantId,
    uc: Annotated[IngestTenantLeaderboard, Depends(get_ingest_tenant_uc)],
) -> SuccessEnvelope[TenantIngestResult] | JSONResponse:
    """Run one ingestion cycle for the tenant and return its result.

    Partner and parse failures are reported inside the result
    (``outcome == "failed"``), not as HTTP errors.
    """
    try:
        result = await uc.ingest_tenant(tenant_id)
    except TenantNotFoundError as exc:
        return BaseRouter.error(
            status_code=status.HTTP_404_NOT_FOUND,
            code=TenantNotFoundError.code,
            exc=exc,
            trace_id=_trace_id(request),
        )
    except StoreError as exc:
        return BaseRouter.error(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code=STORE_UNAVAILABLE,
            exc=exc,
            trace_id=_trace_id(request),
        )
    return SuccessEnvelope[TenantIngestResult](data=result)
