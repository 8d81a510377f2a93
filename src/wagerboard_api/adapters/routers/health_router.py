# src/wagerboard_api/adapters/routers/health_router.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Health endpoint (Adapters Layer).

Purpose:
    Expose a liveness signal suitable for container orchestrators and load
    balancers. The check performs no external I/O.
"""

from __future__ import annotations

import typing as t

from fastapi import APIRouter, status

from wagerboard_api.adapters.schemas.http.base import BaseHTTPSchema

router = APIRouter(tags=["Health"])


class LivenessResponse(BaseHTTPSchema):
    """Liveness response indicating the process is running."""

    status: t.Literal["ok"] = "ok"


@router.get(
    "/healthz",
    summary="Liveness",
    operation_id="health_liveness",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
)
async def liveness() -> LivenessResponse:
    """Return a fast liveness signal (no external I/O)."""
    return LivenessResponse()
