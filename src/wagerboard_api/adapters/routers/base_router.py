# src/wagerboard_api/adapters/routers/base_router.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Base Router (Adapters Layer)

Purpose:
    Canonical APIRouter wrapper and shared utilities for Wagerboard endpoints:
      - Versioned routing with stable prefixes (e.g., "/v1/leaderboards").
      - Standard error response mapping using ErrorEnvelope.
      - Pagination query dependency with hard caps.
      - Helper to build ErrorEnvelope bodies from domain errors.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from wagerboard_api.adapters.schemas.http.envelopes import ErrorEnvelope, ErrorObject
from wagerboard_api.domain.exceptions.base import DomainError
from wagerboard_api.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

TagType = str | Enum


@dataclass(frozen=True)
class PageParams:
    """Validated pagination parameters.

    Attributes:
        page: 1-indexed page number.
        page_size: Items per page.
    """

    page: int
    page_size: int


class BaseRouter(APIRouter):
    """Canonical router wrapper for Wagerboard HTTP endpoints.

    Args:
        version: API version segment (e.g., "v1").
        resource: Plural resource segment (e.g., "leaderboards").
        prefix: Optional explicit prefix (overrides version/resource).
        tags: Default tags applied to all routes mounted on this router.
        **kwargs: Additional APIRouter kwargs.
    """

    MIN_PAGE: int = 1
    MIN_PAGE_SIZE: int = 1
    MAX_PAGE_SIZE: int = 200
    DEFAULT_PAGE_SIZE: int = 20

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        **kwargs: Any,
    ) -> None:
        computed_prefix = prefix or f"/{version}/{resource}"
        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            **kwargs,
        )
        _LOGGER.info(
            "router_initialized",
            extra={"extra": {"prefix": computed_prefix, "tags": [str(t) for t in tags or []]}},
        )

    @classmethod
    def page_params(
        cls,
        page: Annotated[
            int, Query(description="1-indexed page number.", examples=[1], ge=1)
        ] = 1,
        page_size: Annotated[
            int,
            Query(description="Items per page (1..200).", examples=[20], ge=1, le=200),
        ] = 20,
    ) -> PageParams:
        """Return validated pagination parameters.

        Out-of-range values are rejected by FastAPI with 422 before the
        handler runs.
        """
        return PageParams(page=page, page_size=page_size)

    @staticmethod
    def error(
        *,
        status_code: int,
        code: str,
        exc: Exception,
        trace_id: str | None = None,
    ) -> JSONResponse:
        """Return an ErrorEnvelope response for ``exc``.

        A concrete response bypasses the route's success ``response_model``.
        """
        details = dict(exc.details) if isinstance(exc, DomainError) else {}
        envelope = ErrorEnvelope(
            error=ErrorObject(
                code=code,
                http_status=status_code,
                message=str(exc) or type(exc).__name__,
                details=details,
                trace_id=trace_id,
            )
        )
        return JSONResponse(status_code=status_code, content=envelope.model_dump_http())

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Return the canonical error response mapping for endpoints."""
        return {
            404: {"model": ErrorEnvelope, "description": "Not found."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
            503: {"model": ErrorEnvelope, "description": "Service unavailable."},
        }
