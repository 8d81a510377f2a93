# src/wagerboard_api/infrastructure/http/errors.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application-wide exception handlers rendering the ErrorEnvelope shape."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from wagerboard_api.domain.exceptions.base import DomainError
from wagerboard_api.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)


def _trace_id(request: Request) -> str | None:
    return request.headers.get("X-Request-ID")


def error_envelope(
    *,
    code: str,
    http_status: int,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {
        "code": code,
        "http_status": http_status,
        "message": message,
    }
    if details is not None:
        err["details"] = details
    if trace_id is not None:
        err["trace_id"] = trace_id
    return {"error": err}


async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
    payload = error_envelope(
        code="VALIDATION_ERROR",
        http_status=422,
        message="Request validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=422, content=payload)


async def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    payload = error_envelope(
        code="HTTP_ERROR",
        http_status=exc.status_code,
        message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        details=None if isinstance(exc.detail, str) else {"detail": exc.detail},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=payload)


async def handle_domain_error(request: Request, exc: DomainError) -> Response:
    """Fallback for domain errors a router did not map explicitly."""
    logger.error(
        "http.domain_error",
        exc_info=exc,
        extra={"extra": {"code": exc.code, "path": request.url.path}},
    )
    payload = error_envelope(
        code=exc.code,
        http_status=500,
        message=str(exc) or exc.code,
        details=exc.details or None,
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=500, content=payload)


async def handle_unhandled_exception(request: Request, exc: Exception) -> Response:
    logger.error(
        "http.unhandled_error",
        exc_info=exc,
        extra={"extra": {"error_type": type(exc).__name__, "path": request.url.path}},
    )
    payload = error_envelope(
        code="INTERNAL_ERROR",
        http_status=500,
        message="Internal server error",
        details=None,
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=500, content=payload)
