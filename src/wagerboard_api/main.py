# src/wagerboard_api/main.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires exception handlers and routers. Provides an
    application factory (`create_app`) and a module-level eager app (`app`)
    for ASGI servers and tooling.

Design:
    • Bootstrap only (no business logic).
    • Lifespan initializes DB/Redis/HTTP, builds the service graph, starts the
      ingestion scheduler when enabled, and tears everything down safely.
    • Root JSON logging configured at import time.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import Response

from wagerboard_api.adapters.routers import health, leaderboards, metrics
from wagerboard_api.config.settings import get_settings
from wagerboard_api.dependencies.core.bootstrap import bootstrap
from wagerboard_api.domain.exceptions.base import DomainError
from wagerboard_api.infrastructure.http.errors import (
    handle_domain_error,
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_error,
)
from wagerboard_api.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
configure_root_logging()
logger = get_json_logger(__name__)


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------
@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize and teardown shared infrastructure via the core bootstrap.

    Exposes settings, the shared HTTP client, the query service, the
    ingestion use cases and the scheduler on ``app.state`` for dependencies.
    """
    async with bootstrap() as state:
        app.state.settings = state.settings
        app.state.http_client = state.http_client
        app.state.query_service = state.services.query_service
        app.state.ingest_tenant = state.services.ingest_tenant
        app.state.ingest_all = state.services.ingest_all
        app.state.scheduler = state.scheduler
        yield


def _patch_exception_handlers(app: FastAPI) -> None:
    """Install structured handlers rendering the ErrorEnvelope shape."""

    async def _http_error_handler(request: Request, exc: Exception) -> Response:
        if not isinstance(exc, HTTPException):
            raise exc
        return await handle_http_exception(request, exc)

    async def _validation_error_handler(request: Request, exc: Exception) -> Response:
        if not isinstance(exc, RequestValidationError):
            raise exc
        return await handle_validation_error(request, exc)

    async def _domain_error_handler(request: Request, exc: Exception) -> Response:
        if not isinstance(exc, DomainError):
            raise exc
        return await handle_domain_error(request, exc)

    async def _unhandled_error_handler(request: Request, exc: Exception) -> Response:
        return await handle_unhandled_exception(request, exc)

    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    service_name = settings.service_name
    service_version = os.getenv("SERVICE_VERSION", "0.1.0")

    app = FastAPI(
        title="Wagerboard API",
        version=service_version,
        description="Multi-tenant casino leaderboards.",
        lifespan=runtime_lifespan,
    )

    _patch_exception_handlers(app)

    app.include_router(health)
    app.include_router(metrics)
    app.include_router(leaderboards)

    logger.info(
        "service_startup",
        extra={
            "extra": {
                "service": service_name,
                "env": settings.environment.value,
                "version": service_version,
                "status": "starting",
            }
        },
    )
    return app


# Eager app for ASGI servers and tools.
app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "wagerboard_api.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8080")),
        reload=True,
    )
