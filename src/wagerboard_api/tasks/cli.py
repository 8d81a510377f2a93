# src/wagerboard_api/tasks/cli.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Wagerboard CLI: operational commands (ingest, schedule, cache).

Commands:
    ingest all          Run one ingestion cycle for every tenant.
    ingest tenant       Run one ingestion cycle for a single tenant.
    schedule            Long-running loop ingesting every tenant on an interval.
    cache invalidate    Drop cached leaderboard views for a (tenant, casino) pair.

Environment:
    DATABASE_URL        Async SQLAlchemy URL.
    REDIS_URL           Redis URL for the leaderboard cache.
    INGEST_*            Scheduler and concurrency knobs (see Settings).
"""

from __future__ import annotations

import asyncio

import typer

from wagerboard_api.config.settings import get_settings
from wagerboard_api.dependencies.core.bootstrap import bootstrap, build_scheduler
from wagerboard_api.domain.exceptions.leaderboard import StoreError, TenantNotFoundError
from wagerboard_api.infrastructure.logging.logger import configure_root_logging, get_json_logger

configure_root_logging()
log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)
ingest_app = typer.Typer(no_args_is_help=True)
cache_app = typer.Typer(no_args_is_help=True)
app.add_typer(ingest_app, name="ingest")
app.add_typer(cache_app, name="cache")


@ingest_app.command("all")
def ingest_all() -> None:
    """Ingest every tenant once and print the run report as JSON.

    Exits with status 1 when the tenant list cannot be loaded. Per-tenant
    failures are reported in the output and do not change the exit status.
    """

    async def _run() -> str:
        async with bootstrap(start_scheduler=False) as state:
            report = await state.services.ingest_all.run_all()
            return report.model_dump_json()

    try:
        typer.echo(asyncio.run(_run()))
    except StoreError as exc:
        log.error("cli.ingest_all.failed", extra={"extra": {"error": str(exc)}})
        raise typer.Exit(code=1) from exc


@ingest_app.command("tenant")
def ingest_tenant(
    tenant_id: str = typer.Option(..., "--tenant-id", help="Tenant identifier."),  # noqa: B008
) -> None:
    """Ingest a single tenant once and print its result as JSON."""

    async def _run() -> str:
        async with bootstrap(start_scheduler=False) as state:
            result = await state.services.ingest_tenant.ingest_tenant(tenant_id)
            return result.model_dump_json()

    try:
        typer.echo(asyncio.run(_run()))
    except TenantNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    except StoreError as exc:
        log.error("cli.ingest_tenant.failed", extra={"extra": {"error": str(exc)}})
        raise typer.Exit(code=1) from exc


@app.command("schedule")
def schedule(
    interval_seconds: int | None = typer.Option(  # noqa: B008
        None, min=1, help="Override INGEST_INTERVAL_SECONDS."
    ),
    run_on_start: bool | None = typer.Option(  # noqa: B008
        None, "--run-on-start/--no-run-on-start", help="Override INGEST_RUN_ON_STARTUP."
    ),
) -> None:
    """Run the ingestion scheduler in the foreground until interrupted."""
    updates: dict[str, object] = {}
    if interval_seconds is not None:
        updates["ingest_interval_seconds"] = interval_seconds
    if run_on_start is not None:
        updates["ingest_run_on_startup"] = run_on_start
    settings = get_settings().model_copy(update=updates)

    async def _run() -> None:
        async with bootstrap(settings, start_scheduler=False) as state:
            scheduler = build_scheduler(settings, state.services)
            scheduler.start()
            try:
                await scheduler.wait_closed()
            finally:
                await scheduler.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        log.info("cli.schedule.interrupted")


@cache_app.command("invalidate")
def cache_invalidate(
    tenant_id: str = typer.Option(..., "--tenant-id", help="Tenant identifier."),  # noqa: B008
    casino: str = typer.Option(..., "--casino", help="Casino tag, e.g. stake."),  # noqa: B008
) -> None:
    """Drop every cached page and the cached configuration of the pair."""

    async def _run() -> int:
        async with bootstrap(start_scheduler=False) as state:
            return await state.services.query_service.invalidate(tenant_id, casino)

    keys = asyncio.run(_run())
    log.info(
        "cli.cache_invalidate.done",
        extra={"extra": {"tenant_id": tenant_id, "casino": casino, "keys": keys}},
    )
    typer.echo(f"invalidated {keys} keys")


if __name__ == "__main__":
    app()
