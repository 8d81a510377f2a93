# src/wagerboard_api/infrastructure/scheduling/periodic.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Interval scheduler for recurring background jobs.

A :class:`PeriodicTask` fires its coroutine function every ``interval_s``
seconds on the running event loop. Runs never overlap: a tick (or a manual
:meth:`PeriodicTask.trigger`) that arrives while the previous run is still in
progress is skipped and logged. Errors raised by a run are logged and never
stop the loop.

Typical usage:
    task = PeriodicTask("leaderboard-ingest", 3600, ingest_all.run_all)
    task.start()
    ...
    await task.stop()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any

__all__ = ["PeriodicTask"]

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Fixed-interval trigger with skip-if-running semantics.

    Args:
        name: Job name used in logs and task names.
        interval_s: Seconds between ticks.
        func: Zero-arg coroutine function executed on each tick.
        run_on_start: Fire once immediately when started.
    """

    def __init__(
        self,
        name: str,
        interval_s: float,
        func: Callable[[], Awaitable[Any]],
        *,
        run_on_start: bool = False,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.name = name
        self.interval_s = float(interval_s)
        self._func = func
        self._run_on_start = run_on_start
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[bool]] = set()
        self.runs = 0
        self.skipped = 0
        self.failures = 0

    @property
    def started(self) -> bool:
        """True while the interval loop is alive."""
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def busy(self) -> bool:
        """True while a run is in progress."""
        return self._lock.locked()

    async def trigger(self) -> bool:
        """Run the job once now unless a run is already in progress.

        Returns:
            ``True`` if the job ran (successfully or not), ``False`` if skipped.
        """
        if self._lock.locked():
            self.skipped += 1
            logger.warning("scheduler.run.skipped", extra={"extra": {"job": self.name}})
            return False

        async with self._lock:
            self.runs += 1
            logger.info(
                "scheduler.run.start", extra={"extra": {"job": self.name, "run": self.runs}}
            )
            try:
                await self._func()
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                self.failures += 1
                logger.error(
                    "scheduler.run.failed", exc_info=True, extra={"extra": {"job": self.name}}
                )
            else:
                logger.info("scheduler.run.done", extra={"extra": {"job": self.name}})
        return True

    def _fire(self) -> None:
        task = asyncio.create_task(self.trigger(), name=f"{self.name}:run")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _loop(self) -> None:
        if self._run_on_start:
            self._fire()
        while True:
            await asyncio.sleep(self.interval_s)
            self._fire()

    def start(self) -> None:
        """Start the interval loop on the running event loop (idempotent)."""
        if self.started:
            return
        self._loop_task = asyncio.create_task(self._loop(), name=f"{self.name}:loop")
        logger.info(
            "scheduler.started",
            extra={
                "extra": {
                    "job": self.name,
                    "interval_s": self.interval_s,
                    "run_on_start": self._run_on_start,
                }
            },
        )

    async def stop(self) -> None:
        """Cancel the loop and any in-flight run, then wait for them to finish."""
        tasks: list[asyncio.Task[Any]] = list(self._inflight)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._loop_task = None
        self._inflight.clear()
        logger.info("scheduler.stopped", extra={"extra": {"job": self.name}})

    async def wait_closed(self) -> None:
        """Block until the loop task ends (used by the long-running CLI)."""
        if self._loop_task is not None:
            with suppress(asyncio.CancelledError):
                await self._loop_task
