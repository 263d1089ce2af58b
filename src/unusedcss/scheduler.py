# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""FetchScheduler — bounded-concurrency job queue with a drain barrier.

Capacity is gated by ``asyncio.Semaphore`` (CPython FIFO-guaranteed).
``add()`` schedules a job immediately and never blocks; ``drain()`` waits
for every job, including jobs that running jobs add themselves::

    scheduler = FetchScheduler(concurrency=8)
    for url in urls:
        scheduler.add(partial(scan, client, ctx, url))
    stats = await scheduler.drain()

A failing job is logged and counted, never propagated: one bad job cannot
abort the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .config import default_concurrency

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


@dataclass(frozen=True, slots=True)
class SchedulerStats:
    """Immutable snapshot of job outcomes."""

    succeeded: int
    failed: int

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


class FetchScheduler:
    """Runs at most ``concurrency`` jobs at a time.

    A job counts as failed if it raises or returns ``False``.
    Must be created inside a running event loop.
    """

    def __init__(self, *, concurrency: int | None = None) -> None:
        self._concurrency = concurrency or default_concurrency()
        self._semaphore = asyncio.Semaphore(self._concurrency)
        self._tasks: set[asyncio.Task] = set()
        self._succeeded = 0
        self._failed = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def pending(self) -> int:
        """Jobs added but not yet finished (running or waiting for a slot)."""
        return len(self._tasks)

    def add(self, job: Job) -> None:
        """Enqueue *job*. Returns immediately."""
        task = asyncio.get_running_loop().create_task(self._run(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, job: Job) -> None:
        async with self._semaphore:
            try:
                result = await job()
            except Exception:
                logger.exception("Scheduled job failed")
                self._failed += 1
                return
        if result is False:
            self._failed += 1
        else:
            self._succeeded += 1

    async def drain(self) -> SchedulerStats:
        """Wait until no job is pending, then return outcome counts."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        return SchedulerStats(succeeded=self._succeeded, failed=self._failed)
