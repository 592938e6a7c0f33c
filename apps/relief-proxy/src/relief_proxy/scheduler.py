"""Background job scheduling for cache refreshes.

``AsyncioTaskScheduler`` runs jobs on the event loop. ``ManualTaskScheduler``
keeps a virtual clock so retry timing can be stepped through deterministically.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


class ScheduledTask(Protocol):
    def cancel(self) -> object: ...


class TaskScheduler(Protocol):
    def call_later(self, delay_seconds: float, job: Job) -> ScheduledTask: ...

    def spawn(self, job: Job) -> ScheduledTask: ...


async def _run_job(job: Job) -> None:
    try:
        await job()
    except Exception:
        logger.exception("scheduled_job_failed", extra={"job": getattr(job, "__qualname__", repr(job))})


class AsyncioTaskScheduler:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def call_later(self, delay_seconds: float, job: Job) -> ScheduledTask:
        task = asyncio.get_running_loop().create_task(self._delayed(delay_seconds, job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def spawn(self, job: Job) -> ScheduledTask:
        return self.call_later(0.0, job)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def _delayed(self, delay_seconds: float, job: Job) -> None:
        if delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        await _run_job(job)


class ManualScheduledTask:
    def __init__(self, due_at: float, sequence: int, job: Job) -> None:
        self.due_at = due_at
        self.sequence = sequence
        self.job = job
        self.cancelled = False

    def cancel(self) -> bool:
        self.cancelled = True
        return True


class ManualTaskScheduler:
    def __init__(self, start_seconds: float = 0.0) -> None:
        self.now_seconds = start_seconds
        self._jobs: list[ManualScheduledTask] = []
        self._sequence = itertools.count()

    def clock(self) -> float:
        return self.now_seconds

    def call_later(self, delay_seconds: float, job: Job) -> ManualScheduledTask:
        task = ManualScheduledTask(self.now_seconds + max(delay_seconds, 0.0), next(self._sequence), job)
        self._jobs.append(task)
        return task

    def spawn(self, job: Job) -> ManualScheduledTask:
        return self.call_later(0.0, job)

    @property
    def pending(self) -> list[float]:
        return sorted(task.due_at for task in self._jobs if not task.cancelled)

    async def advance(self, seconds: float) -> int:
        """Move the clock forward, running every job that falls due on the way."""
        target = self.now_seconds + seconds
        ran = 0
        while True:
            due = [task for task in self._jobs if not task.cancelled and task.due_at <= target]
            if not due:
                break
            task = min(due, key=lambda item: (item.due_at, item.sequence))
            self._jobs.remove(task)
            self.now_seconds = max(self.now_seconds, task.due_at)
            await _run_job(task.job)
            ran += 1
        self._jobs = [task for task in self._jobs if not task.cancelled]
        self.now_seconds = target
        return ran

    async def run_pending(self) -> int:
        return await self.advance(0.0)
