"""One-shot deferred reversals (unban, verification restore).

Timers are plain asyncio tasks held in a set so they are not garbage
collected mid-sleep. They are not persisted: a restart drops them.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Set

from ..infrastructure.logging.structured_logging import error as log_error, info as log_info


class DeferredTasks:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def schedule(self, delay_seconds: float, job: Callable[[], Awaitable[None]], label: str) -> asyncio.Task:
        task = asyncio.create_task(self._run(delay_seconds, job, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        log_info("scheduler.scheduled", label=label, delay_seconds=round(delay_seconds, 1))
        return task

    async def _run(self, delay_seconds: float, job: Callable[[], Awaitable[None]], label: str) -> None:
        await asyncio.sleep(delay_seconds)
        try:
            await job()
            log_info("scheduler.fired", label=label)
        except Exception as e:  # noqa: BLE001
            log_error("scheduler.job_failed", label=label, error=str(e))

    @property
    def pending(self) -> int:
        return len(self._tasks)


__all__ = ['DeferredTasks']
